from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from conftest import HELPER_URL, NODE_URL, WALLET_URL, decode_signer_and_nonce
from near_shell.cli import main
from near_shell.cli.main import app
from near_shell.connection import connect
from near_shell.errors import AccountDoesNotExist
from near_shell.keystore import UnencryptedFileSystemKeyStore
from near_shell.version import __version__

runner = CliRunner()


def run_cli(args: list[str], key_store_dir: Path, **kwargs):
    base = [
        "--node-url",
        NODE_URL,
        "--helper-url",
        HELPER_URL,
        "--wallet-url",
        WALLET_URL,
        "--key-store-dir",
        str(key_store_dir),
    ]
    return runner.invoke(app, base + args, **kwargs)


def body_after_header(output: str):
    """Command output is a one-line header followed by pretty JSON."""
    return json.loads(output.split("\n", 1)[1])


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == f"near-shell {__version__}"


def test_unknown_network_is_usage_error() -> None:
    result = runner.invoke(app, ["--network", "moonnet", "version"])
    assert result.exit_code == 2


def test_state_prints_formatted_amount(node, key_store_dir) -> None:
    node.add_account("alice.testnet", amount="1000500000000000000000000000")

    result = run_cli(["state", "alice.testnet"], key_store_dir)

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("Account alice.testnet\n")
    state = body_after_header(result.stdout)
    assert state["amount"] == "1000500000000000000000000000"
    assert state["formattedAmount"] == "1,000.5"


def test_state_of_missing_account_fails(node, key_store_dir) -> None:
    result = run_cli(["state", "ghost.testnet"], key_store_dir)
    assert result.exit_code == 1
    assert isinstance(result.exception, AccountDoesNotExist)


def test_main_reports_errors_and_exit_code(node, key_store_dir, capsys) -> None:
    code = main(["--node-url", NODE_URL, "--key-store-dir", str(key_store_dir), "state", "ghost.testnet"])
    assert code == 1
    assert "error: Account 'ghost.testnet' does not exist" in capsys.readouterr().err


def test_main_returns_command_exit_code(monkeypatch: pytest.MonkeyPatch) -> None:
    import near_shell.cli.main as cli_main

    stub = typer.Typer()

    @stub.command()
    def fail() -> None:
        raise typer.Exit(3)

    monkeypatch.setattr(cli_main, "app", stub)
    assert main([]) == 3


def test_main_success_is_zero(capsys) -> None:
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"near-shell {__version__}"


def test_commands_close_their_rpc_client(
    node, key_store_dir, key_pair, monkeypatch: pytest.MonkeyPatch
) -> None:
    from near_shell.cli import common

    opened = []

    def tracking_connect(config, key_store=None):
        near = connect(config, key_store=key_store)
        opened.append(near)
        return near

    monkeypatch.setattr(common, "connect", tracking_connect)
    node.add_account("alice.testnet", keys=[key_pair.public_key.to_string()])
    node.add_account("bob.testnet")
    UnencryptedFileSystemKeyStore(key_store_dir).set_key("testnet", "alice.testnet", key_pair)

    assert run_cli(["state", "alice.testnet"], key_store_dir).exit_code == 0
    assert run_cli(["send", "alice.testnet", "bob.testnet", "1"], key_store_dir).exit_code == 0
    assert run_cli(["state", "ghost.testnet"], key_store_dir).exit_code == 1

    assert len(opened) == 3
    assert all(near.provider._client.is_closed for near in opened)


def test_keys_lists_access_keys(node, key_store_dir, key_pair) -> None:
    pk = key_pair.public_key.to_string()
    node.add_account("alice.testnet", keys=[pk])

    result = run_cli(["keys", "alice.testnet"], key_store_dir)

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("Keys for account alice.testnet\n")
    keys = body_after_header(result.stdout)
    assert [k["public_key"] for k in keys] == [pk]


def test_view_passes_json_args(node, key_store_dir) -> None:
    node.add_account("counter.testnet")
    node.views[("counter.testnet", "get_num")] = {"num": 3}

    result = run_cli(["view", "counter.testnet", "get_num", '{"who": "bob"}'], key_store_dir)

    assert result.exit_code == 0, result.output
    assert 'View call: counter.testnet.get_num({"who": "bob"})' in result.stdout
    assert body_after_header(result.stdout) == {"num": 3}
    sent_args = node.calls[-1]["params"]["args_base64"]
    assert json.loads(base64.b64decode(sent_args)) == {"who": "bob"}


def test_view_rejects_non_object_args(node, key_store_dir) -> None:
    result = run_cli(["view", "counter.testnet", "get_num", "[1, 2]"], key_store_dir)
    assert result.exit_code == 2
    assert node.calls == []


def test_send_signs_with_stored_key(node, key_store_dir, key_pair) -> None:
    node.add_account("alice.testnet", keys=[key_pair.public_key.to_string()])
    node.add_account("bob.testnet")
    UnencryptedFileSystemKeyStore(key_store_dir).set_key("testnet", "alice.testnet", key_pair)

    result = run_cli(["send", "alice.testnet", "bob.testnet", "1.5"], key_store_dir)

    assert result.exit_code == 0, result.output
    assert "Sending 1.5 (1500000000000000000000000) NEAR to bob.testnet from alice.testnet" in result.stdout
    assert len(node.sent) == 1
    assert decode_signer_and_nonce(node.sent[0]) == ("alice.testnet", 8)


def test_send_without_key_fails(node, key_store_dir) -> None:
    node.add_account("alice.testnet")
    result = run_cli(["send", "alice.testnet", "bob.testnet", "1"], key_store_dir)
    assert result.exit_code == 1
    assert "no matching key pair found" in str(result.exception)
    assert node.sent == []


def test_stake_sends_stake_action(node, key_store_dir, key_pair) -> None:
    pk = key_pair.public_key.to_string()
    node.add_account("alice.testnet", keys=[pk])
    UnencryptedFileSystemKeyStore(key_store_dir).set_key("testnet", "alice.testnet", key_pair)

    result = run_cli(["stake", "alice.testnet", pk, "100"], key_store_dir)

    assert result.exit_code == 0, result.output
    assert f"Staking 100 (100000000000000000000000000) on alice.testnet with public key = {pk}." in result.stdout
    unsigned = node.sent[0][:-65]
    assert unsigned.endswith(b"\x04" + (10**26).to_bytes(16, "little") + b"\x00" + key_pair.public_key.data)


def test_call_prints_last_result(node, key_store_dir, key_pair) -> None:
    node.add_account("alice.testnet", keys=[key_pair.public_key.to_string()])
    node.add_account("counter.testnet")
    node.return_value = b'{"num": 4}'
    UnencryptedFileSystemKeyStore(key_store_dir).set_key("testnet", "alice.testnet", key_pair)

    result = run_cli(
        ["call", "counter.testnet", "increment", "--account-id", "alice.testnet", "--amount", "0.5"],
        key_store_dir,
    )

    assert result.exit_code == 0, result.output
    assert "Scheduling a call: counter.testnet.increment() with attached 500000000000000000000000 NEAR" in result.stdout
    assert body_after_header(result.stdout) == {"num": 4}


def test_deploy_reads_wasm_file(node, key_store_dir, key_pair, tmp_path) -> None:
    node.add_account("alice.testnet", keys=[key_pair.public_key.to_string()])
    UnencryptedFileSystemKeyStore(key_store_dir).set_key("testnet", "alice.testnet", key_pair)
    wasm = tmp_path / "main.wasm"
    wasm.write_bytes(b"\x00asm\x01\x00\x00\x00")

    result = run_cli(["deploy", "--account-id", "alice.testnet", "--wasm-file", str(wasm)], key_store_dir)

    assert result.exit_code == 0, result.output
    assert "Starting deployment. Account id: alice.testnet" in result.stdout
    assert "Done deploying to alice.testnet" in result.stdout
    assert b"\x00asm\x01\x00\x00\x00" in node.sent[0]


def test_create_account_through_helper_stores_key(node, key_store_dir) -> None:
    helper = node.router.post(f"{HELPER_URL}/account").respond(json={"ok": True})

    result = run_cli(["create_account", "newbie.testnet"], key_store_dir)

    assert result.exit_code == 0, result.output
    assert 'Account newbie.testnet for network "testnet" was created.' in result.stdout
    request = json.loads(helper.calls.last.request.content)
    assert request["newAccountId"] == "newbie.testnet"
    stored = UnencryptedFileSystemKeyStore(key_store_dir).get_key("testnet", "newbie.testnet")
    assert stored is not None
    assert stored.public_key.to_string() == request["newAccountPublicKey"]


def test_create_account_with_public_key_does_not_store(node, key_store_dir, key_pair) -> None:
    node.router.post(f"{HELPER_URL}/account").respond(json={"ok": True})
    pk = key_pair.public_key.to_string()

    result = run_cli(["create_account", "newbie.testnet", "--public-key", pk], key_store_dir)

    assert result.exit_code == 0, result.output
    assert not (key_store_dir / "testnet" / "newbie.testnet.json").exists()


def test_delete_sends_beneficiary(node, key_store_dir, key_pair) -> None:
    node.add_account("alice.testnet", keys=[key_pair.public_key.to_string()])
    UnencryptedFileSystemKeyStore(key_store_dir).set_key("testnet", "alice.testnet", key_pair)

    result = run_cli(["delete", "alice.testnet", "bob.testnet"], key_store_dir)

    assert result.exit_code == 0, result.output
    assert "beneficiary: bob.testnet" in result.stdout
    assert 'Account alice.testnet for network "testnet" was deleted.' in result.stdout
    # DeleteAccount action (tag 7) sits right before the 1 + 64 byte signature
    unsigned = node.sent[0][:-65]
    assert unsigned.endswith(b"\x07" + (11).to_bytes(4, "little") + b"bob.testnet")


def test_clean_removes_out_dir(tmp_path) -> None:
    out = tmp_path / "out"
    out.mkdir()
    (out / "main.wasm").write_bytes(b"x")

    result = runner.invoke(app, ["clean", "--out-dir", str(out)])

    assert result.exit_code == 0, result.output
    assert "Clean complete." in result.stdout
    assert not out.exists()


def test_login_not_needed_on_ci_network(key_store_dir) -> None:
    result = runner.invoke(app, ["--network", "ci", "--key-store-dir", str(key_store_dir), "login"])
    assert result.exit_code == 0, result.output
    assert "Log in is not needed on this environment" in result.stdout


def test_login_on_ci_prints_url_and_rejects_unknown_key(
    node, key_store_dir, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CI", "true")
    node.add_account("alice.testnet", keys=[])

    result = run_cli(["login"], key_store_dir, input="alice.testnet\n")

    assert result.exit_code == 0, result.output
    assert f"{WALLET_URL}/login/?title=NEAR+Shell&public_key=ed25519%3A" in result.stdout
    assert "has not authorized the expected key" in result.stdout
    assert not (key_store_dir / "testnet" / "alice.testnet.json").exists()
