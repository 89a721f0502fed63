from __future__ import annotations

import pytest

from near_shell.config import (
    DEFAULT_KEY_STORE_DIR,
    NETWORKS,
    ShellConfig,
    is_ci,
    is_debug,
    load_config,
    resolve_network,
)


def test_default_is_testnet():
    config = load_config(env={})
    assert config.network_id == "testnet"
    assert config.node_url == NETWORKS["testnet"]["node_url"]
    assert config.wallet_url == "https://wallet.testnet.near.org"
    assert config.key_store_dir == DEFAULT_KEY_STORE_DIR


@pytest.mark.parametrize(
    "name,network_id",
    [("development", "testnet"), ("production", "mainnet"), ("MAINNET", "mainnet"), ("test", "shared-test")],
)
def test_aliases(name, network_id):
    assert load_config(name, env={}).network_id == network_id


def test_near_env_selects_preset():
    assert load_config(env={"NEAR_ENV": "mainnet"}).node_url == "https://rpc.mainnet.near.org"


def test_ci_network_has_master_account_and_no_wallet():
    config = load_config("ci", env={})
    assert config.master_account == "test.near"
    assert config.wallet_url is None


def test_unknown_network():
    with pytest.raises(ValueError, match="Unknown network"):
        resolve_network("moonnet")


def test_env_then_explicit_overrides():
    env = {"NEAR_NODE_URL": "http://env:3030", "NEAR_WALLET_URL": "http://env-wallet", "NEAR_TIMEOUT": "5"}
    config = load_config("testnet", env=env, node_url="http://flag:3030", wallet_url=None)

    assert config.node_url == "http://flag:3030"
    assert config.wallet_url == "http://env-wallet"
    assert config.timeout == 5.0


def test_with_overrides_skips_none():
    config = ShellConfig(network_id="testnet", node_url="http://a")
    changed = config.with_overrides(node_url="http://b", helper_url=None)
    assert changed.node_url == "http://b"
    assert changed.helper_url is None
    assert config.node_url == "http://a"


def test_is_ci_and_debug():
    assert is_ci({"CI": "1"})
    assert not is_ci({"CI": "false", "BUILD_NUMBER": "3"})
    assert not is_ci({})
    assert is_debug({"NEAR_DEBUG": "1"})
    assert not is_debug({})
