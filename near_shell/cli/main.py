"""
near_shell.cli.main
===================

`near` — command-line front end for accounts and contracts on NEAR-style
networks.

Examples
--------
    $ near login
    $ near create_account bob.testnet --master-account alice.testnet
    $ near state alice.testnet
    $ near send alice.testnet bob.testnet 1.5
    $ near deploy --account-id alice.testnet --wasm-file out/main.wasm
    $ near call counter.testnet increment --account-id alice.testnet
    $ near view counter.testnet get_num

Configuration
-------------
- Network preset : `--network` or env `NEAR_ENV` (testnet, mainnet, local, ci)
- Node URL       : `--node-url` or env `NEAR_NODE_URL`
- Wallet URL     : `--wallet-url` or env `NEAR_WALLET_URL`
- Key store dir  : `--key-store-dir` or env `NEAR_KEY_STORE_DIR` (default: ./neardev)
- HTTP Timeout   : `--timeout` or env `NEAR_TIMEOUT` seconds (default: 30)
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click
import typer

from ..config import load_config
from ..log import setup_logging
from ..version import __version__ as SHELL_VERSION
from . import account, contract

log = logging.getLogger("near_shell.cli")

app = typer.Typer(
    name="near",
    help="NEAR Shell: create accounts, deploy and call contracts, send tokens.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main"]


@app.callback()
def _root(
    ctx: typer.Context,
    network: Optional[str] = typer.Option(
        None, "--network", help="Network preset (testnet, mainnet, local, ci).", envvar="NEAR_ENV"
    ),
    network_id: Optional[str] = typer.Option(
        None, "--network-id", help="Network id used to namespace stored keys.", envvar="NEAR_NETWORK_ID"
    ),
    node_url: Optional[str] = typer.Option(
        None, "--node-url", help="Node JSON-RPC URL.", envvar="NEAR_NODE_URL"
    ),
    helper_url: Optional[str] = typer.Option(
        None, "--helper-url", help="Contract helper URL (account creation).", envvar="NEAR_HELPER_URL"
    ),
    wallet_url: Optional[str] = typer.Option(
        None, "--wallet-url", help="Web wallet URL used by login.", envvar="NEAR_WALLET_URL"
    ),
    key_path: Optional[str] = typer.Option(
        None, "--key-path", help="JSON key file of a master/validator account.", envvar="NEAR_KEY_PATH"
    ),
    key_store_dir: Optional[str] = typer.Option(
        None, "--key-store-dir", help="Directory of the local key store.", envvar="NEAR_KEY_STORE_DIR"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="HTTP timeout in seconds.", envvar="NEAR_TIMEOUT"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    """
    Resolve the effective ShellConfig for this process and hand it to the
    subcommand through the Typer context.
    """
    setup_logging(verbose)
    try:
        config = load_config(
            network,
            network_id=network_id,
            node_url=node_url,
            helper_url=helper_url,
            wallet_url=wallet_url,
            key_path=key_path,
            key_store_dir=key_store_dir,
            timeout=timeout,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--network") from e
    log.debug("effective config: %s", config)
    ctx.obj = config


@app.command("version")
def version() -> None:
    """Print the near-shell version."""
    typer.echo(f"near-shell {SHELL_VERSION}")


app.command("login")(account.login)
app.command("create_account")(account.create_account)
app.command("state")(account.state)
app.command("delete")(account.delete)
app.command("keys")(account.keys)
app.command("send")(account.send)
app.command("stake")(account.stake)
app.command("deploy")(contract.deploy)
app.command("call")(contract.call)
app.command("view")(contract.view)
app.command("clean")(contract.clean)


# --- Entrypoints --------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code; uncaught SDK errors fail the command.
    """
    try:
        # Without standalone mode click returns ctx.exit()/typer.Exit codes instead of raising
        rv = app(prog_name="near", standalone_mode=False, args=argv)
        return rv if isinstance(rv, int) else 0
    except click.exceptions.Abort:
        typer.echo("Aborted!", err=True)
        return 1
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except Exception as e:
        log.debug("command failed", exc_info=True)
        typer.echo(f"error: {e}", err=True)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
