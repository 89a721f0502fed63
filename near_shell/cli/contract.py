"""
near_shell.cli.contract — contract subcommands.

Implements:
  - near deploy --account-id <id> [--wasm-file ./out/main.wasm]
  - near call <contract> <method> [args] --account-id <id> [--amount] [--gas]
  - near view <contract> <method> [args]
  - near clean [--out-dir ./out]
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

import typer

from ..account import DEFAULT_FUNCTION_CALL_GAS, view_function
from ..rpc.http import get_transaction_last_result
from ..utils.format import parse_near_amount
from .common import connect_from, get_config, parse_args, print_response

DEFAULT_OUT_DIR = Path("out")
DEFAULT_WASM_FILE = DEFAULT_OUT_DIR / "main.wasm"


def deploy(
    ctx: typer.Context,
    account_id: str = typer.Option(
        ..., "--account-id", help="Account to deploy the contract to", envvar="NEAR_ACCOUNT_ID"
    ),
    wasm_file: Path = typer.Option(
        DEFAULT_WASM_FILE, "--wasm-file", help="Path to the compiled contract (.wasm)"
    ),
) -> None:
    """Deploy a compiled contract to an account."""
    config = get_config(ctx)
    typer.echo(
        f"Starting deployment. Account id: {account_id}, node: {config.node_url}, "
        f"helper: {config.helper_url}, file: {wasm_file}"
    )
    try:
        code = wasm_file.read_bytes()
    except FileNotFoundError as e:
        raise typer.BadParameter(f"Contract file not found: {wasm_file}") from e
    with connect_from(ctx) as near:
        near.account(account_id).deploy_contract(code)
    typer.echo(f"Done deploying to {account_id}")


def call(
    ctx: typer.Context,
    contract_name: str = typer.Argument(..., help="Contract account"),
    method_name: str = typer.Argument(..., help="Method to call"),
    args: Optional[str] = typer.Argument(None, help='JSON arguments, e.g. \'{"key": "value"}\''),
    account_id: str = typer.Option(
        ..., "--account-id", help="Account that signs the call", envvar="NEAR_ACCOUNT_ID"
    ),
    amount: Optional[str] = typer.Option(None, "--amount", help="NEAR to attach to the call"),
    gas: int = typer.Option(DEFAULT_FUNCTION_CALL_GAS, "--gas", help="Gas to attach"),
) -> None:
    """Schedule a state-changing contract call."""
    call_args = parse_args(args)
    deposit = parse_near_amount(amount)
    suffix = f" with attached {deposit} NEAR" if deposit else ""
    typer.echo(f"Scheduling a call: {contract_name}.{method_name}({args or ''}){suffix}")
    with connect_from(ctx) as near:
        outcome = near.account(account_id).function_call(
            contract_name, method_name, call_args, gas=gas, amount=deposit
        )
    print_response(get_transaction_last_result(outcome))


def view(
    ctx: typer.Context,
    contract_name: str = typer.Argument(..., help="Contract account"),
    method_name: str = typer.Argument(..., help="View method to call"),
    args: Optional[str] = typer.Argument(None, help="JSON arguments"),
) -> None:
    """Make a read-only contract call."""
    call_args = parse_args(args)
    typer.echo(f"View call: {contract_name}.{method_name}({args or ''})")
    with connect_from(ctx) as near:
        result = view_function(near.provider, contract_name, method_name, call_args)
    print_response(result)


def clean(
    out_dir: Path = typer.Option(DEFAULT_OUT_DIR, "--out-dir", help="Build output directory"),
) -> None:
    """Remove the build output directory."""
    shutil.rmtree(out_dir, ignore_errors=True)
    typer.echo("Clean complete.")
