"""
near_shell.cli.account — account subcommands.

Implements:
  - near login
  - near create_account <account_id>
  - near state <account_id>
  - near delete <account_id> <beneficiary_id>
  - near keys <account_id>
  - near send <sender> <receiver> <amount>
  - near stake <account_id> <staking_key> <amount>
"""

from __future__ import annotations

from typing import Optional

import typer

from ..config import DEFAULT_INITIAL_BALANCE
from ..key_pair import KeyPair, PublicKey
from ..login import login as run_login
from ..utils.format import format_near_amount, parse_near_amount
from .common import connect_from, get_config, print_response


def login(ctx: typer.Context) -> None:
    """Log in through the web wallet and store the authorized key locally."""
    run_login(get_config(ctx))


def create_account(
    ctx: typer.Context,
    account_id: str = typer.Argument(..., help="Unique identifier for the newly created account"),
    master_account: Optional[str] = typer.Option(
        None,
        "--master-account",
        help="Account used to create requested account (default: helper service)",
        envvar="NEAR_MASTER_ACCOUNT",
    ),
    public_key: Optional[str] = typer.Option(
        None, "--public-key", help="Public key to initialize the account with"
    ),
    initial_balance: str = typer.Option(
        DEFAULT_INITIAL_BALANCE,
        "--initial-balance",
        help="Number of tokens to transfer to newly created account",
    ),
) -> None:
    """Create a new developer account."""
    key_pair: Optional[KeyPair] = None
    if public_key:
        new_key = PublicKey.from_string(public_key)
    else:
        key_pair = KeyPair.from_random()
        new_key = key_pair.public_key
    with connect_from(
        ctx,
        master_account=master_account,
        initial_balance=parse_near_amount(initial_balance),
    ) as near:
        near.create_account(account_id, new_key)
        if key_pair is not None:
            near.key_store.set_key(near.config.network_id, account_id, key_pair)
    typer.echo(f'Account {account_id} for network "{near.config.network_id}" was created.')


def state(
    ctx: typer.Context,
    account_id: str = typer.Argument(..., help="Account to inspect"),
) -> None:
    """View account state (balance, storage, code hash)."""
    with connect_from(ctx) as near:
        result = near.account(account_id).state()
    if result and result.get("amount"):
        result["formattedAmount"] = format_near_amount(result["amount"])
    typer.echo(f"Account {account_id}")
    print_response(result)


def delete(
    ctx: typer.Context,
    account_id: str = typer.Argument(..., help="Account to delete"),
    beneficiary_id: str = typer.Argument(..., help="Account that receives the remaining balance"),
) -> None:
    """Delete an account and transfer its funds to a beneficiary."""
    config = get_config(ctx)
    typer.echo(
        f"Deleting account. Account id: {account_id}, node: {config.node_url}, "
        f"helper: {config.helper_url}, beneficiary: {beneficiary_id}"
    )
    with connect_from(ctx) as near:
        near.account(account_id).delete_account(beneficiary_id)
    typer.echo(f'Account {account_id} for network "{config.network_id}" was deleted.')


def keys(
    ctx: typer.Context,
    account_id: str = typer.Argument(..., help="Account whose access keys to list"),
) -> None:
    """List the access keys of an account."""
    with connect_from(ctx) as near:
        access_keys = near.account(account_id).get_access_keys()
    typer.echo(f"Keys for account {account_id}")
    print_response(access_keys)


def send(
    ctx: typer.Context,
    sender: str = typer.Argument(..., help="Account that sends the tokens"),
    receiver: str = typer.Argument(..., help="Account that receives the tokens"),
    amount: str = typer.Argument(..., help="Amount in NEAR, e.g. 1.5"),
) -> None:
    """Send tokens to another account."""
    yocto = parse_near_amount(amount)
    typer.echo(f"Sending {amount} ({yocto}) NEAR to {receiver} from {sender}")
    with connect_from(ctx) as near:
        outcome = near.account(sender).send_money(receiver, yocto or 0)
    print_response(outcome)


def stake(
    ctx: typer.Context,
    account_id: str = typer.Argument(..., help="Account that stakes"),
    staking_key: str = typer.Argument(..., help="Validator public key (ed25519:...)"),
    amount: str = typer.Argument(..., help="Amount in NEAR to stake"),
) -> None:
    """Create a staking transaction."""
    yocto = parse_near_amount(amount)
    typer.echo(f"Staking {amount} ({yocto}) on {account_id} with public key = {staking_key}.")
    with connect_from(ctx) as near:
        outcome = near.account(account_id).stake(staking_key, yocto or 0)
    print_response(outcome)
