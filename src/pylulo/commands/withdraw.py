"""
Withdraw - Move tokens out of Lulo reserves.

Either ``--amount`` or ``--all`` must be given; the check runs before the
wallet is loaded or the API is contacted.
"""

from __future__ import annotations

from typing import Optional

import click

from ..config import Settings
from ..errors import LuloError, ValidationError
from ..wallet.keypair import load_keypair
from ._common import (
    fail,
    make_lulo_client,
    pass_settings,
    require_whole_amount,
    submit_transactions,
)


def validate_withdraw_args(amount: Optional[float], withdraw_all: bool) -> None:
    """
    Raises:
        ValidationError: If neither a positive amount nor ``--all`` is given
    """
    if amount is not None and amount < 0:
        raise ValidationError("--amount must not be negative")
    if not withdraw_all and not amount:
        raise ValidationError("either --amount or --all flag must be specified")
    if amount and not withdraw_all:
        require_whole_amount(amount)


@click.command()
@click.option("--amount", "-a", type=float, default=None, help="Amount to withdraw (base units)")
@click.option("--mint", "-m", required=True, help="Token mint address")
@click.option("--all", "withdraw_all", is_flag=True, help="Withdraw all tokens")
@pass_settings
def withdraw(settings: Settings, amount: Optional[float], mint: str, withdraw_all: bool) -> None:
    """Withdraw tokens from a Lulo reserve."""
    try:
        validate_withdraw_args(amount, withdraw_all)

        keypair = load_keypair(settings.keypair)
        lulo = make_lulo_client(settings)
        owner = str(keypair.pubkey())

        click.echo(f"  Owner:  {owner}")
        click.echo(f"  Mint:   {mint}")
        click.echo(f"  Amount: {'all' if withdraw_all else f'{amount:.0f}'}")
        click.echo("")

        metas = lulo.generate_withdraw(owner, mint, amount or 0, withdraw_all=withdraw_all)
        signatures = submit_transactions(settings, keypair, metas)
    except LuloError as exc:
        fail(exc)

    click.echo("")
    click.secho(f"Withdraw complete: {len(signatures)} transaction(s) sent.", fg="green")
