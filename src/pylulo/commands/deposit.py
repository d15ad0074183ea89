"""
Deposit - Move tokens into Lulo reserves.

Flow:
1. Load the wallet keypair
2. Ask the Lulo API for deposit transactions
3. Stamp a fresh blockhash, sign with the wallet, submit in order
"""

from __future__ import annotations

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


@click.command()
@click.option("--amount", "-a", type=float, required=True, help="Amount to deposit (base units)")
@click.option("--mint", "-m", required=True, help="Token mint address")
@pass_settings
def deposit(settings: Settings, amount: float, mint: str) -> None:
    """Deposit tokens into a Lulo reserve."""
    try:
        if amount <= 0:
            raise ValidationError("--amount must be greater than zero")
        require_whole_amount(amount)

        keypair = load_keypair(settings.keypair)
        lulo = make_lulo_client(settings)
        owner = str(keypair.pubkey())

        click.echo(f"  Owner:  {owner}")
        click.echo(f"  Mint:   {mint}")
        click.echo(f"  Amount: {amount:.0f}")
        click.echo("")

        metas = lulo.generate_deposit(owner, mint, amount)
        signatures = submit_transactions(settings, keypair, metas)
    except LuloError as exc:
        fail(exc)

    click.echo("")
    click.secho(f"Deposit complete: {len(signatures)} transaction(s) sent.", fg="green")
