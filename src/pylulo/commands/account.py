"""
Account - Show the Lulo lending account overview.

Prints totals and account settings for the configured wallet as JSON.
"""

from __future__ import annotations

import json
import logging

import click

from ..config import Settings
from ..errors import LuloError
from ..wallet.keypair import load_keypair
from ._common import fail, make_lulo_client, pass_settings

logger = logging.getLogger(__name__)


@click.command()
@pass_settings
def account(settings: Settings) -> None:
    """Get account information."""
    try:
        keypair = load_keypair(settings.keypair)
        lulo = make_lulo_client(settings)
        summary = lulo.get_account(str(keypair.pubkey()))
    except LuloError as exc:
        fail(exc)

    logger.info(
        "Account overview total_value=%s interest_earned=%s realtime_apy=%s",
        summary.total_value,
        summary.interest_earned,
        summary.realtime_apy,
    )
    logger.debug(
        "Account settings owner=%s allowed_protocols=%s homebase=%s minimum_rate=%s",
        summary.settings.owner,
        summary.settings.allowed_protocols,
        summary.settings.homebase,
        summary.settings.minimum_rate,
    )

    click.echo(json.dumps(summary.to_dict(), indent=2))
