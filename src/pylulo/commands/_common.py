"""Helpers shared by the pylulo commands."""

from __future__ import annotations

import logging
import sys
from functools import update_wrapper
from pathlib import Path
from typing import Any, Callable, Mapping, NoReturn, Optional, Sequence

import click
from solders.keypair import Keypair

from ..config import Settings, load_settings
from ..errors import BatchSubmissionError, ConfigurationError, LuloError, ValidationError
from ..ledger.rpc import LedgerClient
from ..ledger.tx import TransactionAssembler
from ..lending.api import LuloClient, format_amount
from ..lending.models import TransactionMeta

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def fail(exc: LuloError) -> NoReturn:
    """Print a single-line error to stderr and exit with the error's code."""
    click.secho(f"Error: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level.upper())
    # keep transport chatter out of debug output; it would echo RPC URLs with API keys
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class SettingsLoader:
    """
    Root-group state: merges settings on first use.

    Commands that need no configuration (``version``, ``help``,
    ``completion``) never trigger the load, so they keep working with a
    broken config file.
    """

    def __init__(self, config_path: Optional[Path], overrides: Mapping[str, Any]) -> None:
        self.config_path = config_path
        self.overrides = dict(overrides)
        self._settings: Optional[Settings] = None

    def get(self) -> Settings:
        if self._settings is None:
            try:
                self._settings = load_settings(config_path=self.config_path, overrides=self.overrides)
            except ConfigurationError as exc:
                fail(exc)
            configure_logging(self._settings.log_level)
        return self._settings


def pass_settings(f: Callable) -> Callable:
    """Like ``click.pass_obj``, but hands the command the loaded ``Settings``."""

    @click.pass_context
    def new_func(ctx: click.Context, *args, **kwargs):
        loader = ctx.find_object(SettingsLoader)
        return ctx.invoke(f, loader.get(), *args, **kwargs)

    return update_wrapper(new_func, f)


def require_whole_amount(amount: float) -> None:
    """
    Raises:
        ValidationError: If the amount is sent to the API as zero
    """
    if format_amount(amount) == "0":
        raise ValidationError(f"--amount {amount} rounds to zero base units")


def make_lulo_client(settings: Settings) -> LuloClient:
    return LuloClient.from_settings(settings)


def make_assembler(settings: Settings, keypair: Keypair) -> TransactionAssembler:
    return TransactionAssembler(keypair, LedgerClient.from_settings(settings))


def filter_allowed(
    metas: Sequence[TransactionMeta], allowed: Sequence[str]
) -> list[TransactionMeta]:
    """Drop transactions for protocols outside the allow-list (empty list allows all)."""
    if not allowed:
        return list(metas)
    wanted = {p.lower() for p in allowed}
    kept = []
    for meta in metas:
        if meta.protocol.lower() in wanted:
            kept.append(meta)
        else:
            logger.warning("Skipping transaction for protocol not in allowed-protocols protocol=%s", meta.protocol)
    return kept


def submit_transactions(
    settings: Settings, keypair: Keypair, metas: Sequence[TransactionMeta]
) -> list:
    """
    Sign and submit API-generated transactions, echoing each signature.

    Raises:
        LuloError: Any failure from the assembler. On a mid-batch failure
            the signatures already submitted are echoed first.
    """
    metas = filter_allowed(metas, settings.allowed_protocols)
    if not metas:
        click.echo("  No transactions to submit.")
        return []

    for i, meta in enumerate(metas):
        logger.info("Processing transaction index=%d protocol=%s total=%s", i, meta.protocol, meta.total)

    assembler = make_assembler(settings, keypair)
    try:
        signatures = assembler.submit_envelopes([meta.transaction for meta in metas])
    except BatchSubmissionError as exc:
        _echo_signatures(metas, exc.submitted)
        click.secho(
            f"  {len(exc.submitted)} of {len(metas)} transactions were submitted before the failure.",
            fg="yellow",
        )
        raise

    _echo_signatures(metas, signatures)
    return signatures


def _echo_signatures(metas: Sequence[TransactionMeta], signatures: Sequence) -> None:
    for meta, signature in zip(metas, signatures):
        label = meta.protocol or "transaction"
        click.echo(f"  [{label}] {signature}")
