"""
pylulo CLI

Command-line interface for the Lulo lending protocol on Solana.

The Lulo API builds the transactions; pylulo signs them with the local
keypair and submits them through a Solana RPC node.

Commands:
  account     - Show lending account totals and settings
  deposit     - Deposit tokens into a Lulo reserve
  withdraw    - Withdraw tokens from a Lulo reserve
  pubkey      - Show the wallet public key
  config      - Show the effective configuration
  completion  - Print a shell completion script
  version     - Show the pylulo version
  help        - Show help for a command
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
import yaml
from click.shell_completion import get_completion_class

from . import __version__
from .config import Settings
from .errors import LuloError, ValidationError
from .wallet.keypair import load_keypair
from .commands._common import SettingsLoader, fail, pass_settings


PROG_NAME = "pylulo"
COMPLETE_VAR = "_PYLULO_COMPLETE"


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name=PROG_NAME)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default is ./config.yaml)",
)
@click.option("--keypair", default=None, help="Path to keypair file")
@click.option("--rpc-url", default=None, help="RPC server URL")
@click.option("--rpc-api-key", default=None, help="API key for RPC")
@click.option("--lulo-api-key", default=None, help="API key for Lulo")
@click.option("--lulo-api-url", default=None, help="Lulo API base URL")
@click.option("--priority-fee", default=None, help="Priority fee for transactions")
@click.option(
    "--allowed-protocols",
    multiple=True,
    help="Allowed protocols for transactions (repeatable or comma-separated)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Log level (default: warning)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    keypair: Optional[str],
    rpc_url: Optional[str],
    rpc_api_key: Optional[str],
    lulo_api_key: Optional[str],
    lulo_api_url: Optional[str],
    priority_fee: Optional[str],
    allowed_protocols: tuple[str, ...],
    log_level: Optional[str],
    verbose: bool,
) -> None:
    """pylulo - a CLI for the Lulo lending protocol on Solana."""
    overrides = {
        "keypair": keypair,
        "rpc-url": rpc_url,
        "rpc-api-key": rpc_api_key,
        "lulo-api-key": lulo_api_key,
        "lulo-api-url": lulo_api_url,
        "priority-fee": priority_fee,
        "allowed-protocols": ",".join(allowed_protocols) or None,
        "log-level": "debug" if verbose else log_level,
    }
    ctx.obj = SettingsLoader(config_path, overrides)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============ Lending Commands ============

from .commands.account import account
from .commands.deposit import deposit
from .commands.withdraw import withdraw

cli.add_command(account)
cli.add_command(deposit)
cli.add_command(withdraw)


# ============ Identity ============


@cli.command()
@pass_settings
def pubkey(settings: Settings) -> None:
    """Display public key from keypair file."""
    try:
        kp = load_keypair(settings.keypair)
    except LuloError as exc:
        fail(exc)
    click.echo(f"Public Key: {kp.pubkey()}")


# ============ Configuration ============


@cli.command("config")
@click.option("--show-secrets", is_flag=True, help="Print API keys unmasked")
@pass_settings
def config_command(settings: Settings, show_secrets: bool) -> None:
    """Show the effective configuration."""
    source = str(settings.config_file) if settings.config_file else "(none)"
    click.echo(f"# config file: {source}")
    click.echo(
        yaml.safe_dump(settings.to_dict(mask_secrets=not show_secrets), sort_keys=False),
        nl=False,
    )


# ============ Shell Completion ============


@cli.command()
@click.argument("shell", type=click.Choice(["bash", "zsh", "fish"]))
@click.pass_context
def completion(ctx: click.Context, shell: str) -> None:
    """Print the completion script for SHELL.

    \b
    Example (bash):
      pylulo completion bash > ~/.pylulo-complete.bash
      echo '. ~/.pylulo-complete.bash' >> ~/.bashrc
    """
    comp_cls = get_completion_class(shell)
    if comp_cls is None:
        fail(ValidationError(f"Unsupported shell: {shell}"))
    comp = comp_cls(ctx.find_root().command, {}, PROG_NAME, COMPLETE_VAR)
    click.echo(comp.source())


# ============ Version / Help ============


@cli.command()
def version() -> None:
    """Show the pylulo version."""
    click.echo(f"{PROG_NAME} {__version__}")


@cli.command("help")
@click.argument("command", required=False)
@click.pass_context
def help_command(ctx: click.Context, command: Optional[str]) -> None:
    """Show help for COMMAND (or for pylulo itself)."""
    root = ctx.find_root()
    if command is None:
        click.echo(root.get_help())
        return

    sub = cli.get_command(root, command)
    if sub is None:
        fail(ValidationError(f"Unknown command: {command}"))
    sub_ctx = click.Context(sub, info_name=command, parent=root)
    click.echo(sub.get_help(sub_ctx))


# ============ Entry Points ============


def main() -> None:
    """pylulo CLI entry point."""
    cli(prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
