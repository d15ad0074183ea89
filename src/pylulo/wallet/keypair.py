"""
Solana Keypair Loading for pylulo.

The keypair is read from a Solana CLI style keypair file: a JSON array of
byte values holding the 64-byte secret key (32-byte seed followed by the
32-byte public key). A bare 32-byte seed is accepted as well.

The file is never written by pylulo.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from solders.keypair import Keypair

from ..errors import ConfigurationError, FileAccessError, ParseError

SECRET_KEY_LENGTH = 64
SEED_LENGTH = 32


def parse_keypair_bytes(raw: bytes) -> Keypair:
    """
    Build a Keypair from raw secret bytes.

    Args:
        raw: 64-byte secret key or 32-byte seed

    Returns:
        Keypair

    Raises:
        ParseError: If the bytes are not a valid key encoding
    """
    if len(raw) == SECRET_KEY_LENGTH:
        try:
            return Keypair.from_bytes(raw)
        except ValueError as exc:
            raise ParseError(f"Invalid keypair bytes: {exc}") from exc
    if len(raw) == SEED_LENGTH:
        return Keypair.from_seed(raw)
    raise ParseError(
        f"Keypair must be {SECRET_KEY_LENGTH} bytes (or a {SEED_LENGTH}-byte seed), got {len(raw)}"
    )


def parse_keypair_json(text: str) -> Keypair:
    """Parse the JSON array form of a keypair."""
    try:
        values = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Keypair file is not valid JSON: {exc}") from exc

    if not isinstance(values, list):
        raise ParseError("Keypair file must contain a JSON array of bytes")
    for value in values:
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise ParseError(f"Keypair array contains a non-byte value: {value!r}")

    return parse_keypair_bytes(bytes(values))


def load_keypair(path: Optional[Union[str, Path]]) -> Keypair:
    """
    Load the signing keypair from a keypair file.

    Args:
        path: Path to the keypair JSON file (``keypair`` setting)

    Returns:
        Keypair

    Raises:
        ConfigurationError: If no path is configured
        FileAccessError: If the file cannot be read
        ParseError: If the file is not a valid keypair
    """
    if not path:
        raise ConfigurationError(
            "keypair path not set. Use --keypair, PYLULO_KEYPAIR or 'keypair' in config.yaml"
        )

    keypair_path = Path(path).expanduser()
    try:
        text = keypair_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"Failed to read keypair file {keypair_path}: {exc}") from exc

    return parse_keypair_json(text)
