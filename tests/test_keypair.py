"""Unit tests for keypair loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from solders.keypair import Keypair

from conftest import RFC8032_PUBLIC, RFC8032_SEED
from pylulo.errors import ConfigurationError, FileAccessError, ParseError
from pylulo.wallet.keypair import load_keypair, parse_keypair_bytes


class TestLoadKeypair:
    """Loading a Solana CLI keypair file."""

    def test_public_key_matches_known_pair(self, keypair_file: Path) -> None:
        kp = load_keypair(keypair_file)
        assert bytes(kp.pubkey()) == RFC8032_PUBLIC

    def test_secret_key_round_trips(self, keypair_file: Path, keypair: Keypair) -> None:
        kp = load_keypair(str(keypair_file))
        assert bytes(kp) == bytes(keypair)
        assert kp.pubkey() == keypair.pubkey()

    def test_seed_file(self, tmp_path: Path) -> None:
        path = tmp_path / "seed.json"
        path.write_text(json.dumps(list(RFC8032_SEED)), encoding="utf-8")
        assert bytes(load_keypair(path).pubkey()) == RFC8032_PUBLIC

    @pytest.mark.parametrize("path", [None, ""])
    def test_missing_path_is_configuration_error(self, path) -> None:
        with pytest.raises(ConfigurationError, match="keypair path not set"):
            load_keypair(path)

    def test_unreadable_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileAccessError):
            load_keypair(tmp_path / "missing.json")


class TestParseErrors:
    """Malformed keypair files are ParseErrors."""

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            '{"secret": [1, 2, 3]}',
            "[1, 2, 300]",
            "[1, 2, -1]",
            '[1, 2, "3"]',
            "[true, false]",
        ],
    )
    def test_bad_content(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "bad.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ParseError):
            load_keypair(path)

    def test_wrong_length(self) -> None:
        with pytest.raises(ParseError, match="got 10"):
            parse_keypair_bytes(bytes(10))
