"""Shared fixtures: a deterministic wallet, envelope builders and a fake ledger."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import pytest
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from pylulo.errors import NetworkError
from pylulo.ledger.tx import encode_envelope

# RFC 8032 test vector 1
RFC8032_SEED = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")


def build_envelope(
    payer: Pubkey,
    data: bytes = b"\x01",
    co_signer: Optional[Pubkey] = None,
    legacy: bool = False,
) -> VersionedTransaction:
    """Build an unsigned transaction the way the Lulo API hands them out."""
    accounts = [AccountMeta(payer, True, True)]
    if co_signer is not None:
        accounts.append(AccountMeta(co_signer, True, False))
    accounts.append(AccountMeta(Pubkey.new_unique(), False, True))
    ix = Instruction(Pubkey.new_unique(), data, accounts)

    if legacy:
        message = Message.new_with_blockhash([ix], payer, Hash.default())
    else:
        message = MessageV0.try_compile(payer, [ix], [], Hash.default())

    slots = message.header.num_required_signatures
    return VersionedTransaction.populate(message, [Signature.default()] * slots)


class FakeLedger:
    """Records ledger calls; optionally rejects the submission at ``fail_at``."""

    def __init__(self, fail_at: Optional[int] = None) -> None:
        self.fail_at = fail_at
        self.blockhash = Hash.new_unique()
        self.calls: list[str] = []
        self.attempted: list[VersionedTransaction] = []
        self.sent: list[VersionedTransaction] = []
        self.signatures: list[Signature] = []

    def get_latest_blockhash(self) -> Hash:
        self.calls.append("get_latest_blockhash")
        return self.blockhash

    def send_transaction(self, tx: VersionedTransaction) -> Signature:
        self.calls.append("send_transaction")
        self.attempted.append(tx)
        if self.fail_at is not None and len(self.attempted) - 1 == self.fail_at:
            raise NetworkError("Transaction simulation failed: insufficient funds")
        self.sent.append(tx)
        signature = Signature.new_unique()
        self.signatures.append(signature)
        return signature


@pytest.fixture()
def keypair() -> Keypair:
    return Keypair.from_seed(RFC8032_SEED)


@pytest.fixture()
def keypair_file(tmp_path: Path, keypair: Keypair) -> Path:
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(keypair))), encoding="utf-8")
    return path


@pytest.fixture()
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture()
def envelopes(keypair: Keypair) -> list[str]:
    return [
        encode_envelope(build_envelope(keypair.pubkey(), data=bytes([i])))
        for i in range(3)
    ]
