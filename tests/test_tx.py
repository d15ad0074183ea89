"""Unit tests for the transaction assembler."""

from __future__ import annotations

import pytest
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature

from conftest import FakeLedger, build_envelope
from pylulo.errors import BatchSubmissionError, NetworkError, ParseError, SigningError
from pylulo.ledger.tx import (
    TransactionAssembler,
    count_signatures,
    decode_envelope,
    encode_envelope,
    sign_partial,
    with_blockhash,
)


class TestEnvelopeCodec:
    def test_round_trip_preserves_instructions_and_keys(self, keypair: Keypair) -> None:
        tx = build_envelope(keypair.pubkey(), data=b"\x07\x08", co_signer=Pubkey.new_unique())
        decoded = decode_envelope(encode_envelope(tx))
        assert list(decoded.message.instructions) == list(tx.message.instructions)
        assert list(decoded.message.account_keys) == list(tx.message.account_keys)
        assert isinstance(decoded.message, MessageV0)

    @pytest.mark.parametrize("envelope", ["***not base64***", "AAAA"])
    def test_garbage_is_parse_error(self, envelope: str) -> None:
        with pytest.raises(ParseError):
            decode_envelope(envelope)


class TestMessageSurgery:
    @pytest.mark.parametrize("legacy", [False, True])
    def test_with_blockhash_only_changes_blockhash(self, keypair: Keypair, legacy: bool) -> None:
        tx = build_envelope(keypair.pubkey(), legacy=legacy)
        blockhash = Hash.new_unique()
        updated = with_blockhash(tx, blockhash)

        assert updated.message.recent_blockhash == blockhash
        assert list(updated.message.account_keys) == list(tx.message.account_keys)
        assert list(updated.message.instructions) == list(tx.message.instructions)
        old, new = tx.message.header, updated.message.header
        assert new.num_required_signatures == old.num_required_signatures
        assert new.num_readonly_signed_accounts == old.num_readonly_signed_accounts
        assert new.num_readonly_unsigned_accounts == old.num_readonly_unsigned_accounts

    def test_sign_partial_fills_only_local_slot(self, keypair: Keypair) -> None:
        tx = build_envelope(keypair.pubkey(), co_signer=Pubkey.new_unique())
        signed = sign_partial(tx, keypair)

        assert len(signed.signatures) == 2
        assert signed.signatures[1] == Signature.default()
        assert signed.signatures[0].verify(keypair.pubkey(), to_bytes_versioned(signed.message))
        assert count_signatures(signed) == 1

    def test_sign_partial_rejects_foreign_transaction(self, keypair: Keypair) -> None:
        tx = build_envelope(Pubkey.new_unique())
        with pytest.raises(SigningError):
            sign_partial(tx, keypair)


class TestSubmitEnvelopes:
    """Adopting API-built transactions."""

    def test_one_blockhash_then_in_order_submission(
        self, keypair: Keypair, fake_ledger: FakeLedger, envelopes: list[str]
    ) -> None:
        assembler = TransactionAssembler(keypair, fake_ledger)
        signatures = assembler.submit_envelopes(envelopes)

        assert fake_ledger.calls == ["get_latest_blockhash"] + ["send_transaction"] * 3
        assert signatures == fake_ledger.signatures
        for i, tx in enumerate(fake_ledger.sent):
            assert tx.message.instructions[0].data == bytes([i])
            assert tx.message.recent_blockhash == fake_ledger.blockhash
            assert tx.signatures[0].verify(keypair.pubkey(), to_bytes_versioned(tx.message))

    def test_stops_at_first_failure(self, keypair: Keypair, envelopes: list[str]) -> None:
        ledger = FakeLedger(fail_at=1)
        assembler = TransactionAssembler(keypair, ledger)

        with pytest.raises(BatchSubmissionError) as excinfo:
            assembler.submit_envelopes(envelopes)

        assert isinstance(excinfo.value, NetworkError)
        assert excinfo.value.index == 1
        assert excinfo.value.submitted == ledger.signatures
        assert len(ledger.sent) == 1
        assert len(ledger.attempted) == 2
        assert ledger.calls.count("get_latest_blockhash") == 1

    def test_bad_envelope_sends_nothing(self, keypair: Keypair, fake_ledger: FakeLedger, envelopes: list[str]) -> None:
        assembler = TransactionAssembler(keypair, fake_ledger)
        with pytest.raises(ParseError):
            assembler.submit_envelopes(envelopes + ["%%%"])
        assert fake_ledger.calls == []

    def test_foreign_signer_later_in_batch_sends_nothing(
        self, keypair: Keypair, fake_ledger: FakeLedger, envelopes: list[str]
    ) -> None:
        foreign = encode_envelope(build_envelope(Pubkey.new_unique()))
        assembler = TransactionAssembler(keypair, fake_ledger)

        with pytest.raises(SigningError, match="transaction 4/4"):
            assembler.submit_envelopes(envelopes + [foreign])
        assert fake_ledger.calls == []

    def test_legacy_envelopes(self, keypair: Keypair, fake_ledger: FakeLedger) -> None:
        batch = [
            encode_envelope(build_envelope(keypair.pubkey(), data=bytes([i]), legacy=True))
            for i in range(2)
        ]
        TransactionAssembler(keypair, fake_ledger).submit_envelopes(batch)

        assert fake_ledger.calls == ["get_latest_blockhash", "send_transaction", "send_transaction"]
        for i, tx in enumerate(fake_ledger.sent):
            assert not isinstance(tx.message, MessageV0)
            assert tx.message.instructions[0].data == bytes([i])
            assert tx.message.recent_blockhash == fake_ledger.blockhash
            assert tx.signatures[0].verify(keypair.pubkey(), to_bytes_versioned(tx.message))

    def test_empty_batch(self, keypair: Keypair, fake_ledger: FakeLedger) -> None:
        assert TransactionAssembler(keypair, fake_ledger).submit_envelopes([]) == []
        assert fake_ledger.calls == []

    def test_co_signer_slot_left_empty(self, keypair: Keypair, fake_ledger: FakeLedger) -> None:
        envelope = encode_envelope(build_envelope(keypair.pubkey(), co_signer=Pubkey.new_unique()))
        TransactionAssembler(keypair, fake_ledger).submit_envelopes([envelope])

        sent = fake_ledger.sent[0]
        assert sent.signatures[0] != Signature.default()
        assert sent.signatures[1] == Signature.default()


class TestBuildFromInstructions:
    def test_local_key_pays_and_signs(self, keypair: Keypair, fake_ledger: FakeLedger) -> None:
        ix = Instruction(Pubkey.new_unique(), b"\x01", [AccountMeta(keypair.pubkey(), True, True)])
        assembler = TransactionAssembler(keypair, fake_ledger)

        signature = assembler.sign_and_send_instructions([ix])

        assert signature == fake_ledger.signatures[0]
        assert fake_ledger.calls == ["get_latest_blockhash", "send_transaction"]
        tx = fake_ledger.sent[0]
        assert tx.message.account_keys[0] == keypair.pubkey()
        assert tx.message.recent_blockhash == fake_ledger.blockhash
        assert tx.signatures[0].verify(keypair.pubkey(), to_bytes_versioned(tx.message))
