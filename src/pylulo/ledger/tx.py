"""
Transaction Assembler - Build, sign, and send Solana transactions.

Two paths:

- Build from instructions: fetch a blockhash, compile a message with the
  local key as fee payer, sign, send.
- Adopt external envelopes: take base64 transactions produced by the Lulo
  API, stamp one fresh blockhash on the whole batch, add the local
  signature (other required signers are left as-is) and submit them in
  order, stopping at the first failure.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Protocol, Sequence

from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message, MessageV0, to_bytes_versioned
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..errors import BatchSubmissionError, NetworkError, ParseError, SigningError

logger = logging.getLogger(__name__)


class Ledger(Protocol):
    def get_latest_blockhash(self) -> Hash:
        ...

    def send_transaction(self, tx: VersionedTransaction) -> Signature:
        ...


# ============ Envelope Codec ============


def decode_envelope(envelope: str) -> VersionedTransaction:
    """
    Decode a base64 wire-format transaction.

    Raises:
        ParseError: If the string is not base64 or not a valid transaction
    """
    try:
        raw = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ParseError(f"Failed to decode transaction: {exc}") from exc

    try:
        return VersionedTransaction.from_bytes(raw)
    except Exception as exc:  # noqa: BLE001 - solders raises its own bincode error types
        raise ParseError(f"Failed to deserialize transaction: {exc}") from exc


def encode_envelope(tx: VersionedTransaction) -> str:
    """Encode a transaction to base64 wire format."""
    return base64.b64encode(bytes(tx)).decode("ascii")


# ============ Message Surgery ============


def with_blockhash(tx: VersionedTransaction, blockhash: Hash) -> VersionedTransaction:
    """
    Return a copy of ``tx`` whose message carries ``blockhash``.

    Header, account keys, instructions and address table lookups are kept
    unchanged. Existing signatures are carried over as-is.
    """
    message = tx.message
    if isinstance(message, MessageV0):
        updated = MessageV0(
            message.header,
            message.account_keys,
            blockhash,
            message.instructions,
            message.address_table_lookups,
        )
    else:
        header = message.header
        updated = Message.new_with_compiled_instructions(
            header.num_required_signatures,
            header.num_readonly_signed_accounts,
            header.num_readonly_unsigned_accounts,
            message.account_keys,
            blockhash,
            message.instructions,
        )
    return VersionedTransaction.populate(updated, list(tx.signatures))


def required_signers(tx: VersionedTransaction) -> list:
    message = tx.message
    return list(message.account_keys[: message.header.num_required_signatures])


def sign_partial(tx: VersionedTransaction, keypair: Keypair) -> VersionedTransaction:
    """
    Fill the local key's signature slot, leaving every other slot untouched.

    Raises:
        SigningError: If the local key is not a required signer
    """
    signers = required_signers(tx)
    pubkey = keypair.pubkey()
    if pubkey not in signers:
        raise SigningError(f"Wallet {pubkey} is not a required signer of this transaction")

    signatures = list(tx.signatures)[: len(signers)]
    signatures += [Signature.default()] * (len(signers) - len(signatures))
    signatures[signers.index(pubkey)] = keypair.sign_message(to_bytes_versioned(tx.message))
    return VersionedTransaction.populate(tx.message, signatures)


def count_signatures(tx: VersionedTransaction) -> int:
    """Number of non-empty signature slots."""
    empty = Signature.default()
    return sum(1 for sig in tx.signatures if sig != empty)


def _log_envelope(index: int, tx: VersionedTransaction) -> None:
    message = tx.message
    header = message.header
    lookups = getattr(message, "address_table_lookups", [])
    logger.debug(
        "Transaction details index=%d required_signatures=%d readonly_signed=%d "
        "readonly_unsigned=%d address_table_lookups=%d",
        index,
        header.num_required_signatures,
        header.num_readonly_signed_accounts,
        header.num_readonly_unsigned_accounts,
        len(lookups),
    )
    for i, lookup in enumerate(lookups):
        logger.debug("Address table lookup index=%d table=%s", i, lookup.account_key)
    for i, signer in enumerate(required_signers(tx)):
        logger.debug("Required signer index=%d pubkey=%s", i, signer)


# ============ Assembler ============


class TransactionAssembler:
    """Signs with one local keypair and submits through one ledger client."""

    def __init__(self, keypair: Keypair, ledger: Ledger) -> None:
        self.keypair = keypair
        self.ledger = ledger

    @property
    def pubkey(self):
        return self.keypair.pubkey()

    def build_transaction(self, instructions: Sequence[Instruction]) -> VersionedTransaction:
        """Compile and sign a transaction paid for by the local key."""
        blockhash = self.ledger.get_latest_blockhash()
        message = Message.new_with_blockhash(list(instructions), self.pubkey, blockhash)
        return VersionedTransaction(message, [self.keypair])

    def sign_and_send_instructions(self, instructions: Sequence[Instruction]) -> Signature:
        """Build, sign and submit a transaction from instructions."""
        tx = self.build_transaction(instructions)
        return self.ledger.send_transaction(tx)

    def submit_envelopes(self, envelopes: Sequence[str]) -> list[Signature]:
        """
        Sign and submit a batch of base64 transactions in order.

        All envelopes are decoded and checked for the local signer up
        front, so a batch that cannot be signed causes no RPC traffic. A
        single blockhash is fetched for the batch and stamped on every
        transaction. Submission stops at the first rejected transaction;
        earlier submissions are not undone.

        Args:
            envelopes: base64 wire-format transactions

        Returns:
            Signatures of the submitted transactions, in input order

        Raises:
            ParseError: If an envelope cannot be decoded (nothing is sent)
            NetworkError: If the blockhash cannot be fetched
            SigningError: If the local key is not a required signer of some
                envelope (nothing is sent)
            BatchSubmissionError: If a submission is rejected
        """
        if not envelopes:
            logger.info("No transactions to submit")
            return []

        decoded = [decode_envelope(envelope) for envelope in envelopes]
        for index, tx in enumerate(decoded):
            if self.pubkey not in required_signers(tx):
                raise SigningError(
                    f"Wallet {self.pubkey} is not a required signer of transaction "
                    f"{index + 1}/{len(decoded)}"
                )

        # One blockhash for the whole batch; later transactions may outlive it
        blockhash = self.ledger.get_latest_blockhash()

        submitted: list[Signature] = []
        for index, tx in enumerate(decoded):
            _log_envelope(index, tx)
            signed = sign_partial(with_blockhash(tx, blockhash), self.keypair)
            logger.debug(
                "Signature verification index=%d signatures_present=%d",
                index,
                count_signatures(signed),
            )

            try:
                signature = self.ledger.send_transaction(signed)
            except NetworkError as exc:
                logger.error(
                    "Failed to send transaction index=%d signatures_required=%d error=%s",
                    index,
                    signed.message.header.num_required_signatures,
                    exc,
                )
                raise BatchSubmissionError(
                    f"Transaction {index + 1}/{len(decoded)} failed: {exc}",
                    index=index,
                    submitted=submitted,
                ) from exc

            logger.info("Transaction sent successfully index=%d signature=%s", index, signature)
            submitted.append(signature)

        return submitted
