from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..errors import ApiResponseError


def _require_mapping(payload: Any, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ApiResponseError(f"Malformed {what}: expected an object, got {type(payload).__name__}")
    return payload


def _number(payload: dict[str, Any], key: str, default: float = 0.0) -> float:
    value = payload.get(key, default)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ApiResponseError(f"Malformed field {key!r}: {value!r}") from exc


@dataclass(frozen=True)
class TransactionMeta:
    """One unsigned transaction generated by the Lulo API."""

    transaction: str
    protocol: str
    total: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "TransactionMeta":
        payload = _require_mapping(payload, "transaction meta")
        transaction = payload.get("transaction")
        if not isinstance(transaction, str) or not transaction:
            raise ApiResponseError("Malformed transaction meta: missing 'transaction'")
        # deposits report totalDeposit (number), withdrawals totalWithdraw (string)
        total = payload.get("totalDeposit", payload.get("totalWithdraw"))
        return cls(
            transaction=transaction,
            protocol=str(payload.get("protocol") or ""),
            total=None if total is None else str(total),
        )


def parse_transaction_meta(body: Any) -> list[TransactionMeta]:
    """Extract ``data.transactionMeta`` from a generate-transaction response."""
    data = _require_mapping(_require_mapping(body, "response").get("data"), "response data")
    metas = data.get("transactionMeta") or []
    if not isinstance(metas, list):
        raise ApiResponseError("Malformed response: 'transactionMeta' is not a list")
    return [TransactionMeta.from_dict(meta) for meta in metas]


@dataclass(frozen=True)
class AccountSettings:
    owner: str
    allowed_protocols: Optional[str]
    homebase: Optional[str]
    minimum_rate: float

    @classmethod
    def from_dict(cls, payload: Any) -> "AccountSettings":
        payload = _require_mapping(payload or {}, "account settings")
        return cls(
            owner=str(payload.get("owner") or ""),
            allowed_protocols=payload.get("allowedProtocols"),
            homebase=payload.get("homebase"),
            minimum_rate=_number(payload, "minimumRate"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "allowedProtocols": self.allowed_protocols,
            "homebase": self.homebase,
            "minimumRate": self.minimum_rate,
        }


@dataclass(frozen=True)
class AccountSummary:
    """
    Lending account overview.

    Attributes:
        total_value: Current value of all positions
        interest_earned: Interest accrued to date
        realtime_apy: Current realized yield
        settings: Account preferences
    """

    total_value: float
    interest_earned: float
    realtime_apy: float
    settings: AccountSettings

    @classmethod
    def from_response(cls, body: Any) -> "AccountSummary":
        data = _require_mapping(_require_mapping(body, "response").get("data"), "response data")
        return cls(
            total_value=_number(data, "totalValue"),
            interest_earned=_number(data, "interestEarned"),
            realtime_apy=_number(data, "realtimeAPY"),
            settings=AccountSettings.from_dict(data.get("settings")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalValue": self.total_value,
            "interestEarned": self.interest_earned,
            "realtimeAPY": self.realtime_apy,
            "settings": self.settings.to_dict(),
        }


__all__ = [
    "AccountSettings",
    "AccountSummary",
    "TransactionMeta",
    "parse_transaction_meta",
]
