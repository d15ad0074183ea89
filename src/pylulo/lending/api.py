"""
Lulo API Client - Request unsigned lending transactions and account data.

The Lulo (FlexLend) API builds deposit/withdraw transactions for a wallet
and returns them base64-encoded. pylulo signs and submits them; this module
only talks HTTP.

Every request carries the wallet public key (``x-wallet-pubkey``) and the
API key (``x-api-key``).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..config import DEFAULT_LULO_API_URL, Settings
from ..errors import ApiError, ApiResponseError, ConfigurationError
from .models import AccountSummary, TransactionMeta, parse_transaction_meta

logger = logging.getLogger(__name__)

DEPOSIT_PATH = "/generate/account/deposit"
WITHDRAW_PATH = "/generate/account/withdraw"
ACCOUNT_PATH = "/account"


def format_amount(amount: float) -> str:
    """Format an amount as an integer string (``1234.6`` -> ``"1235"``)."""
    return f"{amount:.0f}"


class LuloClient:
    """
    Blocking client for the Lulo API.

    Args:
        api_key: Lulo API key (required)
        base_url: API root URL
        priority_fee: Priority fee forwarded as the ``priorityFee`` query parameter
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (for testing)

    Raises:
        ConfigurationError: If no API key is given
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_LULO_API_URL,
        priority_fee: Optional[str] = None,
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError(
                "Lulo API key not set. Use --lulo-api-key, PYLULO_LULO_API_KEY or "
                "'lulo-api-key' in config.yaml"
            )
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.priority_fee = priority_fee
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "LuloClient":
        return cls(
            api_key=settings.lulo_api_key,
            base_url=settings.lulo_api_url,
            priority_fee=settings.priority_fee,
        )

    # ============ Operations ============

    def generate_deposit(self, owner: str, mint: str, amount: float) -> list[TransactionMeta]:
        """
        Request deposit transactions.

        Args:
            owner: Wallet public key (base58)
            mint: Token mint address
            amount: Deposit amount in base units

        Returns:
            Unsigned transactions, in submission order
        """
        payload = {
            "owner": owner,
            "mintAddress": mint,
            "depositAmount": format_amount(amount),
        }
        logger.info(
            "Creating deposit request owner=%s mint=%s amount=%s",
            owner,
            mint,
            payload["depositAmount"],
        )
        body = self._request("POST", DEPOSIT_PATH, owner, json=payload, params=self._fee_params())
        metas = parse_transaction_meta(body)
        logger.info("Received transactions from API count=%d", len(metas))
        return metas

    def generate_withdraw(
        self,
        owner: str,
        mint: str,
        amount: float = 0,
        withdraw_all: bool = False,
    ) -> list[TransactionMeta]:
        """
        Request withdraw transactions.

        When ``withdraw_all`` is set the API ignores ``amount``.
        """
        payload = {
            "owner": owner,
            "mintAddress": mint,
            "withdrawAmount": format_amount(amount),
            "withdrawAll": withdraw_all,
        }
        logger.info(
            "Creating withdraw request owner=%s mint=%s amount=%s all=%s",
            owner,
            mint,
            payload["withdrawAmount"],
            withdraw_all,
        )
        body = self._request("POST", WITHDRAW_PATH, owner, json=payload, params=self._fee_params())
        metas = parse_transaction_meta(body)
        logger.info("Received transactions from API count=%d", len(metas))
        return metas

    def get_account(self, owner: str) -> AccountSummary:
        """Fetch the lending account overview for ``owner``."""
        logger.info("Fetching account information wallet=%s", owner)
        body = self._request("GET", ACCOUNT_PATH, owner)
        return AccountSummary.from_response(body)

    # ============ HTTP ============

    def _fee_params(self) -> dict[str, str]:
        if not self.priority_fee:
            return {}
        return {"priorityFee": self.priority_fee}

    def _headers(self, owner: str) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "x-wallet-pubkey": owner,
            "x-api-key": self.api_key,
        }

    def _request(
        self,
        method: str,
        path: str,
        owner: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("Making API request method=%s url=%s", method, url)

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.request(method, url, json=json, params=params, headers=self._headers(owner))
        except httpx.HTTPError as exc:
            raise ApiError(f"Failed to make request to {url}: {exc}") from exc

        if not resp.is_success:
            logger.error("Unexpected status code status=%d url=%s", resp.status_code, url)
            raise ApiError(
                f"Lulo API error: {resp.status_code} - {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise ApiResponseError(f"Failed to decode response from {url}: {exc}") from exc
