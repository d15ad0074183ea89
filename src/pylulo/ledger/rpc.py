"""
Solana JSON-RPC client for pylulo.

Thin wrapper over ``solana.rpc.api.Client`` exposing the two calls pylulo
needs: fetch a recent blockhash and submit a signed transaction. Each call
is a single attempt; failures surface as ``NetworkError``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Finalized
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..config import Settings
from ..errors import ConfigurationError, NetworkError

logger = logging.getLogger(__name__)

SEND_OPTS = TxOpts(skip_preflight=False, preflight_commitment=Finalized)


def build_rpc_url(rpc_url: Optional[str], api_key: Optional[str] = None) -> str:
    """
    Build the RPC endpoint URL.

    Args:
        rpc_url: Base RPC URL
        api_key: Optional RPC API key, sent as the ``api-key`` query parameter

    Returns:
        Endpoint URL

    Raises:
        ConfigurationError: If no RPC URL is configured
    """
    if not rpc_url:
        raise ConfigurationError(
            "RPC URL not set. Use --rpc-url, PYLULO_RPC_URL or 'rpc-url' in config.yaml"
        )
    if not api_key:
        return rpc_url
    return str(httpx.URL(rpc_url).copy_merge_params({"api-key": api_key}))


def _redact(url: str) -> str:
    parsed = httpx.URL(url)
    if "api-key" not in parsed.params:
        return url
    return str(parsed.copy_set_param("api-key", "****"))


class LedgerClient:
    """
    Blocking Solana RPC client.

    Attributes:
        endpoint: RPC endpoint URL (with API key, if any)
    """

    def __init__(
        self,
        rpc_url: Optional[str],
        api_key: Optional[str] = None,
        client: Optional[Client] = None,
    ) -> None:
        self.endpoint = build_rpc_url(rpc_url, api_key)
        self._client = client or Client(self.endpoint)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LedgerClient":
        return cls(settings.rpc_url, settings.rpc_api_key)

    def get_latest_blockhash(self) -> Hash:
        """
        Fetch a recent blockhash at finalized commitment.

        Raises:
            NetworkError: On transport failure or an RPC error response
        """
        logger.debug("Fetching latest blockhash endpoint=%s", _redact(self.endpoint))
        try:
            resp: Any = self._client.get_latest_blockhash(commitment=Finalized)
        except (SolanaRpcException, RPCException, httpx.HTTPError) as exc:
            raise NetworkError(f"Failed to get latest blockhash: {exc}") from exc

        value = getattr(resp, "value", None)
        if value is None:
            raise NetworkError(f"Failed to get latest blockhash: {resp}")

        logger.debug(
            "Latest blockhash blockhash=%s last_valid_block_height=%s",
            value.blockhash,
            value.last_valid_block_height,
        )
        return value.blockhash

    def send_transaction(self, tx: VersionedTransaction) -> Signature:
        """
        Submit a (fully or partially) signed transaction.

        Preflight simulation runs on the node at finalized commitment.

        Returns:
            Transaction signature

        Raises:
            NetworkError: Wrapping the node's rejection reason
        """
        try:
            resp: Any = self._client.send_raw_transaction(bytes(tx), opts=SEND_OPTS)
        except (SolanaRpcException, RPCException, httpx.HTTPError) as exc:
            raise NetworkError(f"Failed to send transaction: {_rpc_error_message(exc)}") from exc

        signature = getattr(resp, "value", None)
        if signature is None:
            raise NetworkError(f"Failed to send transaction: {resp}")
        return signature


def _rpc_error_message(exc: Exception) -> str:
    """Extract the node's message from an RPCException, if present."""
    if isinstance(exc, RPCException) and exc.args:
        detail = exc.args[0]
        message = getattr(detail, "message", None)
        if message:
            return str(message)
    return str(exc)
