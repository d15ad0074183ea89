__version__ = "0.1.0"

__all__ = [
    # Configuration
    "Settings",
    "load_settings",
    # Errors
    "LuloError",
    "ConfigurationError",
    "ValidationError",
    "FileAccessError",
    "ParseError",
    "NetworkError",
    "ApiError",
    "ApiResponseError",
    "BatchSubmissionError",
    "SigningError",
    # Wallet
    "load_keypair",
    # Ledger
    "LedgerClient",
    "TransactionAssembler",
    "decode_envelope",
    "encode_envelope",
    "sign_partial",
    "with_blockhash",
    # Lulo API
    "LuloClient",
    "AccountSummary",
    "AccountSettings",
    "TransactionMeta",
]

from .config import Settings, load_settings
from .errors import (
    ApiError,
    ApiResponseError,
    BatchSubmissionError,
    ConfigurationError,
    FileAccessError,
    LuloError,
    NetworkError,
    ParseError,
    SigningError,
    ValidationError,
)
from .wallet.keypair import load_keypair
from .ledger.rpc import LedgerClient
from .ledger.tx import (
    TransactionAssembler,
    decode_envelope,
    encode_envelope,
    sign_partial,
    with_blockhash,
)
from .lending.api import LuloClient
from .lending.models import AccountSettings, AccountSummary, TransactionMeta
