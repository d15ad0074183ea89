"""
Error taxonomy for pylulo.

Every failure raised by library code derives from ``LuloError`` and carries
an ``exit_code`` the CLI uses when it terminates the invocation.
"""

from __future__ import annotations

from typing import Optional


class LuloError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(LuloError):
    exit_code = 2


class ValidationError(LuloError):
    exit_code = 2


class FileAccessError(LuloError):
    exit_code = 3


class ParseError(LuloError):
    exit_code = 4


class NetworkError(LuloError):
    exit_code = 5


class ApiError(NetworkError):
    """The Lulo API could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiResponseError(ApiError, ParseError):
    exit_code = 5


class BatchSubmissionError(NetworkError):
    """
    A transaction in a batch was rejected.

    Attributes:
        index: Position of the failing transaction in the batch
        submitted: Signatures of the transactions submitted before it
    """

    def __init__(self, message: str, index: int, submitted: list) -> None:
        super().__init__(message)
        self.index = index
        self.submitted = list(submitted)


class SigningError(LuloError):
    exit_code = 6


__all__ = [
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
]
