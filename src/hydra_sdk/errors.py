"""Error classes for the Hydra SDK.

Structured error hierarchy with error codes so callers can tell
"denied" or "not found" apart from "could not check".
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the Hydra SDK."""

    # Configuration errors (1xxx)
    INVALID_CONFIG = "CFG_1001"

    # Authentication errors (2xxx)
    AUTH_FAILED = "AUTH_2001"

    # Transport errors (3xxx)
    TRANSPORT_ERROR = "NET_3001"

    # Server responses (4xxx)
    API_ERROR = "API_4001"

    # Decoding errors (5xxx)
    DECODE_ERROR = "DEC_5001"

    # Token errors (6xxx)
    TOKEN_INACTIVE = "TOK_6001"

    # Signing key errors (7xxx)
    KEY_NOT_FOUND = "KEY_7001"
    KEY_TYPE_MISMATCH = "KEY_7002"


class HydraError(Exception):
    """Base error for the Hydra SDK with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = str(code)
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ConfigError(HydraError):
    """Invalid SDK configuration, e.g. a malformed cluster URL."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
        self.field = field


class AuthError(HydraError):
    """The client-credentials exchange failed."""

    def __init__(
        self,
        message: str = "Client credentials exchange failed",
        *,
        token_endpoint: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if token_endpoint:
            details["token_endpoint"] = token_endpoint
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(
            message,
            ErrorCode.AUTH_FAILED,
            status_code=getattr(cause, "status_code", None),
            details=details,
        )
        self.__cause__ = cause


class TransportError(HydraError):
    """The request could not be sent (network, DNS, TLS, timeout)."""

    def __init__(
        self,
        message: str = "Request could not be sent",
        *,
        method: str | None = None,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if method:
            details["method"] = method
        if url:
            details["url"] = url
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, ErrorCode.TRANSPORT_ERROR, details=details)
        self.__cause__ = cause


class APIError(HydraError):
    """The server answered with a status code above 299.

    The response body is kept verbatim for diagnostics; it is never parsed.
    """

    def __init__(
        self,
        status_code: int,
        body: str,
        *,
        method: str | None = None,
        url: str | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message or f"Expected status code 200, got {status_code}",
            ErrorCode.API_ERROR,
            status_code=status_code,
            details={"method": method, "url": url, "body": body},
        )
        self.body = body
        self.method = method
        self.url = url

    @property
    def is_not_found(self) -> bool:
        """Whether the server reported the resource as missing."""
        return self.status_code == 404


class DecodeError(HydraError):
    """The response body did not decode into the expected shape."""

    def __init__(
        self,
        body: str,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            f"Could not decode response body from {url or 'server'}",
            ErrorCode.DECODE_ERROR,
            details={"url": url, "body": body},
        )
        self.body = body
        self.__cause__ = cause


class TokenInactiveError(HydraError):
    """Introspection reported the token as not active."""

    def __init__(self, message: str = "token not active") -> None:
        super().__init__(message, ErrorCode.TOKEN_INACTIVE)


class KeyNotFoundError(HydraError):
    """The requested key set holds no keys."""

    def __init__(self, set_name: str) -> None:
        super().__init__(
            f"The retrieved keyset {set_name!r} is empty",
            ErrorCode.KEY_NOT_FOUND,
            details={"set": set_name},
        )
        self.set_name = set_name


class KeyTypeMismatchError(HydraError):
    """The first key of a set is not of the requested kind."""

    def __init__(self, set_name: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Could not convert first key of {set_name!r} to {expected} (got {actual})",
            ErrorCode.KEY_TYPE_MISMATCH,
            details={"set": set_name, "expected": expected, "actual": actual},
        )
        self.set_name = set_name
        self.expected = expected
        self.actual = actual


NotFoundError = KeyNotFoundError
TypeMismatchError = KeyTypeMismatchError
