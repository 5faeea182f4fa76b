"""Centralized error factory for the Hydra SDK.

Provides consistent error creation and transformation across all SDK
components.
"""

from __future__ import annotations

from typing import Any

import httpx

from ..errors import APIError, DecodeError, HydraError, TransportError


class ErrorFactory:
    """Centralized error creation with consistent structure.

    All errors created through this factory carry the request method and
    URL they relate to, so callers can tell which operation failed.
    """

    @staticmethod
    def from_response(
        response: httpx.Response,
        *,
        body: str | None = None,
    ) -> APIError:
        """Create an APIError from a response with status > 299.

        The body is preserved verbatim; no structured error parsing is done.

        Args:
            response: HTTP response object (already read).
            body: Body text if already decoded.

        Returns:
            APIError carrying status code and body.
        """
        request = response.request
        text = body if body is not None else response.text
        return APIError(
            response.status_code,
            text,
            method=request.method,
            url=str(request.url),
            message=(
                f"{request.method} {request.url}: expected status code 200, "
                f"got {response.status_code}.\n{text}"
            ),
        )

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        request: httpx.Request | None = None,
    ) -> HydraError:
        """Create SDK error from an exception raised while sending.

        Args:
            exc: Original exception.
            request: Request being executed, for context.

        Returns:
            Appropriate HydraError subclass.
        """
        if isinstance(exc, HydraError):
            return exc

        method = request.method if request is not None else None
        url = str(request.url) if request is not None else None

        if isinstance(exc, httpx.TimeoutException):
            message = f"execute request {method} {url}: timed out: {exc}"
        elif isinstance(exc, httpx.ConnectError):
            message = f"execute request {method} {url}: connection failed: {exc}"
        else:
            message = f"execute request {method} {url}: {exc}"

        return TransportError(message, method=method, url=url, cause=exc)

    @staticmethod
    def decode_error(
        body: str,
        exc: Exception,
        *,
        request: httpx.Request | None = None,
    ) -> DecodeError:
        """Create decode error keeping the offending body.

        Args:
            body: Raw response body.
            exc: Underlying JSON or validation error.
            request: Request that produced the body.

        Returns:
            DecodeError with body and cause.
        """
        url = str(request.url) if request is not None else None
        return DecodeError(body, url=url, cause=exc)

    @staticmethod
    def context(exc: HydraError, operation: str, **details: Any) -> HydraError:
        """Attach operation context to an error in place.

        Args:
            exc: Error to annotate.
            operation: Operation being attempted (``"Get"``, ``"Create"`` ...).
            **details: Extra identifying details such as the resource ID.

        Returns:
            The same error, for ``raise ErrorFactory.context(...)``.
        """
        for key, value in {"operation": operation, **details}.items():
            if exc.details.get(key) is None:
                exc.details[key] = value
        exc.message = f"{operation}: {exc.message}"
        exc.args = (exc.message,)
        return exc
