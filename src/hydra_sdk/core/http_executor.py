"""Request execution for the Hydra SDK.

One primitive, :func:`send`, executes a request, reads the whole body and
classifies the outcome by status code. :class:`HTTPExecutor` is the
authenticated capability handed to every manager.
"""

from __future__ import annotations

import functools
import posixpath
from enum import Enum
from typing import Any, Final, Self

import httpx
from pydantic import TypeAdapter, ValidationError

from ..telemetry import get_logger, trace_operation
from .errors import ErrorFactory


class _Expect(Enum):
    NO_BODY = "no_body"


NO_BODY: Final = _Expect.NO_BODY
"""Pass as ``expect`` when the response body is irrelevant."""


def join_url(base: httpx.URL, *segments: str) -> httpx.URL:
    """Path-join segments onto a copy of ``base``.

    Follows ``path.Join`` semantics: the result is cleaned (``..`` and
    duplicate slashes resolved) and a leading slash in a segment does not
    reset the path. Segments are not escaped beyond what the URL encoder
    does for the path; callers pre-encode reserved characters.

    Args:
        base: Base URL; never mutated.
        *segments: Path segments to append.

    Returns:
        New URL with the joined path and the base query.
    """
    path = posixpath.normpath("/".join(["", base.path, *segments]))
    return base.copy_with(path="/" + path.lstrip("/"))


def with_query(url: httpx.URL, **params: str) -> httpx.URL:
    """Return a copy of ``url`` with extra query parameters."""
    return url.copy_merge_params(params)


@functools.lru_cache(maxsize=None)
def _adapter(expect: Any) -> TypeAdapter[Any]:
    return TypeAdapter(expect)


def send(
    client: httpx.Client,
    request: httpx.Request,
    expect: Any = NO_BODY,
) -> Any:
    """Execute a request and decode its JSON body.

    Args:
        client: HTTP client to execute the request with.
        request: Prepared request.
        expect: Type to decode the body into, or ``NO_BODY``.

    Returns:
        Decoded body, or None for 204 responses and ``NO_BODY``.

    Raises:
        TransportError: If the request could not be sent.
        APIError: If the status code is above 299.
        DecodeError: If the body does not decode into ``expect``.
    """
    logger = get_logger()
    with trace_operation(
        "hydra.http.request",
        attributes={"http.method": request.method, "http.url": str(request.url)},
    ) as span:
        try:
            response = client.send(request)
        except httpx.HTTPError as e:
            logger.warning(
                "hydra.request.failed",
                method=request.method,
                url=str(request.url),
                error=str(e),
            )
            raise ErrorFactory.from_exception(e, request=request) from e

        span.set_attribute("http.status_code", response.status_code)

        if response.status_code == httpx.codes.NO_CONTENT:
            return None

        body = response.text
        if response.status_code > 299:
            logger.warning(
                "hydra.request.rejected",
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
            )
            raise ErrorFactory.from_response(response, body=body)

        if expect is NO_BODY:
            return None

        try:
            return _adapter(expect).validate_json(response.content)
        except ValidationError as e:
            raise ErrorFactory.decode_error(body, e, request=request) from e


class HTTPExecutor:
    """Authenticated request capability shared by managers.

    Managers hold an executor but do not own it: several managers built
    against the same cluster share one executor and its connection pool.
    """

    def __init__(
        self,
        client: httpx.Client,
        base_url: httpx.URL | str,
        *,
        owns_client: bool = False,
    ) -> None:
        """Initialize executor.

        Args:
            client: Authenticated HTTP client.
            base_url: Cluster root URL.
            owns_client: Whether :meth:`close` closes ``client``.
        """
        self._client = client
        self._base_url = httpx.URL(base_url)
        self._owns_client = owns_client
        self._logger = get_logger()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def endpoint(self, *segments: str) -> httpx.URL:
        """Join path segments onto the cluster root."""
        return join_url(self._base_url, *segments)

    def request(
        self,
        method: str,
        url: httpx.URL | str,
        *,
        json: Any = None,
        data: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        expect: Any = NO_BODY,
    ) -> Any:
        """Build and send a request.

        Args:
            method: HTTP method.
            url: Request URL.
            json: JSON body.
            data: Form body (``application/x-www-form-urlencoded``).
            params: Extra query parameters.
            expect: Type to decode the body into, or ``NO_BODY``.

        Returns:
            Decoded body, see :func:`send`.
        """
        request = self._client.build_request(
            method,
            url,
            json=json,
            data=data,
            params=params,
            headers={"Accept": "application/json"},
        )
        self._logger.debug("hydra.request", method=method, url=str(request.url))
        return send(self._client, request, expect)

    def close(self) -> None:
        """Close the HTTP client if this executor owns it."""
        if self._owns_client:
            self._client.close()
