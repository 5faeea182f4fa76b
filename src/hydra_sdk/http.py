"""HTTP client construction and authentication for the Hydra SDK.

Builds an httpx client bound to a client-credentials bearer token. The
token is obtained once when authenticating (fail fast) and re-fetched by
the auth flow whenever it is about to expire.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import httpx
from pydantic import ValidationError

from .config import HydraConfig, build_config
from .core.errors import ErrorFactory
from .core.http_executor import HTTPExecutor, join_url, with_query
from .core.token_ops import TokenOperations
from .errors import AuthError, HydraError
from .models import TokenData, TokenResponse
from .telemetry import SDK_NAME, SDK_VERSION, get_logger

__all__ = [
    "ClientCredentialsAuth",
    "authenticate",
    "authenticate_credentials",
    "connect_executor",
    "create_http_client",
    "join_url",
    "with_query",
]


def create_http_client(
    config: HydraConfig,
    *,
    auth: httpx.Auth | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create configured sync HTTP client.

    Args:
        config: SDK configuration.
        auth: Auth flow applied to every request.
        transport: Optional transport (tests pass ``httpx.MockTransport``).

    Returns:
        Configured httpx.Client.
    """
    return httpx.Client(
        auth=auth,
        transport=transport,
        timeout=httpx.Timeout(
            connect=config.connect_timeout,
            read=config.timeout,
            write=config.timeout,
            pool=config.timeout,
        ),
        headers={
            "User-Agent": f"{SDK_NAME}/{SDK_VERSION} Python",
            "Accept": "application/json",
        },
        follow_redirects=False,
    )


class ClientCredentialsAuth(httpx.Auth):
    """Attach a client-credentials bearer token to every request.

    When the stored token is missing or about to expire, a new one is
    requested through the same transport before the request is sent.
    """

    requires_response_body = True

    def __init__(self, token_ops: TokenOperations) -> None:
        self._token_ops = token_ops
        self._client_auth = httpx.BasicAuth(*token_ops.basic_auth())
        self._logger = get_logger()

    def build_token_request(self) -> httpx.Request:
        """Build the client-credentials token request (without client auth)."""
        return httpx.Request(
            "POST",
            self._token_ops.token_endpoint,
            data=self._token_ops.build_client_credentials_request(),
            headers={"Accept": "application/json"},
        )

    def fetch_token(self, client: httpx.Client) -> TokenData:
        """Exchange client credentials for a token right away.

        Raises:
            AuthError: If the exchange fails for any reason.
        """
        request = self.build_token_request()
        try:
            response = client.send(request, auth=self._client_auth)
        except httpx.HTTPError as e:
            cause = ErrorFactory.from_exception(e, request=request)
            raise self._auth_error(cause) from cause
        return self.handle_token_response(response)

    def handle_token_response(self, response: httpx.Response) -> TokenData:
        """Validate and store a token endpoint response.

        Raises:
            AuthError: On non-2xx status or a malformed token response.
        """
        response.read()
        if response.status_code > 299:
            cause: HydraError = ErrorFactory.from_response(response)
            raise self._auth_error(cause) from cause
        try:
            token = TokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            cause = ErrorFactory.decode_error(response.text, e, request=response.request)
            raise self._auth_error(cause) from cause

        tokens = self._token_ops.process_token_response(token)
        self._logger.info(
            "hydra.token.acquired",
            token_endpoint=self._token_ops.token_endpoint,
            expires_in=token.expires_in,
        )
        return tokens

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        access_token = self._token_ops.get_access_token()
        if access_token is None:
            token_request = next(self._client_auth.auth_flow(self.build_token_request()))
            response = yield token_request
            access_token = self.handle_token_response(response).access_token

        request.headers["Authorization"] = f"Bearer {access_token}"
        yield request

    def _auth_error(self, cause: HydraError) -> AuthError:
        cluster = self._token_ops.config.cluster_url_str
        self._logger.warning(
            "hydra.token.failed",
            token_endpoint=self._token_ops.token_endpoint,
            error=cause.message,
        )
        return AuthError(
            f"connect to cluster {cluster}: {cause.message}",
            token_endpoint=self._token_ops.token_endpoint,
            cause=cause,
        )


def authenticate(
    config: HydraConfig,
    *,
    transport: httpx.BaseTransport | None = None,
) -> tuple[httpx.URL, httpx.Client]:
    """Authenticate against the cluster.

    Args:
        config: SDK configuration.
        transport: Optional transport for the returned client.

    Returns:
        Tuple of (cluster base URL, authenticated client).

    Raises:
        AuthError: If the client-credentials exchange fails.
    """
    if not isinstance(config, HydraConfig):
        msg = f"expected HydraConfig, got {type(config).__name__}"
        raise TypeError(msg)

    auth = ClientCredentialsAuth(TokenOperations(config))
    client = create_http_client(config, auth=auth, transport=transport)
    try:
        auth.fetch_token(client)
    except AuthError:
        client.close()
        raise
    return httpx.URL(str(config.cluster_url)), client


def authenticate_credentials(
    client_id: str,
    client_secret: str,
    cluster_url: str,
    *,
    transport: httpx.BaseTransport | None = None,
    **overrides: Any,
) -> tuple[httpx.URL, httpx.Client]:
    """Authenticate from the three construction parameters.

    Raises:
        ConfigError: If the cluster URL (or another value) is malformed.
        AuthError: If the client-credentials exchange fails.
    """
    config = build_config(client_id, client_secret, cluster_url, **overrides)
    return authenticate(config, transport=transport)


def connect_executor(
    config: HydraConfig,
    *,
    transport: httpx.BaseTransport | None = None,
) -> HTTPExecutor:
    """Authenticate and wrap the client in an executor that owns it."""
    base_url, client = authenticate(config, transport=transport)
    return HTTPExecutor(client, base_url, owns_client=True)
