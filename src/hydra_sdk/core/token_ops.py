"""Client-credentials token operations for the Hydra SDK.

Builds the token request and keeps the current bearer token. The token
is the only piece of transport state shared between threads, so access
goes through a lock.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from ..models import TokenData, TokenResponse

if TYPE_CHECKING:
    from ..config import HydraConfig


class TokenOperations:
    """Token request building and storage for the client-credentials grant."""

    def __init__(self, config: HydraConfig) -> None:
        """Initialize token operations.

        Args:
            config: SDK configuration.
        """
        self.config = config
        self._tokens: TokenData | None = None
        self._lock = threading.Lock()

    @property
    def token_endpoint(self) -> str:
        """Token endpoint the grant is exchanged against."""
        return self.config.token_endpoint

    def build_client_credentials_request(self) -> dict[str, str]:
        """Build client credentials grant form body.

        Client id and secret travel in the Basic authorization header,
        see :meth:`basic_auth`.

        Returns:
            Form fields.
        """
        data = {"grant_type": "client_credentials"}
        if self.config.scope_string:
            data["scope"] = self.config.scope_string
        return data

    def basic_auth(self) -> tuple[str, str]:
        """Client id and secret for HTTP Basic client authentication."""
        return (
            self.config.client_id,
            self.config.client_secret.get_secret_value(),
        )

    def process_token_response(self, response: TokenResponse) -> TokenData:
        """Store a freshly obtained token.

        Args:
            response: Token response from server.

        Returns:
            Stored token data.
        """
        tokens = TokenData.from_response(
            response,
            buffer_seconds=self.config.token_buffer,
        )
        with self._lock:
            self._tokens = tokens
        return tokens

    def get_access_token(self) -> str | None:
        """Get the current access token, or None if missing or expired."""
        with self._lock:
            tokens = self._tokens
        if tokens is None or tokens.is_expired():
            return None
        return tokens.access_token
