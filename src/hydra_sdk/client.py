"""Hydra SDK client: one authenticated connection, every manager."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from .authorizer import Authorizer
from .clients import ClientManager
from .config import HydraConfig, build_config
from .groups import GroupManager
from .http import connect_executor
from .introspect import Introspector
from .keys import CachedKeyManager
from .policies import PolicyManager
from .telemetry import get_logger

if TYPE_CHECKING:
    import httpx

    from .core.http_executor import HTTPExecutor


class HydraClient:
    """Authenticated entry point sharing one connection between managers."""

    def __init__(
        self,
        config: HydraConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Authenticate and build every manager.

        Args:
            config: SDK configuration.
            transport: Optional httpx transport.

        Raises:
            AuthError: If the credentials are rejected.
        """
        self.config = config
        self._executor = connect_executor(config, transport=transport)

        self.clients = ClientManager(self._executor)
        self.policies = PolicyManager(self._executor)
        self.groups = GroupManager(self._executor)
        self.keys = CachedKeyManager(self._executor)
        self.authorizer = Authorizer(self._executor)
        self.introspector = Introspector(self._executor)

        get_logger().info("hydra.client.connected", cluster=config.cluster_url_str)

    @classmethod
    def connect(
        cls,
        client_id: str,
        client_secret: str,
        cluster_url: str,
        *,
        transport: httpx.BaseTransport | None = None,
        **overrides: Any,
    ) -> Self:
        """Build from the three construction parameters.

        Raises:
            ConfigError: If the cluster URL is malformed.
            AuthError: If the credentials are rejected.
        """
        config = build_config(client_id, client_secret, cluster_url, **overrides)
        return cls(config, transport=transport)

    @classmethod
    def from_env(
        cls,
        prefix: str = "HYDRA_",
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> Self:
        """Build from ``<prefix>CLUSTER_URL`` and friends."""
        return cls(HydraConfig.from_env(prefix), transport=transport)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def executor(self) -> HTTPExecutor:
        """Executor shared by the managers."""
        return self._executor

    def close(self) -> None:
        """Close the HTTP client."""
        self._executor.close()
