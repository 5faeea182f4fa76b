"""Shared construction and plumbing for the Hydra SDK managers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Self, TypeVar

from pydantic import BaseModel

from ..config import HydraConfig, build_config
from ..errors import HydraError
from ..telemetry import get_logger
from .errors import ErrorFactory
from .http_executor import NO_BODY, HTTPExecutor

if TYPE_CHECKING:
    import httpx

M = TypeVar("M", bound=BaseModel)


class BaseManager:
    """Base class for managers bound to one endpoint of the cluster.

    The executor is injected: a manager uses it but only closes it when
    it created the executor itself (see :meth:`connect`).
    """

    #: Path segments of the manager endpoint below the cluster root.
    path: ClassVar[tuple[str, ...]] = ()

    def __init__(self, executor: HTTPExecutor) -> None:
        """Initialize manager.

        Args:
            executor: Authenticated executor for the cluster.
        """
        if not isinstance(executor, HTTPExecutor):
            msg = f"expected HTTPExecutor, got {type(executor).__name__}"
            raise TypeError(msg)
        self._executor = executor
        self._owns_executor = False
        self.endpoint = executor.endpoint(*self.path)
        self._logger = get_logger().bind(manager=type(self).__name__)

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
        """Authenticate and return a manager owning its connection.

        Args:
            client_id: OAuth2 client id.
            client_secret: OAuth2 client secret.
            cluster_url: Cluster root URL.
            transport: Optional httpx transport.
            **overrides: Extra :class:`HydraConfig` fields.

        Raises:
            ConfigError: If the cluster URL is malformed.
            AuthError: If the credentials are rejected.
        """
        config = build_config(client_id, client_secret, cluster_url, **overrides)
        return cls.from_config(config, transport=transport)

    @classmethod
    def from_config(
        cls,
        config: HydraConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> Self:
        """Authenticate with a prepared config."""
        from ..http import connect_executor

        manager = cls(connect_executor(config, transport=transport))
        manager._owns_executor = True
        return manager

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def executor(self) -> HTTPExecutor:
        """Executor used by this manager."""
        return self._executor

    def close(self) -> None:
        """Close the connection if this manager created it."""
        if self._owns_executor:
            self._executor.close()

    def _url(self, *segments: str) -> httpx.URL:
        for segment in segments:
            if not segment:
                msg = "identifier must not be empty"
                raise ValueError(msg)
        return self._executor.endpoint(*self.path, *segments)

    def _call(
        self,
        operation: str,
        method: str,
        url: httpx.URL,
        *,
        expect: Any = NO_BODY,
        **kwargs: Any,
    ) -> Any:
        try:
            return self._executor.request(method, url, expect=expect, **kwargs)
        except HydraError as e:
            ErrorFactory.context(e, operation, url=str(url))
            raise


def refresh_from(target: M, source: M) -> M:
    """Copy every field of ``source`` onto ``target`` in place."""
    for name in type(target).model_fields:
        setattr(target, name, getattr(source, name))
    return target
