"""Configuration for the Hydra SDK.

Uses Pydantic v2 for validation; the three construction parameters of
every manager (client id, secret, cluster URL) live here together with
HTTP and telemetry settings.
"""

from __future__ import annotations

import os
from typing import Annotated, Any, Self, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    ValidationError,
    field_validator,
)

from .errors import ConfigError

DEFAULT_SCOPES = ("hydra",)

C = TypeVar("C", bound=BaseModel)


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "hydra-sdk"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unsupported log level: {v}"
            raise ValueError(msg)
        return level


class HydraConfig(BaseModel):
    """Main configuration for the Hydra SDK."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Required
    cluster_url: HttpUrl
    client_id: str = Field(..., min_length=1)
    client_secret: SecretStr

    # Authentication
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    token_buffer: Annotated[int, Field(ge=0)] = 60

    # HTTP settings
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @property
    def cluster_url_str(self) -> str:
        """Get cluster URL as string without trailing slash."""
        return str(self.cluster_url).rstrip("/")

    @property
    def token_endpoint(self) -> str:
        """Client-credentials token endpoint of the cluster."""
        return f"{self.cluster_url_str}/oauth2/token"

    @property
    def scope_string(self) -> str | None:
        """Get scopes as space-separated string."""
        return " ".join(self.scopes) if self.scopes else None

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump(mode="json")
        data["client_secret"] = self.client_secret.get_secret_value()
        data.update(kwargs)
        return _validated(self.__class__, data)

    @classmethod
    def from_env(cls, prefix: str = "HYDRA_") -> Self:
        """Create config from environment variables."""

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        data: dict[str, Any] = {}
        for key, field in (
            ("CLUSTER_URL", "cluster_url"),
            ("CLIENT_ID", "client_id"),
            ("CLIENT_SECRET", "client_secret"),
        ):
            value = get_env(key)
            if not value:
                msg = f"{prefix}{key} environment variable is required"
                raise ConfigError(msg, field=field)
            data[field] = value

        scopes_str = get_env("SCOPES")
        if scopes_str:
            data["scopes"] = scopes_str.split()

        timeout = get_env("TIMEOUT")
        if timeout:
            data["timeout"] = timeout

        return _validated(cls, data)


def build_config(
    client_id: str,
    client_secret: str,
    cluster_url: str,
    **overrides: Any,
) -> HydraConfig:
    """Build a config from the three construction parameters.

    Raises:
        ConfigError: If any value is invalid, e.g. a malformed cluster URL.
    """
    return _validated(
        HydraConfig,
        {
            "client_id": client_id,
            "client_secret": client_secret,
            "cluster_url": cluster_url,
            **overrides,
        },
    )


def _validated(cls: type[C], data: dict[str, Any]) -> C:
    try:
        return cls.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        msg = f"Invalid configuration for {field}: {first['msg']}"
        raise ConfigError(msg, field=field) from e
