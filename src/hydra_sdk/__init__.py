"""Hydra Python SDK."""

from .authorizer import Authorizer
from .client import HydraClient
from .clients import ClientGetter, ClientManager
from .config import HydraConfig, TelemetryConfig, build_config
from .core.http_executor import NO_BODY, HTTPExecutor, join_url, send
from .errors import (
    APIError,
    AuthError,
    ConfigError,
    DecodeError,
    ErrorCode,
    HydraError,
    KeyNotFoundError,
    KeyTypeMismatchError,
    NotFoundError,
    TokenInactiveError,
    TransportError,
    TypeMismatchError,
)
from .groups import GroupManager
from .http import authenticate, authenticate_credentials
from .introspect import Introspector
from .keys import CachedKeyManager, KeyGetter
from .models import Client, Group, Introspection, Permission, Policy
from .policies import PolicyManager
from .telemetry import configure_telemetry

__all__ = [
    "HydraClient",
    "HydraConfig",
    "TelemetryConfig",
    "build_config",
    "configure_telemetry",
    "authenticate",
    "authenticate_credentials",
    "HTTPExecutor",
    "NO_BODY",
    "join_url",
    "send",
    "ClientManager",
    "ClientGetter",
    "PolicyManager",
    "GroupManager",
    "CachedKeyManager",
    "KeyGetter",
    "Authorizer",
    "Introspector",
    "Client",
    "Policy",
    "Group",
    "Permission",
    "Introspection",
    "HydraError",
    "ErrorCode",
    "ConfigError",
    "AuthError",
    "TransportError",
    "APIError",
    "DecodeError",
    "TokenInactiveError",
    "KeyNotFoundError",
    "KeyTypeMismatchError",
    "NotFoundError",
    "TypeMismatchError",
]

__version__ = "0.1.0"
