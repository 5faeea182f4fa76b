"""Core components for the Hydra SDK.

Request execution, error translation, token handling and the manager
base class shared by every endpoint binding.
"""

from __future__ import annotations

from .errors import ErrorFactory
from .http_executor import NO_BODY, HTTPExecutor, join_url, send, with_query
from .manager import BaseManager
from .token_ops import TokenOperations

__all__ = [
    "ErrorFactory",
    "NO_BODY",
    "HTTPExecutor",
    "join_url",
    "send",
    "with_query",
    "BaseManager",
    "TokenOperations",
]
