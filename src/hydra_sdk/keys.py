"""Signing-key retrieval with an in-memory cache.

Thread-safe read-through cache of the first RSA key of Hydra key sets.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol

import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from jwt.algorithms import RSAAlgorithm

from .core.manager import BaseManager
from .errors import KeyNotFoundError, KeyTypeMismatchError
from .models import JWKS
from .telemetry import traced

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .core.http_executor import HTTPExecutor


class KeyGetter(Protocol):
    """Retrieves the first key of a key set."""

    def get_public_key(self, set_name: str) -> RSAPublicKey: ...

    def get_private_key(self, set_name: str) -> RSAPrivateKey: ...


class CachedKeyManager(BaseManager):
    """Read-through cache of RSA keys fetched from ``/keys/<set>``.

    Entries are kept for the lifetime of the manager: there is no TTL and
    no invalidation, so a rotated key is only picked up by a new manager.
    Concurrent misses for the same set may each fetch; they store equal
    values, the last write wins.
    """

    path = ("keys",)

    def __init__(self, executor: HTTPExecutor) -> None:
        """Initialize key cache.

        Args:
            executor: Authenticated executor for the cluster.
        """
        super().__init__(executor)
        self._publics: dict[str, RSAPublicKey] = {}
        self._privates: dict[str, RSAPrivateKey] = {}
        self._publics_lock = threading.Lock()
        self._privates_lock = threading.Lock()

    @property
    def cached_public_keys(self) -> Mapping[str, RSAPublicKey]:
        """Read-only view of the cached public keys."""
        return MappingProxyType(self._publics)

    @property
    def cached_private_keys(self) -> Mapping[str, RSAPrivateKey]:
        """Read-only view of the cached private keys."""
        return MappingProxyType(self._privates)

    @traced("hydra.keys.get_public", record_args=True)
    def get_public_key(self, set_name: str) -> RSAPublicKey:
        """Get the first key of ``set_name`` as an RSA public key.

        Raises:
            KeyNotFoundError: If the set is empty.
            KeyTypeMismatchError: If the first key is not an RSA public key.
        """
        with self._publics_lock:
            key = self._publics.get(set_name)
        if key is not None:
            return key

        key = self._fetch_first(set_name, RSAPublicKey, "RSA public key")
        with self._publics_lock:
            self._publics[set_name] = key
        self._logger.info("hydra.keys.cached", set=set_name, kind="public")
        return key

    @traced("hydra.keys.get_private", record_args=True)
    def get_private_key(self, set_name: str) -> RSAPrivateKey:
        """Get the first key of ``set_name`` as an RSA private key.

        Raises:
            KeyNotFoundError: If the set is empty.
            KeyTypeMismatchError: If the first key is not an RSA private key.
        """
        with self._privates_lock:
            key = self._privates.get(set_name)
        if key is not None:
            return key

        key = self._fetch_first(set_name, RSAPrivateKey, "RSA private key")
        with self._privates_lock:
            self._privates[set_name] = key
        self._logger.info("hydra.keys.cached", set=set_name, kind="private")
        return key

    def _fetch_first(self, set_name: str, kind: type[Any], label: str) -> Any:
        keyset: JWKS = self._call(
            f"GetKeys {set_name}", "GET", self._url(set_name), expect=JWKS
        )
        if keyset is None or not keyset.keys:
            raise KeyNotFoundError(set_name)

        # Only the first key is considered; later entries are never searched
        first = keyset.keys[0]
        if first.kty != "RSA":
            raise KeyTypeMismatchError(set_name, label, f"{first.kty} key")

        try:
            key = RSAAlgorithm.from_jwk(first.to_dict())
        except (jwt.exceptions.InvalidKeyError, ValueError, KeyError) as e:
            raise KeyTypeMismatchError(set_name, label, "invalid RSA key") from e

        if not isinstance(key, kind):
            actual = "RSA private key" if first.is_private else "RSA public key"
            raise KeyTypeMismatchError(set_name, label, actual)
        return key
