"""
Shared test fixtures for Hydra SDK tests.

Provides an in-memory Hydra server served through ``httpx.MockTransport``,
configuration fixtures and RSA key material.
"""

from __future__ import annotations

import base64
import itertools
import json
import re
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from hydra_sdk.client import HydraClient
from hydra_sdk.config import HydraConfig, build_config
from hydra_sdk.core.http_executor import HTTPExecutor
from hydra_sdk.http import connect_executor

CLUSTER_URL = "http://hydra.test"
CLIENT_ID = "admin"
CLIENT_SECRET = "demo-password"


def _json(status: int, payload: Any) -> httpx.Response:
    return httpx.Response(status, json=payload)


def _rfc3339(ts: int) -> str:
    return datetime.fromtimestamp(ts, UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _matches(pattern: str, value: str) -> bool:
    """Match a ``user:<.+>`` style pattern."""
    parts = re.split(r"<(.+?)>", pattern)
    regex = "".join(
        part if i % 2 else re.escape(part) for i, part in enumerate(parts)
    )
    return re.fullmatch(regex, value) is not None


class FakeHydra:
    """In-memory Hydra cluster speaking just enough of the REST API."""

    def __init__(self) -> None:
        self.clients: dict[str, dict[str, Any]] = {}
        self.policies: dict[str, dict[str, Any]] = {}
        self.groups: dict[str, list[str]] = {}
        self.keys: dict[str, list[dict[str, Any]]] = {}
        # access token -> {"sub", "scopes", "active", "client_id"}
        self.tokens: dict[str, dict[str, Any]] = {}

        self.issued: list[str] = []
        self.token_expires_in: int | None = 3600
        self.requests: list[httpx.Request] = []
        self.overrides: dict[tuple[str, str], tuple[int, str]] = {}
        self._ids = itertools.count(1)

    # Request log helpers

    def count(self, method: str, path: str) -> int:
        """Number of recorded requests for ``method`` and ``path``."""
        return sum(
            1 for r in self.requests if r.method == method and r.url.path == path
        )

    def last(self, method: str, path: str) -> httpx.Request:
        """Most recent recorded request for ``method`` and ``path``."""
        for request in reversed(self.requests):
            if request.method == method and request.url.path == path:
                return request
        raise AssertionError(f"no {method} {path} request recorded")

    def respond(self, method: str, path: str, status: int, body: str = "") -> None:
        """Answer every ``method path`` request with a canned response."""
        self.overrides[(method, path)] = (status, body)

    # Transport entry point

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        override = self.overrides.get((request.method, path))
        if override is not None:
            status, body = override
            return httpx.Response(status, text=body)

        if path == "/oauth2/token":
            return self._token(request)
        if not self._bearer_ok(request):
            return _json(401, {"error": "request_unauthorized"})

        segments = [s for s in path.split("/") if s]
        match segments:
            case ["clients"]:
                return self._clients(request)
            case ["clients", cid]:
                return self._client(request, cid)
            case ["policies"]:
                return self._policies(request)
            case ["policies", pid]:
                return self._policy(request, pid)
            case ["warden", "groups"]:
                return self._groups(request)
            case ["warden", "groups", gid]:
                return self._group(request, gid)
            case ["warden", "groups", gid, "members"]:
                return self._members(request, gid)
            case ["warden", "allowed"]:
                return self._warden_allowed(request)
            case ["warden", "token", "allowed"]:
                return self._token_allowed(request)
            case ["oauth2", "introspect"]:
                return self._introspect(request)
            case ["keys", set_name]:
                return self._keyset(set_name)
        return _json(404, {"error": "not_found"})

    # Authentication

    def _token(self, request: httpx.Request) -> httpx.Response:
        header = request.headers.get("Authorization", "")
        expected = base64.b64encode(f"{CLIENT_ID}:{CLIENT_SECRET}".encode()).decode()
        if header != f"Basic {expected}":
            return _json(401, {"error": "invalid_client"})
        form = parse_qs(request.content.decode())
        if form.get("grant_type") != ["client_credentials"]:
            return _json(400, {"error": "unsupported_grant_type"})

        token = f"admin-token-{len(self.issued) + 1}"
        self.issued.append(token)
        payload: dict[str, Any] = {
            "access_token": token,
            "token_type": "bearer",
            "scope": form.get("scope", [""])[0],
        }
        if self.token_expires_in is not None:
            payload["expires_in"] = self.token_expires_in
        return _json(200, payload)

    def _bearer_ok(self, request: httpx.Request) -> bool:
        header = request.headers.get("Authorization", "")
        return header.startswith("Bearer ") and header[7:] in self.issued

    # Clients

    def _clients(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return _json(200, self.clients)
        body = json.loads(request.content)
        if not body["id"]:
            body["id"] = f"client-{next(self._ids)}"
        if not body.get("client_secret"):
            body["client_secret"] = "generated-secret"
        self.clients[body["id"]] = {k: v for k, v in body.items() if k != "client_secret"}
        return _json(201, body)

    def _client(self, request: httpx.Request, cid: str) -> httpx.Response:
        if cid not in self.clients:
            return _json(404, {"error": "Not found"})
        if request.method == "GET":
            return _json(200, self.clients[cid])
        if request.method == "PUT":
            body = json.loads(request.content)
            body["id"] = cid
            body.pop("client_secret", None)
            self.clients[cid] = body
            return _json(200, body)
        del self.clients[cid]
        return httpx.Response(204)

    # Policies

    def _policies(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return _json(200, list(self.policies.values()))
        body = json.loads(request.content)
        if not body.get("id"):
            body["id"] = f"policy-{next(self._ids)}"
        self.policies[body["id"]] = body
        return _json(201, body)

    def _policy(self, request: httpx.Request, pid: str) -> httpx.Response:
        if pid not in self.policies:
            return _json(404, {"error": "Not found"})
        if request.method == "GET":
            return _json(200, self.policies[pid])
        if request.method == "PUT":
            body = json.loads(request.content)
            body["id"] = pid
            self.policies[pid] = body
            return _json(200, body)
        del self.policies[pid]
        return httpx.Response(204)

    # Groups

    def _groups(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            member = request.url.params.get("member")
            if member is None:
                return _json(200, list(self.groups))
            return _json(200, [g for g, ms in self.groups.items() if member in ms])
        body = json.loads(request.content)
        if not body.get("id"):
            body["id"] = f"group-{next(self._ids)}"
        self.groups[body["id"]] = list(body.get("members") or [])
        return _json(201, {"id": body["id"], "members": self.groups[body["id"]]})

    def _group(self, request: httpx.Request, gid: str) -> httpx.Response:
        if gid not in self.groups:
            return _json(404, {"error": "Not found"})
        if request.method == "GET":
            return _json(200, {"id": gid, "members": self.groups[gid]})
        if request.method == "PUT":
            self.groups[gid] = list(json.loads(request.content).get("members") or [])
            return httpx.Response(204)
        del self.groups[gid]
        return httpx.Response(204)

    def _members(self, request: httpx.Request, gid: str) -> httpx.Response:
        if gid not in self.groups:
            return _json(404, {"error": "Not found"})
        members = json.loads(request.content)["members"]
        current = self.groups[gid]
        if request.method == "POST":
            current.extend(m for m in members if m not in current)
        else:
            self.groups[gid] = [m for m in current if m not in members]
        return httpx.Response(204)

    # Warden

    def decide(self, subject: str, resource: str, action: str) -> bool:
        """Evaluate stored policies: any matching deny wins over allows."""
        subjects = {subject} | {g for g, ms in self.groups.items() if subject in ms}
        allowed = False
        for policy in self.policies.values():
            if not any(_matches(p, s) for p in policy["subjects"] for s in subjects):
                continue
            if not any(_matches(p, resource) for p in policy["resources"]):
                continue
            if not any(_matches(p, action) for p in policy["actions"]):
                continue
            if policy["effect"] == "deny":
                return False
            allowed = True
        return allowed

    def _warden_allowed(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        allowed = self.decide(body["subject"], body["resource"], body["action"])
        return _json(200, {"allowed": allowed})

    def _token_allowed(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        info = self.tokens.get(body["token"])
        if info is None or not info.get("active", True):
            return _json(401, {"error": "token not active"})
        granted = set(info.get("scopes", []))
        allowed = set(body.get("scopes") or []) <= granted and self.decide(
            info["sub"], body["resource"], body["action"]
        )
        return _json(
            200,
            {
                "sub": info["sub"],
                "scopes": info.get("scopes", []),
                "iss": "hydra.localhost",
                "aud": info.get("client_id", "app-client"),
                "iat": _rfc3339(info.get("iat", 1_500_000_000)),
                "exp": _rfc3339(info.get("exp", 4_000_000_000)),
                "ext": info.get("ext"),
                "allowed": allowed,
            },
        )

    def _introspect(self, request: httpx.Request) -> httpx.Response:
        form = parse_qs(request.content.decode())
        info = self.tokens.get(form.get("token", [""])[0])
        if info is None or not info.get("active", True):
            return _json(200, {"active": False})
        return _json(
            200,
            {
                "active": True,
                "sub": info["sub"],
                "scope": " ".join(info.get("scopes", [])),
                "client_id": info.get("client_id", "app-client"),
                "iat": info.get("iat", 1_500_000_000),
                "exp": info.get("exp", 4_000_000_000),
            },
        )

    # Keys

    def _keyset(self, set_name: str) -> httpx.Response:
        if set_name not in self.keys:
            return _json(404, {"error": "Not found"})
        return _json(200, {"keys": self.keys[set_name]})


@pytest.fixture
def fake() -> FakeHydra:
    """Provide an empty in-memory Hydra cluster."""
    return FakeHydra()


@pytest.fixture
def transport(fake: FakeHydra) -> httpx.MockTransport:
    """Provide a transport routing every request to the fake cluster."""
    return httpx.MockTransport(fake)


@pytest.fixture
def make_fake() -> Callable[[], tuple[FakeHydra, httpx.MockTransport]]:
    """Provide a factory for fresh fake clusters (for property tests)."""

    def factory() -> tuple[FakeHydra, httpx.MockTransport]:
        hydra = FakeHydra()
        return hydra, httpx.MockTransport(hydra)

    return factory


@pytest.fixture
def config() -> HydraConfig:
    """Provide a configuration pointing at the fake cluster."""
    return build_config(CLIENT_ID, CLIENT_SECRET, CLUSTER_URL)


@pytest.fixture
def executor(
    config: HydraConfig, transport: httpx.MockTransport
) -> Iterator[HTTPExecutor]:
    """Provide an authenticated executor against the fake cluster."""
    executor = connect_executor(config, transport=transport)
    yield executor
    executor.close()


@pytest.fixture
def hydra(config: HydraConfig, transport: httpx.MockTransport) -> Iterator[HydraClient]:
    """Provide a connected SDK client against the fake cluster."""
    client = HydraClient(config, transport=transport)
    yield client
    client.close()


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Provide an RSA key pair (generated once per session)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_jwk(rsa_private_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    """Provide the session key pair as a private JWK."""
    jwk = json.loads(RSAAlgorithm.to_jwk(rsa_private_key))
    jwk.update(kid="private:rsa-1", use="sig", alg="RS256")
    return jwk


@pytest.fixture(scope="session")
def public_jwk(rsa_private_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    """Provide the session key pair as a public JWK."""
    jwk = json.loads(RSAAlgorithm.to_jwk(rsa_private_key.public_key()))
    jwk.update(kid="public:rsa-1", use="sig", alg="RS256")
    return jwk


@pytest.fixture
def ec_jwk() -> dict[str, Any]:
    """Provide a non-RSA JWK (values are never parsed)."""
    return {
        "kty": "EC",
        "kid": "ec-1",
        "crv": "P-256",
        "x": "f83OJ3D2xF1Bg8vub9tLe1gHMzV76e8Tus9uPHvRVEU",
        "y": "x_FEzRu9m36HLN_tue659LNpXW6pCyStikYjKIWI5a0",
    }
