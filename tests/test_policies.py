"""Tests for access-control policy management."""

from __future__ import annotations

import json

import pytest

from hydra_sdk.core.http_executor import HTTPExecutor
from hydra_sdk.errors import APIError
from hydra_sdk.models import Policy
from hydra_sdk.policies import PolicyManager


@pytest.fixture
def policies(executor: HTTPExecutor) -> PolicyManager:
    return PolicyManager(executor)


def _policy(**kwargs) -> Policy:
    fields = {
        "id": "p1",
        "description": "people may eat cake",
        "subjects": ["<.*>"],
        "effect": "allow",
        "resources": ["cake"],
        "actions": ["eat"],
    }
    fields.update(kwargs)
    return Policy(**fields)


class TestPolicyManager:
    """CRUD against /policies."""

    def test_lifecycle(self, fake, policies: PolicyManager) -> None:
        """Create, read, list, update and delete a policy."""
        created = policies.create(_policy())
        assert created.id == "p1"

        fetched = policies.get("p1")
        assert fetched == created

        assert [p.id for p in policies.get_all()] == ["p1"]

        assert policies.update("p1", _policy(effect="deny")) is None
        assert policies.get("p1").effect == "deny"

        policies.delete("p1")
        with pytest.raises(APIError) as exc_info:
            policies.get("p1")
        assert exc_info.value.status_code == 404
        assert policies.get_all() == []

    def test_create_generates_id(self, policies: PolicyManager) -> None:
        policy = _policy(id="")

        policies.create(policy)

        assert policy.id.startswith("policy-")

    def test_create_sends_full_policy(self, fake, policies: PolicyManager) -> None:
        policies.create(_policy(conditions={"owner": {"type": "EqualsSubjectCondition"}}))

        sent = json.loads(fake.last("POST", "/policies").content)
        assert sent == {
            "id": "p1",
            "description": "people may eat cake",
            "subjects": ["<.*>"],
            "effect": "allow",
            "resources": ["cake"],
            "actions": ["eat"],
            "conditions": {"owner": {"type": "EqualsSubjectCondition"}},
        }

    def test_update_ignores_response_body(self, fake, policies: PolicyManager) -> None:
        """Update succeeds whatever the server echoes back."""
        fake.policies["p1"] = _policy().to_wire()
        fake.respond("PUT", "/policies/p1", 200, "<not json>")

        assert policies.update("p1", _policy()) is None

    def test_get_all_null(self, fake, policies: PolicyManager) -> None:
        fake.respond("GET", "/policies", 200, "null")

        assert policies.get_all() == []

    def test_get_all_keeps_server_order(self, fake, policies: PolicyManager) -> None:
        for pid in ("c", "a", "b"):
            fake.policies[pid] = _policy(id=pid).to_wire()

        assert [p.id for p in policies.get_all()] == ["c", "a", "b"]

    def test_update_missing(self, policies: PolicyManager) -> None:
        with pytest.raises(APIError) as exc_info:
            policies.update("nope", _policy(id="nope"))

        assert exc_info.value.is_not_found
        assert str(exc_info.value).startswith("Update nope: ")
