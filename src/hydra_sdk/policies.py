"""Access-control policies stored on Hydra."""

from __future__ import annotations

from .core.http_executor import NO_BODY
from .core.manager import BaseManager, refresh_from
from .models import Policy
from .telemetry import traced


class PolicyManager(BaseManager):
    """CRUD for access-control policies at ``/policies``.

    The server is the only source of truth for a policy's effect; nothing
    is inferred client-side.
    """

    path = ("policies",)

    @traced("hydra.policies.create")
    def create(self, policy: Policy) -> Policy:
        """Create a policy and copy the server representation onto it."""
        created = self._call(
            "Create",
            "POST",
            self.endpoint,
            json=policy.to_wire(),
            expect=Policy,
        )
        if created is not None:
            refresh_from(policy, created)
        self._logger.info("hydra.policies.created", policy_id=policy.id)
        return policy

    @traced("hydra.policies.get", record_args=True)
    def get(self, id: str) -> Policy:
        return self._call(f"Get {id}", "GET", self._url(id), expect=Policy)

    @traced("hydra.policies.get_all")
    def get_all(self) -> list[Policy]:
        """Fetch every policy, in server order."""
        policies = self._call(
            "GetAll", "GET", self.endpoint, expect=list[Policy] | None
        )
        return policies or []

    @traced("hydra.policies.update", record_args=True)
    def update(self, id: str, policy: Policy) -> None:
        """Replace a policy; partial updates are not supported."""
        self._call(
            f"Update {id}",
            "PUT",
            self._url(id),
            json=policy.to_wire(),
            expect=NO_BODY,
        )

    @traced("hydra.policies.delete", record_args=True)
    def delete(self, id: str) -> None:
        self._call(f"Delete {id}", "DELETE", self._url(id), expect=NO_BODY)
        self._logger.info("hydra.policies.deleted", policy_id=id)
