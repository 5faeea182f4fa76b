"""Authorization decisions from the warden."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from .core.manager import BaseManager
from .models import Introspection, Permission
from .telemetry import traced


class _Decision(BaseModel):
    model_config = ConfigDict(extra="ignore")

    allowed: bool = False


class Authorizer(BaseManager):
    """Asks ``/warden/allowed`` whether a subject may act on a resource.

    A negative decision is a ``False`` result, never an exception; errors
    only mean the decision could not be obtained.
    """

    path = ("warden", "allowed")

    @traced("hydra.warden.is_allowed", record_args=True)
    def is_allowed(
        self,
        subject: str,
        resource: str,
        action: str,
        context: dict[str, Any] | None = None,
        scopes: Iterable[str] | None = None,
    ) -> bool:
        """Check whether ``subject`` may perform ``action`` on ``resource``.

        Args:
            subject: Subject to check, e.g. a user ID.
            resource: Resource name.
            action: Action name.
            context: Evaluation context for policy conditions.
            scopes: Scopes to send along with the request.

        Returns:
            The server's decision.
        """
        payload = {
            "subject": subject,
            "resource": resource,
            "action": action,
            "context": dict(context or {}),
            "scopes": list(scopes or []),
        }
        decision: _Decision = self._call(
            "IsAllowed",
            "POST",
            self.endpoint,
            json=payload,
            expect=_Decision,
        )
        allowed = decision is not None and decision.allowed
        self._logger.debug(
            "hydra.warden.decision",
            subject=subject,
            resource=resource,
            action=action,
            allowed=allowed,
        )
        return allowed

    def authorized(self, introspection: Introspection, permission: Permission) -> bool:
        """Check a permission for the subject of an introspected token."""
        if not introspection.subject:
            msg = "introspection carries no subject"
            raise ValueError(msg)
        return self.is_allowed(
            introspection.subject,
            permission.resource,
            permission.action,
            permission.context,
        )
