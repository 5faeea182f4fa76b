"""Token introspection (RFC 7662) and combined introspect+authorize checks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from .core.errors import ErrorFactory
from .core.manager import BaseManager
from .errors import TokenInactiveError
from .models import Introspection, Permission
from .telemetry import traced

if TYPE_CHECKING:
    from .core.http_executor import HTTPExecutor


class AllowedRequest(BaseModel):
    """Body of a combined introspect+authorize request."""

    token: str
    resource: str
    action: str
    context: dict[str, Any] = Field(default_factory=dict)
    scopes: list[str] = Field(default_factory=list)


class Introspector(BaseManager):
    """Introspects tokens at ``/oauth2/introspect``.

    :meth:`allowed` additionally asks ``/warden/token/allowed`` whether the
    token may perform an action, in a single round trip.
    """

    path = ("oauth2", "introspect")

    def __init__(self, executor: HTTPExecutor) -> None:
        super().__init__(executor)
        self.allowed_endpoint = executor.endpoint("warden", "token", "allowed")

    @traced("hydra.oauth2.introspect")
    def introspect(self, token: str) -> Introspection:
        """Introspect ``token``.

        Returns:
            The introspection record of an active token.

        Raises:
            TokenInactiveError: If the server reports the token as inactive.
        """
        introspection: Introspection = self._call(
            "Introspect",
            "POST",
            self.endpoint,
            data={"token": token},
            expect=Introspection,
        )
        if introspection is None or not introspection.active:
            raise ErrorFactory.context(
                TokenInactiveError(), "Introspect", url=str(self.endpoint)
            )
        return introspection

    @traced("hydra.warden.token_allowed", record_args=True)
    def allowed(
        self,
        token: str,
        resource: str,
        action: str,
        *scopes: str,
        context: dict[str, Any] | None = None,
    ) -> tuple[Introspection, bool]:
        """Introspect ``token`` and check a permission in one request.

        Args:
            token: Access token to check.
            resource: Resource name.
            action: Action name.
            *scopes: Scopes the token must carry.
            context: Evaluation context for policy conditions.

        Returns:
            Tuple of (introspection, allowed). A successful answer implies an
            active token, so ``active`` is always True; ``scope`` is rebuilt
            from the granted ``scopes``.
        """
        payload = AllowedRequest(
            token=token,
            resource=resource,
            action=action,
            context=context or {},
            scopes=list(scopes),
        )
        result: Introspection = self._call(
            "Allowed",
            "POST",
            self.allowed_endpoint,
            json=payload.model_dump(mode="json"),
            expect=Introspection,
        )
        if result is None:
            result = Introspection()
        update: dict[str, Any] = {"active": True}
        if result.scopes:
            update["scope"] = " ".join(result.scopes)
        introspection = result.model_copy(update=update)
        return introspection, bool(result.allowed)

    def allowed_permission(
        self,
        token: str,
        permission: Permission,
        *scopes: str,
    ) -> tuple[Introspection, bool]:
        """Same as :meth:`allowed`, taking a :class:`Permission`."""
        return self.allowed(
            token,
            permission.resource,
            permission.action,
            *scopes,
            context=dict(permission.context),
        )
