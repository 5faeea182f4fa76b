"""Warden groups: named member sets used by policies."""

from __future__ import annotations

from collections.abc import Iterable

from .core.http_executor import NO_BODY, with_query
from .core.manager import BaseManager, refresh_from
from .models import Group
from .telemetry import traced


class GroupManager(BaseManager):
    """Groups at ``/warden/groups``.

    Membership changes go through :meth:`add_members` and
    :meth:`remove_members`, which add to or subtract from the current set
    instead of replacing it.
    """

    path = ("warden", "groups")

    @traced("hydra.groups.list")
    def list(self) -> list[str]:
        """IDs of every group."""
        groups = self._call("List", "GET", self.endpoint, expect=list[str] | None)
        return groups or []

    @traced("hydra.groups.create")
    def create(self, group: Group) -> Group:
        """Create a group with its initial members."""
        created = self._call(
            "Create",
            "POST",
            self.endpoint,
            json=group.to_wire(),
            expect=Group,
        )
        if created is not None:
            refresh_from(group, created)
        self._logger.info("hydra.groups.created", group_id=group.id)
        return group

    @traced("hydra.groups.get", record_args=True)
    def get(self, id: str) -> Group:
        return self._call(f"Get {id}", "GET", self._url(id), expect=Group)

    @traced("hydra.groups.update", record_args=True)
    def update(self, id: str, group: Group) -> None:
        """Replace a group, members included."""
        self._call(
            f"Update {id}",
            "PUT",
            self._url(id),
            json=group.to_wire(),
            expect=NO_BODY,
        )

    @traced("hydra.groups.of_user", record_args=True)
    def of_user(self, member: str) -> list[str]:
        """IDs of every group containing ``member``."""
        url = with_query(self.endpoint, member=member)
        groups = self._call(f"OfUser {member}", "GET", url, expect=list[str] | None)
        return groups or []

    @traced("hydra.groups.add_members", record_args=True)
    def add_members(self, id: str, members: Iterable[str]) -> None:
        """Add ``members`` to the group."""
        self._call(
            f"AddMembers {id}",
            "POST",
            self._url(id, "members"),
            json={"members": list(members)},
            expect=NO_BODY,
        )

    @traced("hydra.groups.remove_members", record_args=True)
    def remove_members(self, id: str, members: Iterable[str]) -> None:
        """Remove ``members`` from the group."""
        self._call(
            f"RemoveMembers {id}",
            "DELETE",
            self._url(id, "members"),
            json={"members": list(members)},
            expect=NO_BODY,
        )

    @traced("hydra.groups.delete", record_args=True)
    def delete(self, id: str) -> None:
        self._call(f"Delete {id}", "DELETE", self._url(id), expect=NO_BODY)
        self._logger.info("hydra.groups.deleted", group_id=id)
