"""OAuth2 client registrations stored on Hydra."""

from __future__ import annotations

from typing import Protocol

from .core.http_executor import NO_BODY
from .core.manager import BaseManager, refresh_from
from .models import Client
from .telemetry import traced


class ClientGetter(Protocol):
    """Anything able to look up a client by its ID."""

    def get(self, id: str) -> Client: ...


class ClientManager(BaseManager):
    """CRUD for OAuth2 clients at ``/clients``."""

    path = ("clients",)

    @traced("hydra.clients.create")
    def create(self, client: Client) -> Client:
        """Register a new client.

        The server representation (generated ID or secret included) is
        copied onto ``client``, which is also returned.
        """
        created = self._call(
            "Create",
            "POST",
            self.endpoint,
            json=client.to_wire(),
            expect=Client,
        )
        if created is not None:
            refresh_from(client, created)
        self._logger.info("hydra.clients.created", client_id=client.id)
        return client

    @traced("hydra.clients.get", record_args=True)
    def get(self, id: str) -> Client:
        """Fetch one client; a missing one raises an APIError with status 404."""
        return self._call(f"Get {id}", "GET", self._url(id), expect=Client)

    @traced("hydra.clients.get_all")
    def get_all(self) -> dict[str, Client]:
        """Fetch every client, keyed by ID."""
        clients = self._call(
            "GetAll", "GET", self.endpoint, expect=dict[str, Client] | None
        )
        return clients or {}

    @traced("hydra.clients.update", record_args=True)
    def update(self, id: str, client: Client) -> Client:
        """Replace a client with the full state in ``client``.

        The echoed representation is copied back onto ``client``.
        """
        updated = self._call(
            f"Update {id}",
            "PUT",
            self._url(id),
            json=client.to_wire(),
            expect=Client,
        )
        if updated is not None:
            refresh_from(client, updated)
        return client

    @traced("hydra.clients.delete", record_args=True)
    def delete(self, id: str) -> None:
        """Remove a client."""
        self._call(f"Delete {id}", "DELETE", self._url(id), expect=NO_BODY)
        self._logger.info("hydra.clients.deleted", client_id=id)
