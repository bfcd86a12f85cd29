"""Session-owned cache of repository inventory.

The cache moves through an explicit lifecycle: ``EMPTY`` at session start,
``POPULATED`` after a successful bulk listing, ``INVALIDATED`` after a
successful mutation, manual refresh or snapshot apply. Any ``load`` from a
non-populated state refetches. A listing is parsed completely before it is
published, so readers never see a partial inventory.
"""

from __future__ import annotations

import enum
import typing as typ

from repoflip.errors import EmptyInventoryError, InventoryTransportError, RemoteError
from repoflip.models import RepositoryRecord
from repoflip.observability import EventLogger

if typ.TYPE_CHECKING:
    from repoflip.remote.protocol import RemoteRepositoryClient

Inventory = tuple[RepositoryRecord, ...]


class CacheState(enum.StrEnum):
    """Lifecycle states of :class:`InventoryCache`."""

    EMPTY = "empty"
    POPULATED = "populated"
    INVALIDATED = "invalidated"


def _dedupe(records: typ.Iterable[RepositoryRecord]) -> Inventory:
    """Keep the first record for each ``full_name``, preserving order."""
    seen: set[str] = set()
    unique: list[RepositoryRecord] = []
    for record in records:
        if record.full_name in seen:
            continue
        seen.add(record.full_name)
        unique.append(record)
    return tuple(unique)


class InventoryCache:
    """Lazily populated inventory backed by a remote repository client."""

    def __init__(
        self,
        client: RemoteRepositoryClient,
        *,
        events: EventLogger | None = None,
    ) -> None:
        """Bind the cache to ``client``; nothing is fetched until ``load``."""
        self._client = client
        self._events = events or EventLogger()
        self._records: Inventory = ()
        self._state = CacheState.EMPTY
        self.fetch_count = 0

    @property
    def state(self) -> CacheState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def records(self) -> Inventory:
        """Return the published inventory without fetching."""
        return self._records

    def load(self, *, force: bool = False) -> Inventory:
        """Return the inventory, fetching it when absent or forced.

        Parameters
        ----------
        force : bool, optional
            Refetch even when a populated inventory is cached.

        Returns
        -------
        Inventory
            Ordered, duplicate-free repository records.

        Raises
        ------
        EmptyInventoryError
            If the platform lists zero repositories.
        InventoryTransportError
            If the listing call fails.

        """
        if not force and self._state is CacheState.POPULATED and self._records:
            return self._records

        self._events.inventory_fetch_started(forced=force)
        self.fetch_count += 1
        try:
            fetched = self._client.list_all()
        except RemoteError as exc:
            self._events.inventory_fetch_failed(exc.message)
            raise InventoryTransportError(exc.message) from exc

        records = _dedupe(fetched)
        if not records:
            self._events.inventory_fetch_failed("empty listing")
            raise EmptyInventoryError

        self._records = records
        self._state = CacheState.POPULATED
        self._events.inventory_fetch_completed(len(records))
        return self._records

    def invalidate(self, reason: str = "requested") -> None:
        """Drop the cached inventory so the next ``load`` refetches."""
        self._records = ()
        self._state = CacheState.INVALIDATED
        self._events.inventory_invalidated(reason)


__all__ = ["CacheState", "Inventory", "InventoryCache"]
