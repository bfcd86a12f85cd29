"""Interface implemented by remote repository client backends."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from repoflip.models import (
        AccountSummary,
        RepositoryDetails,
        RepositoryRecord,
        Visibility,
    )


class RemoteRepositoryClient(typ.Protocol):
    """Read and write repository state on the hosting platform.

    Every method raises :class:`repoflip.errors.RemoteError` on failure. Calls
    are synchronous and bounded by the backend's configured timeout.
    """

    def list_all(self) -> list[RepositoryRecord]:
        """Return every repository visible to the configured owner."""
        ...

    def describe(self, full_name: str) -> RepositoryDetails:
        """Return live visibility and archive state for one repository."""
        ...

    def details(self, full_name: str) -> RepositoryDetails:
        """Return live state plus the metadata shown by the detail view."""
        ...

    def set_visibility(self, full_name: str, target: Visibility) -> None:
        """Set the repository visibility to ``target``."""
        ...

    def set_archived(self, full_name: str, *, archived: bool) -> None:
        """Archive or unarchive the repository."""
        ...

    def current_user(self) -> AccountSummary:
        """Return the authenticated account summary."""
        ...

    def close(self) -> None:
        """Release any resources held by the client."""
        ...
