"""Typed domain models for repository inventory and snapshots."""

from __future__ import annotations

import dataclasses
import enum

from repoflip.common.slug import parse_repo_slug


class Visibility(enum.StrEnum):
    """Repository visibility as written to snapshot files."""

    PUBLIC = "public"
    PRIVATE = "private"

    def opposite(self) -> Visibility:
        """Return the complementary visibility."""
        return Visibility.PRIVATE if self is Visibility.PUBLIC else Visibility.PUBLIC

    @classmethod
    def parse(cls, raw: str) -> Visibility:
        """Parse platform visibility text case-insensitively.

        Enterprise ``internal`` repositories are not publicly readable, so they
        are treated as private.

        Raises
        ------
        ValueError
            If ``raw`` is not a known visibility.

        """
        lowered = raw.strip().lower()
        if lowered == "internal":
            return cls.PRIVATE
        try:
            return cls(lowered)
        except ValueError:
            msg = f"Unknown repository visibility: {raw!r}"
            raise ValueError(msg) from None


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryRecord:
    """Cached state for one repository in the inventory."""

    full_name: str
    visibility: Visibility
    archived: bool

    @property
    def owner(self) -> str:
        """Return the owner segment of ``full_name``."""
        return parse_repo_slug(self.full_name)[0]

    @property
    def name(self) -> str:
        """Return the repository segment of ``full_name``."""
        return parse_repo_slug(self.full_name)[1]

    def label(self) -> str:
        """Return the menu label used by selection screens."""
        suffix = " [Archived]" if self.archived else ""
        return f"{self.full_name} ({self.visibility}){suffix}"


@dataclasses.dataclass(frozen=True, slots=True)
class SnapshotRecord:
    """Desired state read from one snapshot line.

    ``full_name`` is not validated when the file is loaded; the apply flow
    rejects malformed names line by line.
    """

    full_name: str
    visibility: Visibility
    archived: bool

    @classmethod
    def from_record(cls, record: RepositoryRecord) -> SnapshotRecord:
        """Build a snapshot entry from a cached inventory record."""
        return cls(
            full_name=record.full_name,
            visibility=record.visibility,
            archived=record.archived,
        )

    def to_line(self) -> str:
        """Render the record as ``fullName,visibility,archived``."""
        archived = "true" if self.archived else "false"
        return f"{self.full_name},{self.visibility},{archived}"


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryDetails:
    """Live repository state returned by ``describe`` and ``details``.

    Only ``visibility`` and ``archived`` are guaranteed; the remaining fields
    are populated by the detail view lookup and stay ``None`` otherwise.
    """

    full_name: str
    visibility: Visibility
    archived: bool
    description: str | None = None
    url: str | None = None
    homepage: str | None = None
    default_branch: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    pushed_at: str | None = None
    disk_usage_kb: int | None = None
    primary_language: str | None = None
    license_name: str | None = None
    stars: int | None = None
    forks: int | None = None
    open_issues: int | None = None
    open_pull_requests: int | None = None
    commit_count: int | None = None
    contributor_count: int | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class AccountSummary:
    """Authenticated account shown in the main menu header."""

    login: str
    name: str | None
    public_repos: int

    def private_repos(self, total: int) -> int:
        """Return the private count implied by ``total`` listed repositories."""
        return max(total - self.public_repos, 0)
