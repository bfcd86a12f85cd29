"""Remote repository client backed by the ``gh`` command-line tool.

Every call shells out to ``gh`` with captured output and a bounded timeout.
Non-zero exits become :class:`RemoteError` carrying the tool's own message,
which the classifier matches on since ``gh`` exposes no status codes.

Examples
--------
List repositories for the authenticated user:

    client = GhCliClient(limit=200)
    records = client.list_all()

Toggle one repository to private:

    client.set_visibility("octo/reef", Visibility.PRIVATE)

"""

from __future__ import annotations

import os
import re
import subprocess
import typing as typ

import msgspec

from repoflip.errors import RemoteError
from repoflip.logging import get_logger, log_debug, log_warning
from repoflip.models import (
    AccountSummary,
    RepositoryDetails,
    RepositoryRecord,
    Visibility,
)

logger = get_logger(__name__)

_T = typ.TypeVar("_T")

GH_EXECUTABLE = "gh"

_LIST_FIELDS = "nameWithOwner,visibility,isArchived"
_DETAIL_FIELDS = ",".join(
    (
        "nameWithOwner",
        "visibility",
        "isArchived",
        "description",
        "url",
        "homepageUrl",
        "defaultBranchRef",
        "createdAt",
        "updatedAt",
        "pushedAt",
        "diskUsage",
        "primaryLanguage",
        "licenseInfo",
        "stargazerCount",
        "forkCount",
        "issues",
        "pullRequests",
    )
)

# Matches the page number of the rel="last" entry in a Link response header.
_LAST_PAGE_PATTERN = re.compile(r"[?&]page=(\d+)[^>]*>;\s*rel=\"last\"")


class _GhRepo(msgspec.Struct, rename="camel"):
    name_with_owner: str
    visibility: str
    is_archived: bool


class _NameRef(msgspec.Struct):
    name: str | None = None


class _TotalCount(msgspec.Struct, rename="camel"):
    total_count: int = 0


class _GhRepoDetail(msgspec.Struct, rename="camel"):
    name_with_owner: str
    visibility: str
    is_archived: bool
    description: str | None = None
    url: str | None = None
    homepage_url: str | None = None
    default_branch_ref: _NameRef | None = None
    created_at: str | None = None
    updated_at: str | None = None
    pushed_at: str | None = None
    disk_usage: int | None = None
    primary_language: _NameRef | None = None
    license_info: _NameRef | None = None
    stargazer_count: int | None = None
    fork_count: int | None = None
    issues: _TotalCount | None = None
    pull_requests: _TotalCount | None = None


class _GhUser(msgspec.Struct):
    login: str
    name: str | None = None
    public_repos: int = 0


def _record_from_repo(repo: _GhRepo | _GhRepoDetail) -> RepositoryRecord:
    try:
        visibility = Visibility.parse(repo.visibility)
    except ValueError as exc:
        raise RemoteError.malformed(str(exc)) from exc
    return RepositoryRecord(
        full_name=repo.name_with_owner,
        visibility=visibility,
        archived=repo.is_archived,
    )


def _ref_name(ref: _NameRef | None) -> str | None:
    return ref.name if ref else None


def _count(total: _TotalCount | None) -> int | None:
    return total.total_count if total else None


def count_from_include_output(output: str) -> int:
    """Count items from ``gh api --include`` output of a one-per-page listing.

    With ``per_page=1`` the ``rel="last"`` page number in the ``Link`` header
    equals the item count. Without a ``Link`` header everything fit on one
    page, so the body length is the count.

    Parameters
    ----------
    output : str
        Raw stdout of ``gh api --include``: status line, headers, blank line,
        JSON body.

    Returns
    -------
    int
        Number of items in the listing.

    Raises
    ------
    RemoteError
        If the body is not a JSON array.

    """
    normalised = output.replace("\r\n", "\n")
    headers, _, body = normalised.partition("\n\n")
    for line in headers.splitlines():
        if not line.lower().startswith("link:"):
            continue
        match = _LAST_PAGE_PATTERN.search(line)
        if match:
            return int(match.group(1))
    try:
        items = msgspec.json.decode(body.strip() or "[]", type=list[object])
    except msgspec.DecodeError as exc:
        raise RemoteError.malformed(f"expected a JSON array: {exc}") from exc
    return len(items)


class GhCliClient:
    """Remote repository client that drives the ``gh`` binary."""

    def __init__(
        self,
        *,
        owner: str | None = None,
        limit: int = 1000,
        timeout_s: float = 60.0,
        executable: str = GH_EXECUTABLE,
    ) -> None:
        """Configure the listing owner, listing limit and per-call timeout."""
        self.owner = owner
        self.limit = limit
        self.timeout_s = timeout_s
        self.executable = executable

    def close(self) -> None:
        """Nothing to release; each call is its own process."""

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["GH_PROMPT_DISABLED"] = "1"
        env["GH_PAGER"] = "cat"
        env["NO_COLOR"] = "1"
        return env

    def _run(self, *args: str) -> str:
        """Run ``gh`` with ``args`` and return stdout, raising on failure."""
        command = [self.executable, *args]
        log_debug(logger, "Running %s", " ".join(command))
        try:
            # S603: arguments are built internally; repository names are
            # passed as discrete argv entries, never through a shell.
            result = subprocess.run(  # noqa: S603
                command,
                capture_output=True,
                text=True,
                env=self._env(),
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            raise RemoteError.timed_out(" ".join(command[:3]), self.timeout_s) from exc
        except OSError as exc:
            raise RemoteError(f"Failed to run {self.executable}: {exc}") from exc

        if result.returncode != 0:
            message = (result.stderr or "").strip() or (result.stdout or "").strip()
            raise RemoteError(
                message or f"{self.executable} exited {result.returncode}"
            )
        return result.stdout

    def _decode(self, output: str, type_: type[_T]) -> _T:
        try:
            return msgspec.json.decode(output, type=type_)
        except msgspec.DecodeError as exc:
            raise RemoteError.malformed(str(exc)) from exc

    def list_all(self) -> list[RepositoryRecord]:
        """Return every repository listed by ``gh repo list``."""
        args = ["repo", "list"]
        if self.owner:
            args.append(self.owner)
        args += ["--json", _LIST_FIELDS, "--limit", str(self.limit)]
        repos = self._decode(self._run(*args), list[_GhRepo])
        return [_record_from_repo(repo) for repo in repos]

    def describe(self, full_name: str) -> RepositoryDetails:
        """Return live visibility and archive state via ``gh repo view``."""
        repo = self._decode(
            self._run("repo", "view", full_name, "--json", _LIST_FIELDS), _GhRepo
        )
        record = _record_from_repo(repo)
        return RepositoryDetails(
            full_name=record.full_name,
            visibility=record.visibility,
            archived=record.archived,
        )

    def details(self, full_name: str) -> RepositoryDetails:
        """Return live state plus metadata, commit and contributor counts."""
        repo = self._decode(
            self._run("repo", "view", full_name, "--json", _DETAIL_FIELDS),
            _GhRepoDetail,
        )
        record = _record_from_repo(repo)
        branch = _ref_name(repo.default_branch_ref)
        commits_path = f"repos/{full_name}/commits?per_page=1"
        if branch:
            commits_path += f"&sha={branch}"
        return RepositoryDetails(
            full_name=record.full_name,
            visibility=record.visibility,
            archived=record.archived,
            description=repo.description or None,
            url=repo.url,
            homepage=repo.homepage_url or None,
            default_branch=branch,
            created_at=repo.created_at,
            updated_at=repo.updated_at,
            pushed_at=repo.pushed_at,
            disk_usage_kb=repo.disk_usage,
            primary_language=_ref_name(repo.primary_language),
            license_name=_ref_name(repo.license_info),
            stars=repo.stargazer_count,
            forks=repo.fork_count,
            open_issues=_count(repo.issues),
            open_pull_requests=_count(repo.pull_requests),
            commit_count=self._count_listing(commits_path),
            contributor_count=self._count_listing(
                f"repos/{full_name}/contributors?per_page=1&anon=true"
            ),
        )

    def _count_listing(self, path: str) -> int | None:
        """Count a paginated API listing, or ``None`` when it cannot be read."""
        try:
            return count_from_include_output(self._run("api", "--include", path))
        except RemoteError as exc:
            # Empty repositories answer 409 for commit listings.
            log_warning(logger, "Could not count %s: %s", path, exc.message)
            return None

    def set_visibility(self, full_name: str, target: Visibility) -> None:
        """Change visibility with ``gh repo edit --visibility``."""
        self._run(
            "repo",
            "edit",
            full_name,
            "--visibility",
            str(target),
            "--accept-visibility-change-consequences",
        )

    def set_archived(self, full_name: str, *, archived: bool) -> None:
        """Archive or unarchive with the dedicated ``gh repo`` subcommands."""
        action = "archive" if archived else "unarchive"
        self._run("repo", action, full_name, "--yes")

    def current_user(self) -> AccountSummary:
        """Return the authenticated account via ``gh api user``."""
        user = self._decode(self._run("api", "user"), _GhUser)
        return AccountSummary(
            login=user.login, name=user.name, public_repos=user.public_repos
        )


__all__ = ["GH_EXECUTABLE", "GhCliClient", "count_from_include_output"]
