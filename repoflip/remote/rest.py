"""Remote repository client backed by the platform's REST API over HTTPS.

Unlike the ``gh`` backend this client sees HTTP status codes, so failures are
raised as :class:`RemoteError` with ``status_code`` set and the classifier can
route 404/429 without inspecting message text.
"""

from __future__ import annotations

import dataclasses
import http
import typing as typ

import httpx
import msgspec

from repoflip.errors import RemoteConfigError, RemoteError
from repoflip.models import (
    AccountSummary,
    RepositoryDetails,
    RepositoryRecord,
    Visibility,
)

_PAGE_SIZE = 100

_T = typ.TypeVar("_T")


@dataclasses.dataclass(frozen=True, slots=True)
class RestClientConfig:
    """Configuration for the REST API client."""

    token: str
    base_url: str = "https://api.github.com"
    timeout_s: float = 60.0
    user_agent: str = "repoflip/0.1"
    owner: str | None = None
    limit: int = 1000


class _RestLicense(msgspec.Struct):
    name: str | None = None


class _RestRepo(msgspec.Struct):
    full_name: str
    private: bool
    archived: bool
    visibility: str | None = None
    description: str | None = None
    html_url: str | None = None
    homepage: str | None = None
    default_branch: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    pushed_at: str | None = None
    size: int | None = None
    language: str | None = None
    license: _RestLicense | None = None
    stargazers_count: int | None = None
    forks_count: int | None = None
    open_issues_count: int | None = None


class _RestUser(msgspec.Struct):
    login: str
    name: str | None = None
    public_repos: int = 0


class _RestErrorBody(msgspec.Struct):
    message: str = ""


def _visibility(repo: _RestRepo) -> Visibility:
    if repo.visibility:
        try:
            return Visibility.parse(repo.visibility)
        except ValueError as exc:
            raise RemoteError.malformed(str(exc)) from exc
    return Visibility.PRIVATE if repo.private else Visibility.PUBLIC


def _record(repo: _RestRepo) -> RepositoryRecord:
    return RepositoryRecord(
        full_name=repo.full_name,
        visibility=_visibility(repo),
        archived=repo.archived,
    )


def _error_message(response: httpx.Response) -> str:
    try:
        body = msgspec.json.decode(response.content, type=_RestErrorBody)
    except msgspec.DecodeError:
        return response.text.strip() or response.reason_phrase
    return body.message or response.reason_phrase


class GitHubRestClient:
    """REST implementation of :class:`RemoteRepositoryClient`."""

    def __init__(
        self,
        config: RestClientConfig,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise RemoteConfigError.missing_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    def close(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            self._client.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, typ.Any] | None = None,
        json: dict[str, typ.Any] | None = None,
    ) -> httpx.Response:
        try:
            response = self._client.request(method, url, params=params, json=json)
        except httpx.TimeoutException as exc:
            command = f"{method} {url}"
            raise RemoteError.timed_out(command, self._config.timeout_s) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"{method} {url} failed: {exc}") from exc
        if response.is_error:
            message = _error_message(response)
            raise RemoteError.http_error(response.status_code, message)
        return response

    def _decode(self, response: httpx.Response, type_: type[_T]) -> _T:
        try:
            return msgspec.json.decode(response.content, type=type_)
        except msgspec.DecodeError as exc:
            raise RemoteError.malformed(str(exc)) from exc

    def _list_url(self) -> tuple[str, dict[str, typ.Any]]:
        if self._config.owner:
            return (f"/users/{self._config.owner}/repos", {"type": "owner"})
        return ("/user/repos", {"affiliation": "owner"})

    def list_all(self) -> list[RepositoryRecord]:
        """Return owned repositories, following ``Link: rel="next"`` pages."""
        url, base_params = self._list_url()
        params: dict[str, typ.Any] | None = {**base_params, "per_page": _PAGE_SIZE}
        records: list[RepositoryRecord] = []
        next_url: str | None = url
        while next_url and len(records) < self._config.limit:
            response = self._request("GET", next_url, params=params)
            repos = self._decode(response, list[_RestRepo])
            records.extend(_record(repo) for repo in repos)
            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            params = None
        return records[: self._config.limit]

    def describe(self, full_name: str) -> RepositoryDetails:
        """Return live visibility and archive state."""
        response = self._request("GET", f"/repos/{full_name}")
        record = _record(self._decode(response, _RestRepo))
        return RepositoryDetails(
            full_name=record.full_name,
            visibility=record.visibility,
            archived=record.archived,
        )

    def details(self, full_name: str) -> RepositoryDetails:
        """Return live state plus metadata and paginated counts."""
        repo = self._decode(self._request("GET", f"/repos/{full_name}"), _RestRepo)
        record = _record(repo)
        commit_params: dict[str, typ.Any] = {}
        if repo.default_branch:
            commit_params["sha"] = repo.default_branch
        open_prs = self._count_listing(
            f"/repos/{full_name}/pulls", {"state": "open"}
        )
        open_issues = repo.open_issues_count
        if open_issues is not None and open_prs is not None:
            # open_issues_count includes open pull requests.
            open_issues = max(open_issues - open_prs, 0)
        return RepositoryDetails(
            full_name=record.full_name,
            visibility=record.visibility,
            archived=record.archived,
            description=repo.description or None,
            url=repo.html_url,
            homepage=repo.homepage or None,
            default_branch=repo.default_branch,
            created_at=repo.created_at,
            updated_at=repo.updated_at,
            pushed_at=repo.pushed_at,
            disk_usage_kb=repo.size,
            primary_language=repo.language,
            license_name=repo.license.name if repo.license else None,
            stars=repo.stargazers_count,
            forks=repo.forks_count,
            open_issues=open_issues,
            open_pull_requests=open_prs,
            commit_count=self._count_listing(
                f"/repos/{full_name}/commits", commit_params
            ),
            contributor_count=self._count_listing(
                f"/repos/{full_name}/contributors", {"anon": "true"}
            ),
        )

    def _count_listing(self, url: str, params: dict[str, typ.Any]) -> int | None:
        """Count a listing via the ``rel="last"`` page of a one-per-page query."""
        try:
            response = self._request("GET", url, params={**params, "per_page": 1})
        except RemoteError:
            return None
        last = response.links.get("last", {}).get("url")
        if last:
            page = httpx.URL(last).params.get("page")
            if page and page.isdigit():
                return int(page)
        if response.status_code == http.HTTPStatus.NO_CONTENT:
            return 0
        return len(self._decode(response, list[object]))

    def set_visibility(self, full_name: str, target: Visibility) -> None:
        """Change visibility with ``PATCH /repos/{full_name}``."""
        self._request(
            "PATCH", f"/repos/{full_name}", json={"visibility": str(target)}
        )

    def set_archived(self, full_name: str, *, archived: bool) -> None:
        """Archive or unarchive through the generic repository edit call."""
        self._request("PATCH", f"/repos/{full_name}", json={"archived": archived})

    def current_user(self) -> AccountSummary:
        """Return the authenticated account via ``GET /user``."""
        user = self._decode(self._request("GET", "/user"), _RestUser)
        return AccountSummary(
            login=user.login, name=user.name, public_repos=user.public_repos
        )


__all__ = ["GitHubRestClient", "RestClientConfig"]
