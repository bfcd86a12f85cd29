"""Runtime configuration for the repository manager.

Usage
-----
Load configuration from the environment:

>>> import os
>>> os.environ["REPOFLIP_LIST_LIMIT"] = "200"
>>> config = ManagerConfig.from_env()
>>> config.list_limit
200

Build the remote client the configuration selects:

    client = build_client(config)

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import os
import shutil
from pathlib import Path

from repoflip.errors import ExecutableNotFoundError, RemoteConfigError
from repoflip.remote.gh_cli import GH_EXECUTABLE, GhCliClient
from repoflip.remote.protocol import RemoteRepositoryClient
from repoflip.remote.rest import GitHubRestClient, RestClientConfig

DEFAULT_LOG_FILE = Path("repoflip.log")


class Backend(enum.StrEnum):
    """Remote client implementations."""

    GH = "gh"
    REST = "rest"

    @classmethod
    def parse(cls, raw: str) -> Backend:
        """Parse a backend name case-insensitively."""
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise RemoteConfigError.unknown_backend(raw) from None


@dc.dataclass(frozen=True, slots=True)
class ManagerConfig:
    """Settings shared by the interactive shell and the batch commands.

    Attributes
    ----------
    backend
        Remote client implementation, ``gh`` by default.
    owner
        Account or organisation to list instead of the authenticated user.
    list_limit
        Maximum number of repositories requested from the bulk listing.
    command_timeout_s
        Timeout in seconds applied to every remote call.
    snapshot_dir
        Directory where snapshot files are written and looked up.
    log_file
        Append-only event log. ``None`` logs to stderr instead.
    log_level
        femtologging level name.
    token
        API token for the ``rest`` backend.

    """

    backend: Backend = Backend.GH
    owner: str | None = None
    list_limit: int = 1000
    command_timeout_s: int = 60
    snapshot_dir: Path = Path()
    log_file: Path | None = DEFAULT_LOG_FILE
    log_level: str = "INFO"
    token: str | None = dc.field(default=None, repr=False)

    @staticmethod
    def _parse_positive_int(
        environ: cabc.Mapping[str, str], env_var: str, default: int
    ) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls, environ: cabc.Mapping[str, str] | None = None) -> ManagerConfig:
        """Create configuration from environment variables.

        Reads ``REPOFLIP_BACKEND``, ``REPOFLIP_OWNER``, ``REPOFLIP_LIST_LIMIT``,
        ``REPOFLIP_COMMAND_TIMEOUT``, ``REPOFLIP_SNAPSHOT_DIR``,
        ``REPOFLIP_LOG_FILE`` (empty disables the file log),
        ``REPOFLIP_LOG_LEVEL`` and ``GITHUB_TOKEN`` or ``GH_TOKEN``.

        Raises
        ------
        ValueError
            If a numeric variable is not a positive integer.
        RemoteConfigError
            If ``REPOFLIP_BACKEND`` names an unknown backend.

        """
        env = os.environ if environ is None else environ

        backend = Backend.parse(env.get("REPOFLIP_BACKEND", "") or Backend.GH)
        owner = env.get("REPOFLIP_OWNER", "").strip() or None

        snapshot_dir = Path(env.get("REPOFLIP_SNAPSHOT_DIR", "").strip() or ".")

        log_file: Path | None = DEFAULT_LOG_FILE
        if "REPOFLIP_LOG_FILE" in env:
            raw_log_file = env["REPOFLIP_LOG_FILE"].strip()
            log_file = Path(raw_log_file) if raw_log_file else None

        token = (env.get("GITHUB_TOKEN", "") or env.get("GH_TOKEN", "")).strip()

        return cls(
            backend=backend,
            owner=owner,
            list_limit=cls._parse_positive_int(env, "REPOFLIP_LIST_LIMIT", 1000),
            command_timeout_s=cls._parse_positive_int(
                env, "REPOFLIP_COMMAND_TIMEOUT", 60
            ),
            snapshot_dir=snapshot_dir,
            log_file=log_file,
            log_level=env.get("REPOFLIP_LOG_LEVEL", "").strip() or "INFO",
            token=token or None,
        )


def require_exe(name: str) -> None:
    """Verify a CLI tool is available in PATH.

    Raises
    ------
    ExecutableNotFoundError
        If the executable is not found in PATH.

    """
    if shutil.which(name) is None:
        raise ExecutableNotFoundError(name)


def check_dependencies(config: ManagerConfig) -> None:
    """Fail fast when the configured backend's external tool is missing."""
    if config.backend is Backend.GH:
        require_exe(GH_EXECUTABLE)


def build_client(config: ManagerConfig) -> RemoteRepositoryClient:
    """Return the remote client selected by ``config.backend``.

    Raises
    ------
    RemoteConfigError
        If the ``rest`` backend is selected without a token.

    """
    if config.backend is Backend.REST:
        return GitHubRestClient(
            RestClientConfig(
                token=config.token or "",
                timeout_s=float(config.command_timeout_s),
                owner=config.owner,
                limit=config.list_limit,
            )
        )
    return GhCliClient(
        owner=config.owner,
        limit=config.list_limit,
        timeout_s=float(config.command_timeout_s),
    )


__all__ = [
    "DEFAULT_LOG_FILE",
    "Backend",
    "ManagerConfig",
    "build_client",
    "check_dependencies",
    "require_exe",
]
