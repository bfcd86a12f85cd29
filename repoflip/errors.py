"""Errors raised by the repository inventory and mutation engine."""

from __future__ import annotations

from pathlib import Path


class RepoflipError(Exception):
    """Base class for repoflip errors."""


class ExecutableNotFoundError(RepoflipError):
    """Required CLI tool is not installed."""

    def __init__(self, name: str) -> None:
        """Initialise with the missing executable name."""
        self.name = name
        super().__init__(f"Required executable '{name}' not found in PATH")


class InteractiveTerminalError(RepoflipError):
    """Raised when the interactive menu cannot attach to a terminal."""


class RemoteConfigError(RepoflipError):
    """Raised when remote client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> RemoteConfigError:
        """Return an error when the REST backend has no token."""
        return cls("GITHUB_TOKEN or GH_TOKEN is required for the rest backend")

    @classmethod
    def unknown_backend(cls, backend: str) -> RemoteConfigError:
        """Return an error for an unsupported backend name."""
        return cls(f"Unknown backend {backend!r}: expected 'gh' or 'rest'")


class RemoteError(RepoflipError):
    """Raised when the remote repository client reports a failure.

    ``message`` carries the raw failure text; ``status_code`` is set when the
    backend exposes an HTTP status.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with the raw message and optional HTTP status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, message: str) -> RemoteError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"HTTP {status_code}: {message}", status_code=status_code)

    @classmethod
    def timed_out(cls, command: str, timeout_s: float) -> RemoteError:
        """Return an error for a remote call that exceeded its timeout."""
        return cls(f"{command} timed out after {timeout_s:g}s")

    @classmethod
    def malformed(cls, detail: str) -> RemoteError:
        """Return an error for output that does not match the expected shape."""
        return cls(f"Unexpected response shape: {detail}")


class FetchError(RepoflipError):
    """Raised when the repository inventory cannot be loaded."""


class EmptyInventoryError(FetchError):
    """The platform listed zero repositories."""

    def __init__(self) -> None:
        """Initialise with a fixed operator-facing message."""
        super().__init__(
            "No repositories found. Check authentication and permissions."
        )


class InventoryTransportError(FetchError):
    """The bulk listing call itself failed."""

    def __init__(self, reason: str) -> None:
        """Initialise with the underlying failure text."""
        self.reason = reason
        super().__init__(f"Failed to fetch repositories: {reason}")


class ValidationError(RepoflipError):
    """Raised for user input rejected before any remote call."""


class BadFilenameError(ValidationError):
    """Snapshot filename does not match the allowed pattern."""

    def __init__(self, filename: str) -> None:
        """Initialise with the rejected filename."""
        self.filename = filename
        super().__init__(
            f"Invalid filename {filename!r}: use only letters, numbers, "
            "underscores, hyphens and periods, ending with .csv"
        )


class BadFileFormatError(ValidationError):
    """Snapshot file cannot be used as a source of desired state."""

    def __init__(self, path: Path, reason: str | None = None) -> None:
        """Initialise with the snapshot path and optional reason."""
        self.path = path
        detail = reason or "each line should be 'repo,visibility,isArchived'"
        super().__init__(f"Invalid snapshot file {path}: {detail}")


class SnapshotFileError(BadFileFormatError):
    """Snapshot file is missing, unreadable or unwritable."""

    @classmethod
    def missing(cls, path: Path) -> SnapshotFileError:
        """Return an error for a snapshot path that does not exist."""
        return cls(path, "file not found")

    @classmethod
    def unreadable(cls, path: Path, exc: OSError) -> SnapshotFileError:
        """Return an error for a snapshot path that cannot be read."""
        return cls(path, f"cannot read file ({exc.strerror or exc})")

    @classmethod
    def unwritable(cls, path: Path, exc: OSError) -> SnapshotFileError:
        """Return an error for a snapshot path that cannot be written."""
        return cls(path, f"cannot write file ({exc.strerror or exc})")


class BadRepoNameError(ValidationError):
    """Repository name is not a well-formed ``owner/name`` slug."""

    def __init__(self, full_name: str) -> None:
        """Initialise with the rejected repository name."""
        self.full_name = full_name
        super().__init__(f"Invalid repository name: {full_name!r}")
