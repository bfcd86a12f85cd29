"""Classification of remote repository client failures.

Backends that expose HTTP status codes are classified on the status first.
Everything else (and any status that does not map cleanly) falls back to
ordered substring matching on the raw failure text. Rate limiting and
missing repositories are checked before the archive conflict because they
tell the operator something actionable: retry later, or fix the name.
"""

from __future__ import annotations

import enum
import http

from repoflip.errors import RemoteError


class ErrorKind(enum.StrEnum):
    """Categories of per-repository mutation failure."""

    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    ARCHIVED_CONFLICT = "archived_conflict"
    PERMISSION_DENIED = "permission_denied"
    UNKNOWN = "unknown"

    def describe(self) -> str:
        """Return an operator-facing explanation of the failure kind."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS: dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMITED: "API rate limit exceeded. Please try again later.",
    ErrorKind.NOT_FOUND: (
        "Repository not found or you don't have permission to modify it."
    ),
    ErrorKind.ARCHIVED_CONFLICT: (
        "Repository is archived and cannot be edited. Unarchive it first."
    ),
    ErrorKind.PERMISSION_DENIED: (
        "You don't have permission to change this repository."
    ),
    ErrorKind.UNKNOWN: "Unhandled error.",
}

# Evaluated in order; the first rule whose every group has a match wins.
_TEXT_RULES: tuple[tuple[ErrorKind, tuple[tuple[str, ...], ...]], ...] = (
    (ErrorKind.RATE_LIMITED, (("rate limit",),)),
    (ErrorKind.NOT_FOUND, (("could not resolve", "not found"),)),
    (ErrorKind.ARCHIVED_CONFLICT, (("archived",), ("cannot be edited",))),
    (ErrorKind.PERMISSION_DENIED, (("not accessible", "permission"),)),
)


def classify(raw_message: str) -> ErrorKind:
    """Classify raw failure text into an :class:`ErrorKind`.

    Matching is case-insensitive; the platform capitalises some messages
    ("Could not resolve to a Repository") and not others.

    Examples
    --------
    >>> classify("GraphQL: API rate limit exceeded for user ID 1.")
    <ErrorKind.RATE_LIMITED: 'rate_limited'>
    >>> classify("some unrelated failure")
    <ErrorKind.UNKNOWN: 'unknown'>

    """
    text = raw_message.lower()
    for kind, groups in _TEXT_RULES:
        if all(any(needle in text for needle in group) for group in groups):
            return kind
    return ErrorKind.UNKNOWN


def classify_error(error: RemoteError) -> ErrorKind:
    """Classify a structured remote error, preferring its HTTP status."""
    status = error.status_code
    if status == http.HTTPStatus.TOO_MANY_REQUESTS:
        return ErrorKind.RATE_LIMITED
    if status == http.HTTPStatus.NOT_FOUND:
        return ErrorKind.NOT_FOUND

    kind = classify(error.message)
    if kind is ErrorKind.UNKNOWN and status in {
        http.HTTPStatus.UNAUTHORIZED,
        http.HTTPStatus.FORBIDDEN,
    }:
        return ErrorKind.PERMISSION_DENIED
    return kind


__all__ = ["ErrorKind", "classify", "classify_error"]
