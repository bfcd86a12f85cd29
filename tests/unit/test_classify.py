"""Unit tests for remote failure classification."""

from __future__ import annotations

import pytest

from repoflip.classify import ErrorKind, classify, classify_error
from repoflip.errors import RemoteError


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("GraphQL: API rate limit exceeded for user ID 1.", ErrorKind.RATE_LIMITED),
        (
            "GraphQL: Could not resolve to a Repository with the name 'a/x'.",
            ErrorKind.NOT_FOUND,
        ),
        ("HTTP 404: Not Found", ErrorKind.NOT_FOUND),
        (
            "repository a/b is archived and cannot be edited",
            ErrorKind.ARCHIVED_CONFLICT,
        ),
        ("Resource not accessible by integration", ErrorKind.PERMISSION_DENIED),
        ("You do not have permission to edit this", ErrorKind.PERMISSION_DENIED),
        ("some unrelated failure", ErrorKind.UNKNOWN),
        ("", ErrorKind.UNKNOWN),
    ],
)
def test_classify_matches_rules(message: str, expected: ErrorKind) -> None:
    """Raw text maps onto the first matching rule."""
    assert classify(message) is expected


def test_classify_is_case_insensitive() -> None:
    """Upper-case messages classify the same as lower-case ones."""
    assert classify("API RATE LIMIT EXCEEDED") is ErrorKind.RATE_LIMITED


def test_rate_limit_wins_over_later_rules() -> None:
    """Rules are evaluated in order, so rate limiting is reported first."""
    message = "rate limit hit while repository is archived and cannot be edited"
    assert classify(message) is ErrorKind.RATE_LIMITED


def test_archived_alone_is_not_a_conflict() -> None:
    """Both the archived and the cannot-be-edited phrases are required."""
    assert classify("repository was archived") is ErrorKind.UNKNOWN


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (RemoteError.http_error(429, "Too Many Requests"), ErrorKind.RATE_LIMITED),
        (RemoteError.http_error(404, "Not Found"), ErrorKind.NOT_FOUND),
        (
            RemoteError.http_error(403, "Repository was archived so is read-only."),
            ErrorKind.PERMISSION_DENIED,
        ),
        (RemoteError.http_error(401, "Bad credentials"), ErrorKind.PERMISSION_DENIED),
        (
            RemoteError.http_error(403, "API rate limit exceeded for 1.2.3.4."),
            ErrorKind.RATE_LIMITED,
        ),
        (RemoteError.http_error(500, "Server Error"), ErrorKind.UNKNOWN),
        (RemoteError("gh: timed out"), ErrorKind.UNKNOWN),
    ],
)
def test_classify_error_prefers_status_codes(
    error: RemoteError, expected: ErrorKind
) -> None:
    """Status codes route first; text matching is the fallback."""
    assert classify_error(error) is expected


def test_every_kind_has_a_description() -> None:
    """Each kind renders an operator-facing explanation."""
    for kind in ErrorKind:
        assert kind.describe()
