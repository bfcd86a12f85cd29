"""Unit tests for repository slug utilities."""

from __future__ import annotations

import pytest

from repoflip.common.slug import is_valid_repo_slug, parse_repo_slug


def test_parse_repo_slug_splits_owner_and_name() -> None:
    """parse_repo_slug returns (owner, name) for valid slugs."""
    assert parse_repo_slug("Owner-Org/Repo_Name") == ("Owner-Org", "Repo_Name")


@pytest.mark.parametrize(
    "slug",
    ["", "/", "invalid", "owner/name/extra", "owner/", "/name", "owner//name"],
)
def test_parse_repo_slug_rejects_invalid_slugs(slug: str) -> None:
    """parse_repo_slug raises ValueError for invalid slugs."""
    with pytest.raises(ValueError, match="Invalid repository slug"):
        parse_repo_slug(slug)


@pytest.mark.parametrize(
    "slug", ["a/b", "octo/reef.js", "Org-1/repo_name", "x.y/z-z"]
)
def test_is_valid_repo_slug_accepts_safe_names(slug: str) -> None:
    """Letters, digits, dots, underscores and hyphens are allowed."""
    assert is_valid_repo_slug(slug)


@pytest.mark.parametrize(
    "slug",
    ["", "ab", "a/b/c", "a/", "/b", "a b/c", "a/b;rm", "a/b\n", "a/$(x)"],
)
def test_is_valid_repo_slug_rejects_unsafe_names(slug: str) -> None:
    """Anything outside owner/name with safe characters is rejected."""
    assert not is_valid_repo_slug(slug)
