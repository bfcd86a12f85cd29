"""Shared utilities for repoflip modules."""

from __future__ import annotations

from .slug import is_valid_repo_slug, parse_repo_slug

__all__ = ["is_valid_repo_slug", "parse_repo_slug"]
