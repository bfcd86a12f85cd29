"""Repository slug utilities.

Repository slugs are hosting-platform identifiers in ``owner/name`` format.
They are not filesystem paths, even though they use ``/`` as a separator, so
they should be parsed using these helpers rather than ``pathlib``.
"""

from __future__ import annotations

import re

# Characters accepted by the snapshot apply flow for each slug segment.
_SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Parse a repository slug into owner and name.

    Parameters
    ----------
    slug:
        Repository slug in ``owner/name`` format.

    Returns
    -------
    tuple[str, str]
        ``(owner, name)``.

    Raises
    ------
    ValueError
        If the slug is not in ``owner/name`` format.

    Examples
    --------
    >>> parse_repo_slug("octo/reef")
    ('octo', 'reef')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner or not name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name


def is_valid_repo_slug(slug: str) -> bool:
    """Return True when ``slug`` is ``owner/name`` using safe characters only.

    Examples
    --------
    >>> is_valid_repo_slug("octo/reef.js")
    True
    >>> is_valid_repo_slug("octo/reef; rm -rf")
    False

    """
    return _SLUG_PATTERN.fullmatch(slug) is not None
