"""Resolve user selections against the repository inventory.

Menus number repositories from 1. Numbers are only meaningful against the
exact list that was rendered, so callers capture the rendered ``full_name``
keys with :func:`capture_keys`, translate chosen numbers with
:func:`keys_for_indices`, and resolve the keys against the current inventory
with :func:`select_by_names`. Anything that no longer resolves is dropped
rather than raising.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from repoflip.models import RepositoryRecord


def select_by_indices(
    inventory: cabc.Sequence[RepositoryRecord], indices: cabc.Iterable[int]
) -> list[RepositoryRecord]:
    """Return records at 1-based ``indices``, dropping out-of-range entries.

    Order follows ``indices``; repeated indices select the record once.

    Examples
    --------
    >>> from repoflip.models import RepositoryRecord, Visibility
    >>> inv = [RepositoryRecord("a/b", Visibility.PUBLIC, False)]
    >>> [r.full_name for r in select_by_indices(inv, [0, 1, 2])]
    ['a/b']

    """
    chosen: list[RepositoryRecord] = []
    seen: set[int] = set()
    for index in indices:
        if not 1 <= index <= len(inventory) or index in seen:
            continue
        seen.add(index)
        chosen.append(inventory[index - 1])
    return chosen


def select_by_keyword(
    inventory: cabc.Sequence[RepositoryRecord], keyword: str
) -> list[RepositoryRecord]:
    """Return records whose ``full_name`` contains ``keyword``, case-sensitively.

    An empty keyword matches everything.
    """
    return [record for record in inventory if keyword in record.full_name]


def capture_keys(inventory: cabc.Sequence[RepositoryRecord]) -> tuple[str, ...]:
    """Return the ``full_name`` keys of a rendered list, in display order."""
    return tuple(record.full_name for record in inventory)


def keys_for_indices(
    keys: cabc.Sequence[str], indices: cabc.Iterable[int]
) -> list[str]:
    """Translate 1-based menu numbers into keys captured at render time."""
    chosen: list[str] = []
    for index in indices:
        if 1 <= index <= len(keys) and keys[index - 1] not in chosen:
            chosen.append(keys[index - 1])
    return chosen


def select_by_names(
    inventory: cabc.Sequence[RepositoryRecord], names: cabc.Iterable[str]
) -> list[RepositoryRecord]:
    """Resolve ``names`` against the current inventory, dropping unknown names."""
    by_name = {record.full_name: record for record in inventory}
    chosen: list[RepositoryRecord] = []
    for name in names:
        record = by_name.pop(name, None)
        if record is not None:
            chosen.append(record)
    return chosen


def parse_index_list(raw: str, limit: int | None = None) -> list[int]:
    """Parse menu input such as ``"1 3, 5-7"`` into 1-based indices.

    Tokens that are neither decimal integers nor ``a-b`` ranges are
    ignored. When ``limit`` is given, indices above it are dropped and
    ranges are clamped to it before they are expanded.

    Examples
    --------
    >>> parse_index_list("1 3, 5-7 x")
    [1, 3, 5, 6, 7]
    >>> parse_index_list("2 4-99", limit=5)
    [2, 4, 5]

    """
    indices: list[int] = []
    for token in raw.replace(",", " ").split():
        start, sep, end = token.partition("-")
        if sep and start.isdecimal() and end.isdecimal():
            last = int(end) if limit is None else min(int(end), limit)
            indices.extend(range(int(start), last + 1))
        elif token.isdecimal():
            indices.append(int(token))
    if limit is None:
        return indices
    return [index for index in indices if index <= limit]


__all__ = [
    "capture_keys",
    "keys_for_indices",
    "parse_index_list",
    "select_by_indices",
    "select_by_keyword",
    "select_by_names",
]
