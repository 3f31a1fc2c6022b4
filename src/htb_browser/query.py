"""Filter predicates, sort orders, and the visible-list derivation."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from htb_browser.models import Entry, FilterMode, SortMode

FILTER_CYCLE: list[FilterMode] = list(FilterMode)
SORT_CYCLE: list[SortMode] = list(SortMode)

_FILTER_PREDICATES: dict[FilterMode, Callable[[Entry], bool]] = {
    FilterMode.NONE: lambda e: True,
    FilterMode.USER_NOT_OWNED: lambda e: not e.user_owned,
    FilterMode.ROOT_NOT_OWNED: lambda e: not e.root_owned,
    FilterMode.USER_AND_ROOT_NOT_OWNED: lambda e: not e.user_owned and not e.root_owned,
    FilterMode.USER_OWNED: lambda e: e.user_owned,
    FilterMode.ROOT_OWNED: lambda e: e.root_owned,
    FilterMode.USER_AND_ROOT_OWNED: lambda e: e.user_owned and e.root_owned,
}


def matches_filter(entry: Entry, mode: FilterMode) -> bool:
    """Return True when ``entry`` stays visible under ``mode``."""
    return _FILTER_PREDICATES[mode](entry)


def _name_key(entry: Entry) -> tuple[str, str, int]:
    return (entry.name.casefold(), entry.name, entry.id)


def sort_key(mode: SortMode) -> Callable[[Entry], tuple]:
    """Return a total-order key for ``mode``.

    Every mode ends with (casefolded name, name, id) so equal primary keys
    still produce one deterministic order.
    """
    if mode is SortMode.DIFFICULTY:
        return lambda e: (int(e.difficulty), *_name_key(e))
    if mode is SortMode.USER_OWNS_DESCENDING:
        return lambda e: (-e.user_owns_count, *_name_key(e))
    if mode is SortMode.ROOT_OWNS_DESCENDING:
        return lambda e: (-e.root_owns_count, *_name_key(e))
    return _name_key


def derive_visible(
    entries: Iterable[Entry],
    filter_mode: FilterMode,
    sort_mode: SortMode,
) -> list[Entry]:
    """Apply the filter, then the total order. Pure; returns a new list."""
    predicate = _FILTER_PREDICATES[filter_mode]
    return sorted((e for e in entries if predicate(e)), key=sort_key(sort_mode))


def next_filter(mode: FilterMode) -> FilterMode:
    """Return the filter after ``mode`` in the cycle order, wrapping around."""
    return FILTER_CYCLE[(FILTER_CYCLE.index(mode) + 1) % len(FILTER_CYCLE)]


def next_sort(mode: SortMode) -> SortMode:
    """Return the sort after ``mode`` in the cycle order, wrapping around."""
    return SORT_CYCLE[(SORT_CYCLE.index(mode) + 1) % len(SORT_CYCLE)]


__all__ = [
    "FILTER_CYCLE",
    "SORT_CYCLE",
    "derive_visible",
    "matches_filter",
    "next_filter",
    "next_sort",
    "sort_key",
]
