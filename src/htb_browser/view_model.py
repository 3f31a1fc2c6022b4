"""In-memory view model for the machine list.

Holds the raw entry collection plus the filter, sort, and selection state, and
derives the visible list from them. Every method is synchronous and never
awaits, so a mutation always runs to completion on the event loop before the
next key event or network completion is applied.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from htb_browser.errors import NoSelectionError
from htb_browser.models import ActiveMachineInfo, Entry, FilterMode, SortMode, StatusMessage
from htb_browser.query import derive_visible, next_filter, next_sort

logger = logging.getLogger(__name__)


def _normalize_active(entries: list[Entry], previous_active_id: int | None) -> list[Entry]:
    """Return ``entries`` with at most one active entry.

    When several are flagged active, the previously active id wins if present,
    otherwise the first one in payload order. When none is flagged, the
    previously active id (if still listed) stays active.
    """
    active_ids = [e.id for e in entries if e.is_active]
    if len(active_ids) == 1:
        return entries
    if not active_ids:
        if previous_active_id is None:
            return entries
        keep = previous_active_id
    else:
        keep = previous_active_id if previous_active_id in active_ids else active_ids[0]
        logger.debug("Payload reported %d active entries, keeping %d", len(active_ids), keep)
    return [
        e if e.is_active == (e.id == keep) else dataclasses.replace(e, is_active=e.id == keep)
        for e in entries
    ]


class MachineListViewModel:
    """Entry collection with filter, sort, selection, and status state."""

    def __init__(
        self,
        entries: Iterable[Entry] = (),
        *,
        filter_mode: FilterMode = FilterMode.NONE,
        sort_mode: SortMode = SortMode.DIFFICULTY,
    ) -> None:
        self._entries: list[Entry] = []
        self._filter_mode = filter_mode
        self._sort_mode = sort_mode
        self._visible: list[Entry] = []
        self._selected: int | None = None
        self._status: StatusMessage | None = None
        self.replace_entries(entries)

    # ── Read-only state ──────────────────────────────────────────────────

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    @property
    def filter_mode(self) -> FilterMode:
        return self._filter_mode

    @property
    def sort_mode(self) -> SortMode:
        return self._sort_mode

    @property
    def selected_index(self) -> int | None:
        return self._selected

    @property
    def status(self) -> StatusMessage | None:
        return self._status

    def visible_entries(self) -> list[Entry]:
        """Return the filtered, sorted list (a copy)."""
        return list(self._visible)

    def get_entry(self, entry_id: int) -> Entry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def selected_entry(self) -> Entry | None:
        if self._selected is None:
            return None
        return self._visible[self._selected]

    def require_selected(self) -> Entry:
        """Return the selected entry or raise NoSelectionError."""
        entry = self.selected_entry()
        if entry is None:
            raise NoSelectionError("no machine is selected")
        return entry

    def _active_entry(self) -> Entry | None:
        active = [e for e in self._entries if e.is_active]
        return active[0] if len(active) == 1 else None

    def active_machine(self) -> ActiveMachineInfo | None:
        """Derive the active machine; None unless exactly one entry is active."""
        entry = self._active_entry()
        if entry is None:
            return None
        return ActiveMachineInfo(entry_id=entry.id, name=entry.name, ip=entry.ip)

    def require_active(self) -> Entry:
        """Return the active entry or raise NoSelectionError."""
        entry = self._active_entry()
        if entry is None:
            raise NoSelectionError("no machine is active")
        return entry

    def can_compose_flag(self) -> bool:
        """True when an active machine still has an objective left to own."""
        entry = self._active_entry()
        return entry is not None and not entry.fully_owned

    # ── Mutations ────────────────────────────────────────────────────────

    def replace_entries(self, new: Iterable[Entry]) -> None:
        """Swap in a freshly fetched collection.

        The active entry keeps its identity (and its IP, if the new payload has
        none) when its id is still present and nothing else is reported active.
        """
        previous = self._active_entry()
        previous_id = previous.id if previous is not None else None
        entries = _normalize_active(list(new), previous_id)
        if previous is not None and previous.ip:
            entries = [
                dataclasses.replace(e, ip=previous.ip)
                if e.id == previous.id and e.is_active and not e.ip
                else e
                for e in entries
            ]
        self._entries = entries
        self._recompute()

    def set_filter(self, mode: FilterMode) -> None:
        self._filter_mode = mode
        self._recompute()

    def cycle_filter(self) -> FilterMode:
        self.set_filter(next_filter(self._filter_mode))
        return self._filter_mode

    def set_sort(self, mode: SortMode) -> None:
        self._sort_mode = mode
        self._recompute()

    def cycle_sort(self) -> SortMode:
        self.set_sort(next_sort(self._sort_mode))
        return self._sort_mode

    def move_selection(self, delta: int) -> None:
        """Move the selection by ``delta`` rows, clamped to the visible list."""
        if self._selected is None:
            return
        self._selected = max(0, min(len(self._visible) - 1, self._selected + delta))

    def select_index(self, index: int) -> None:
        """Select a visible row by position, clamped to the visible list."""
        if not self._visible:
            self._selected = None
            return
        self._selected = max(0, min(len(self._visible) - 1, index))

    def mark_active(self, entry_id: int, ip: str | None = None) -> bool:
        """Make ``entry_id`` the only active entry.

        Returns False (and changes nothing) when the id is not in the
        collection, e.g. because a refresh removed it.
        """
        if self.get_entry(entry_id) is None:
            return False
        updated: list[Entry] = []
        for entry in self._entries:
            if entry.id == entry_id:
                entry = dataclasses.replace(entry, is_active=True, ip=ip or entry.ip)
            elif entry.is_active:
                entry = dataclasses.replace(entry, is_active=False)
            updated.append(entry)
        self._entries = updated
        self._recompute()
        return True

    def mark_owned(self, entry_id: int, *, user: bool = False, root: bool = False) -> bool:
        """Set owned flags on ``entry_id``. Flags are only ever set, never cleared."""
        entry = self.get_entry(entry_id)
        if entry is None:
            return False
        replacement = dataclasses.replace(
            entry,
            user_owned=entry.user_owned or user,
            root_owned=entry.root_owned or root,
        )
        self._entries = [replacement if e.id == entry_id else e for e in self._entries]
        self._recompute()
        return True

    def post_status(self, text: str, severity: str = "information") -> StatusMessage:
        self._status = StatusMessage(text=text, severity=severity)
        return self._status

    def clear_status(self) -> None:
        self._status = None

    def _recompute(self) -> None:
        """Re-derive the visible list and re-anchor the selection."""
        previous = self.selected_entry() if self._selected is not None else None
        previous_index = self._selected
        self._visible = derive_visible(self._entries, self._filter_mode, self._sort_mode)
        if not self._visible:
            self._selected = None
            return
        if previous is not None:
            for index, entry in enumerate(self._visible):
                if entry.id == previous.id:
                    self._selected = index
                    return
        if previous_index is None:
            self._selected = 0
        else:
            self._selected = min(previous_index, len(self._visible) - 1)


__all__ = ["MachineListViewModel"]
