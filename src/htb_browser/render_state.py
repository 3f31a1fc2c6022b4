"""Per-redraw snapshot of everything the UI shows.

The app rebuilds this after every key or completion and paints widgets from
it, so widgets never read the view model directly.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from htb_browser.input_mode import InputModeMachine
from htb_browser.models import (
    ACTION_LABELS,
    FILTER_LABELS,
    SORT_LABELS,
    ActionKind,
    ActiveMachineInfo,
    Entry,
    StatusMessage,
)
from htb_browser.ui_constants import BROWSE_KEY_HINTS, FLAG_KEY_HINTS
from htb_browser.view_model import MachineListViewModel


@dataclass(slots=True, frozen=True)
class RenderState:
    entries: list[Entry]
    selected_index: int | None
    total_count: int
    filter_label: str
    sort_label: str
    composing: bool
    buffer: str
    active: ActiveMachineInfo | None
    can_compose_flag: bool
    status: StatusMessage | None
    pending: list[str] = field(default_factory=list)
    key_hints: list[tuple[str, str]] = field(default_factory=list)

    @property
    def mode_label(self) -> str:
        return "FLAG" if self.composing else "BROWSE"


def build_render_state(
    view_model: MachineListViewModel,
    input_machine: InputModeMachine,
    pending: Iterable[ActionKind] = (),
) -> RenderState:
    """Snapshot the view model, input mode, and in-flight actions."""
    composing = input_machine.composing
    return RenderState(
        entries=view_model.visible_entries(),
        selected_index=view_model.selected_index,
        total_count=len(view_model.entries),
        filter_label=FILTER_LABELS[view_model.filter_mode],
        sort_label=SORT_LABELS[view_model.sort_mode],
        composing=composing,
        buffer=input_machine.buffer,
        active=view_model.active_machine(),
        can_compose_flag=view_model.can_compose_flag(),
        status=view_model.status,
        pending=[ACTION_LABELS[kind] for kind in pending],
        key_hints=list(FLAG_KEY_HINTS if composing else BROWSE_KEY_HINTS),
    )


__all__ = ["RenderState", "build_render_state"]
