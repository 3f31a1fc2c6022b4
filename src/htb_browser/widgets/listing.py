"""List rendering helpers and the machine OptionList."""

from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from htb_browser.models import Entry
from htb_browser.themes import THEME_COLORS, difficulty_color

NAME_COLUMN_WIDTH = 18
OS_COLUMN_WIDTH = 8

_ICON_SETS: dict[str, dict[str, str]] = {
    "unicode": {
        "active": "\u25b6",  # ▶
        "owned": "\u2713",  # ✓
        "missing": "\u00b7",  # ·
        "retired": "\u2020",  # †
    },
    "ascii": {
        "active": ">",
        "owned": "x",
        "missing": "-",
        "retired": "r",
    },
}
_ACTIVE_ICON_SET = _ICON_SETS["unicode"]


def set_ascii_icons(enabled: bool) -> None:
    """Switch list indicators between Unicode and ASCII modes."""
    global _ACTIVE_ICON_SET
    _ACTIVE_ICON_SET = _ICON_SETS["ascii"] if enabled else _ICON_SETS["unicode"]


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


def _owned_mark(label: str, owned: bool) -> str:
    if owned:
        return f"[{THEME_COLORS['green']}]{label}{_ACTIVE_ICON_SET['owned']}[/]"
    return f"[{THEME_COLORS['muted']}]{label}{_ACTIVE_ICON_SET['missing']}[/]"


def render_machine_option(entry: Entry) -> str:
    """Render one machine row as Rich markup for OptionList display."""
    if entry.is_active:
        badge = f"[bold {THEME_COLORS['accent']}]{_ACTIVE_ICON_SET['active']}[/]"
    else:
        badge = " "
    name = escape_rich_text(entry.name.ljust(NAME_COLUMN_WIDTH))
    if entry.is_active:
        name = f"[bold]{name}[/]"
    os_name = escape_rich_text((entry.os or "?").ljust(OS_COLUMN_WIDTH))
    difficulty = f"[{difficulty_color(entry.difficulty)}]{entry.difficulty.label:<8}[/]"
    marks = f"{_owned_mark('U', entry.user_owned)} {_owned_mark('R', entry.root_owned)}"
    parts = [badge, name, f"[dim]{os_name}[/]", difficulty, marks]
    if entry.retired:
        parts.append(f"[{THEME_COLORS['muted']}]{_ACTIVE_ICON_SET['retired']}[/]")
    return " ".join(parts)


class MachineList(OptionList):
    """Option list of machines. Never takes focus; the app routes all keys."""

    can_focus = False

    def show_entries(self, entries: list[Entry], highlighted: int | None) -> None:
        """Replace all rows and move the highlight to ``highlighted``."""
        self.clear_options()
        self.add_options(
            [Option(render_machine_option(entry), id=str(entry.id)) for entry in entries]
        )
        self.highlighted = highlighted


__all__ = [
    "MachineList",
    "escape_rich_text",
    "render_machine_option",
    "set_ascii_icons",
]
