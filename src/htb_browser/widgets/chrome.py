"""Widget chrome: active-machine panel, status line, and footer hints."""

from __future__ import annotations

from textual.widgets import Static

from htb_browser.models import ActiveMachineInfo, StatusMessage
from htb_browser.themes import THEME_COLORS
from htb_browser.widgets.listing import escape_rich_text

FLAG_CURSOR = "\u2588"  # █
ASCII_FLAG_CURSOR = "_"

_SEVERITY_COLORS = {
    "information": "text",
    "warning": "orange",
    "error": "pink",
}


class ContextFooter(Static):
    """Context-sensitive footer showing relevant keybindings."""

    DEFAULT_CSS = """
    ContextFooter {
        dock: bottom;
        height: 1;
        background: $th-background;
        color: $th-muted;
        padding: 0 1;
        border-top: solid $th-panel-alt;
    }
    """

    def render_bindings(self, bindings: list[tuple[str, str]], mode_badge: str = "") -> None:
        """Update the footer with a list of (key, label) binding hints."""
        accent = THEME_COLORS["accent"]
        muted = THEME_COLORS["muted"]
        parts = []
        if mode_badge:
            parts.append(mode_badge)
        for key, label in bindings:
            safe_key = escape_rich_text(key)
            if key and label:
                parts.append(f"[bold {accent}]{safe_key}[/] [{muted}]{label}[/]")
            elif label:
                # Label-only entry (e.g., pending action)
                parts.append(f"[italic {muted}]{label}[/]")
            else:
                parts.append(f"[italic {muted}]{safe_key}[/]")
        self.update("  ".join(parts))


def render_mode_badge(composing: bool) -> str:
    color = THEME_COLORS["orange"] if composing else THEME_COLORS["accent"]
    label = "FLAG" if composing else "BROWSE"
    return f"[bold reverse {color}] {label} [/]"


def render_active_panel(
    active: ActiveMachineInfo | None,
    *,
    composing: bool,
    buffer: str,
    can_compose_flag: bool,
    ascii_cursor: bool = False,
) -> str:
    """Render the active machine summary and, while composing, the flag buffer."""
    accent = THEME_COLORS["accent"]
    muted = THEME_COLORS["muted"]
    if active is None:
        return (
            f"[bold {accent}]Active machine[/]\n"
            f"[{muted}]None. Select a machine and press [bold]Enter[/bold] to spawn it.[/]"
        )
    ip = escape_rich_text(active.ip) if active.ip else f"[{muted}]pending[/]"
    lines = [
        f"[bold {accent}]Active machine[/]",
        f"Name: [bold]{escape_rich_text(active.name)}[/]",
        f"IP:   {ip}",
        "",
    ]
    if composing:
        cursor = ASCII_FLAG_CURSOR if ascii_cursor else FLAG_CURSOR
        lines.append(f"[bold {THEME_COLORS['orange']}]Flag:[/] {escape_rich_text(buffer)}{cursor}")
        lines.append(f"[{muted}]Enter to submit, Esc to cancel[/]")
    elif can_compose_flag:
        lines.append(f"[{muted}]Press [bold]a[/bold] to submit a flag.[/]")
    else:
        lines.append(f"[{THEME_COLORS['green']}]User and root owned.[/]")
    return "\n".join(lines)


def render_status_line(status: StatusMessage | None, pending: list[str]) -> str:
    """Render the latest status (first line only) followed by pending actions."""
    parts: list[str] = []
    if pending:
        labels = ", ".join(pending)
        parts.append(f"[{THEME_COLORS['accent_alt']}]{labels}...[/]")
    if status is not None and status.text:
        color = THEME_COLORS[_SEVERITY_COLORS.get(status.severity, "text")]
        first_line = status.text.splitlines()[0]
        parts.append(f"[{color}]{escape_rich_text(first_line)}[/]")
    return "  ".join(parts)


class ActiveMachinePanel(Static):
    """Side panel with the active machine and the live flag buffer."""

    DEFAULT_CSS = """
    ActiveMachinePanel {
        padding: 0 1;
        color: $th-text;
    }
    """


__all__ = [
    "ASCII_FLAG_CURSOR",
    "FLAG_CURSOR",
    "ActiveMachinePanel",
    "ContextFooter",
    "render_active_panel",
    "render_mode_badge",
    "render_status_line",
]
