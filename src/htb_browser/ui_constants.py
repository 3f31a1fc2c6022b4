"""Internal UI constants for the HtbBrowser app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

Header {
    background: $th-panel-alt;
    color: $th-text;
}

#main-container {
    height: 1fr;
}

#list-pane {
    width: 3fr;
    height: 100%;
    border: tall $th-highlight;
    background: $th-panel;
}

#side-pane {
    width: 2fr;
    min-width: 32;
    height: 100%;
    border: tall $th-highlight;
    background: $th-panel;
}

#side-pane.composing {
    border: tall $th-accent;
}

#list-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent;
    text-style: bold;
}

#machine-list {
    height: 1fr;
    scrollbar-gutter: stable;
    scrollbar-background: $th-scrollbar-bg;
    scrollbar-color: $th-scrollbar-thumb;
    scrollbar-color-hover: $th-scrollbar-hover;
    scrollbar-color-active: $th-scrollbar-active;
}

#machine-list > .option-list--option-highlighted {
    background: $th-highlight-focus;
}

#machine-list > .option-list--option-hover {
    background: $th-panel-alt;
}

#status-bar {
    padding: 0 1;
    color: $th-muted;
}
"""

# Letter keys are interpreted by the input-mode machine in App.on_key, so only
# non-printable chords are bound here.
APP_BINDINGS: list[BindingType] = [
    Binding("ctrl+t", "cycle_theme", "Theme", show=False),
]

# Chords that keep their binding while a flag is being typed
APP_CHORD_KEYS = frozenset(
    binding.key for binding in APP_BINDINGS if isinstance(binding, Binding)
)

BROWSE_KEY_HINTS: list[tuple[str, str]] = [
    ("j/k", "move"),
    ("f", "filter"),
    ("s", "sort"),
    ("enter", "spawn"),
    ("a", "flag"),
    ("r", "refresh"),
    ("q", "quit"),
]

FLAG_KEY_HINTS: list[tuple[str, str]] = [
    ("type", "flag"),
    ("enter", "submit"),
    ("backspace", "delete"),
    ("esc", "cancel"),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CHORD_KEYS",
    "APP_CSS",
    "BROWSE_KEY_HINTS",
    "FLAG_KEY_HINTS",
]
