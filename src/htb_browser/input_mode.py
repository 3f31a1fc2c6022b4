"""Keyboard input modes: browsing the list vs. composing a flag.

The machine owns the flag buffer. It never touches the view model or the
network; it turns key events into ``Intent`` values that the app dispatches.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IntentKind(Enum):
    """What the app should do in response to a key."""

    QUIT = "quit"
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    CYCLE_FILTER = "cycle_filter"
    CYCLE_SORT = "cycle_sort"
    SPAWN = "spawn"
    REFRESH = "refresh"
    FLAG_MODE_ENTERED = "flag_mode_entered"
    FLAG_UNAVAILABLE = "flag_unavailable"
    FLAG_CANCELLED = "flag_cancelled"
    SUBMIT_FLAG = "submit_flag"


@dataclass(slots=True, frozen=True)
class Intent:
    kind: IntentKind
    flag: str = ""  # Only set for SUBMIT_FLAG


@dataclass(slots=True, frozen=True)
class Browse:
    """Navigation mode; command keys are live."""


@dataclass(slots=True, frozen=True)
class ComposingFlag:
    """Flag entry mode; printable keys append to ``buffer``."""

    buffer: str = ""


InputMode = Browse | ComposingFlag

# Textual key names -> intent, for Browse mode
BROWSE_KEYMAP: dict[str, IntentKind] = {
    "q": IntentKind.QUIT,
    "up": IntentKind.MOVE_UP,
    "k": IntentKind.MOVE_UP,
    "down": IntentKind.MOVE_DOWN,
    "j": IntentKind.MOVE_DOWN,
    "f": IntentKind.CYCLE_FILTER,
    "s": IntentKind.CYCLE_SORT,
    "enter": IntentKind.SPAWN,
    "r": IntentKind.REFRESH,
}

FLAG_MODE_KEY = "a"


class InputModeMachine:
    """Central transition table for the two input modes."""

    def __init__(self) -> None:
        self._mode: InputMode = Browse()

    @property
    def mode(self) -> InputMode:
        return self._mode

    @property
    def composing(self) -> bool:
        return isinstance(self._mode, ComposingFlag)

    @property
    def buffer(self) -> str:
        """The live flag buffer, or "" outside flag mode."""
        if isinstance(self._mode, ComposingFlag):
            return self._mode.buffer
        return ""

    def reset(self) -> None:
        self._mode = Browse()

    def handle_key(
        self,
        key: str,
        character: str | None = None,
        *,
        flag_target_available: bool = False,
    ) -> Intent | None:
        """Apply one key event.

        Args:
            key: Textual key name (``"enter"``, ``"backspace"``, ``"a"``...).
            character: The printable character for the key, if any.
            flag_target_available: Whether an active machine can take a flag.

        Returns:
            The intent to dispatch, or None when the key only edited the
            buffer or means nothing in the current mode.
        """
        if isinstance(self._mode, ComposingFlag):
            return self._handle_composing(self._mode, key, character)
        return self._handle_browse(key, flag_target_available)

    def _handle_browse(self, key: str, flag_target_available: bool) -> Intent | None:
        if key == FLAG_MODE_KEY:
            if not flag_target_available:
                return Intent(IntentKind.FLAG_UNAVAILABLE)
            self._mode = ComposingFlag("")
            return Intent(IntentKind.FLAG_MODE_ENTERED)
        kind = BROWSE_KEYMAP.get(key)
        return Intent(kind) if kind is not None else None

    def _handle_composing(
        self, mode: ComposingFlag, key: str, character: str | None
    ) -> Intent | None:
        if key == "escape":
            self._mode = Browse()
            return Intent(IntentKind.FLAG_CANCELLED)
        if key == "enter":
            # Buffer is cleared before the submission result is known
            self._mode = Browse()
            return Intent(IntentKind.SUBMIT_FLAG, flag=mode.buffer)
        if key == "backspace":
            if mode.buffer:
                self._mode = ComposingFlag(mode.buffer[:-1])
            return None
        if character is not None and len(character) == 1 and character.isprintable():
            self._mode = ComposingFlag(mode.buffer + character)
        return None


__all__ = [
    "BROWSE_KEYMAP",
    "FLAG_MODE_KEY",
    "Browse",
    "ComposingFlag",
    "InputMode",
    "InputModeMachine",
    "Intent",
    "IntentKind",
]
