"""Parsing of catalog API payloads into model objects.

The service is not consistent about key casing (``authUserInUserOwns`` vs.
``auth_user_in_user_owns``) or about the type of some flags (``active`` may be
a bool, ``1``, or ``null``), so every accessor accepts several spellings.
Malformed pages raise ``ValueError``; malformed individual items are skipped.
"""

from __future__ import annotations

import logging
from typing import Any

from htb_browser.models import Difficulty, Entry, FlagOutcome, FlagResult

logger = logging.getLogger(__name__)

_DIFFICULTY_NAMES: dict[str, Difficulty] = {
    "easy": Difficulty.EASY,
    "medium": Difficulty.MEDIUM,
    "hard": Difficulty.HARD,
    "insane": Difficulty.INSANE,
}

_INCORRECT_MARKERS = ("incorrect", "wrong", "invalid flag")
_ALREADY_OWNED_MARKERS = ("already owned", "already own", "already submitted")
_CONFLICT_MARKERS = ("already active", "another machine", "already have an active", "running")


def _first(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def parse_active_flag(value: Any) -> bool:
    """Interpret the service's ``active`` field (bool, 0/1, or null)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true"}
    return False


def parse_difficulty(item: dict[str, Any]) -> Difficulty:
    """Map ``difficultyText`` (or a textual ``difficulty``) to a Difficulty."""
    text = _first(item, "difficultyText", "difficulty_text")
    if not isinstance(text, str):
        raw = item.get("difficulty")
        text = raw if isinstance(raw, str) else ""
    return _DIFFICULTY_NAMES.get(text.strip().lower(), Difficulty.UNKNOWN)


def parse_entry(item: Any, *, retired: bool = False) -> Entry | None:
    """Build an Entry from one machine object, or None if it lacks id/name."""
    if not isinstance(item, dict):
        return None
    entry_id = _as_int(item.get("id"), default=-1)
    name = item.get("name")
    if entry_id < 0 or not isinstance(name, str) or not name:
        logger.debug("Skipping machine payload without id/name: %r", item)
        return None

    play_info = item.get("playInfo")
    active_raw = item.get("active")
    if active_raw is None and isinstance(play_info, dict):
        active_raw = play_info.get("isActive")

    ip = item.get("ip")
    os_name = item.get("os")
    release = item.get("release")
    return Entry(
        id=entry_id,
        name=name,
        difficulty=parse_difficulty(item),
        os=os_name if isinstance(os_name, str) else "",
        is_active=parse_active_flag(active_raw),
        user_owned=bool(
            _first(item, "authUserInUserOwns", "auth_user_in_user_owns", default=False)
        ),
        root_owned=bool(
            _first(item, "authUserInRootOwns", "auth_user_in_root_owns", default=False)
        ),
        user_owns_count=_as_int(_first(item, "user_owns_count", "userOwnsCount")),
        root_owns_count=_as_int(_first(item, "root_owns_count", "rootOwnsCount")),
        points=_as_int(item.get("points")),
        stars=_as_float(_first(item, "star", "stars")),
        release=release if isinstance(release, str) else "",
        retired=retired or bool(item.get("retired", False)),
        ip=ip if isinstance(ip, str) and ip else None,
    )


def parse_machine_page(payload: Any, *, retired: bool = False) -> tuple[list[Entry], str | None]:
    """Parse one paginated list response.

    Returns:
        Tuple of (entries, next_page_url). ``next_page_url`` is None on the last page.

    Raises:
        ValueError: If the payload is not a page object with a ``data`` list.
    """
    if not isinstance(payload, dict):
        raise ValueError("machine list payload is not an object")
    data = payload.get("data")
    if not isinstance(data, list):
        raise ValueError("machine list payload has no 'data' list")

    entries = [entry for item in data if (entry := parse_entry(item, retired=retired)) is not None]

    next_url: str | None = None
    links = payload.get("links")
    if isinstance(links, dict):
        candidate = links.get("next")
        if isinstance(candidate, str) and candidate:
            next_url = candidate
    return entries, next_url


def parse_profile_ip(payload: Any) -> str | None:
    """Extract ``info.ip`` from a machine profile response."""
    if not isinstance(payload, dict):
        return None
    info = payload.get("info")
    if not isinstance(info, dict):
        return None
    ip = info.get("ip")
    return ip if isinstance(ip, str) and ip else None


def extract_message(payload: Any) -> str:
    """Return the human-readable ``message`` of a response, if any."""
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str):
            return message.strip()
    return ""


def is_conflict_message(message: str) -> bool:
    """Return True when a spawn rejection says another machine is running."""
    lowered = message.lower()
    return any(marker in lowered for marker in _CONFLICT_MARKERS)


def _owned_kind(message: str) -> str | None:
    lowered = message.lower()
    if "root" in lowered:
        return "root"
    if "user" in lowered:
        return "user"
    return None


def parse_flag_response(status_code: int, payload: Any) -> FlagResult | None:
    """Classify a flag submission response.

    Returns None when the status/message combination is not one of the known
    outcomes; the caller maps that to an error.
    """
    message = extract_message(payload)
    lowered = message.lower()
    if any(marker in lowered for marker in _ALREADY_OWNED_MARKERS):
        if 200 <= status_code < 300 or status_code in (400, 409):
            return FlagResult(FlagOutcome.ALREADY_OWNED, message=message)
    if any(marker in lowered for marker in _INCORRECT_MARKERS):
        if 200 <= status_code < 300 or status_code == 400:
            return FlagResult(FlagOutcome.INCORRECT, message=message)
    if 200 <= status_code < 300:
        return FlagResult(FlagOutcome.ACCEPTED, message=message, owned=_owned_kind(message))
    return None


__all__ = [
    "extract_message",
    "is_conflict_message",
    "parse_active_flag",
    "parse_difficulty",
    "parse_entry",
    "parse_flag_response",
    "parse_machine_page",
    "parse_profile_ip",
]
