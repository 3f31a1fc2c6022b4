"""UI-facing copy builders for action outcomes and notifications."""

from __future__ import annotations

from htb_browser.errors import (
    BusyError,
    ConflictError,
    EmptyFlagError,
    ForbiddenError,
    HtbBrowserError,
    NoSelectionError,
    ProtocolError,
    TransportError,
)
from htb_browser.models import ActionKind

_ACTION_PHRASES: dict[ActionKind, str] = {
    ActionKind.REFRESH: "refresh the machine list",
    ActionKind.SPAWN: "spawn the machine",
    ActionKind.SUBMIT_FLAG: "submit the flag",
}


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_warning(
    message: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable warning message."""
    lines = [_ensure_sentence(message)]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_actionable_success(
    message: str,
    *,
    detail: str | None = None,
    next_step: str | None = None,
) -> str:
    """Build a concise success message with optional detail and next step."""
    lines = [_ensure_sentence(message)]
    if detail:
        lines.append(_ensure_sentence(detail))
    if next_step:
        lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def _why_and_next_step(action: ActionKind, exc: HtbBrowserError) -> tuple[str, str]:
    detail = getattr(exc, "detail", "")
    if isinstance(exc, TransportError):
        return (
            detail or "the service could not be reached or timed out",
            "check your connection and press the same key to retry",
        )
    if isinstance(exc, ForbiddenError):
        return (
            detail or "your account is not allowed to do this",
            "check your API token and subscription",
        )
    if isinstance(exc, ConflictError):
        return (
            detail or "another machine is already active",
            "stop the active machine on the website, then retry",
        )
    if isinstance(exc, ProtocolError):
        status = f"HTTP {exc.status_code}" if exc.status_code is not None else "bad payload"
        why = f"the service answered unexpectedly ({status})"
        if detail:
            why = f"{why}: {detail}"
        return why, "press r to refresh, then retry"
    if isinstance(exc, BusyError):
        return "the previous request has not finished yet", "wait for it to complete"
    if isinstance(exc, EmptyFlagError):
        return "the flag is empty", "press a and type the flag before Enter"
    if isinstance(exc, NoSelectionError):
        if action is ActionKind.SUBMIT_FLAG:
            return "no machine is active", "spawn a machine with Enter first"
        return "no machine is selected", "change the filter with f to show machines"
    return str(exc), "retry the action"


def build_action_error(action: ActionKind, exc: HtbBrowserError) -> str:
    """Build the status text for a failed or rejected action."""
    why, next_step = _why_and_next_step(action, exc)
    return build_actionable_error(_ACTION_PHRASES[action], why=why, next_step=next_step)


def error_severity(exc: HtbBrowserError) -> str:
    """Client-side rejections are warnings; service failures are errors."""
    if isinstance(exc, (BusyError, EmptyFlagError, NoSelectionError)):
        return "warning"
    return "error"


def build_spawn_success(name: str, ip: str | None) -> str:
    detail = f"IP address: {ip}" if ip else "IP address not assigned yet"
    return build_actionable_success(
        f"Spawned {name}", detail=detail, next_step="press a to submit a flag"
    )


def build_flag_accepted(name: str, owned: str | None) -> str:
    what = f"{owned} flag" if owned else "Flag"
    return build_actionable_success(f"{what.capitalize()} accepted for {name}")


def build_flag_incorrect(name: str, message: str = "") -> str:
    return build_actionable_warning(
        f"Incorrect flag for {name}",
        why=message or None,
        next_step="press a to try again",
    )


def build_flag_already_owned(name: str) -> str:
    return build_actionable_success(f"You already own this flag for {name}")


def build_refresh_notification(count: int) -> str:
    return f"Loaded {count} machine{'s' if count != 1 else ''}"


__all__ = [
    "build_action_error",
    "build_actionable_error",
    "build_actionable_success",
    "build_actionable_warning",
    "build_flag_accepted",
    "build_flag_already_owned",
    "build_flag_incorrect",
    "build_next_step_hint",
    "build_refresh_notification",
    "build_spawn_success",
    "error_severity",
]
