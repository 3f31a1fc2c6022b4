"""Error taxonomy for catalog calls and client-side action checks."""

from __future__ import annotations


class HtbBrowserError(Exception):
    """Base class for every error the browser reports to the user."""

    kind = "error"

    def __init__(self, message: str = "", *, detail: str = "") -> None:
        super().__init__(message or self.kind)
        self.detail = detail


# ── Service-side ─────────────────────────────────────────────────────────────


class ApiError(HtbBrowserError):
    """A catalog request failed."""

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        detail: str = "",
    ) -> None:
        super().__init__(message, detail=detail)
        self.status_code = status_code


class TransportError(ApiError):
    """Connectivity problem or timeout; the request may never have arrived."""

    kind = "transport"


class ProtocolError(ApiError):
    """Unexpected status code or response shape."""

    kind = "protocol"


class ForbiddenError(ApiError):
    """The account is not entitled to perform the action."""

    kind = "forbidden"


class ConflictError(ApiError):
    """Service-side state conflict, e.g. another machine is already active."""

    kind = "conflict"


# ── Client-side ──────────────────────────────────────────────────────────────


class ClientActionError(HtbBrowserError):
    """An action was rejected locally without contacting the service."""


class BusyError(ClientActionError):
    """An action of the same class is already in flight."""

    kind = "busy"


class NoSelectionError(ClientActionError):
    """No selected or active machine to act on."""

    kind = "no_selection"


class EmptyFlagError(ClientActionError):
    """Flag text is empty or whitespace only."""

    kind = "empty_flag"


class MissingCredentialsError(HtbBrowserError):
    """No API token available at startup. Fatal."""

    kind = "missing_credentials"


__all__ = [
    "ApiError",
    "BusyError",
    "ClientActionError",
    "ConflictError",
    "EmptyFlagError",
    "ForbiddenError",
    "HtbBrowserError",
    "MissingCredentialsError",
    "NoSelectionError",
    "ProtocolError",
    "TransportError",
]
