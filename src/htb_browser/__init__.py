"""Terminal browser for Hack The Box machines: list, spawn, and submit flags."""

from htb_browser.errors import (
    ApiError,
    BusyError,
    ConflictError,
    EmptyFlagError,
    ForbiddenError,
    HtbBrowserError,
    MissingCredentialsError,
    NoSelectionError,
    ProtocolError,
    TransportError,
)
from htb_browser.models import (
    ActionKind,
    ActiveMachineInfo,
    Difficulty,
    Entry,
    FilterMode,
    FlagOutcome,
    FlagResult,
    SortMode,
    StatusMessage,
    UserConfig,
)

__version__ = "0.1.0"

__all__ = [
    "ActionKind",
    "ActiveMachineInfo",
    "ApiError",
    "BusyError",
    "ConflictError",
    "Difficulty",
    "EmptyFlagError",
    "Entry",
    "FilterMode",
    "FlagOutcome",
    "FlagResult",
    "ForbiddenError",
    "HtbBrowserError",
    "MissingCredentialsError",
    "NoSelectionError",
    "ProtocolError",
    "SortMode",
    "StatusMessage",
    "TransportError",
    "UserConfig",
    "__version__",
]
