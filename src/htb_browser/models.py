"""Data models and constants for the HTB machine browser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

# Application identity: single source of truth for platformdirs config paths
CONFIG_APP_NAME = "htb-browser"

HTB_API_URL = "https://labs.hackthebox.com/api/v4"
DEFAULT_API_KEY_ENV = "HTB_API_KEY"

# Request limits
DEFAULT_REQUEST_TIMEOUT = 20  # Seconds per HTTP request
MAX_REQUEST_TIMEOUT = 120
DEFAULT_PER_PAGE = 100  # The service caps page size at 100
MAX_PER_PAGE = 100


class Difficulty(IntEnum):
    """Ordered machine difficulty. Unknown sorts after every known level."""

    EASY = 1
    MEDIUM = 2
    HARD = 3
    INSANE = 4
    UNKNOWN = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()


class FilterMode(Enum):
    """Which entries remain visible, based on the user's own progress."""

    NONE = "none"
    USER_NOT_OWNED = "user_not_owned"
    ROOT_NOT_OWNED = "root_not_owned"
    USER_AND_ROOT_NOT_OWNED = "user_and_root_not_owned"
    USER_OWNED = "user_owned"
    ROOT_OWNED = "root_owned"
    USER_AND_ROOT_OWNED = "user_and_root_owned"


class SortMode(Enum):
    """Ordering applied to the visible list."""

    DIFFICULTY = "difficulty"
    USER_OWNS_DESCENDING = "user_owns"
    ROOT_OWNS_DESCENDING = "root_owns"
    NAME_ASCENDING = "name"


FILTER_LABELS: dict[FilterMode, str] = {
    FilterMode.NONE: "All",
    FilterMode.USER_NOT_OWNED: "User not owned",
    FilterMode.ROOT_NOT_OWNED: "Root not owned",
    FilterMode.USER_AND_ROOT_NOT_OWNED: "User & root not owned",
    FilterMode.USER_OWNED: "User owned",
    FilterMode.ROOT_OWNED: "Root owned",
    FilterMode.USER_AND_ROOT_OWNED: "User & root owned",
}

SORT_LABELS: dict[SortMode, str] = {
    SortMode.DIFFICULTY: "Difficulty",
    SortMode.USER_OWNS_DESCENDING: "User owns",
    SortMode.ROOT_OWNS_DESCENDING: "Root owns",
    SortMode.NAME_ASCENDING: "Name",
}


class FlagOutcome(Enum):
    """Result of a flag submission the service understood."""

    ACCEPTED = "accepted"
    INCORRECT = "incorrect"
    ALREADY_OWNED = "already_owned"


class ActionKind(Enum):
    """Classes of network actions; at most one of each may be in flight."""

    REFRESH = "refresh"
    SPAWN = "spawn"
    SUBMIT_FLAG = "submit_flag"


ACTION_LABELS: dict[ActionKind, str] = {
    ActionKind.REFRESH: "Refreshing",
    ActionKind.SPAWN: "Spawning",
    ActionKind.SUBMIT_FLAG: "Submitting flag",
}


@dataclass(slots=True, frozen=True)
class Entry:
    """A single machine listed by the catalog."""

    id: int
    name: str
    difficulty: Difficulty = Difficulty.UNKNOWN
    os: str = ""
    is_active: bool = False
    user_owned: bool = False
    root_owned: bool = False
    user_owns_count: int = 0
    root_owns_count: int = 0
    points: int = 0
    stars: float = 0.0
    release: str = ""
    retired: bool = False
    ip: str | None = None

    @property
    def fully_owned(self) -> bool:
        return self.user_owned and self.root_owned


@dataclass(slots=True, frozen=True)
class ActiveMachineInfo:
    """The currently spawned machine and its lab address."""

    entry_id: int
    name: str = ""
    ip: str | None = None


@dataclass(slots=True, frozen=True)
class FlagResult:
    """Parsed flag submission response."""

    outcome: FlagOutcome
    message: str = ""
    owned: str | None = None  # "user" | "root" | None (service did not say)


@dataclass(slots=True, frozen=True)
class StatusMessage:
    """Latest user-facing status line."""

    text: str
    severity: str = "information"  # "information" | "warning" | "error"


@dataclass(slots=True)
class UserConfig:
    """User configuration loaded from the config file and CLI flags."""

    api_url: str = HTB_API_URL
    api_key_env: str = DEFAULT_API_KEY_ENV
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT
    include_retired: bool = True
    per_page: int = DEFAULT_PER_PAGE
    default_filter: FilterMode = FilterMode.NONE
    default_sort: SortMode = SortMode.DIFFICULTY
    refresh_after_action: bool = True
    auto_refresh_seconds: int = 0  # 0 disables periodic refresh
    ascii_icons: bool = False
    theme_name: str = "monokai"
    version: int = 1
    config_defaulted: bool = False  # Set when the file was unreadable or corrupt


__all__ = [
    "ACTION_LABELS",
    "CONFIG_APP_NAME",
    "DEFAULT_API_KEY_ENV",
    "DEFAULT_PER_PAGE",
    "DEFAULT_REQUEST_TIMEOUT",
    "FILTER_LABELS",
    "HTB_API_URL",
    "MAX_PER_PAGE",
    "MAX_REQUEST_TIMEOUT",
    "SORT_LABELS",
    "ActionKind",
    "ActiveMachineInfo",
    "Difficulty",
    "Entry",
    "FilterMode",
    "FlagOutcome",
    "FlagResult",
    "StatusMessage",
    "UserConfig",
]
