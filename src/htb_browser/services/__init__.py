"""Internal service layer for remote catalog access."""

from htb_browser.services.catalog_service import (
    fetch_entries,
    fetch_machine_ip,
    spawn,
    submit_flag,
)

__all__ = [
    "fetch_entries",
    "fetch_machine_ip",
    "spawn",
    "submit_flag",
]
