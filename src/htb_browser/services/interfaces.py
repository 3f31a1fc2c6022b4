"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from htb_browser.models import ActiveMachineInfo, Entry, FlagResult
from htb_browser.services import catalog_service as _catalog


@runtime_checkable
class CatalogService(Protocol):
    """Interface for the remote machine catalog."""

    async def fetch_entries(
        self,
        *,
        client: httpx.AsyncClient,
        include_retired: bool,
        per_page: int,
        timeout_seconds: float,
    ) -> list[Entry]:
        """Fetch the full machine list."""
        ...

    async def spawn(
        self,
        *,
        client: httpx.AsyncClient,
        entry_id: int,
        timeout_seconds: float,
    ) -> ActiveMachineInfo:
        """Start a machine and return its lab address."""
        ...

    async def submit_flag(
        self,
        *,
        client: httpx.AsyncClient,
        entry_id: int,
        flag: str,
        timeout_seconds: float,
    ) -> FlagResult:
        """Submit a flag for a machine."""
        ...


class DefaultCatalogService:
    """Default adapter that delegates to function-based catalog services."""

    async def fetch_entries(
        self,
        *,
        client: httpx.AsyncClient,
        include_retired: bool,
        per_page: int,
        timeout_seconds: float,
    ) -> list[Entry]:
        return await _catalog.fetch_entries(
            client,
            include_retired=include_retired,
            per_page=per_page,
            timeout=timeout_seconds,
        )

    async def spawn(
        self,
        *,
        client: httpx.AsyncClient,
        entry_id: int,
        timeout_seconds: float,
    ) -> ActiveMachineInfo:
        return await _catalog.spawn(client, entry_id, timeout=timeout_seconds)

    async def submit_flag(
        self,
        *,
        client: httpx.AsyncClient,
        entry_id: int,
        flag: str,
        timeout_seconds: float,
    ) -> FlagResult:
        return await _catalog.submit_flag(client, entry_id, flag, timeout=timeout_seconds)


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    catalog: CatalogService


def build_default_app_services() -> AppServices:
    """Build default app services backed by the function-based modules."""
    return AppServices(catalog=DefaultCatalogService())


def build_http_client(*, api_url: str, api_key: str, timeout_seconds: float) -> httpx.AsyncClient:
    """Create the shared client carrying the base URL and bearer credential."""
    return httpx.AsyncClient(
        base_url=api_url,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
            "User-Agent": "htb-browser/1.0",
        },
        timeout=timeout_seconds,
        follow_redirects=True,
    )


__all__ = [
    "AppServices",
    "CatalogService",
    "DefaultCatalogService",
    "build_default_app_services",
    "build_http_client",
]
