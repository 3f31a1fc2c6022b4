"""Catalog API service helpers: machine list, spawn, and flag submission.

Every function takes the shared ``httpx.AsyncClient`` created by the app. The
client carries the base URL and the bearer ``Authorization`` header, so the
paths below are relative and absolute ``links.next`` URLs pass through as-is.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any

import httpx

from htb_browser.errors import (
    ConflictError,
    EmptyFlagError,
    ForbiddenError,
    ProtocolError,
    TransportError,
)
from htb_browser.models import ActiveMachineInfo, Entry, FlagResult
from htb_browser.parsing import (
    extract_message,
    is_conflict_message,
    parse_flag_response,
    parse_machine_page,
    parse_profile_ip,
)

logger = logging.getLogger(__name__)

CURRENT_LIST_PATH = "/machine/paginated"
RETIRED_LIST_PATH = "/machine/list/retired/paginated"
PROFILE_PATH = "/machine/profile/{entry_id}"
SPAWN_PATH = "/vm/spawn"
OWN_PATH = "/machine/own"

MAX_PAGES = 200  # Upper bound on links.next hops per list
FLAG_DIFFICULTY_RATING = 50  # Difficulty vote the own endpoint requires (10-100)


async def _send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    label: str,
    timeout: float,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
) -> httpx.Response:
    """Send one request, mapping network-level failures to TransportError.

    A malformed URL (for example a broken ``links.next``) is a ProtocolError.
    """
    try:
        return await client.request(method, url, params=params, json=json, timeout=timeout)
    except httpx.TimeoutException as exc:
        logger.warning("%s timed out after %.0fs", label, timeout)
        raise TransportError(f"{label} timed out") from exc
    except httpx.InvalidURL as exc:
        logger.warning("%s has an invalid URL %r: %s", label, url, exc)
        raise ProtocolError(f"{label} has an invalid URL") from exc
    except httpx.HTTPError as exc:
        logger.warning("%s failed: %s", label, exc, exc_info=True)
        raise TransportError(f"{label} failed") from exc


def _json_or_none(response: httpx.Response) -> Any:
    """Decode a JSON body, returning None when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


def _ensure_success(response: httpx.Response, label: str) -> None:
    if response.is_success:
        return
    message = extract_message(_json_or_none(response))
    logger.warning("%s returned %d: %s", label, response.status_code, message)
    raise ProtocolError(
        f"{label} returned HTTP {response.status_code}",
        status_code=response.status_code,
        detail=message,
    )


async def _fetch_list(
    client: httpx.AsyncClient,
    path: str,
    *,
    retired: bool,
    per_page: int,
    timeout: float,
) -> list[Entry]:
    """Fetch every page of one machine list by following ``links.next``."""
    label = "Retired machine list" if retired else "Machine list"
    entries: list[Entry] = []
    url: str | None = path
    params: dict[str, Any] | None = {"per_page": per_page}
    pages = 0
    while url is not None:
        if pages >= MAX_PAGES:
            logger.warning("%s exceeded %d pages, stopping", label, MAX_PAGES)
            break
        response = await _send(client, "GET", url, label=label, timeout=timeout, params=params)
        _ensure_success(response, label)
        try:
            page, url = parse_machine_page(response.json(), retired=retired)
        except ValueError as exc:
            logger.warning("%s returned a malformed page: %s", label, exc)
            raise ProtocolError(f"{label} returned a malformed page", detail=str(exc)) from exc
        entries.extend(page)
        # links.next already carries the query string
        params = None
        pages += 1
    logger.debug("%s: %d entries over %d pages", label, len(entries), pages)
    return entries


async def fetch_machine_ip(
    client: httpx.AsyncClient,
    entry_id: int,
    *,
    timeout: float,
) -> str | None:
    """Look up the lab IP of a machine from its profile. Never raises."""
    label = f"Profile {entry_id}"
    try:
        response = await _send(
            client,
            "GET",
            PROFILE_PATH.format(entry_id=entry_id),
            label=label,
            timeout=timeout,
        )
    except (TransportError, ProtocolError):
        return None
    if not response.is_success:
        logger.warning("%s returned %d", label, response.status_code)
        return None
    return parse_profile_ip(_json_or_none(response))


async def fetch_entries(
    client: httpx.AsyncClient,
    *,
    include_retired: bool,
    per_page: int,
    timeout: float,
) -> list[Entry]:
    """Fetch the full machine catalog (current + retired).

    Duplicate ids keep their first occurrence. Active machines without an IP
    get a best-effort profile lookup.
    """
    entries = await _fetch_list(
        client, CURRENT_LIST_PATH, retired=False, per_page=per_page, timeout=timeout
    )
    if include_retired:
        entries.extend(
            await _fetch_list(
                client, RETIRED_LIST_PATH, retired=True, per_page=per_page, timeout=timeout
            )
        )

    unique: dict[int, Entry] = {}
    for entry in entries:
        unique.setdefault(entry.id, entry)

    needs_ip = [entry.id for entry in unique.values() if entry.is_active and entry.ip is None]
    if needs_ip:
        ips = await asyncio.gather(
            *(fetch_machine_ip(client, entry_id, timeout=timeout) for entry_id in needs_ip)
        )
        for entry_id, ip in zip(needs_ip, ips):
            if ip is not None:
                unique[entry_id] = dataclasses.replace(unique[entry_id], ip=ip)
    return list(unique.values())


async def spawn(
    client: httpx.AsyncClient,
    entry_id: int,
    *,
    timeout: float,
) -> ActiveMachineInfo:
    """Ask the service to start a machine and return its lab address."""
    label = f"Spawn {entry_id}"
    response = await _send(
        client,
        "POST",
        SPAWN_PATH,
        label=label,
        timeout=timeout,
        params={"machine_id": entry_id},
    )
    code = response.status_code
    message = extract_message(_json_or_none(response))
    if code in (401, 403):
        raise ForbiddenError(f"{label} was refused", status_code=code, detail=message)
    if code == 409 or (code == 400 and is_conflict_message(message)):
        raise ConflictError(
            f"{label} conflicts with an active machine",
            status_code=code,
            detail=message,
        )
    _ensure_success(response, label)

    ip = await fetch_machine_ip(client, entry_id, timeout=timeout)
    logger.info("Spawned machine %d (ip=%s): %s", entry_id, ip, message)
    return ActiveMachineInfo(entry_id=entry_id, ip=ip)


async def submit_flag(
    client: httpx.AsyncClient,
    entry_id: int,
    flag: str,
    *,
    timeout: float,
) -> FlagResult:
    """Submit a flag for a machine.

    Raises:
        EmptyFlagError: Before any request when the flag is blank.
    """
    flag = flag.strip()
    if not flag:
        raise EmptyFlagError("flag is empty")
    label = f"Flag submission for {entry_id}"
    response = await _send(
        client,
        "POST",
        OWN_PATH,
        label=label,
        timeout=timeout,
        json={"id": entry_id, "flag": flag, "difficulty": FLAG_DIFFICULTY_RATING},
    )
    code = response.status_code
    payload = _json_or_none(response)
    message = extract_message(payload)
    if code in (401, 403):
        raise ForbiddenError(f"{label} was refused", status_code=code, detail=message)
    result = parse_flag_response(code, payload)
    if result is not None:
        logger.info("%s: %s (%s)", label, result.outcome.value, message)
        return result
    if code == 409:
        raise ConflictError(
            f"{label} conflicts with machine state",
            status_code=code,
            detail=message,
        )
    logger.warning("%s returned %d: %s", label, code, message)
    raise ProtocolError(f"{label} returned HTTP {code}", status_code=code, detail=message)


__all__ = [
    "fetch_entries",
    "fetch_machine_ip",
    "spawn",
    "submit_flag",
]
