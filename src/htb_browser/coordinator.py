"""Runs catalog calls as background tasks and applies their results.

At most one action per class (refresh, spawn, flag submission) is in flight.
Requests are validated synchronously on the event loop; rejected requests post
a status message and return None instead of a task. Completions are applied to
the view model without awaiting, so they never interleave with key handling.
"""

from __future__ import annotations

import asyncio
import dataclasses
import itertools
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import httpx

from htb_browser.action_messages import (
    build_action_error,
    build_flag_accepted,
    build_flag_already_owned,
    build_flag_incorrect,
    build_refresh_notification,
    build_spawn_success,
    error_severity,
)
from htb_browser.errors import (
    BusyError,
    EmptyFlagError,
    HtbBrowserError,
    NoSelectionError,
    TransportError,
)
from htb_browser.models import (
    ActionKind,
    ActiveMachineInfo,
    Entry,
    FlagOutcome,
    FlagResult,
    StatusMessage,
    UserConfig,
)
from htb_browser.services.interfaces import AppServices
from htb_browser.view_model import MachineListViewModel

logger = logging.getLogger(__name__)

SHUTDOWN_WAIT_SECONDS = 0.5


@dataclasses.dataclass(slots=True, frozen=True)
class _LocalMark:
    """A completion applied locally; replayed over refreshes that predate it."""

    generation: int
    entry_id: int
    active: bool = False
    ip: str | None = None
    user: bool = False
    root: bool = False


class ActionCoordinator:
    """Owns the pending-action tokens and the background tasks behind them."""

    def __init__(
        self,
        view_model: MachineListViewModel,
        services: AppServices,
        config: UserConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        notify: Callable[[StatusMessage], None] | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.view_model = view_model
        self.client = client
        self._services = services
        self._config = config or UserConfig()
        self._notify = notify
        self._on_change = on_change
        self._pending: dict[ActionKind, int] = {}
        self._tokens = itertools.count(1)
        self._background_tasks: set[asyncio.Task[None]] = set()
        # Bumped by every locally applied spawn or flag; refreshes record it at start
        self._local_generation = 0
        self._local_marks: list[_LocalMark] = []

    # ── Pending-token bookkeeping ────────────────────────────────────────

    def is_pending(self, kind: ActionKind) -> bool:
        return kind in self._pending

    def pending_actions(self) -> list[ActionKind]:
        """Classes currently in flight, in declaration order."""
        return [kind for kind in ActionKind if kind in self._pending]

    def _acquire(self, kind: ActionKind) -> int:
        if kind in self._pending:
            raise BusyError(f"{kind.value} already in flight")
        token = next(self._tokens)
        self._pending[kind] = token
        return token

    def _release(self, kind: ActionKind, token: int) -> None:
        if self._pending.get(kind) == token:
            del self._pending[kind]

    def _require_client(self) -> httpx.AsyncClient:
        if self.client is None:
            raise TransportError("HTTP client is not open")
        return self.client

    @property
    def _timeout(self) -> float:
        return float(self._config.request_timeout_seconds)

    def _track_task(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    # ── Status reporting ─────────────────────────────────────────────────

    def _post(self, text: str, severity: str = "information", *, toast: bool = True) -> None:
        status = self.view_model.post_status(text, severity)
        if toast and self._notify is not None:
            self._notify(status)

    def _report(self, kind: ActionKind, exc: HtbBrowserError) -> None:
        logger.info("%s failed (%s): %s", kind.value, exc.kind, exc)
        self._post(build_action_error(kind, exc), error_severity(exc))

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # ── Requests (called on the event loop) ──────────────────────────────

    def request_refresh(self, *, quiet: bool = False) -> asyncio.Task[None] | None:
        """Start a list refresh.

        With ``quiet`` a pending refresh is skipped without a status message,
        and a successful one does not post a "Loaded" status.
        """
        if quiet and self.is_pending(ActionKind.REFRESH):
            return None
        try:
            token = self._acquire(ActionKind.REFRESH)
        except BusyError as exc:
            self._report(ActionKind.REFRESH, exc)
            self._changed()
            return None
        logger.debug("Refresh requested (token %d)", token)
        task = self._track_task(self._run_refresh(token, quiet, self._local_generation))
        self._changed()
        return task

    def request_spawn(self) -> asyncio.Task[None] | None:
        """Spawn the selected entry."""
        try:
            entry = self.view_model.require_selected()
            if entry.is_active:
                self._post(f"{entry.name} is already active.")
                self._changed()
                return None
            token = self._acquire(ActionKind.SPAWN)
        except (NoSelectionError, BusyError) as exc:
            self._report(ActionKind.SPAWN, exc)
            self._changed()
            return None
        logger.info("Spawn requested for %s (%d)", entry.name, entry.id)
        task = self._track_task(self._run_spawn(token, entry))
        self._changed()
        return task

    def request_submit_flag(self, flag: str) -> asyncio.Task[None] | None:
        """Submit ``flag`` for the active entry."""
        try:
            if not flag.strip():
                raise EmptyFlagError("flag is empty")
            entry = self.view_model.require_active()
            token = self._acquire(ActionKind.SUBMIT_FLAG)
        except (EmptyFlagError, NoSelectionError, BusyError) as exc:
            self._report(ActionKind.SUBMIT_FLAG, exc)
            self._changed()
            return None
        logger.info("Flag submission requested for %s (%d)", entry.name, entry.id)
        task = self._track_task(self._run_submit_flag(token, entry, flag.strip()))
        self._changed()
        return task

    def report_rejection(self, kind: ActionKind, exc: HtbBrowserError) -> None:
        """Post a rejection decided outside the coordinator (e.g. by the key handler)."""
        self._report(kind, exc)
        self._changed()

    # ── Task bodies ──────────────────────────────────────────────────────

    async def _run_refresh(self, token: int, quiet: bool, generation: int) -> None:
        follow_up = False
        try:
            entries = await self._services.catalog.fetch_entries(
                client=self._require_client(),
                include_retired=self._config.include_retired,
                per_page=self._config.per_page,
                timeout_seconds=self._timeout,
            )
        except HtbBrowserError as exc:
            self._report(ActionKind.REFRESH, exc)
        else:
            follow_up = self._apply_refresh(entries, quiet, generation)
        finally:
            self._release(ActionKind.REFRESH, token)
            self._changed()
        if follow_up:
            self.request_refresh(quiet=True)

    async def _run_spawn(self, token: int, entry: Entry) -> None:
        try:
            info = await self._services.catalog.spawn(
                client=self._require_client(),
                entry_id=entry.id,
                timeout_seconds=self._timeout,
            )
        except HtbBrowserError as exc:
            self._report(ActionKind.SPAWN, exc)
        else:
            self._apply_spawn(entry, info)
        finally:
            self._release(ActionKind.SPAWN, token)
            self._changed()

    async def _run_submit_flag(self, token: int, entry: Entry, flag: str) -> None:
        try:
            result = await self._services.catalog.submit_flag(
                client=self._require_client(),
                entry_id=entry.id,
                flag=flag,
                timeout_seconds=self._timeout,
            )
        except HtbBrowserError as exc:
            self._report(ActionKind.SUBMIT_FLAG, exc)
        else:
            self._apply_flag_result(entry, result)
        finally:
            self._release(ActionKind.SUBMIT_FLAG, token)
            self._changed()

    # ── Completion application (synchronous) ─────────────────────────────

    def _apply_refresh(self, entries: list[Entry], quiet: bool, generation: int) -> bool:
        """Replace the list, then replay local completions the payload predates.

        Returns True when something was replayed, meaning the payload was
        fetched before a local change and a fresh one should be requested.
        """
        self.view_model.replace_entries(entries)
        newer = [mark for mark in self._local_marks if mark.generation > generation]
        for mark in newer:
            if mark.active:
                self.view_model.mark_active(mark.entry_id, mark.ip)
            else:
                self.view_model.mark_owned(mark.entry_id, user=mark.user, root=mark.root)
        self._local_marks = newer
        logger.debug(
            "Refresh applied: %d entries, %d local changes replayed", len(entries), len(newer)
        )
        if not quiet:
            self._post(build_refresh_notification(len(entries)), toast=False)
        return bool(newer)

    def _record_local(self, entry_id: int, **changes: Any) -> None:
        self._local_generation += 1
        self._local_marks.append(
            _LocalMark(generation=self._local_generation, entry_id=entry_id, **changes)
        )

    def _apply_spawn(self, entry: Entry, info: ActiveMachineInfo) -> None:
        if not self.view_model.mark_active(info.entry_id, info.ip):
            # A refresh that completed meanwhile no longer lists the entry
            logger.info("Spawned %d but it is no longer listed", info.entry_id)
            self._post(
                f"Spawned {entry.name}, but it is no longer listed. Press r to refresh.",
                "warning",
            )
            return
        self._record_local(info.entry_id, active=True, ip=info.ip)
        self._post(build_spawn_success(entry.name, info.ip))
        self._refresh_after_action()

    def _apply_flag_result(self, entry: Entry, result: FlagResult) -> None:
        if result.outcome is FlagOutcome.INCORRECT:
            self._post(build_flag_incorrect(entry.name, result.message), "warning")
            return
        if result.outcome is FlagOutcome.ALREADY_OWNED:
            self._post(build_flag_already_owned(entry.name))
            return

        current = self.view_model.get_entry(entry.id)
        owned = result.owned
        if owned is None and current is not None:
            # Service did not say which objective; the user flag comes first
            owned = "root" if current.user_owned else "user"
        if current is not None:
            self.view_model.mark_owned(entry.id, user=owned == "user", root=owned == "root")
            self._record_local(entry.id, user=owned == "user", root=owned == "root")
        self._post(build_flag_accepted(entry.name, owned))
        self._refresh_after_action()

    def _refresh_after_action(self) -> None:
        if self._config.refresh_after_action:
            self.request_refresh(quiet=True)

    # ── Teardown ─────────────────────────────────────────────────────────

    async def shutdown(self) -> None:
        """Cancel outstanding tasks without applying their results."""
        self._notify = None
        self._on_change = None
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=SHUTDOWN_WAIT_SECONDS)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()
        self._pending.clear()
        self._local_marks.clear()


__all__ = ["SHUTDOWN_WAIT_SECONDS", "ActionCoordinator"]
