"""Textual application: key dispatch and redraw for the machine browser."""

from __future__ import annotations

import logging

import httpx
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.timer import Timer
from textual.widgets import Header, Label, OptionList

from htb_browser.coordinator import ActionCoordinator
from htb_browser.errors import NoSelectionError
from htb_browser.input_mode import InputModeMachine, Intent, IntentKind
from htb_browser.models import ActionKind, Entry, StatusMessage, UserConfig
from htb_browser.render_state import RenderState, build_render_state
from htb_browser.services.interfaces import (
    AppServices,
    build_default_app_services,
    build_http_client,
)
from htb_browser.themes import TEXTUAL_THEMES, THEME_NAMES, apply_theme_colors
from htb_browser.ui_constants import APP_BINDINGS, APP_CHORD_KEYS, APP_CSS
from htb_browser.view_model import MachineListViewModel
from htb_browser.widgets import (
    ActiveMachinePanel,
    ContextFooter,
    MachineList,
    render_active_panel,
    render_mode_badge,
    render_status_line,
    set_ascii_icons,
)

logger = logging.getLogger(__name__)

NOTIFY_TIMEOUTS = {"information": 4, "warning": 6, "error": 8}


class HtbBrowser(App):
    """A TUI application to browse, spawn, and own Hack The Box machines."""

    TITLE = "Hack The Box Machines"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        config: UserConfig | None = None,
        *,
        api_key: str = "",
        services: AppServices | None = None,
    ) -> None:
        super().__init__()
        # Register all Textual themes so $th-* CSS variables resolve before compose()
        for textual_theme in TEXTUAL_THEMES.values():
            self.register_theme(textual_theme)
        self._config = config or UserConfig()
        self._api_key = api_key
        self._services: AppServices = services or build_default_app_services()
        self._theme_name = apply_theme_colors(self._config.theme_name)
        # Switch before CSS is parsed so $th-* variables resolve
        self.theme = self._theme_name
        set_ascii_icons(self._config.ascii_icons)

        self.view_model = MachineListViewModel(
            filter_mode=self._config.default_filter,
            sort_mode=self._config.default_sort,
        )
        self.input_machine = InputModeMachine()
        self.coordinator = ActionCoordinator(
            self.view_model,
            self._services,
            self._config,
            notify=self._notify_status,
            on_change=self._render,
        )

        # Shared HTTP client for connection pooling (created in on_mount)
        self._http_client: httpx.AsyncClient | None = None
        self._auto_refresh_timer: Timer | None = None
        # Rows currently in the OptionList; rebuilt only when they change
        self._rendered_entries: list[Entry] | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-container"):
            with Vertical(id="list-pane"):
                yield Label(" Machines", id="list-header")
                yield MachineList(id="machine-list")
                yield Label("", id="status-bar")
            with Vertical(id="side-pane"):
                yield ActiveMachinePanel(id="active-panel")
        yield ContextFooter()

    def on_mount(self) -> None:
        """Open the HTTP client, draw the empty list, and start the first refresh."""
        self._http_client = build_http_client(
            api_url=self._config.api_url,
            api_key=self._api_key,
            timeout_seconds=self._config.request_timeout_seconds,
        )
        self.coordinator.client = self._http_client

        # Warn if config was corrupt and defaults were used
        if self._config.config_defaulted:
            self.notify(
                "Config file could not be read. Using defaults.",
                severity="warning",
                timeout=8,
            )

        self._render()
        self.coordinator.request_refresh()

        if self._config.auto_refresh_seconds > 0:
            self._auto_refresh_timer = self.set_interval(
                self._config.auto_refresh_seconds, self._auto_refresh
            )

        logger.debug(
            "App mounted: api_url=%s, retired=%s, auto_refresh=%ss",
            self._config.api_url,
            self._config.include_retired,
            self._config.auto_refresh_seconds,
        )

    async def on_unmount(self) -> None:
        """Stop the timer, cancel in-flight actions, and close the HTTP client."""
        timer = self._auto_refresh_timer
        self._auto_refresh_timer = None
        if timer is not None:
            timer.stop()

        await self.coordinator.shutdown()

        client = self._http_client
        self._http_client = None
        self.coordinator.client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(
                    "Failed to close shared HTTP client during shutdown: %s", e, exc_info=True
                )

    def _auto_refresh(self) -> None:
        self.coordinator.request_refresh(quiet=True)

    # ── Input ────────────────────────────────────────────────────────────

    def on_key(self, event: Key) -> None:
        """Route every key through the input-mode machine."""
        was_composing = self.input_machine.composing
        if was_composing and event.key in APP_CHORD_KEYS:
            return
        intent = self.input_machine.handle_key(
            event.key,
            event.character,
            flag_target_available=self.view_model.can_compose_flag(),
        )
        if not was_composing and intent is None:
            return
        event.prevent_default()
        event.stop()
        if intent is not None:
            self._dispatch(intent)
        self._render()

    async def action_quit(self) -> None:
        """Quit from Browse only; the flag buffer must not be dropped by a chord."""
        if self.input_machine.composing:
            return
        await super().action_quit()

    def _dispatch(self, intent: Intent) -> None:
        kind = intent.kind
        if kind is IntentKind.QUIT:
            self.exit()
        elif kind is IntentKind.MOVE_UP:
            self.view_model.move_selection(-1)
        elif kind is IntentKind.MOVE_DOWN:
            self.view_model.move_selection(1)
        elif kind is IntentKind.CYCLE_FILTER:
            self.view_model.cycle_filter()
        elif kind is IntentKind.CYCLE_SORT:
            self.view_model.cycle_sort()
        elif kind is IntentKind.SPAWN:
            self.coordinator.request_spawn()
        elif kind is IntentKind.REFRESH:
            self.coordinator.request_refresh()
        elif kind is IntentKind.SUBMIT_FLAG:
            self.coordinator.request_submit_flag(intent.flag)
        elif kind is IntentKind.FLAG_UNAVAILABLE:
            self._report_flag_unavailable()
        elif kind in (IntentKind.FLAG_MODE_ENTERED, IntentKind.FLAG_CANCELLED):
            # Stale action errors would sit next to the flag buffer
            self.view_model.clear_status()

    def _report_flag_unavailable(self) -> None:
        active = self.view_model.active_machine()
        if active is None:
            self.coordinator.report_rejection(
                ActionKind.SUBMIT_FLAG, NoSelectionError("no machine is active")
            )
            return
        status = self.view_model.post_status(f"{active.name} is already fully owned.")
        self._notify_status(status)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        """Mouse clicks move the selection; they never trigger actions."""
        self.view_model.select_index(event.option_index)
        self._render()

    def action_cycle_theme(self) -> None:
        """Cycle through the available color themes."""
        index = THEME_NAMES.index(self._theme_name) if self._theme_name in THEME_NAMES else -1
        self._theme_name = apply_theme_colors(THEME_NAMES[(index + 1) % len(THEME_NAMES)])
        self.theme = self._theme_name
        # Row markup embeds palette colors, so force a rebuild
        self._rendered_entries = None
        self._render()
        self.notify(f"Theme: {self._theme_name}", timeout=2)

    # ── Output ───────────────────────────────────────────────────────────

    def _notify_status(self, status: StatusMessage) -> None:
        self.notify(
            status.text,
            severity=status.severity,  # type: ignore[arg-type]
            timeout=NOTIFY_TIMEOUTS.get(status.severity, 4),
        )

    def render_state(self) -> RenderState:
        return build_render_state(
            self.view_model, self.input_machine, self.coordinator.pending_actions()
        )

    def _render(self) -> None:
        """Repaint every widget from a fresh render snapshot."""
        try:
            machine_list = self.query_one("#machine-list", MachineList)
            header = self.query_one("#list-header", Label)
            status_bar = self.query_one("#status-bar", Label)
            panel = self.query_one("#active-panel", ActiveMachinePanel)
            side_pane = self.query_one("#side-pane", Vertical)
            footer = self.query_one(ContextFooter)
        except NoMatches:
            # Not composed yet, or already torn down
            return
        state = self.render_state()

        if state.entries != self._rendered_entries:
            machine_list.show_entries(state.entries, state.selected_index)
            self._rendered_entries = state.entries
        elif machine_list.highlighted != state.selected_index:
            machine_list.highlighted = state.selected_index

        header.update(
            f" Machines ({len(state.entries)}/{state.total_count})"
            f"  Filter: {state.filter_label}  Sort: {state.sort_label}"
        )
        status_bar.update(render_status_line(state.status, state.pending))
        panel.update(
            render_active_panel(
                state.active,
                composing=state.composing,
                buffer=state.buffer,
                can_compose_flag=state.can_compose_flag,
                ascii_cursor=self._config.ascii_icons,
            )
        )
        side_pane.set_class(state.composing, "composing")
        footer.render_bindings(state.key_hints, render_mode_badge(state.composing))
        if state.active is not None:
            self.sub_title = f"Active: {state.active.name} ({state.active.ip or 'no IP yet'})"
        else:
            self.sub_title = "No active machine"


__all__ = ["NOTIFY_TIMEOUTS", "HtbBrowser"]
