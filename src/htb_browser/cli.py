"""CLI/bootstrap helpers for the HTB machine browser."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from htb_browser.action_messages import build_actionable_error
from htb_browser.config import apply_env_overrides, load_config, resolve_api_key
from htb_browser.errors import MissingCredentialsError
from htb_browser.models import (
    CONFIG_APP_NAME,
    MAX_REQUEST_TIMEOUT,
    FilterMode,
    SortMode,
    UserConfig,
)
from htb_browser.themes import THEME_NAMES

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)
    # httpx logs every request at INFO; keep the file focused on the app
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    # auto
    os.environ.pop("FORCE_COLOR", None)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _apply_cli_overrides(args: argparse.Namespace, config: UserConfig) -> None:
    """Apply command-line flags on top of the loaded config."""
    if args.api_url:
        config.api_url = args.api_url.rstrip("/")
    if args.timeout is not None:
        config.request_timeout_seconds = max(1, min(args.timeout, MAX_REQUEST_TIMEOUT))
    if args.no_retired:
        config.include_retired = False
    if args.filter is not None:
        config.default_filter = FilterMode(args.filter)
    if args.sort is not None:
        config.default_sort = SortMode(args.sort)
    if args.auto_refresh is not None:
        config.auto_refresh_seconds = max(0, args.auto_refresh)
    if args.theme is not None:
        config.theme_name = args.theme
    if args.ascii:
        config.ascii_icons = True


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse Hack The Box machines, spawn them, and submit flags in a TUI"
    )
    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help="Catalog API base URL (default: config value or $HTB_API_URL)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help=f"Per-request timeout in seconds (1-{MAX_REQUEST_TIMEOUT})",
    )
    parser.add_argument(
        "--no-retired",
        action="store_true",
        help="Only list current machines (skip the retired list)",
    )
    parser.add_argument(
        "--filter",
        choices=[mode.value for mode in FilterMode],
        default=None,
        help="Initial filter (default: config value or none)",
    )
    parser.add_argument(
        "--sort",
        choices=[mode.value for mode in SortMode],
        default=None,
        help="Initial sort order (default: config value or difficulty)",
    )
    parser.add_argument(
        "--auto-refresh",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Refresh the list every SECONDS (0 disables)",
    )
    parser.add_argument(
        "--theme",
        choices=THEME_NAMES,
        default=None,
        help="Color theme (default: config value or monokai)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/htb-browser/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors (equivalent to --color never)",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII-only status icons for compatibility with limited terminals",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    resolve_api_key_fn: Callable[[UserConfig], str] = resolve_api_key,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = _build_parser().parse_args(argv)

    color_mode = "never" if args.no_color else args.color
    configure_color_mode_fn(color_mode)
    configure_logging_fn(args.debug)
    logger.debug("htb-browser starting")

    config = load_config_fn()
    apply_env_overrides(config)
    _apply_cli_overrides(args, config)

    try:
        api_key = resolve_api_key_fn(config)
    except MissingCredentialsError:
        print(
            build_actionable_error(
                "start htb-browser",
                why=f"the {config.api_key_env} environment variable is not set",
                next_step=(
                    f"create an App Token in your Hack The Box profile settings and "
                    f"export {config.api_key_env}=<token>"
                ),
            ),
            file=sys.stderr,
        )
        return 1

    if not validate_interactive_tty_fn():
        print(
            "Error: htb-browser requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run htb-browser directly in a terminal session", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from htb_browser.app import HtbBrowser as _HtbBrowser

        app_factory = _HtbBrowser

    app = app_factory(config=config, api_key=api_key)
    app.run()
    return 0


__all__ = [
    "_apply_cli_overrides",
    "_configure_color_mode",
    "_configure_logging",
    "_validate_interactive_tty",
    "main",
]
