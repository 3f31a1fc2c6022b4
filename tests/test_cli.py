"""Tests for the command-line entry point and bootstrap helpers."""

from __future__ import annotations

import logging
import os
import runpy
from unittest.mock import MagicMock, patch

import pytest

from htb_browser.cli import _configure_color_mode, _configure_logging, main
from htb_browser.errors import MissingCredentialsError
from htb_browser.models import MAX_REQUEST_TIMEOUT, FilterMode, SortMode, UserConfig


@pytest.fixture(autouse=True)
def _no_env_api_url(monkeypatch):
    monkeypatch.delenv("HTB_API_URL", raising=False)


def _run(argv, *, config=None, api_key="token", tty=True):
    config = config or UserConfig()
    app_factory = MagicMock()
    resolve = (
        MagicMock(side_effect=MissingCredentialsError("HTB_API_KEY is not set"))
        if api_key is None
        else MagicMock(return_value=api_key)
    )
    code = main(
        argv,
        load_config_fn=lambda: config,
        resolve_api_key_fn=resolve,
        configure_logging_fn=MagicMock(),
        configure_color_mode_fn=MagicMock(),
        validate_interactive_tty_fn=lambda: tty,
        app_factory=app_factory,
    )
    return code, config, app_factory


def test_main_runs_app_with_resolved_key() -> None:
    code, config, app_factory = _run([])
    assert code == 0
    app_factory.assert_called_once_with(config=config, api_key="token")
    app_factory.return_value.run.assert_called_once_with()


def test_missing_key_exits_1_with_guidance(capsys) -> None:
    code, _, app_factory = _run([], api_key=None)
    assert code == 1
    app_factory.assert_not_called()
    err = capsys.readouterr().err
    assert err.startswith("Could not start htb-browser.")
    assert "HTB_API_KEY" in err
    assert "Next step:" in err


def test_non_tty_exits_2(capsys) -> None:
    code, _, app_factory = _run([], tty=False)
    assert code == 2
    app_factory.assert_not_called()
    assert "interactive TTY" in capsys.readouterr().err


def test_cli_flags_override_config() -> None:
    _, config, _ = _run(
        [
            "--api-url",
            "http://localhost:9000/api/",
            "--timeout",
            "999",
            "--no-retired",
            "--filter",
            "root_owned",
            "--sort",
            "user_owns",
            "--auto-refresh",
            "-5",
            "--theme",
            "catppuccin-mocha",
            "--ascii",
        ]
    )
    assert config.api_url == "http://localhost:9000/api"
    assert config.request_timeout_seconds == MAX_REQUEST_TIMEOUT
    assert config.include_retired is False
    assert config.default_filter is FilterMode.ROOT_OWNED
    assert config.default_sort is SortMode.USER_OWNS_DESCENDING
    assert config.auto_refresh_seconds == 0
    assert config.theme_name == "catppuccin-mocha"
    assert config.ascii_icons is True


def test_env_api_url_applies_before_flags(monkeypatch) -> None:
    monkeypatch.setenv("HTB_API_URL", "http://env.test/api")
    _, config, _ = _run([])
    assert config.api_url == "http://env.test/api"


def test_unknown_filter_is_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run(["--filter", "bogus"])
    assert excinfo.value.code == 2


def test_no_color_flag_wins_over_color() -> None:
    color = MagicMock()
    main(
        ["--color", "always", "--no-color"],
        load_config_fn=UserConfig,
        resolve_api_key_fn=lambda config: "token",
        configure_logging_fn=MagicMock(),
        configure_color_mode_fn=color,
        validate_interactive_tty_fn=lambda: True,
        app_factory=MagicMock(),
    )
    color.assert_called_once_with("never")


@pytest.mark.parametrize(
    ("mode", "no_color", "force_color"),
    [("never", "1", None), ("always", None, "1"), ("auto", None, None)],
)
def test_configure_color_mode(monkeypatch, mode, no_color, force_color) -> None:
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("NO_COLOR")
    monkeypatch.setenv("FORCE_COLOR", "1")
    _configure_color_mode(mode)
    assert os.environ.get("NO_COLOR") == no_color
    assert os.environ.get("FORCE_COLOR") == force_color


def test_configure_logging_disabled_without_debug() -> None:
    try:
        _configure_logging(False)
        assert logging.root.manager.disable == logging.CRITICAL
    finally:
        logging.disable(logging.NOTSET)


def test_main_module_calls_sys_exit_with_main_return_value() -> None:
    with (
        patch("htb_browser.cli.main", return_value=7) as main_mock,
        patch("sys.exit", side_effect=SystemExit) as exit_mock,
        pytest.raises(SystemExit),
    ):
        runpy.run_module("htb_browser.__main__", run_name="__main__")

    main_mock.assert_called_once_with()
    exit_mock.assert_called_once_with(7)
