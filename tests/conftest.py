"""Shared test fixtures for the HTB machine browser tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from htb_browser.models import Difficulty, Entry, UserConfig
from htb_browser.services.interfaces import AppServices
from htb_browser.themes import DEFAULT_THEME, THEME_COLORS
from htb_browser.widgets.listing import set_ascii_icons

# ── Module-level state isolation ─────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Restore THEME_COLORS and the icon set after each test.

    HtbBrowser.__init__ mutates both. Without this fixture tests that
    instantiate the app would pollute the state for later tests.
    """
    yield
    THEME_COLORS.clear()
    THEME_COLORS.update(DEFAULT_THEME)
    set_ascii_icons(False)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_entry():
    """Factory fixture for creating Entry instances with sensible defaults."""

    def _make(
        id: int = 1,
        name: str = "Lame",
        difficulty: Difficulty = Difficulty.EASY,
        **kwargs: Any,
    ) -> Entry:
        return Entry(id=id, name=name, difficulty=difficulty, **kwargs)

    return _make


@pytest.fixture
def sample_entries(make_entry):
    """A small catalog covering every difficulty and owned combination."""
    return [
        make_entry(1, "Lame", Difficulty.EASY, os="Linux", user_owns_count=900),
        make_entry(
            2, "Blue", Difficulty.EASY, os="Windows", user_owned=True, user_owns_count=1200
        ),
        make_entry(
            3,
            "Bastion",
            Difficulty.MEDIUM,
            os="Windows",
            user_owned=True,
            root_owned=True,
            root_owns_count=400,
        ),
        make_entry(4, "Inception", Difficulty.MEDIUM, os="Linux", root_owned=True),
        make_entry(5, "Rope", Difficulty.INSANE, os="Linux", root_owns_count=50),
        make_entry(6, "Mantis", Difficulty.HARD, os="Windows", user_owns_count=300),
    ]


@pytest.fixture
def sample_config():
    """Factory fixture for creating UserConfig with optional overrides."""

    def _make(**kwargs: Any) -> UserConfig:
        return UserConfig(**kwargs)

    return _make


@pytest.fixture
def fake_catalog():
    """Catalog service double with AsyncMock methods and no network access."""
    catalog = AsyncMock()
    catalog.fetch_entries = AsyncMock(return_value=[])
    catalog.spawn = AsyncMock()
    catalog.submit_flag = AsyncMock()
    return catalog


@pytest.fixture
def fake_services(fake_catalog):
    return AppServices(catalog=fake_catalog)
