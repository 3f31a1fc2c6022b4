"""Tests for catalog payload parsing."""

from __future__ import annotations

import pytest

from htb_browser.models import Difficulty, FlagOutcome
from htb_browser.parsing import (
    extract_message,
    is_conflict_message,
    parse_active_flag,
    parse_difficulty,
    parse_entry,
    parse_flag_response,
    parse_machine_page,
    parse_profile_ip,
)


def test_parse_entry_camel_case_payload() -> None:
    entry = parse_entry(
        {
            "id": "15",
            "name": "Lame",
            "difficultyText": "Easy",
            "os": "Linux",
            "active": None,
            "authUserInUserOwns": True,
            "authUserInRootOwns": None,
            "user_owns_count": 1200,
            "root_owns_count": "800",
            "points": 20,
            "star": "4.5",
            "release": "2017-03-14T00:00:00.000000Z",
        }
    )
    assert entry is not None
    assert entry.id == 15
    assert entry.difficulty is Difficulty.EASY
    assert entry.user_owned and not entry.root_owned
    assert entry.root_owns_count == 800
    assert entry.stars == pytest.approx(4.5)
    assert not entry.is_active
    assert entry.ip is None


def test_parse_entry_snake_case_and_play_info() -> None:
    entry = parse_entry(
        {
            "id": 3,
            "name": "Blue",
            "difficulty": "medium",
            "auth_user_in_root_owns": True,
            "playInfo": {"isActive": True},
            "ip": "10.10.10.40",
        },
        retired=True,
    )
    assert entry.difficulty is Difficulty.MEDIUM
    assert entry.root_owned
    assert entry.is_active
    assert entry.retired
    assert entry.ip == "10.10.10.40"


@pytest.mark.parametrize("item", [None, [], {"name": "NoId"}, {"id": 1}, {"id": 1, "name": ""}])
def test_parse_entry_rejects_incomplete_items(item) -> None:
    assert parse_entry(item) is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        (None, False),
        ("1", True),
        ("no", False),
    ],
)
def test_parse_active_flag(value, expected) -> None:
    assert parse_active_flag(value) is expected


def test_unknown_difficulty() -> None:
    assert parse_difficulty({"difficultyText": "Brutal"}) is Difficulty.UNKNOWN
    assert parse_difficulty({"difficulty": 42}) is Difficulty.UNKNOWN


def test_parse_machine_page_skips_bad_items_and_reads_next() -> None:
    entries, next_url = parse_machine_page(
        {
            "data": [{"id": 1, "name": "Lame"}, "garbage", {"id": 2}],
            "links": {"next": "https://labs.test/api/v4/machine/paginated?page=2"},
        }
    )
    assert [e.id for e in entries] == [1]
    assert next_url.endswith("page=2")


def test_parse_machine_page_last_page() -> None:
    _, next_url = parse_machine_page({"data": [], "links": {"next": None}})
    assert next_url is None


@pytest.mark.parametrize("payload", [None, [], {"data": None}, {"data": {"id": 1}}])
def test_parse_machine_page_rejects_malformed(payload) -> None:
    with pytest.raises(ValueError):
        parse_machine_page(payload)


def test_parse_profile_ip() -> None:
    assert parse_profile_ip({"info": {"ip": "10.10.10.3"}}) == "10.10.10.3"
    assert parse_profile_ip({"info": {"ip": ""}}) is None
    assert parse_profile_ip({"info": None}) is None
    assert parse_profile_ip("nope") is None


def test_extract_message() -> None:
    assert extract_message({"message": "  Done  "}) == "Done"
    assert extract_message({"message": 5}) == ""
    assert extract_message(None) == ""


def test_is_conflict_message() -> None:
    assert is_conflict_message("You already have an active machine")
    assert not is_conflict_message("Machine not found")


class TestParseFlagResponse:
    def test_accepted_user(self) -> None:
        result = parse_flag_response(200, {"message": "User flag owned!"})
        assert result.outcome is FlagOutcome.ACCEPTED
        assert result.owned == "user"

    def test_accepted_without_kind(self) -> None:
        result = parse_flag_response(200, {"message": "Congratulations"})
        assert result.outcome is FlagOutcome.ACCEPTED
        assert result.owned is None

    def test_incorrect_on_success_status(self) -> None:
        result = parse_flag_response(200, {"message": "Wrong flag"})
        assert result.outcome is FlagOutcome.INCORRECT

    def test_already_owned_on_conflict_status(self) -> None:
        result = parse_flag_response(409, {"message": "Flag already submitted"})
        assert result.outcome is FlagOutcome.ALREADY_OWNED

    def test_unknown_failure_is_none(self) -> None:
        assert parse_flag_response(500, {"message": "Server Error"}) is None
        assert parse_flag_response(409, None) is None
