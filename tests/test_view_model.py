"""Tests for the machine list view model."""

from __future__ import annotations

import pytest

from htb_browser.errors import NoSelectionError
from htb_browser.models import FilterMode, SortMode
from htb_browser.view_model import MachineListViewModel


def _ids(entries):
    return [e.id for e in entries]


class TestReplaceEntries:
    def test_initial_selection_is_first_row(self, sample_entries):
        vm = MachineListViewModel(sample_entries)
        assert vm.selected_index == 0
        assert vm.selected_entry() == vm.visible_entries()[0]

    def test_empty_collection_has_no_selection(self):
        vm = MachineListViewModel()
        assert vm.selected_index is None
        assert vm.selected_entry() is None

    def test_replace_is_idempotent(self, sample_entries):
        vm = MachineListViewModel(sample_entries)
        vm.move_selection(2)
        vm.replace_entries(sample_entries)
        first = (vm.entries, vm.visible_entries(), vm.selected_index)
        vm.replace_entries(sample_entries)
        assert (vm.entries, vm.visible_entries(), vm.selected_index) == first

    def test_selection_follows_id_across_refresh(self, make_entry):
        vm = MachineListViewModel(
            [make_entry(1, "Alpha"), make_entry(2, "Bravo"), make_entry(3, "Charlie")],
            sort_mode=SortMode.NAME_ASCENDING,
        )
        vm.move_selection(1)
        assert vm.selected_entry().name == "Bravo"
        vm.replace_entries(
            [make_entry(0, "Aaron"), make_entry(1, "Alpha"), make_entry(2, "Bravo")]
        )
        assert vm.selected_entry().name == "Bravo"
        assert vm.selected_index == 2

    def test_selection_clamps_when_list_shrinks(self, make_entry):
        vm = MachineListViewModel([make_entry(i, f"M{i}") for i in range(5)])
        vm.move_selection(4)
        vm.replace_entries([make_entry(10, "X"), make_entry(11, "Y")])
        assert vm.selected_index == 1

    def test_previous_active_preserved_when_payload_reports_none(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame"), make_entry(2, "Blue")])
        assert vm.mark_active(2, "10.10.10.40")
        vm.replace_entries([make_entry(1, "Lame"), make_entry(2, "Blue")])
        active = vm.active_machine()
        assert active is not None
        assert active.entry_id == 2
        assert active.ip == "10.10.10.40"

    def test_active_dropped_when_entry_disappears(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame"), make_entry(2, "Blue")])
        vm.mark_active(2, "10.10.10.40")
        vm.replace_entries([make_entry(1, "Lame")])
        assert vm.active_machine() is None

    def test_payload_active_wins_over_previous(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame"), make_entry(2, "Blue")])
        vm.mark_active(2)
        vm.replace_entries([make_entry(1, "Lame", is_active=True), make_entry(2, "Blue")])
        assert vm.active_machine().entry_id == 1

    def test_several_active_keeps_previous(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame"), make_entry(2, "Blue")])
        vm.mark_active(2)
        vm.replace_entries(
            [make_entry(1, "Lame", is_active=True), make_entry(2, "Blue", is_active=True)]
        )
        assert [e.id for e in vm.entries if e.is_active] == [2]

    def test_several_active_without_previous_keeps_first(self, make_entry):
        vm = MachineListViewModel()
        vm.replace_entries(
            [make_entry(7, "Zeta", is_active=True), make_entry(3, "Alpha", is_active=True)]
        )
        assert [e.id for e in vm.entries if e.is_active] == [7]


class TestFilterSort:
    def test_cycle_filter_keeps_selected_id_if_visible(self, sample_entries):
        vm = MachineListViewModel(sample_entries, sort_mode=SortMode.NAME_ASCENDING)
        # Rows: Bastion, Blue, Inception, Lame, Mantis, Rope
        vm.move_selection(3)
        assert vm.selected_entry().name == "Lame"
        assert vm.cycle_filter() is FilterMode.USER_NOT_OWNED
        assert vm.selected_entry().name == "Lame"

    def test_filter_hiding_selection_clamps_index(self, sample_entries):
        vm = MachineListViewModel(sample_entries, sort_mode=SortMode.NAME_ASCENDING)
        vm.move_selection(5)
        vm.set_filter(FilterMode.USER_AND_ROOT_OWNED)
        assert _ids(vm.visible_entries()) == [3]
        assert vm.selected_index == 0

    def test_empty_filter_result_clears_selection(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame")])
        vm.set_filter(FilterMode.USER_OWNED)
        assert vm.visible_entries() == []
        assert vm.selected_index is None
        vm.move_selection(1)
        assert vm.selected_index is None
        with pytest.raises(NoSelectionError):
            vm.require_selected()

    def test_cycle_sort_reorders(self, sample_entries):
        vm = MachineListViewModel(sample_entries)
        assert vm.cycle_sort() is SortMode.USER_OWNS_DESCENDING
        assert vm.visible_entries()[0].name == "Blue"


class TestSelection:
    def test_move_selection_has_no_wraparound(self, sample_entries):
        vm = MachineListViewModel(sample_entries)
        vm.move_selection(-1)
        assert vm.selected_index == 0
        vm.move_selection(100)
        assert vm.selected_index == len(sample_entries) - 1

    def test_select_index_clamps(self, sample_entries):
        vm = MachineListViewModel(sample_entries)
        vm.select_index(99)
        assert vm.selected_index == len(sample_entries) - 1


class TestActiveAndOwned:
    def test_mark_active_clears_other_actives(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame", is_active=True), make_entry(2, "Blue")])
        assert vm.mark_active(2, "10.10.10.40")
        assert [e.id for e in vm.entries if e.is_active] == [2]

    def test_mark_active_unknown_id_returns_false(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame")])
        assert vm.mark_active(99) is False
        assert vm.active_machine() is None

    def test_require_active_raises_without_active(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame")])
        with pytest.raises(NoSelectionError):
            vm.require_active()

    def test_mark_owned_never_clears(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame", user_owned=True)])
        vm.mark_owned(1, user=False, root=True)
        entry = vm.get_entry(1)
        assert entry.user_owned and entry.root_owned

    def test_can_compose_flag(self, make_entry):
        vm = MachineListViewModel([make_entry(1, "Lame")])
        assert not vm.can_compose_flag()
        vm.mark_active(1)
        assert vm.can_compose_flag()
        vm.mark_owned(1, user=True, root=True)
        assert not vm.can_compose_flag()

    def test_post_status(self):
        vm = MachineListViewModel()
        status = vm.post_status("Loaded", "warning")
        assert vm.status == status
        assert status.severity == "warning"
