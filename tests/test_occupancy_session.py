"""
Tests for the entry store, the occupancy index and the sheet session.

These cover the one-owner-per-cell rule end to end: the index follows the
store, the session refuses conflicting or out-of-range assignments before
touching the store, and a random edit sequence never breaks the invariant.
"""
from __future__ import annotations

import random

import pytest

from barcode_sheet.core.exceptions import CellConflict, OutOfRange
from barcode_sheet.core.layout import get_layout
from barcode_sheet.core.models import EntryStore, LabelEntry, StoreEvent
from barcode_sheet.core.occupancy import OccupancyIndex
from barcode_sheet.core.session import LabelSheet


@pytest.fixture()
def sheet():
    return LabelSheet("40L")


# ---------------------------------------------------------------------------
# Entry store
# ---------------------------------------------------------------------------

class TestEntryStore:
    def test_starts_with_one_entry_on_cell_one(self):
        store = EntryStore()
        assert len(store) == 1
        (entry,) = store.entries()
        assert entry.text == ""
        assert entry.cells == frozenset({1})
        assert not entry.is_valid

    def test_last_entry_cannot_be_removed(self):
        store = EntryStore()
        only = store.entries()[0]
        assert store.remove(only.id) is False
        assert len(store) == 1

    def test_listener_sees_previous_and_new_cells(self):
        store = EntryStore()
        seen = []
        store.add_listener(seen.append)
        entry = store.entries()[0]
        store.update(entry.id, cells={2, 3})
        assert seen == [StoreEvent("updated", entry.id, frozenset({1}), frozenset({2, 3}))]

    def test_ids_are_unique(self):
        store = EntryStore()
        for _ in range(20):
            store.add()
        ids = [e.id for e in store]
        assert len(set(ids)) == len(ids)

    def test_snapshot_is_detached(self):
        store = EntryStore()
        entry = store.entries()[0]
        snap = store.snapshot()
        store.update(entry.id, text="changed", cells={9})
        assert snap[0].text == ""
        assert snap[0].cells == frozenset({1})

    def test_keep_first(self):
        store = EntryStore()
        first = store.entries()[0]
        store.add()
        store.add()
        store.keep_first()
        assert [e.id for e in store] == [first.id]

    def test_validity_needs_text_and_cells(self):
        assert LabelEntry(text="ABC", cells={1}).is_valid
        assert not LabelEntry(text="   ", cells={1}).is_valid
        assert not LabelEntry(text="ABC").is_valid

    def test_dict_round_trip_keeps_id(self):
        entry = LabelEntry(text="X1", cells={3, 1})
        back = LabelEntry.from_dict(entry.to_dict())
        assert back == entry
        assert entry.to_dict()["cells"] == [1, 3]


# ---------------------------------------------------------------------------
# Occupancy index
# ---------------------------------------------------------------------------

class TestOccupancyIndex:
    def test_follows_store_updates(self):
        store = EntryStore()
        index = OccupancyIndex(get_layout("40L"))
        index.attach(store)
        entry = store.entries()[0]
        assert index.occupied_by(1) == entry.id

        store.update(entry.id, cells={4, 5})
        assert index.occupied_by(1) is None
        assert index.occupied_by(4) == entry.id
        assert index.occupied_by(5) == entry.id

    def test_removal_releases_cells(self):
        store = EntryStore()
        index = OccupancyIndex(get_layout("40L"))
        index.attach(store)
        other = store.add()
        store.update(other.id, cells={10})
        store.remove(other.id)
        assert index.occupied_by(10) is None

    def test_conflicts_ignore_own_cells(self):
        store = EntryStore()
        index = OccupancyIndex(get_layout("40L"))
        index.attach(store)
        first = store.entries()[0]
        second = store.add()
        assert index.conflicts_for(first.id, {1, 2}) == set()
        assert index.conflicts_for(second.id, {1, 2}) == {1}

    def test_conflicts_for_out_of_range(self):
        index = OccupancyIndex(get_layout("40L"))
        with pytest.raises(OutOfRange):
            index.conflicts_for("x", {66})

    def test_occupied_by_out_of_range(self):
        index = OccupancyIndex(get_layout("40L"))
        with pytest.raises(OutOfRange):
            index.occupied_by(0)

    def test_available_cells_search(self):
        store = EntryStore()
        index = OccupancyIndex(get_layout("40L"))
        index.attach(store)
        other = store.add()
        # cell 1 belongs to the first entry
        assert index.available_cells(other.id, "1")[:3] == [10, 11, 12]
        assert 1 not in index.available_cells(other.id)
        assert len(index.available_cells(other.id)) == 64

    def test_detach_stops_following(self):
        store = EntryStore()
        index = OccupancyIndex(get_layout("40L"))
        index.attach(store)
        index.detach()
        store.update(store.entries()[0].id, cells={7})
        assert index.occupied_by(7) is None


# ---------------------------------------------------------------------------
# Sheet session
# ---------------------------------------------------------------------------

class TestAssignCells:
    def test_conflict_leaves_store_unchanged(self, sheet):
        """Two entries asking for cell 5: the second is refused on cell 5."""
        first = sheet.entries()[0]
        second = sheet.add_entry()
        sheet.assign_cells(first.id, {5})

        before = sheet.store.snapshot()
        with pytest.raises(CellConflict) as info:
            sheet.assign_cells(second.id, {4, 5})
        assert info.value.cells == (5,)
        assert info.value.owners == {5: first.id}
        assert sheet.store.snapshot() == before
        assert sheet.occupancy.occupied_by(5) == first.id
        assert sheet.occupancy.occupied_by(4) is None

    def test_out_of_range_leaves_store_unchanged(self, sheet):
        entry = sheet.entries()[0]
        with pytest.raises(OutOfRange):
            sheet.assign_cells(entry.id, {2, 66})
        assert sheet.store.get(entry.id).cells == frozenset({1})

    def test_reassigning_own_cells_is_fine(self, sheet):
        entry = sheet.entries()[0]
        sheet.assign_cells(entry.id, {1, 2, 3})
        assert sheet.store.get(entry.id).cells == frozenset({1, 2, 3})


class TestToggle:
    def test_toggle_on_and_off(self, sheet):
        entry = sheet.entries()[0]
        assert sheet.toggle_cell(entry.id, 7) is True
        assert 7 in sheet.store.get(entry.id).cells
        assert sheet.toggle_cell(entry.id, 7) is True
        assert 7 not in sheet.store.get(entry.id).cells

    def test_toggle_foreign_cell_refused(self, sheet):
        second = sheet.add_entry()
        assert sheet.toggle_cell(second.id, 1) is False
        assert sheet.store.get(second.id).cells == frozenset()

    def test_select_all_takes_every_free_cell(self, sheet):
        first = sheet.entries()[0]
        second = sheet.add_entry()
        sheet.toggle_select_all(second.id)
        assert sheet.store.get(second.id).cells == frozenset(range(2, 66))
        assert sheet.occupancy.occupied_by(1) == first.id

    def test_select_all_again_deselects(self, sheet):
        second = sheet.add_entry()
        sheet.toggle_select_all(second.id)
        sheet.toggle_select_all(second.id)
        assert sheet.store.get(second.id).cells == frozenset()

    def test_select_all_with_search(self, sheet):
        entry = sheet.entries()[0]
        sheet.clear_cells(entry.id)
        sheet.toggle_select_all(entry.id, "6")
        assert sheet.store.get(entry.id).cells == frozenset({6, 16, 26, 36, 46, 56, 60, 61, 62, 63, 64, 65})

    def test_select_all_keeps_cells_outside_filter(self, sheet):
        entry = sheet.entries()[0]
        sheet.toggle_select_all(entry.id, "2")
        assert 1 in sheet.store.get(entry.id).cells
        sheet.toggle_select_all(entry.id, "2")
        assert sheet.store.get(entry.id).cells == frozenset({1})


class TestSheetSession:
    def test_remove_last_entry_refused(self, sheet):
        only = sheet.entries()[0]
        assert sheet.remove_entry(only.id) is False
        assert len(sheet.entries()) == 1

    def test_clear_all_keeps_first(self, sheet):
        first = sheet.entries()[0]
        sheet.add_entry()
        sheet.add_entry()
        sheet.clear_all()
        assert [e.id for e in sheet.entries()] == [first.id]

    def test_stats(self, sheet):
        first = sheet.entries()[0]
        sheet.set_text(first.id, "ABC")
        second = sheet.add_entry()
        sheet.assign_cells(second.id, {2, 3})
        stats = sheet.stats()
        assert stats.entries == 2
        assert stats.valid == 1
        assert stats.cells_used == 3
        assert stats.total_cells == 65

    def test_layout_switch_keeps_assignments(self, sheet):
        entry = sheet.entries()[0]
        sheet.assign_cells(entry.id, {1, 65})
        sheet.set_layout("80L")
        assert sheet.spec.name == "80L"
        assert sheet.store.get(entry.id).cells == frozenset({1, 65})
        assert sheet.occupancy.occupied_by(65) == entry.id

    def test_valid_entries(self, sheet):
        first = sheet.entries()[0]
        assert sheet.valid_entries() == []
        sheet.set_text(first.id, "123")
        assert [e.id for e in sheet.valid_entries()] == [first.id]


class TestRandomEdits:
    @pytest.mark.parametrize("seed", [1, 7, 42, 2024])
    def test_occupancy_invariant_holds(self, seed):
        """
        Random add/update/remove sequence where every assignment goes
        through the session: no cell ever has two owners and the index
        always matches a rebuild from the store.
        """
        rng = random.Random(seed)
        sheet = LabelSheet("65L")

        for _ in range(300):
            entries = sheet.entries()
            action = rng.random()
            if action < 0.15:
                sheet.add_entry()
            elif action < 0.25:
                sheet.remove_entry(rng.choice(entries).id)
            elif action < 0.6:
                entry = rng.choice(entries)
                cells = set(rng.sample(range(1, 66), rng.randint(0, 6)))
                try:
                    sheet.assign_cells(entry.id, cells)
                except CellConflict:
                    pass
            else:
                entry = rng.choice(entries)
                sheet.toggle_cell(entry.id, rng.randint(1, 65))

            assert sheet.occupancy.violations() == {}

            claimed = {}
            for entry in sheet.entries():
                for cell in entry.cells:
                    assert cell not in claimed
                    claimed[cell] = entry.id
            for cell in range(1, 66):
                assert sheet.occupancy.occupied_by(cell) == claimed.get(cell)
