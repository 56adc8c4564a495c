# barcode_sheet/core/occupancy.py
"""
Cell -> entry ownership index.

Kept up to date incrementally from EntryStore events instead of being
rebuilt on every query. The index only answers questions; it never drops
or moves cells. Callers (the sheet session / UI) must reject an assignment
that conflicts_for() reports on.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

from .layout import LayoutSpec, cell_indices, check_cell
from .models import EntryStore, LabelEntry, StoreEvent


class OccupancyIndex:
    def __init__(self, spec: LayoutSpec):
        self.spec = spec
        # owners in claim order; more than one owner is a caller bug
        self._owners: Dict[int, List[str]] = {}
        self._store: Optional[EntryStore] = None

    # ---- wiring ----
    def attach(self, store: EntryStore) -> None:
        """Rebuild from *store* and follow its future mutations."""
        self.detach()
        self._store = store
        self.rebuild(store.entries())
        store.add_listener(self._on_store_event)

    def detach(self) -> None:
        if self._store is not None:
            self._store.remove_listener(self._on_store_event)
            self._store = None

    def set_spec(self, spec: LayoutSpec) -> None:
        self.spec = spec
        if self._store is not None:
            self.rebuild(self._store.entries())

    def rebuild(self, entries: Iterable[LabelEntry]) -> None:
        self._owners.clear()
        for entry in entries:
            self._claim(entry.id, entry.cells)

    def _claim(self, entry_id: str, cells: Iterable[int]) -> None:
        for cell in cells:
            owners = self._owners.setdefault(cell, [])
            if entry_id not in owners:
                owners.append(entry_id)

    def _release(self, entry_id: str, cells: Iterable[int]) -> None:
        for cell in cells:
            owners = self._owners.get(cell)
            if not owners:
                continue
            if entry_id in owners:
                owners.remove(entry_id)
            if not owners:
                del self._owners[cell]

    def _on_store_event(self, event: StoreEvent) -> None:
        self._release(event.entry_id, event.previous_cells - event.cells)
        self._claim(event.entry_id, event.cells - event.previous_cells)

    # ---- queries ----
    def occupied_by(self, cell_index: int) -> Optional[str]:
        check_cell(cell_index, self.spec)
        owners = self._owners.get(cell_index)
        return owners[0] if owners else None

    def conflicts_for(self, candidate_id: str, proposed_cells: Iterable[int]) -> Set[int]:
        """
        Cells in *proposed_cells* already owned by an entry other than
        *candidate_id*. Raises OutOfRange for cells outside the grid.
        """
        conflicts: Set[int] = set()
        for cell in proposed_cells:
            check_cell(cell, self.spec)
            owners = self._owners.get(cell, ())
            if any(owner != candidate_id for owner in owners):
                conflicts.add(cell)
        return conflicts

    def owners_of(self, cells: Iterable[int]) -> Dict[int, str]:
        """First owner of each occupied cell in *cells*."""
        result: Dict[int, str] = {}
        for cell in cells:
            owners = self._owners.get(cell)
            if owners:
                result[cell] = owners[0]
        return result

    def occupied_cells(self, exclude: Optional[str] = None) -> Set[int]:
        """Cells owned by any entry other than *exclude*."""
        return {
            cell
            for cell, owners in self._owners.items()
            if any(owner != exclude for owner in owners)
        }

    def available_cells(self, entry_id: str, search: str = "") -> List[int]:
        """
        Cells *entry_id* could take, ascending, optionally narrowed to cell
        numbers whose digits contain *search*.
        """
        taken = self.occupied_cells(exclude=entry_id)
        search = (search or "").strip()
        return [
            cell
            for cell in cell_indices(self.spec)
            if cell not in taken and search in str(cell)
        ]

    def violations(self) -> Dict[int, List[str]]:
        """Cells claimed by more than one entry."""
        return {
            cell: list(owners)
            for cell, owners in self._owners.items()
            if len(owners) > 1
        }
