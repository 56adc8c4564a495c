# barcode_sheet/core/session.py
"""
Sheet session: the active layout, the entry store and its occupancy index.

This is the caller-side half of the occupancy contract. Every cell change
coming from the UI goes through here, gets checked against the index, and
is refused before the store is touched if it would break the
one-owner-per-cell rule.

Qt-free so it can be driven from tests and scripts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .exceptions import CellConflict
from .layout import DEFAULT_LAYOUT, LayoutSpec, check_cell, get_layout, total_cells
from .models import EntryStore, LabelEntry
from .occupancy import OccupancyIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetStats:
    entries: int
    valid: int
    cells_used: int
    total_cells: int


class LabelSheet:
    def __init__(self, layout_name: str = DEFAULT_LAYOUT, store: Optional[EntryStore] = None):
        self.layout_name = layout_name
        self.spec: LayoutSpec = get_layout(layout_name)
        self.store = store if store is not None else EntryStore()
        self.occupancy = OccupancyIndex(self.spec)
        self.occupancy.attach(self.store)

    # ---- layout ----
    def set_layout(self, name: str) -> None:
        spec = get_layout(name)
        self.layout_name = name
        self.spec = spec
        self.occupancy.set_spec(spec)

        # drop assignments the new grid can't address
        limit = total_cells(spec)
        for entry in self.store.entries():
            kept = frozenset(c for c in entry.cells if c <= limit)
            if kept != entry.cells:
                logger.info(
                    "Layout %s: dropped %d out-of-range cell(s) from entry %s",
                    name, len(entry.cells - kept), entry.id,
                )
                self.store.update(entry.id, cells=kept)
        logger.debug("Layout switched to %s", name)

    # ---- entries ----
    def entries(self) -> List[LabelEntry]:
        return list(self.store.entries())

    def add_entry(self) -> LabelEntry:
        return self.store.add()

    def remove_entry(self, entry_id: str) -> bool:
        return self.store.remove(entry_id)

    def clear_all(self) -> None:
        self.store.keep_first()

    def set_text(self, entry_id: str, text: str) -> None:
        self.store.update(entry_id, text=text)

    def valid_entries(self) -> List[LabelEntry]:
        return self.store.valid_entries()

    # ---- cells ----
    def assign_cells(self, entry_id: str, cells: Iterable[int]) -> LabelEntry:
        """
        Replace the cell set of *entry_id*.

        Raises OutOfRange / CellConflict and leaves the store untouched if
        any requested cell is outside the grid or owned by another entry.
        """
        cells = frozenset(cells)
        for cell in cells:
            check_cell(cell, self.spec)
        conflicts = self.occupancy.conflicts_for(entry_id, cells)
        if conflicts:
            raise CellConflict(conflicts, self.occupancy.owners_of(conflicts))
        return self.store.update(entry_id, cells=cells)

    def toggle_cell(self, entry_id: str, cell: int) -> bool:
        """
        Add or remove a single cell. Cells held by other entries are
        ignored; returns True if the selection changed.
        """
        check_cell(cell, self.spec)
        if self.occupancy.conflicts_for(entry_id, [cell]):
            return False
        current = self.store.get(entry_id).cells
        if cell in current:
            self.store.update(entry_id, cells=current - {cell})
        else:
            self.store.update(entry_id, cells=current | {cell})
        return True

    def toggle_select_all(self, entry_id: str, search: str = "") -> None:
        """
        Select every available cell matching *search*, or deselect them if
        they are all selected already.
        """
        available = set(self.occupancy.available_cells(entry_id, search))
        current = self.store.get(entry_id).cells
        if available and available <= current:
            self.store.update(entry_id, cells=current - available)
        else:
            self.store.update(entry_id, cells=current | available)

    def clear_cells(self, entry_id: str) -> None:
        self.store.update(entry_id, cells=frozenset())

    # ---- summary ----
    def stats(self) -> SheetStats:
        entries = self.store.entries()
        return SheetStats(
            entries=len(entries),
            valid=sum(1 for e in entries if e.is_valid),
            cells_used=sum(len(e.cells) for e in entries),
            total_cells=total_cells(self.spec),
        )
