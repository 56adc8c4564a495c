from __future__ import annotations
import copy
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------- Label entry ----------

@dataclass
class LabelEntry:
    text: str = ""
    cells: FrozenSet[int] = field(default_factory=frozenset)
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        self.cells = frozenset(self.cells)

    @property
    def is_valid(self) -> bool:
        """Exportable: has non-blank text and at least one cell."""
        return bool(self.text.strip()) and bool(self.cells)

    def sorted_cells(self) -> List[int]:
        return sorted(self.cells)

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "text": self.text, "cells": self.sorted_cells()}

    @staticmethod
    def from_dict(d: Dict[str, object]) -> "LabelEntry":
        return LabelEntry(
            text=str(d.get("text", "")),
            cells=frozenset(int(c) for c in d.get("cells", ())),  # type: ignore[union-attr]
            id=str(d.get("id") or _new_id()),
        )


# ---------- Store events ----------

@dataclass(frozen=True)
class StoreEvent:
    kind: str                           # "added" | "removed" | "updated"
    entry_id: str
    previous_cells: FrozenSet[int] = frozenset()
    cells: FrozenSet[int] = frozenset()


StoreListener = Callable[[StoreEvent], None]


# ---------- Entry store ----------

class EntryStore:
    """
    Ordered collection of label entries.

    Insertion order is kept for display only. The store never validates cell
    assignments; callers check the occupancy index before calling update().
    It always holds at least one entry.
    """

    def __init__(self, initial: Optional[Iterable[LabelEntry]] = None):
        self._entries: List[LabelEntry] = list(initial or [])
        if not self._entries:
            self._entries.append(LabelEntry(cells=frozenset({1})))
        self._listeners: List[StoreListener] = []

    # ---- observers ----
    def add_listener(self, callback: StoreListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StoreListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, event: StoreEvent) -> None:
        for callback in list(self._listeners):
            callback(event)

    # ---- reads ----
    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LabelEntry]:
        return iter(tuple(self._entries))

    def __contains__(self, entry_id: object) -> bool:
        return any(e.id == entry_id for e in self._entries)

    def entries(self) -> Tuple[LabelEntry, ...]:
        return tuple(self._entries)

    def get(self, entry_id: str) -> LabelEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise KeyError(entry_id)

    def index_of(self, entry_id: str) -> int:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return i
        raise KeyError(entry_id)

    def valid_entries(self) -> List[LabelEntry]:
        return [e for e in self._entries if e.is_valid]

    def snapshot(self) -> List[LabelEntry]:
        """Deep copy for readers that must not see later mutations."""
        return copy.deepcopy(self._entries)

    # ---- writes ----
    def add(self) -> LabelEntry:
        entry = LabelEntry()
        self._entries.append(entry)
        self._notify(StoreEvent("added", entry.id, frozenset(), entry.cells))
        return entry

    def remove(self, entry_id: str) -> bool:
        """Remove an entry; refused (returns False) for the last one."""
        if len(self._entries) <= 1:
            return False
        idx = self.index_of(entry_id)
        entry = self._entries.pop(idx)
        self._notify(StoreEvent("removed", entry.id, entry.cells, frozenset()))
        return True

    def update(
        self,
        entry_id: str,
        text: Optional[str] = None,
        cells: Optional[Iterable[int]] = None,
    ) -> LabelEntry:
        entry = self.get(entry_id)
        previous = entry.cells
        if text is not None:
            entry.text = text
        if cells is not None:
            entry.cells = frozenset(cells)
        self._notify(StoreEvent("updated", entry.id, previous, entry.cells))
        return entry

    def keep_first(self) -> None:
        """Drop every entry except the first one ("Clear All")."""
        for entry in list(self._entries[1:]):
            self.remove(entry.id)
