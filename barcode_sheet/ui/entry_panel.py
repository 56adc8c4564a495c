# barcode_sheet/ui/entry_panel.py
"""
Entry list: one editor row per label entry plus the Add / Clear All header.

All edits go through the LabelSheet so cell conflicts are refused before
the store changes; the panel redraws itself from the store in sync().
"""
from __future__ import annotations

import logging
from typing import Dict, List

from PySide6 import QtCore, QtGui, QtWidgets

from ..core.barcodes import PREVIEW_OPTIONS, pil_to_qimage, render_symbol
from ..core.exceptions import InvalidSymbologyInput
from ..core.layout import total_cells
from ..core.models import LabelEntry
from ..core.session import LabelSheet
from .cell_selector import CellSelector

logger = logging.getLogger(__name__)

_DOT_VALID = "background: #22c55e; border-radius: 5px;"
_DOT_IDLE = "background: #9ca3af; border-radius: 5px;"


class EntryRow(QtWidgets.QFrame):
    text_edited = QtCore.Signal(str, str)         # entry id, text
    remove_requested = QtCore.Signal(str)
    add_requested = QtCore.Signal()

    def __init__(self, entry_id: str, parent=None):
        super().__init__(parent)
        self.entry_id = entry_id
        self.setFrameShape(QtWidgets.QFrame.StyledPanel)
        self.setObjectName("EntryRow")
        self._build_ui()

    def _build_ui(self):
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(6)

        head = QtWidgets.QHBoxLayout()
        self.dot = QtWidgets.QLabel()
        self.dot.setFixedSize(10, 10)
        self.lbl_title = QtWidgets.QLabel()
        self.lbl_title.setStyleSheet("font-weight: 600;")
        self.lbl_cells = QtWidgets.QLabel()
        self.lbl_cells.setStyleSheet("color: #1d4ed8;")

        self.btn_add = QtWidgets.QToolButton()
        self.btn_add.setText("+")
        self.btn_add.setToolTip("Add new entry")
        self.btn_add.clicked.connect(self.add_requested.emit)

        self.btn_remove = QtWidgets.QToolButton()
        self.btn_remove.setText("✕")
        self.btn_remove.setToolTip("Remove this entry")
        self.btn_remove.clicked.connect(lambda: self.remove_requested.emit(self.entry_id))

        head.addWidget(self.dot)
        head.addWidget(self.lbl_title)
        head.addWidget(self.lbl_cells)
        head.addStretch()
        head.addWidget(self.btn_add)
        head.addWidget(self.btn_remove)
        layout.addLayout(head)

        layout.addWidget(QtWidgets.QLabel("Barcode Content"))
        self.edit_text = QtWidgets.QLineEdit()
        self.edit_text.setPlaceholderText("Enter text or numbers...")
        self.edit_text.textEdited.connect(lambda t: self.text_edited.emit(self.entry_id, t))
        layout.addWidget(self.edit_text)

        self.lbl_positions = QtWidgets.QLabel()
        layout.addWidget(self.lbl_positions)
        self.cell_selector = CellSelector()
        layout.addWidget(self.cell_selector)

        self.lbl_symbol = QtWidgets.QLabel()
        self.lbl_symbol.setAlignment(QtCore.Qt.AlignCenter)
        self.lbl_symbol.setWordWrap(True)
        layout.addWidget(self.lbl_symbol)

    def update_from(self, entry: LabelEntry, number: int, can_remove: bool) -> None:
        self.lbl_title.setText(f"Entry #{number}")
        n = len(entry.cells)
        self.lbl_cells.setText(f"{n} cell{'s' if n != 1 else ''}" if n else "")
        self.lbl_positions.setText(f"Target Positions ({n} selected)")
        self.dot.setStyleSheet(_DOT_VALID if entry.is_valid else _DOT_IDLE)
        self.btn_remove.setVisible(can_remove)

        if self.edit_text.text() != entry.text:
            self.edit_text.setText(entry.text)

        self._update_symbol(entry.text)

    def _update_symbol(self, text: str) -> None:
        if not text:
            self.lbl_symbol.clear()
            self.lbl_symbol.setVisible(False)
            return
        self.lbl_symbol.setVisible(True)
        try:
            qimg = pil_to_qimage(render_symbol(text, PREVIEW_OPTIONS))
        except InvalidSymbologyInput as exc:
            self.lbl_symbol.setStyleSheet("color: #dc2626;")
            self.lbl_symbol.setText(str(exc))
            return
        self.lbl_symbol.setStyleSheet("")
        pix = QtGui.QPixmap.fromImage(qimg).scaledToHeight(48, QtCore.Qt.SmoothTransformation)
        self.lbl_symbol.setPixmap(pix)


class EntryPanel(QtWidgets.QWidget):
    def __init__(self, sheet: LabelSheet, parent=None):
        super().__init__(parent)
        self.sheet = sheet
        self.rows: Dict[str, EntryRow] = {}
        self._order: List[str] = []
        self._build_ui()
        self.sync()

    def _build_ui(self):
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        head = QtWidgets.QHBoxLayout()
        self.lbl_count = QtWidgets.QLabel()
        self.lbl_count.setStyleSheet("font-weight: 600;")
        self.btn_add = QtWidgets.QPushButton("Add")
        self.btn_add.clicked.connect(self._on_add)
        self.btn_clear_all = QtWidgets.QPushButton("Clear All")
        self.btn_clear_all.clicked.connect(self._on_clear_all)
        head.addWidget(self.lbl_count)
        head.addStretch()
        head.addWidget(self.btn_add)
        head.addWidget(self.btn_clear_all)
        layout.addLayout(head)

        self.lbl_stats = QtWidgets.QLabel()
        self.lbl_stats.setStyleSheet("color: #4b5563;")
        layout.addWidget(self.lbl_stats)

        self.rows_host = QtWidgets.QWidget()
        self.rows_layout = QtWidgets.QVBoxLayout(self.rows_host)
        self.rows_layout.setContentsMargins(0, 0, 0, 0)
        self.rows_layout.addStretch()

        scroll = QtWidgets.QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.rows_host)
        layout.addWidget(scroll, 1)

    # ---- store -> widgets ----
    def sync(self) -> None:
        entries = self.sheet.entries()
        ids = [e.id for e in entries]
        if ids != self._order:
            self._rebuild_rows(ids)

        can_remove = len(entries) > 1
        total = total_cells(self.sheet.spec)
        for number, entry in enumerate(entries, start=1):
            row = self.rows[entry.id]
            row.update_from(entry, number, can_remove)
            row.cell_selector.set_state(
                total,
                entry.cells,
                self.sheet.occupancy.occupied_cells(exclude=entry.id),
            )

        stats = self.sheet.stats()
        self.lbl_count.setText(f"Barcode Entries ({stats.entries})")
        self.lbl_stats.setText(
            f"Valid: {stats.valid}    Cells Used: {stats.cells_used}/{stats.total_cells}"
        )
        self.btn_clear_all.setVisible(can_remove)

    def _rebuild_rows(self, ids: List[str]) -> None:
        for entry_id in list(self.rows):
            if entry_id not in ids:
                row = self.rows.pop(entry_id)
                self.rows_layout.removeWidget(row)
                row.deleteLater()

        for entry_id in ids:
            if entry_id not in self.rows:
                self.rows[entry_id] = self._make_row(entry_id)

        # re-insert in store order, ahead of the trailing stretch
        for pos, entry_id in enumerate(ids):
            row = self.rows[entry_id]
            self.rows_layout.removeWidget(row)
            self.rows_layout.insertWidget(pos, row)
        self._order = list(ids)

    def _make_row(self, entry_id: str) -> EntryRow:
        row = EntryRow(entry_id, self.rows_host)
        row.text_edited.connect(self._on_text_edited)
        row.remove_requested.connect(self._on_remove)
        row.add_requested.connect(self._on_add)
        sel = row.cell_selector
        sel.cell_toggled.connect(lambda cell, eid=entry_id: self.sheet.toggle_cell(eid, cell))
        sel.select_all_requested.connect(
            lambda search, eid=entry_id: self.sheet.toggle_select_all(eid, search)
        )
        sel.clear_requested.connect(lambda eid=entry_id: self.sheet.clear_cells(eid))
        return row

    # ---- widgets -> sheet ----
    def _on_text_edited(self, entry_id: str, text: str):
        self.sheet.set_text(entry_id, text)

    def _on_add(self):
        self.sheet.add_entry()

    def _on_remove(self, entry_id: str):
        self.sheet.remove_entry(entry_id)

    def _on_clear_all(self):
        answer = QtWidgets.QMessageBox.question(
            self,
            "Clear All",
            "Remove all entries except the first one?",
        )
        if answer == QtWidgets.QMessageBox.Yes:
            logger.info("Clearing all entries except the first")
            self.sheet.clear_all()
