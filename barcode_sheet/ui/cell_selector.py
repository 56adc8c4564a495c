# barcode_sheet/ui/cell_selector.py

from __future__ import annotations

from typing import Dict, Iterable, List, Set

from PySide6 import QtCore, QtWidgets

GRID_COLUMNS = 5
PREVIEW_CHIPS = 8


def selection_summary(selected: List[int]) -> str:
    if not selected:
        return "No cells selected"
    if len(selected) == 1:
        return f"Cell {selected[0]}"
    return f"{len(selected)} cells selected"


class CellSelector(QtWidgets.QWidget):
    """
    Collapsible picker for the cells of one entry.

    Purely a view: it emits requests and is told what to show via
    set_state(). Cells owned by other entries are shown disabled.
    """
    cell_toggled = QtCore.Signal(int)
    select_all_requested = QtCore.Signal(str)   # current search text
    clear_requested = QtCore.Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._total = 0
        self._selected: List[int] = []
        self._occupied: Set[int] = set()
        self._buttons: Dict[int, QtWidgets.QPushButton] = {}
        self._build_ui()

    # ---- ui ----
    def _build_ui(self):
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        self.btn_toggle = QtWidgets.QToolButton()
        self.btn_toggle.setCheckable(True)
        self.btn_toggle.setToolButtonStyle(QtCore.Qt.ToolButtonTextOnly)
        self.btn_toggle.setSizePolicy(
            QtWidgets.QSizePolicy.Expanding,
            QtWidgets.QSizePolicy.Fixed,
        )
        self.btn_toggle.toggled.connect(self._on_expand)
        layout.addWidget(self.btn_toggle)

        self.lbl_chips = QtWidgets.QLabel()
        self.lbl_chips.setStyleSheet("color: #1d4ed8;")
        layout.addWidget(self.lbl_chips)

        # --- dropdown panel ---
        self.panel = QtWidgets.QFrame()
        self.panel.setFrameShape(QtWidgets.QFrame.StyledPanel)
        panel_layout = QtWidgets.QVBoxLayout(self.panel)

        self.search = QtWidgets.QLineEdit()
        self.search.setPlaceholderText("Search cell number...")
        self.search.setClearButtonEnabled(True)
        self.search.textChanged.connect(self._apply_filter)
        panel_layout.addWidget(self.search)

        row = QtWidgets.QHBoxLayout()
        self.btn_select_all = QtWidgets.QPushButton("Select All")
        self.btn_select_all.clicked.connect(
            lambda: self.select_all_requested.emit(self.search.text().strip())
        )
        self.btn_clear = QtWidgets.QPushButton("Clear")
        self.btn_clear.clicked.connect(self.clear_requested.emit)
        row.addWidget(self.btn_select_all)
        row.addStretch()
        row.addWidget(self.btn_clear)
        panel_layout.addLayout(row)

        self.grid_host = QtWidgets.QWidget()
        self.grid = QtWidgets.QGridLayout(self.grid_host)
        self.grid.setSpacing(3)
        scroll = QtWidgets.QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.grid_host)
        scroll.setMaximumHeight(220)
        panel_layout.addWidget(scroll)

        self.lbl_footer = QtWidgets.QLabel()
        self.lbl_footer.setAlignment(QtCore.Qt.AlignCenter)
        panel_layout.addWidget(self.lbl_footer)

        self.panel.setVisible(False)
        layout.addWidget(self.panel)

    def _rebuild_grid(self):
        for btn in self._buttons.values():
            self.grid.removeWidget(btn)
            btn.deleteLater()
        self._buttons.clear()

        for cell in range(1, self._total + 1):
            btn = QtWidgets.QPushButton(str(cell), self.grid_host)
            btn.setCheckable(True)
            btn.setMinimumHeight(28)
            btn.clicked.connect(lambda _checked=False, c=cell: self.cell_toggled.emit(c))
            self._buttons[cell] = btn
        self._apply_filter()

    # ---- state ----
    def set_state(self, total_cells: int, selected: Iterable[int], occupied: Iterable[int]) -> None:
        rebuild = total_cells != self._total
        self._total = total_cells
        self._selected = sorted(selected)
        self._occupied = set(occupied)
        if rebuild:
            self._rebuild_grid()
        self._refresh()

    def filtered_cells(self) -> List[int]:
        term = self.search.text().strip()
        return [c for c in range(1, self._total + 1) if term in str(c)]

    def all_available_selected(self) -> bool:
        available = [c for c in self.filtered_cells() if c not in self._occupied]
        return bool(available) and all(c in self._selected for c in available)

    def _apply_filter(self, *_):
        # re-lay the visible buttons so the grid has no holes
        for btn in self._buttons.values():
            self.grid.removeWidget(btn)
            btn.setVisible(False)
        for i, cell in enumerate(self.filtered_cells()):
            btn = self._buttons[cell]
            self.grid.addWidget(btn, i // GRID_COLUMNS, i % GRID_COLUMNS)
            btn.setVisible(True)
        self._refresh()

    def _refresh(self):
        selected = set(self._selected)
        self.btn_toggle.setText(
            f"{selection_summary(self._selected)}    {len(self._selected)}/{self._total}"
        )

        if len(self._selected) > 1 and not self.btn_toggle.isChecked():
            chips = ", ".join(str(c) for c in self._selected[:PREVIEW_CHIPS])
            if len(self._selected) > PREVIEW_CHIPS:
                chips += f"  +{len(self._selected) - PREVIEW_CHIPS} more"
            self.lbl_chips.setText(chips)
            self.lbl_chips.setVisible(True)
        else:
            self.lbl_chips.setVisible(False)

        for cell, btn in self._buttons.items():
            occupied = cell in self._occupied
            btn.setEnabled(not occupied)
            btn.setChecked(cell in selected and not occupied)
            if occupied:
                btn.setStyleSheet("background: #fee2e2; color: #f87171;")
                btn.setToolTip("Used by another entry")
            else:
                btn.setStyleSheet("")
                btn.setToolTip("")

        self.btn_select_all.setText(
            "Deselect All" if self.all_available_selected() else "Select All"
        )
        self.btn_clear.setVisible(bool(self._selected))

        footer = f"Showing {len(self.filtered_cells())} of {self._total} cells"
        if self._occupied:
            footer += f"  ({len(self._occupied)} occupied)"
        self.lbl_footer.setText(footer)

    def _on_expand(self, expanded: bool):
        self.panel.setVisible(expanded)
        self._refresh()
