"""
UI smoke and contract tests - fast, headless, no clicking.

These tests verify that the UI modules import cleanly and that MainWindow
wires the entry panel, cell selectors, preview and download button to one
LabelSheet without crashing.

Requirements to run:
    Set RUN_QT_TESTS=1 environment variable.

Run locally:
    RUN_QT_TESTS=1 pytest tests/test_ui_smoke.py -v
    # PowerShell:
    $env:RUN_QT_TESTS="1"; pytest tests/test_ui_smoke.py -v
"""

import os

# ── Headless setup (must precede any PySide6 import) ──────────────────
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

# ── Skip gate ─────────────────────────────────────────────────────────
_qt_tests_enabled = os.environ.get("RUN_QT_TESTS") == "1"
if not _qt_tests_enabled:
    pytest.skip(
        "Qt smoke tests disabled. Set RUN_QT_TESTS=1 to enable.",
        allow_module_level=True,
    )

PySide6 = pytest.importorskip("PySide6", reason="PySide6 required for UI smoke tests")

from PySide6 import QtWidgets

pytestmark = pytest.mark.qt_integration


# ── Fixtures ──────────────────────────────────────────────────────────

@pytest.fixture(scope="module")
def qapp():
    """Create or reuse a QApplication for the entire module."""
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    if app is None:
        pytest.skip("Could not create QApplication (no display available)")
    yield app


@pytest.fixture()
def window(qapp):
    """A fresh MainWindow per test; each owns its own LabelSheet."""
    from barcode_sheet.ui.main_window import MainWindow

    win = MainWindow()
    yield win
    win.close()


# ══════════════════════════════════════════════════════════════════════
# Test 1 - Import smoke
# ══════════════════════════════════════════════════════════════════════

class TestImportSmoke:
    """Every UI module must be importable without side effects."""

    def test_import_widgets(self):
        from barcode_sheet.ui.cell_selector import CellSelector
        from barcode_sheet.ui.entry_panel import EntryPanel, EntryRow
        from barcode_sheet.ui.preview import SheetPreviewScene
        from barcode_sheet.ui.views import SheetView
        assert CellSelector is not None
        assert EntryPanel is not None and EntryRow is not None
        assert SheetPreviewScene is not None
        assert SheetView is not None

    def test_import_app(self):
        from barcode_sheet.app import main
        assert callable(main)


# ══════════════════════════════════════════════════════════════════════
# Test 2 - MainWindow contract
# ══════════════════════════════════════════════════════════════════════

class TestMainWindowContract:
    def test_construct(self, window):
        assert isinstance(window, QtWidgets.QMainWindow)
        assert window.scene is window.view.scene()

    def test_layout_combo_lists_all_formats(self, window):
        names = [window.cmb_layout.itemData(i) for i in range(window.cmb_layout.count())]
        assert names == ["40L", "80L", "65L"]

    def test_menus(self, window):
        clean = [a.text().replace("&", "") for a in window.menuBar().actions()]
        for expected in ("File", "View"):
            assert expected in clean

    def test_download_disabled_without_valid_entries(self, window):
        assert not window.btn_download.isEnabled()

    def test_download_enabled_after_text(self, window):
        entry = window.sheet.entries()[0]
        window.sheet.set_text(entry.id, "ABC")
        assert window.btn_download.isEnabled()

    def test_busy_state_relabels_button(self, window):
        window._on_busy_changed(True)
        assert window.btn_download.text() == "Generating PDF..."
        assert not window.act_export.isEnabled()
        window._on_busy_changed(False)
        assert window.act_export.isEnabled()
        assert window.btn_download.text() == "Download PDF"


# ══════════════════════════════════════════════════════════════════════
# Test 3 - Store -> widgets
# ══════════════════════════════════════════════════════════════════════

class TestEntryPanelSync:
    def test_rows_follow_store(self, window):
        panel = window.entry_panel
        assert len(panel.rows) == 1
        added = window.sheet.add_entry()
        assert len(panel.rows) == 2
        window.sheet.remove_entry(added.id)
        assert len(panel.rows) == 1

    def test_remove_hidden_for_last_entry(self, window):
        (row,) = window.entry_panel.rows.values()
        assert row.btn_remove.isHidden()

    def test_foreign_cells_disabled_in_selector(self, window):
        second = window.sheet.add_entry()
        selector = window.entry_panel.rows[second.id].cell_selector
        assert not selector._buttons[1].isEnabled()
        assert selector._buttons[2].isEnabled()

    def test_selector_click_assigns_cell(self, window):
        entry = window.sheet.entries()[0]
        selector = window.entry_panel.rows[entry.id].cell_selector
        selector._buttons[7].click()
        assert 7 in window.sheet.store.get(entry.id).cells

    def test_preview_refresh_is_debounced(self, qapp, window):
        entry = window.sheet.entries()[0]
        window.sheet.set_text(entry.id, "DEBOUNCE")
        assert window._preview_timer.isActive()
        window.refresh_preview()
        assert not window._preview_timer.isActive()
        assert window.scene.cell_items[1].state == "filled"

    def test_layout_change_updates_preview(self, window):
        idx = window.cmb_layout.findData("65L")
        window.cmb_layout.setCurrentIndex(idx)
        assert window.sheet.layout_name == "65L"
        assert len(window.scene.cell_items) == 65


class TestCellSelector:
    def test_filter_and_footer(self, qapp):
        from barcode_sheet.ui.cell_selector import CellSelector

        sel = CellSelector()
        sel.set_state(65, [1, 2], [3])
        sel.search.setText("1")
        assert sel.filtered_cells()[:3] == [1, 10, 11]
        assert sel.lbl_footer.text().startswith("Showing 16 of 65 cells")
        assert "(1 occupied)" in sel.lbl_footer.text()

    def test_select_all_label(self, qapp):
        from barcode_sheet.ui.cell_selector import CellSelector

        sel = CellSelector()
        sel.set_state(65, range(1, 66), [])
        assert sel.btn_select_all.text() == "Deselect All"
        sel.set_state(65, [1], [])
        assert sel.btn_select_all.text() == "Select All"

    def test_summary_text(self):
        from barcode_sheet.ui.cell_selector import selection_summary

        assert selection_summary([]) == "No cells selected"
        assert selection_summary([4]) == "Cell 4"
        assert selection_summary([1, 2, 3]) == "3 cells selected"
