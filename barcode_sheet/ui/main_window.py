from __future__ import annotations

import logging
import os
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets

from ..core.layout import DEFAULT_LAYOUT, LAYOUTS
from ..core.models import StoreEvent
from ..core.session import LabelSheet
from ..core.utils import DEFAULT_FILENAME, with_pdf_extension
from ..export.renderer import ExportReport
from ..export.worker import ExportController
from .entry_panel import EntryPanel
from .preview import SheetPreviewScene
from .views import PREVIEW_SCALE, SheetView

logger = logging.getLogger(__name__)

# App constants / QSettings
ORG_NAME = "BarcodeSheet"
APP_NAME = "BarcodeSheetDesigner"
PREVIEW_DEBOUNCE_MS = 120


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, sheet: Optional[LabelSheet] = None):
        super().__init__()
        self.setWindowTitle("Barcode Sheet Designer")
        self.resize(1280, 900)

        self.settings = QtCore.QSettings(ORG_NAME, APP_NAME)
        self.sheet = sheet if sheet is not None else LabelSheet(DEFAULT_LAYOUT)

        self.exporter = ExportController(self)
        self.exporter.busy_changed.connect(self._on_busy_changed)
        self.exporter.progress.connect(self._on_export_progress)
        self.exporter.completed.connect(self._on_export_completed)
        self.exporter.failed.connect(self._on_export_failed)

        # preview redraws are batched; typing shouldn't rasterize per key
        self._preview_timer = QtCore.QTimer(self)
        self._preview_timer.setSingleShot(True)
        self._preview_timer.setInterval(PREVIEW_DEBOUNCE_MS)
        self._preview_timer.timeout.connect(self.refresh_preview)

        self._build_ui()
        self._build_menus()

        self.sheet.store.add_listener(self._on_store_event)
        self.refresh_preview()
        QtCore.QTimer.singleShot(0, self.view.fit_page)

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------
    def _build_ui(self):
        # LEFT: configuration
        side = QtWidgets.QWidget()
        side_layout = QtWidgets.QVBoxLayout(side)

        grp_layout = QtWidgets.QGroupBox("Label Format")
        fmt_layout = QtWidgets.QVBoxLayout(grp_layout)
        self.cmb_layout = QtWidgets.QComboBox()
        for name, spec in LAYOUTS.items():
            self.cmb_layout.addItem(spec.label, name)
        self.cmb_layout.setCurrentIndex(max(0, self.cmb_layout.findData(self.sheet.layout_name)))
        self.cmb_layout.currentIndexChanged.connect(self._on_layout_changed)
        fmt_layout.addWidget(self.cmb_layout)
        side_layout.addWidget(grp_layout)

        self.entry_panel = EntryPanel(self.sheet)
        side_layout.addWidget(self.entry_panel, 1)

        self.btn_download = QtWidgets.QPushButton("Download PDF")
        self.btn_download.setMinimumHeight(36)
        self.btn_download.clicked.connect(self.export_pdf)
        side_layout.addWidget(self.btn_download)

        self.lbl_info = QtWidgets.QLabel()
        self.lbl_info.setWordWrap(True)
        self.lbl_info.setStyleSheet("color: #1e3a8a;")
        side_layout.addWidget(self.lbl_info)

        dock = QtWidgets.QDockWidget("Configuration", self)
        dock.setObjectName("ConfigurationDock")
        dock.setWidget(side)
        dock.setFeatures(QtWidgets.QDockWidget.NoDockWidgetFeatures)
        dock.setMinimumWidth(380)
        self.addDockWidget(QtCore.Qt.LeftDockWidgetArea, dock)

        # CENTER: A4 preview
        self.scene = SheetPreviewScene(self)
        self.view = SheetView()
        self.view.setScene(self.scene)
        self.setCentralWidget(self.view)

        # status bar
        self.progress = QtWidgets.QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setMaximumWidth(160)
        self.progress.setVisible(False)
        self.statusBar().addPermanentWidget(self.progress)
        self.lbl_scale = QtWidgets.QLabel(f"Scale: {int(PREVIEW_SCALE * 100)}%   Format: A4")
        self.statusBar().addPermanentWidget(self.lbl_scale)

        self._update_info()

    def _build_menus(self):
        file_menu = self.menuBar().addMenu("&File")

        act_export = QtGui.QAction("Download PDF…", self)
        act_export.setShortcut(QtGui.QKeySequence("Ctrl+E"))
        act_export.triggered.connect(self.export_pdf)
        file_menu.addAction(act_export)
        self.act_export = act_export

        file_menu.addSeparator()
        act_quit = QtGui.QAction("Quit", self)
        act_quit.setShortcut(QtGui.QKeySequence.Quit)
        act_quit.triggered.connect(self.close)
        file_menu.addAction(act_quit)

        view_menu = self.menuBar().addMenu("&View")
        act_fit = QtGui.QAction("Fit Page", self)
        act_fit.setShortcut(QtGui.QKeySequence("Ctrl+0"))
        act_fit.triggered.connect(self.view.fit_page)
        view_menu.addAction(act_fit)

        act_zoom_in = QtGui.QAction("Zoom In", self)
        act_zoom_in.setShortcut(QtGui.QKeySequence.ZoomIn)
        act_zoom_in.triggered.connect(lambda: self.view.set_zoom(self.view.zoom() * 1.25))
        view_menu.addAction(act_zoom_in)

        act_zoom_out = QtGui.QAction("Zoom Out", self)
        act_zoom_out.setShortcut(QtGui.QKeySequence.ZoomOut)
        act_zoom_out.triggered.connect(lambda: self.view.set_zoom(self.view.zoom() / 1.25))
        view_menu.addAction(act_zoom_out)

    # ------------------------------------------------------------------
    # Store / layout changes
    # ------------------------------------------------------------------
    def _on_store_event(self, event: StoreEvent) -> None:
        self.entry_panel.sync()
        self._update_info()
        self._preview_timer.start()

    def _on_layout_changed(self, index: int):
        name = self.cmb_layout.itemData(index)
        if not name or name == self.sheet.layout_name:
            return
        self.sheet.set_layout(name)
        self.entry_panel.sync()
        self._update_info()
        self.refresh_preview()
        self.statusBar().showMessage(f"Layout: {name}", 2000)

    def refresh_preview(self) -> None:
        self._preview_timer.stop()
        self.scene.refresh(self.sheet)

    def _update_info(self):
        spec = self.sheet.spec
        stats = self.sheet.stats()
        self.lbl_info.setText(
            "Label Specifications\n"
            f"• Cell size: {spec.cell_width_mm:g}mm × {spec.cell_height_mm:g}mm\n"
            f"• Grid: {spec.columns} columns × {spec.rows} rows\n"
            f"• Entries: {stats.valid} valid of {stats.entries}"
        )
        self.btn_download.setEnabled(stats.valid > 0 and not self.exporter.busy)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def _default_export_path(self) -> str:
        directory = self.settings.value("last_export_dir", "", type=str) or os.path.expanduser("~")
        return os.path.join(directory, with_pdf_extension(DEFAULT_FILENAME))

    def export_pdf(self):
        """
        Ask for a file name and export the valid entries in the background.
        """
        if self.exporter.busy:
            self.statusBar().showMessage("An export is already running…", 2000)
            return

        entries = [e for e in self.sheet.store.snapshot() if e.is_valid]
        if not entries:
            self.statusBar().showMessage("Nothing to export: add text and cells first.", 3000)
            return

        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Download PDF", self._default_export_path(), "PDF Files (*.pdf)"
        )
        if not path:
            return
        path = with_pdf_extension(path)
        self.settings.setValue("last_export_dir", os.path.dirname(path))

        logger.info("Export requested: %d entries -> %s", len(entries), path)
        self.exporter.start(entries, self.sheet.spec, path)

    def _on_busy_changed(self, busy: bool):
        self.btn_download.setText("Generating PDF..." if busy else "Download PDF")
        self.act_export.setEnabled(not busy)
        self.progress.setVisible(busy)
        self.progress.setValue(0)
        self._update_info()

    def _on_export_progress(self, value: int):
        self.progress.setValue(value)

    def _entry_number(self, entry_id: str) -> str:
        try:
            return f"#{self.sheet.store.index_of(entry_id) + 1}"
        except KeyError:
            return "(removed entry)"

    def _on_export_completed(self, report: ExportReport):
        self.statusBar().showMessage(f"Exported PDF: {report.path}", 4000)
        if report.failures:
            lines = [
                f"Entry {self._entry_number(eid)}: {msg}"
                for eid, msg in report.failures.items()
            ]
            QtWidgets.QMessageBox.warning(
                self,
                "Some barcodes were skipped",
                "The PDF was created, but these entries could not be encoded:\n\n"
                + "\n".join(lines),
            )

    def _on_export_failed(self, message: str):
        QtWidgets.QMessageBox.warning(self, "Export error", message)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self.exporter.wait()
        self.sheet.store.remove_listener(self._on_store_event)
        super().closeEvent(event)
