from __future__ import annotations

import logging
from typing import List, Optional

from PySide6 import QtCore

from ..core.barcodes import EXPORT_OPTIONS, SymbologyOptions
from ..core.exceptions import friendly_message
from ..core.layout import LayoutSpec
from ..core.models import LabelEntry
from .renderer import ExportReport, export_pdf

logger = logging.getLogger(__name__)


class WorkerSignals(QtCore.QObject):
    finished = QtCore.Signal()           # always emitted last
    error = QtCore.Signal(str)           # user-facing message
    progress = QtCore.Signal(int)        # 0–100
    completed = QtCore.Signal(object)    # ExportReport


class ExportWorker(QtCore.QThread):
    """
    Thread that renders a snapshot of entries into a PDF.

    The entries passed in must already be a private copy; the UI keeps
    editing its own store while the export runs.
    """
    def __init__(
        self,
        entries: List[LabelEntry],
        spec: LayoutSpec,
        path: str,
        options: SymbologyOptions = EXPORT_OPTIONS,
        parent=None,
    ):
        super().__init__(parent)
        self.entries = entries
        self.spec = spec
        self.path = path
        self.options = options
        self.signals = WorkerSignals()
        self.report: Optional[ExportReport] = None

    def run(self):
        try:
            logger.debug("Export worker started: %d entries -> %s", len(self.entries), self.path)
            self.report = export_pdf(
                self.entries,
                self.spec,
                filename=self.path,
                options=self.options,
                progress=self.signals.progress.emit,
            )
            self.signals.completed.emit(self.report)
        except Exception as e:
            logger.exception("Export failed")
            self.signals.error.emit(friendly_message(e))
        finally:
            self.signals.finished.emit()


class ExportController(QtCore.QObject):
    """
    Owns the (single) running export.

    start() refuses a second export while one is in flight, so a double
    click never produces two downloads.
    """
    busy_changed = QtCore.Signal(bool)
    progress = QtCore.Signal(int)
    completed = QtCore.Signal(object)   # ExportReport
    failed = QtCore.Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._worker: Optional[ExportWorker] = None

    @property
    def busy(self) -> bool:
        return self._worker is not None

    def start(
        self,
        entries: List[LabelEntry],
        spec: LayoutSpec,
        path: str,
        options: SymbologyOptions = EXPORT_OPTIONS,
    ) -> bool:
        if self._worker is not None:
            logger.info("Export already running; ignoring new request for %s", path)
            return False

        worker = ExportWorker(entries, spec, path, options)
        worker.signals.progress.connect(self.progress)
        worker.signals.completed.connect(self.completed)
        worker.signals.error.connect(self.failed)
        worker.signals.finished.connect(self._on_finished)

        self._worker = worker
        self.busy_changed.emit(True)
        worker.start()
        return True

    def wait(self, msecs: int = 30000) -> bool:
        """Block until the running export (if any) finishes."""
        worker = self._worker
        if worker is None:
            return True
        return worker.wait(msecs)

    def _on_finished(self):
        worker = self._worker
        self._worker = None
        if worker is not None:
            worker.deleteLater()
        self.busy_changed.emit(False)
