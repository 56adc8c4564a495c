# barcode_sheet/export/pdf_writer.py
"""
Millimetre-based PDF page writer on top of QPdfWriter.

Images are collected with place_image() and painted in one go by save(),
so a failed export never leaves a half-written file behind a live painter.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Protocol, Union

from PIL import Image
from PySide6 import QtCore, QtGui

from ..core.barcodes import pil_to_qimage
from ..core.exceptions import ExportFailure
from ..core.layout import Rect
from ..core.placement import MM_PER_INCH, scale_rect

logger = logging.getLogger(__name__)

ImageLike = Union[QtGui.QImage, Image.Image]


class DocumentWriter(Protocol):
    """What the export renderer needs from a document backend."""

    page_width_mm: float
    page_height_mm: float

    def place_image(
        self, image: ImageLike, x_mm: float, y_mm: float, width_mm: float, height_mm: float
    ) -> None: ...

    def save(self, filename: str) -> str: ...


@dataclass
class _Placement:
    image: QtGui.QImage
    x_mm: float
    y_mm: float
    width_mm: float
    height_mm: float


class PdfDocumentWriter:
    """Single-page PDF with a fixed physical page size and no margins."""

    def __init__(self, page_width_mm: float, page_height_mm: float, resolution: int = 300):
        self.page_width_mm = float(page_width_mm)
        self.page_height_mm = float(page_height_mm)
        self.resolution = int(resolution)
        self._placements: List[_Placement] = []

    @property
    def placements(self) -> int:
        return len(self._placements)

    def place_image(
        self, image: ImageLike, x_mm: float, y_mm: float, width_mm: float, height_mm: float
    ) -> None:
        qimg = image if isinstance(image, QtGui.QImage) else pil_to_qimage(image)
        if qimg.isNull():
            raise ExportFailure("Cannot place an empty image on the page.")
        self._placements.append(_Placement(qimg, x_mm, y_mm, width_mm, height_mm))

    def save(self, filename: str) -> str:
        """Write the page to *filename* and return the path written."""
        directory = os.path.dirname(os.path.abspath(filename))
        if not os.path.isdir(directory):
            raise ExportFailure(f"The export folder does not exist ({directory}).")

        writer = QtGui.QPdfWriter(filename)
        writer.setResolution(self.resolution)
        writer.setPageSize(
            QtGui.QPageSize(
                QtCore.QSizeF(self.page_width_mm, self.page_height_mm),
                QtGui.QPageSize.Unit.Millimeter,
            )
        )
        writer.setPageMargins(QtCore.QMarginsF(0, 0, 0, 0), QtGui.QPageLayout.Unit.Millimeter)
        writer.setTitle("Barcode labels")

        painter = QtGui.QPainter(writer)
        if not painter.isActive():
            raise ExportFailure("Could not open PDF for writing.")

        # mm -> device dots; the only unit conversion on the export path
        dots_per_mm = writer.resolution() / MM_PER_INCH
        try:
            painter.setRenderHint(QtGui.QPainter.Antialiasing, False)
            painter.setRenderHint(QtGui.QPainter.SmoothPixmapTransform, True)
            for p in self._placements:
                r = scale_rect(Rect(p.x_mm, p.y_mm, p.width_mm, p.height_mm), dots_per_mm)
                target = QtCore.QRectF(r.x, r.y, r.width, r.height)
                painter.drawImage(target, p.image)
        finally:
            painter.end()

        logger.debug("Wrote %d image(s) to %s", len(self._placements), filename)
        return filename
