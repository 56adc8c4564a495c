# barcode_sheet/ui/preview.py
"""
Live A4 preview of the label sheet.

Cell and symbol rectangles come from core.layout / core.placement in
millimetres and are multiplied by PX_PER_MM here, the same way the PDF
writer multiplies them by its dots-per-mm.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from ..core.barcodes import PREVIEW_OPTIONS, pil_to_qimage, render_symbol, symbol_size
from ..core.exceptions import InvalidSymbologyInput
from ..core.layout import Rect, cell_indices, page_rect, rect_for
from ..core.placement import PlacedGlyph, plan_placements, scale_rect
from ..core.session import LabelSheet
from .views import PX_PER_MM

logger = logging.getLogger(__name__)

# cell states
EMPTY = "empty"
RESERVED = "reserved"      # owned, but the entry has no text yet
FILLED = "filled"
INVALID = "invalid"        # owned, text rejected by the symbology


def to_qrect(rect: Rect, factor: float = PX_PER_MM) -> QtCore.QRectF:
    r = scale_rect(rect, factor)
    return QtCore.QRectF(r.x, r.y, r.width, r.height)


class CellItem(QtWidgets.QGraphicsRectItem):
    """One label slot: outline, number or owner badge, optional symbol."""

    def __init__(self, cell_index: int, rect: QtCore.QRectF, parent=None):
        super().__init__(rect, parent)
        self.cell_index = cell_index
        self.state = EMPTY
        self.owner_id: Optional[str] = None
        self.owner_label = ""
        self.image: Optional[QtGui.QImage] = None
        self.image_rect: Optional[QtCore.QRectF] = None
        self.setToolTip(f"Cell {cell_index}")

    def set_owner(self, state: str, owner_id: Optional[str], owner_label: str = "") -> None:
        self.state = state
        self.owner_id = owner_id
        self.owner_label = owner_label
        if owner_id is None:
            self.setToolTip(f"Cell {self.cell_index}")
        else:
            self.setToolTip(f"Cell {self.cell_index}: entry {owner_label}")
        self.update()

    def set_symbol(self, image: Optional[QtGui.QImage], rect: Optional[QtCore.QRectF]) -> None:
        self.image = image
        self.image_rect = rect
        self.update()

    def paint(self, painter: QtGui.QPainter, option, widget=None) -> None:
        r = self.rect()

        if self.state == EMPTY:
            painter.fillRect(r, QtGui.QColor(249, 250, 251, 204))
            pen = QtGui.QPen(QtGui.QColor("#d1d5db"))
        elif self.state == INVALID:
            painter.fillRect(r, QtGui.QColor("#fee2e2"))
            pen = QtGui.QPen(QtGui.QColor("#dc2626"))
        else:
            painter.fillRect(r, QtCore.Qt.white)
            pen = QtGui.QPen(QtGui.QColor("#3b82f6"))
            pen.setWidthF(1.5)
            if self.state == RESERVED:
                pen.setStyle(QtCore.Qt.DashLine)

        painter.setPen(pen)
        painter.setBrush(QtCore.Qt.NoBrush)
        painter.drawRect(r)

        if self.image is not None and self.image_rect is not None:
            painter.drawImage(self.image_rect, self.image)

        font = painter.font()
        if self.state == EMPTY:
            font.setPointSizeF(7)
            painter.setFont(font)
            painter.setPen(QtGui.QColor("#9ca3af"))
            painter.drawText(r, int(QtCore.Qt.AlignCenter), str(self.cell_index))
            return

        # owner badge in the top-left corner
        font.setPointSizeF(5.5)
        painter.setFont(font)
        badge = QtCore.QRectF(r.left() + 1, r.top() + 1, 18, 9)
        painter.fillRect(badge, pen.color())
        painter.setPen(QtCore.Qt.white)
        painter.drawText(badge, int(QtCore.Qt.AlignCenter), self.owner_label)

        if self.state in (RESERVED, INVALID):
            font.setPointSizeF(6)
            painter.setFont(font)
            painter.setPen(pen.color())
            text = "no text" if self.state == RESERVED else "invalid"
            painter.drawText(r, int(QtCore.Qt.AlignCenter), text)


class SheetPreviewScene(QtWidgets.QGraphicsScene):
    """
    Scene holding one CellItem per cell of the active layout.

    refresh() rebuilds it from a LabelSheet; nothing here listens to the
    store directly.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.cell_items: Dict[int, CellItem] = {}
        self.glyphs: List[PlacedGlyph] = []
        self.failures: Dict[str, str] = {}
        self._layout_tag: Optional[QtWidgets.QGraphicsSimpleTextItem] = None
        self._layout_name: Optional[str] = None
        self._qimage_cache: Dict[str, QtGui.QImage] = {}

    def _rebuild_cells(self, sheet: LabelSheet) -> None:
        self.clear()
        self.cell_items.clear()
        spec = sheet.spec
        self.setSceneRect(to_qrect(page_rect(spec)))

        for cell in cell_indices(spec):
            item = CellItem(cell, to_qrect(rect_for(cell, spec)))
            self.addItem(item)
            self.cell_items[cell] = item

        self._layout_tag = self.addSimpleText(f"A4 - {spec.name}")
        font = self._layout_tag.font()
        font.setPointSizeF(7)
        self._layout_tag.setFont(font)
        self._layout_tag.setBrush(QtGui.QColor("#4b5563"))
        tag_w = self._layout_tag.boundingRect().width()
        self._layout_tag.setPos(self.sceneRect().right() - tag_w - 8, 4)
        self._layout_name = sheet.layout_name

    def _symbol_image(self, text: str, pil_img) -> QtGui.QImage:
        qimg = self._qimage_cache.get(text)
        if qimg is None:
            qimg = pil_to_qimage(pil_img)
            self._qimage_cache[text] = qimg
        return qimg

    def refresh(self, sheet: LabelSheet) -> None:
        if self._layout_name != sheet.layout_name or not self.cell_items:
            self._rebuild_cells(sheet)

        spec = sheet.spec
        entries = sheet.entries()
        labels = {e.id: f"#{i + 1}" for i, e in enumerate(entries)}
        by_id = {e.id: e for e in entries}

        # symbol sizes for entries that can actually be drawn
        sizes = {}
        images = {}
        self.failures = {}
        for entry in entries:
            if not entry.is_valid:
                continue
            try:
                pil_img = render_symbol(entry.text, PREVIEW_OPTIONS)
                images[entry.id] = self._symbol_image(entry.text, pil_img)
                sizes[entry.id] = symbol_size(pil_img, PREVIEW_OPTIONS)
            except InvalidSymbologyInput as exc:
                logger.debug("Preview cannot render entry %s: %s", entry.id, exc)
                self.failures[entry.id] = str(exc)

        self.glyphs = plan_placements(
            [e for e in entries if e.id in sizes], spec, sizes
        )
        glyph_by_cell = {g.cell_index: g for g in self.glyphs}

        for cell, item in self.cell_items.items():
            owner = sheet.occupancy.occupied_by(cell)
            if owner is None or owner not in by_id:
                item.set_owner(EMPTY, None)
                item.set_symbol(None, None)
                continue

            glyph = glyph_by_cell.get(cell)
            if glyph is not None:
                item.set_owner(FILLED, owner, labels[owner])
                item.set_symbol(images[glyph.entry_id], to_qrect(glyph.rect))
            elif owner in self.failures:
                item.set_owner(INVALID, owner, labels[owner])
                item.set_symbol(None, None)
            else:
                item.set_owner(RESERVED, owner, labels[owner])
                item.set_symbol(None, None)

        # keep the QImage cache from growing without bound while typing
        live = {by_id[i].text for i in images}
        for text in list(self._qimage_cache):
            if text not in live:
                del self._qimage_cache[text]
