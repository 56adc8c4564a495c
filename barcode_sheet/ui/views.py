from __future__ import annotations

from PySide6 import QtCore, QtGui, QtWidgets

# 96 dpi screen pixels per mm, shown at 80 %
SCREEN_PX_PER_MM = 3.78
PREVIEW_SCALE = 0.8
PX_PER_MM = SCREEN_PX_PER_MM * PREVIEW_SCALE


class SheetView(QtWidgets.QGraphicsView):
    def __init__(self, parent=None):
        super().__init__(parent)

        self.setRenderHints(
            QtGui.QPainter.Antialiasing
            | QtGui.QPainter.TextAntialiasing
            | QtGui.QPainter.SmoothPixmapTransform
        )
        self.setViewportUpdateMode(QtWidgets.QGraphicsView.FullViewportUpdate)
        self.setTransformationAnchor(QtWidgets.QGraphicsView.AnchorUnderMouse)
        self.setResizeAnchor(QtWidgets.QGraphicsView.AnchorViewCenter)
        self.setDragMode(QtWidgets.QGraphicsView.ScrollHandDrag)

        self._zoom = 1.0

    # ------------ background: workspace + page outline ------------
    def drawBackground(self, painter: QtGui.QPainter, rect: QtCore.QRectF) -> None:
        # workspace
        painter.fillRect(rect, QtGui.QColor("#2b2b2b"))

        if self.scene() is None:
            return

        page_rect = self.scene().sceneRect()

        # soft drop shadow, then the paper
        shadow = page_rect.translated(4, 4)
        painter.fillRect(shadow, QtGui.QColor(0, 0, 0, 90))
        painter.fillRect(page_rect, QtCore.Qt.white)

        pen = QtGui.QPen(QtGui.QColor("#999999"))
        pen.setWidth(1)
        painter.setPen(pen)
        painter.setBrush(QtCore.Qt.NoBrush)
        painter.drawRect(page_rect)

    # ------------ zoom ------------
    def zoom(self) -> float:
        return self._zoom

    def set_zoom(self, factor: float) -> None:
        factor = max(0.25, min(4.0, factor))
        self.resetTransform()
        self.scale(factor, factor)
        self._zoom = factor

    def fit_page(self) -> None:
        if self.scene() is None:
            return
        self.fitInView(self.scene().sceneRect(), QtCore.Qt.KeepAspectRatio)
        self._zoom = self.transform().m11()

    def wheelEvent(self, event: QtGui.QWheelEvent) -> None:
        if event.modifiers() & QtCore.Qt.ControlModifier:
            step = 1.15 if event.angleDelta().y() > 0 else 1 / 1.15
            self.set_zoom(self._zoom * step)
            event.accept()
            return
        super().wheelEvent(event)
