from typing import Optional
import numpy as np
from PyQt6.QtWidgets import QWidget
from PyQt6.QtGui import QPainter, QImage, QMouseEvent, QWheelEvent, QColor, QPen, QFont
from PyQt6.QtCore import Qt, pyqtSignal, QPointF
from luptonpy.desktop.controller import AppController
from luptonpy.desktop.converters import ImageConverter
from luptonpy.desktop.session import ToolMode
from luptonpy.desktop.view.styles.theme import THEME
from luptonpy.services.rendering.preview_renderer import PreviewMode, PreviewRenderer


class PreviewCanvas(QWidget):
    """
    Display surface for preview rasters. Forwards pointer, wheel and drag
    input to the controller in viewport coordinates.
    """

    cursor_moved = pyqtSignal(object)  # CursorInfo or None

    def __init__(self, controller: AppController, parent=None):
        super().__init__(parent)
        self.controller = controller
        self._qimage: Optional[QImage] = None
        self._drag_last: Optional[QPointF] = None
        self.show_crosshair = True

        self.setMouseTracking(True)
        self.setMinimumSize(400, 300)

    def update_buffer(self, raster: np.ndarray) -> None:
        self._qimage = ImageConverter.to_qimage(raster)
        self.update()

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(0, 0, 0))

        viewport = self.controller.preview.viewport
        if not self._qimage or viewport is None:
            painter.setPen(QColor(0x88, 0x88, 0x88))
            painter.setFont(QFont("Sans Serif", 11))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No image loaded")
            return

        ox, oy = (int(v) for v in viewport.origin)
        painter.drawImage(ox, oy, self._qimage)
        self._draw_overlays(painter, ox, oy)

    def _draw_overlays(self, painter: QPainter, ox: int, oy: int) -> None:
        bw, bh = self._qimage.width(), self._qimage.height()
        request = self.controller.preview.request

        painter.setFont(QFont("Sans Serif", 9))
        if request.mode == PreviewMode.SPLIT:
            split_x = ox + PreviewRenderer.split_column(bw, request)
            painter.setPen(QPen(QColor(THEME.split_line), 2))
            painter.drawLine(split_x, oy, split_x, oy + bh)
            painter.setPen(QColor(255, 255, 255))
            painter.drawText(ox + 5, oy + 15, "BEFORE")
            painter.drawText(ox + bw - 45, oy + 15, "AFTER")
        elif request.mode == PreviewMode.BEFORE:
            painter.setPen(QColor(255, 255, 255))
            painter.drawText(5, 15, "BEFORE (Linear)")
        else:
            painter.setPen(QColor(255, 255, 255))
            painter.drawText(5, 15, "AFTER (Lupton RGB)")

        if self.show_crosshair:
            cx, cy = self.width() // 2, self.height() // 2
            painter.setPen(QPen(QColor(THEME.crosshair), 1))
            painter.drawLine(cx - 15, cy, cx + 15, cy)
            painter.drawLine(cx, cy - 15, cx, cy + 15)

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        if self.controller.state.active_tool == ToolMode.SAMPLE_BLACK:
            self.controller.handle_canvas_clicked(pos.x(), pos.y())
        else:
            self._drag_last = pos
            self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        pos = event.position()
        if self._drag_last is not None:
            delta = pos - self._drag_last
            self._drag_last = pos
            self.controller.handle_drag(delta.x(), delta.y())
        self.cursor_moved.emit(self.controller.cursor_info(pos.x(), pos.y()))

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if self._drag_last is not None:
            self._drag_last = None
            self.unsetCursor()

    def wheelEvent(self, event: QWheelEvent) -> None:
        delta = event.angleDelta().y()
        if delta == 0:
            return
        steps = delta // 120 or (1 if delta > 0 else -1)
        pos = event.position()
        self.controller.handle_wheel(steps, pos.x(), pos.y())

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self.controller.handle_resize(self.width(), self.height())
