"""Interactive page canvas for field placement, dragging and resizing."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from agreement_vault.model.field import FieldType, TemplateField
from agreement_vault.state.field_store import FieldStore
from agreement_vault.viewer.interaction import InteractionController
from agreement_vault.viewer.page_model import PageCanvasModel, Point, VisualRect


class TemplateCanvas(QWidget):
    field_selection_changed = Signal(object)
    field_created = Signal()

    def __init__(self, store: FieldStore, page_model: PageCanvasModel) -> None:
        super().__init__()
        self._store = store
        self._page_model = page_model
        self._controller = InteractionController(store, page_model, capture=self)
        self._pixmap: QPixmap | None = None
        self._page = 1
        self._placement_type: FieldType | None = None
        self._on_move: Callable[[Point], object] | None = None
        self._on_release: Callable[[], object] | None = None

        self.setMouseTracking(True)
        self.setMinimumSize(500, 600)

    @property
    def controller(self) -> InteractionController:
        return self._controller

    def set_page(self, pixmap: QPixmap, page: int) -> None:
        self._controller.end()
        self._pixmap = pixmap
        self._page = page
        self.resize(pixmap.size())
        self.update()

    def clear_page(self) -> None:
        self._controller.end()
        self._pixmap = None
        self.resize(500, 600)
        self.update()

    def set_placement_type(self, field_type: FieldType | None) -> None:
        self._placement_type = field_type

    def set_preview_mode(self, enabled: bool) -> None:
        self._controller.preview_mode = enabled
        self.update()

    # PointerCapture: a mouse grab keeps events flowing after the cursor leaves the field.
    def attach(self, on_move: Callable[[Point], object], on_release: Callable[[], object]) -> None:
        self._on_move = on_move
        self._on_release = on_release
        self.grabMouse()

    def detach(self) -> None:
        self._on_move = None
        self._on_release = None
        if QWidget.mouseGrabber() is self:
            self.releaseMouse()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        del event
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#e9eaee"))

        if self._pixmap is None:
            return

        painter.drawPixmap(0, 0, self._pixmap)
        selected_id = self._store.selected_id
        for field in self._store.fields_on_page(self._page):
            rect_px = self._to_qrect(self._page_model.rect_to_visual(field.rect))
            is_selected = field.id == selected_id and not self._controller.preview_mode
            color = QColor("#c62828") if is_selected else QColor("#1565c0")
            pen = QPen(color)
            pen.setWidth(2)
            painter.setPen(pen)
            painter.fillRect(rect_px, QColor(255, 249, 196, 160))
            painter.drawRect(rect_px)
            painter.drawText(rect_px.adjusted(3, 0, -3, 0), Qt.AlignmentFlag.AlignVCenter, self._caption(field))
            if is_selected:
                handle = self._to_qrect(self._page_model.handle_rect(field.rect))
                painter.fillRect(handle, color)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if self._pixmap is None or event.button() != Qt.MouseButton.LeftButton:
            return

        point = self._point(event.position())
        if self._placement_type is not None:
            if self._controller.place_field(self._placement_type, self._page, point) is not None:
                self.field_selection_changed.emit(self._store.selected)
                self.field_created.emit()
            self.update()
            return

        self._controller.pointer_down(self._page, point)
        self.field_selection_changed.emit(self._store.selected)
        self.update()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._on_move is not None:
            self._on_move(self._point(event.position()))
            self.update()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        del event
        if self._on_release is not None:
            self._on_release()
        self.update()

    def leaveEvent(self, event) -> None:  # type: ignore[override]
        self._controller.pointer_leave()
        super().leaveEvent(event)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._controller.dispose()
        super().closeEvent(event)

    def _caption(self, field: TemplateField) -> str:
        if self._controller.preview_mode and field.merge_field:
            return f"{{{{{field.merge_field}}}}}"
        return field.label

    @staticmethod
    def _point(position: QPointF) -> Point:
        return position.x(), position.y()

    @staticmethod
    def _to_qrect(rect: VisualRect) -> QRectF:
        return QRectF(rect.left, rect.top, rect.width, rect.height)
