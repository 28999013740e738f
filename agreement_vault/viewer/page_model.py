"""Zoom scale and pixel/canonical coordinate conversion for a multi-page document.

Canonical coordinates are PDF points at 100% zoom with a top-left origin.
Visual coordinates are pixels of the page as currently drawn. Fields only ever
store canonical values, so changing the scale moves nothing but the projection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from agreement_vault.config import EditorSettings, get_settings
from agreement_vault.errors import PageOutOfRangeError
from agreement_vault.model.document import PageMetrics
from agreement_vault.model.field import FieldRect, TemplateField

Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class VisualRect:
    left: float
    top: float
    width: float
    height: float

    def contains(self, point: Point) -> bool:
        px, py = point
        return self.left <= px <= self.left + self.width and self.top <= py <= self.top + self.height


@dataclass(frozen=True, slots=True)
class FieldHit:
    field: TemplateField
    on_handle: bool


class PageCanvasModel:
    def __init__(
        self,
        page_sizes: Sequence[PageMetrics] = (),
        scale: float | None = None,
        settings: EditorSettings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._page_sizes = list(page_sizes)
        self._scale = self._clamp(self._settings.zoom.initial if scale is None else scale)

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def page_count(self) -> int:
        return len(self._page_sizes)

    def set_pages(self, page_sizes: Sequence[PageMetrics]) -> None:
        self._page_sizes = list(page_sizes)

    def set_scale(self, scale: float) -> float:
        self._scale = self._clamp(scale)
        return self._scale

    def zoom_in(self) -> float:
        return self.set_scale(self._scale + self._settings.zoom.step)

    def zoom_out(self) -> float:
        return self.set_scale(self._scale - self._settings.zoom.step)

    def can_zoom_in(self) -> bool:
        return self._scale < self._settings.zoom.maximum

    def can_zoom_out(self) -> bool:
        return self._scale > self._settings.zoom.minimum

    def check_page(self, page: int) -> None:
        if page < 1 or page > self.page_count:
            raise PageOutOfRangeError(f"Page {page} is outside 1..{self.page_count}")

    def page_size(self, page: int) -> PageMetrics:
        self.check_page(page)
        return self._page_sizes[page - 1]

    def visual_page_size(self, page: int) -> tuple[float, float]:
        metrics = self.page_size(page)
        return self.to_visual(metrics.width_pt), self.to_visual(metrics.height_pt)

    def to_visual(self, value: float) -> float:
        return value * self._scale

    def point_to_visual(self, point: Point) -> Point:
        return point[0] * self._scale, point[1] * self._scale

    def rect_to_visual(self, rect: FieldRect) -> VisualRect:
        return VisualRect(
            left=rect.x * self._scale,
            top=rect.y * self._scale,
            width=rect.width * self._scale,
            height=rect.height * self._scale,
        )

    def to_canonical(self, visual_point: Point, container_origin: Point = (0.0, 0.0)) -> Point:
        return (
            (visual_point[0] - container_origin[0]) / self._scale,
            (visual_point[1] - container_origin[1]) / self._scale,
        )

    def delta_to_canonical(self, dx: float, dy: float) -> Point:
        return dx / self._scale, dy / self._scale

    def handle_rect(self, rect: FieldRect) -> VisualRect:
        visual = self.rect_to_visual(rect)
        size = self._settings.geometry.handle_size
        return VisualRect(
            left=visual.left + visual.width - size / 2.0,
            top=visual.top + visual.height - size / 2.0,
            width=size,
            height=size,
        )

    def hit_test(self, fields: Iterable[TemplateField], page: int, visual_point: Point) -> FieldHit | None:
        """Return the topmost field on ``page`` under ``visual_point``."""
        candidates = [item for item in fields if item.page == page]
        for item in reversed(candidates):
            if self.handle_rect(item.rect).contains(visual_point):
                return FieldHit(field=item, on_handle=True)
            if self.rect_to_visual(item.rect).contains(visual_point):
                return FieldHit(field=item, on_handle=False)
        return None

    def _clamp(self, scale: float) -> float:
        zoom = self._settings.zoom
        return round(max(zoom.minimum, min(zoom.maximum, scale)), 2)
