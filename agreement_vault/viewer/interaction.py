"""Pointer-driven drag and resize of template fields.

One controller serves one page surface and runs at most one gesture at a time:

    Idle --begin_drag--> Dragging --pointer_up/leave/dispose--> Idle
    Idle --begin_resize--> Resizing --pointer_up/leave/dispose--> Idle

While a gesture runs, move/release listeners are attached through a
``PointerCapture`` whose scope is wider than the field itself, so the gesture
keeps tracking after the pointer leaves the field. Every way out of a gesture
detaches them.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from typing import Callable, Iterator, Protocol, Union

from agreement_vault.model.field import FieldType, TemplateField
from agreement_vault.state.field_store import FieldStore
from agreement_vault.viewer.page_model import PageCanvasModel, Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Dragging:
    field_id: str
    start_pointer: Point
    start_x: float
    start_y: float


@dataclass(frozen=True, slots=True)
class Resizing:
    field_id: str
    start_pointer: Point
    start_width: float
    start_height: float


InteractionState = Union[Idle, Dragging, Resizing]

IDLE = Idle()


class PointerCapture(Protocol):
    def attach(self, on_move: Callable[[Point], object], on_release: Callable[[], object]) -> None:
        ...

    def detach(self) -> None:
        ...


class NullCapture:
    """Capture for hosts that feed pointer events to the controller directly."""

    def attach(self, on_move: Callable[[Point], object], on_release: Callable[[], object]) -> None:
        del on_move, on_release

    def detach(self) -> None:
        pass


class InteractionController:
    def __init__(
        self,
        store: FieldStore,
        page_model: PageCanvasModel,
        capture: PointerCapture | None = None,
        preview_mode: bool = False,
    ) -> None:
        self._store = store
        self._page_model = page_model
        self._capture = capture or NullCapture()
        self._preview_mode = preview_mode
        self._state: InteractionState = IDLE

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def active(self) -> bool:
        return not isinstance(self._state, Idle)

    @property
    def preview_mode(self) -> bool:
        return self._preview_mode

    @preview_mode.setter
    def preview_mode(self, enabled: bool) -> None:
        if enabled:
            self.end()
        self._preview_mode = enabled

    def pointer_down(self, page: int, visual_point: Point) -> InteractionState:
        """Start the gesture that matches whatever lies under the pointer."""
        if self._preview_mode:
            return self._state
        hit = self._page_model.hit_test(self._store.fields, page, visual_point)
        if hit is None:
            self.end()
            self._store.select_field(None)
        elif hit.on_handle:
            self.begin_resize(hit.field.id, visual_point)
        else:
            self.begin_drag(hit.field.id, visual_point)
        return self._state

    def place_field(self, field_type: FieldType | str, page: int, visual_point: Point) -> TemplateField | None:
        if self._preview_mode:
            return None
        x, y = self._page_model.to_canonical(visual_point)
        return self._store.add_field(field_type, page, x, y)

    def begin_drag(self, field_id: str, pointer: Point) -> bool:
        if self._preview_mode:
            return False
        target = self._store.get(field_id)
        self.end()
        self._store.select_field(field_id)
        self._start(Dragging(field_id, pointer, target.rect.x, target.rect.y))
        return True

    def begin_resize(self, field_id: str, pointer: Point) -> bool:
        if self._preview_mode:
            return False
        target = self._store.get(field_id)
        self.end()
        self._store.select_field(field_id)
        self._start(Resizing(field_id, pointer, target.rect.width, target.rect.height))
        return True

    def pointer_move(self, pointer: Point) -> TemplateField | None:
        state = self._state
        if isinstance(state, Idle):
            return None
        if state.field_id not in self._store:
            logger.debug("Field %s went away mid-gesture", state.field_id)
            self.end()
            return None

        try:
            dx, dy = self._page_model.delta_to_canonical(
                pointer[0] - state.start_pointer[0],
                pointer[1] - state.start_pointer[1],
            )
            rect = self._store.get(state.field_id).rect
            # Aim at start + delta; the store clamps.
            if isinstance(state, Dragging):
                return self._store.move_field(
                    state.field_id,
                    state.start_x + dx - rect.x,
                    state.start_y + dy - rect.y,
                )
            return self._store.resize_field(
                state.field_id,
                state.start_width + dx - rect.width,
                state.start_height + dy - rect.height,
            )
        except Exception:
            self.end()
            raise

    def pointer_up(self) -> None:
        self.end()

    def pointer_leave(self) -> None:
        self.end()

    def dispose(self) -> None:
        self.end()

    def end(self) -> None:
        if isinstance(self._state, Idle):
            return
        finished = self._state
        try:
            logger.debug("Finished %s of %s", type(finished).__name__.lower(), finished.field_id)
        finally:
            self._state = IDLE
            self._capture.detach()

    @contextmanager
    def gesture(self, field_id: str, pointer: Point, resize: bool = False) -> Iterator[bool]:
        started = self.begin_resize(field_id, pointer) if resize else self.begin_drag(field_id, pointer)
        try:
            yield started
        finally:
            self.end()

    def _start(self, state: InteractionState) -> None:
        self._state = state
        try:
            self._capture.attach(self.pointer_move, self.pointer_up)
        except Exception:
            self._state = IDLE
            raise
