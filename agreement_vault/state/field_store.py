"""In-memory, ordered collection of the fields placed on a template."""

from __future__ import annotations

from dataclasses import replace
import logging
import re
from typing import Callable, Iterable, Iterator
import uuid

from agreement_vault.config import EditorSettings, get_settings
from agreement_vault.errors import PageOutOfRangeError, TemplateValidationError
from agreement_vault.model.field import (
    DetectedField,
    FieldRect,
    FieldType,
    FieldValidation,
    TemplateField,
    default_label,
)

logger = logging.getLogger(__name__)

FieldsChanged = Callable[[tuple[TemplateField, ...]], None]

DEFAULT_DROPDOWN_OPTIONS = ("Option 1", "Option 2")

_EDITABLE = frozenset(
    {"label", "type", "required", "default_value", "options", "merge_field", "validation", "page"}
)


def new_field_id() -> str:
    return f"field_{uuid.uuid4().hex[:12]}"


class FieldStore:
    """Field CRUD with geometry clamping and single selection.

    Every operation swaps in a new tuple of fields and reports it through
    ``on_fields_change``. Persisting the fields is the host's business.
    """

    def __init__(
        self,
        document_id: str | None = None,
        page_count: int = 1,
        fields: Iterable[TemplateField] = (),
        on_fields_change: FieldsChanged | None = None,
        settings: EditorSettings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._document_id = document_id
        self._page_count = page_count
        self._fields: tuple[TemplateField, ...] = tuple(fields)
        self._selected_id: str | None = None
        self.on_fields_change = on_fields_change

        ids = [item.id for item in self._fields]
        if len(ids) != len(set(ids)):
            raise TemplateValidationError("Field ids must be unique within a template")

    @property
    def document_id(self) -> str | None:
        return self._document_id

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def fields(self) -> tuple[TemplateField, ...]:
        return self._fields

    @property
    def selected(self) -> TemplateField | None:
        if self._selected_id is None:
            return None
        return self._find(self._selected_id)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[TemplateField]:
        return iter(self._fields)

    def __contains__(self, field_id: object) -> bool:
        return any(item.id == field_id for item in self._fields)

    def bind_document(
        self,
        document_id: str,
        page_count: int,
        fields: Iterable[TemplateField] = (),
    ) -> None:
        """Point the store at another document, replacing the current fields."""
        self._document_id = document_id
        self._page_count = page_count
        self._selected_id = None
        self._commit(tuple(fields))
        logger.info("Bound field store to %s (%d page(s))", document_id, page_count)

    def get(self, field_id: str) -> TemplateField:
        found = self._find(field_id)
        if found is None:
            raise KeyError(field_id)
        return found

    def fields_on_page(self, page: int) -> list[TemplateField]:
        return [item for item in self._fields if item.page == page]

    def add_field(self, field_type: FieldType | str, page: int, x: float, y: float) -> TemplateField:
        field_type = FieldType(field_type)
        self._require_document()
        self._check_page(page)

        geometry = self._settings.geometry
        if field_type is FieldType.CHECKBOX:
            width = height = geometry.checkbox_size
        else:
            width, height = geometry.default_width, geometry.default_height

        created = TemplateField(
            id=new_field_id(),
            type=field_type,
            label=default_label(field_type),
            rect=FieldRect(x=max(0.0, x), y=max(0.0, y), width=width, height=height),
            page=page,
            required=False,
            options=DEFAULT_DROPDOWN_OPTIONS if field_type is FieldType.DROPDOWN else (),
        )
        self._selected_id = created.id
        self._commit(self._fields + (created,))
        logger.debug("Added %s field %s on page %d", field_type.value, created.id, page)
        return created

    def add_detected(self, detected: Iterable[DetectedField]) -> list[TemplateField]:
        """Place detector output through the same path as manual placement."""
        self._require_document()
        geometry = self._settings.geometry
        created: list[TemplateField] = []
        for proposal in detected:
            self._check_page(proposal.page)
            rect = proposal.rect
            created.append(
                TemplateField(
                    id=new_field_id(),
                    type=proposal.field_type,
                    label=proposal.label or default_label(proposal.field_type),
                    rect=FieldRect(
                        x=max(0.0, rect.x),
                        y=max(0.0, rect.y),
                        width=max(geometry.min_width, rect.width),
                        height=max(geometry.min_height, rect.height),
                    ),
                    page=proposal.page,
                    required=proposal.required,
                    options=proposal.options,
                    merge_field=proposal.suggested_merge_field,
                )
            )
        if created:
            self._commit(self._fields + tuple(created))
            logger.info("Placed %d detected field(s)", len(created))
        return created

    def move_field(self, field_id: str, dx: float, dy: float) -> TemplateField:
        current = self.get(field_id)
        rect = current.rect
        moved = replace(current, rect=replace(rect, x=max(0.0, rect.x + dx), y=max(0.0, rect.y + dy)))
        self._swap(moved)
        return moved

    def resize_field(self, field_id: str, dw: float, dh: float) -> TemplateField:
        current = self.get(field_id)
        rect = current.rect
        geometry = self._settings.geometry
        resized = replace(
            current,
            rect=replace(
                rect,
                width=max(geometry.min_width, rect.width + dw),
                height=max(geometry.min_height, rect.height + dh),
            ),
        )
        self._swap(resized)
        return resized

    def update_field(self, field_id: str, **changes: object) -> TemplateField:
        unknown = set(changes) - _EDITABLE
        if unknown:
            raise TemplateValidationError(f"Cannot edit field attribute(s): {', '.join(sorted(unknown))}")

        current = self.get(field_id)
        if "type" in changes:
            changes["type"] = FieldType(changes["type"])
        if "page" in changes:
            self._check_page(int(changes["page"]))
        if "options" in changes:
            changes["options"] = tuple(changes["options"] or ())
        if "merge_field" in changes:
            changes["merge_field"] = changes["merge_field"] or None
        if "validation" in changes and isinstance(changes["validation"], dict):
            changes["validation"] = FieldValidation(**changes["validation"])
        rules = changes.get("validation")
        if isinstance(rules, FieldValidation) and rules.pattern:
            try:
                re.compile(rules.pattern)
            except re.error as exc:
                raise TemplateValidationError(f"Invalid format rule {rules.pattern!r}: {exc}") from exc

        updated = replace(current, **changes)
        self._swap(updated)
        return updated

    def remove_field(self, field_id: str) -> TemplateField:
        removed = self.get(field_id)
        if self._selected_id == field_id:
            self._selected_id = None
        self._commit(tuple(item for item in self._fields if item.id != field_id))
        logger.debug("Removed field %s", field_id)
        return removed

    def duplicate_field(self, field_id: str) -> TemplateField:
        source = self.get(field_id)
        offset = self._settings.geometry.duplicate_offset
        copy = replace(
            source,
            id=new_field_id(),
            rect=replace(source.rect, x=source.rect.x + offset, y=source.rect.y + offset),
        )
        self._selected_id = copy.id
        self._commit(self._fields + (copy,))
        return copy

    def select_field(self, field_id: str | None) -> TemplateField | None:
        if field_id is None:
            self._selected_id = None
            return None
        selected = self.get(field_id)
        self._selected_id = field_id
        return selected

    def _find(self, field_id: str) -> TemplateField | None:
        for item in self._fields:
            if item.id == field_id:
                return item
        return None

    def _swap(self, updated: TemplateField) -> None:
        self._commit(tuple(updated if item.id == updated.id else item for item in self._fields))

    def _commit(self, fields: tuple[TemplateField, ...]) -> None:
        self._fields = fields
        if self.on_fields_change is not None:
            self.on_fields_change(fields)

    def _require_document(self) -> None:
        if not self._document_id:
            raise TemplateValidationError("Fields need an owning document; open a document first")

    def _check_page(self, page: int) -> None:
        if page < 1 or page > self._page_count:
            raise PageOutOfRangeError(f"Page {page} is outside 1..{self._page_count}")
