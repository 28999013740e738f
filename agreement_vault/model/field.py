"""Template field model definitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class FieldType(str, Enum):
    TEXT = "text"
    SIGNATURE = "signature"
    DATE = "date"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    NUMBER = "number"
    EMAIL = "email"


@dataclass(frozen=True, slots=True)
class FieldRect:
    """Field geometry in canonical units (100% scale, top-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True, slots=True)
class FieldValidation:
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True, slots=True)
class TemplateField:
    id: str
    type: FieldType
    label: str
    rect: FieldRect
    page: int
    required: bool = False
    default_value: str | None = None
    options: tuple[str, ...] = ()
    merge_field: str | None = None
    validation: FieldValidation | None = None


@dataclass(frozen=True, slots=True)
class DetectedField:
    """A field proposed by a detector, in canonical coordinates."""

    page: int
    label: str
    field_type: FieldType
    rect: FieldRect
    required: bool = False
    options: tuple[str, ...] = ()
    suggested_merge_field: str | None = None


def default_label(field_type: FieldType) -> str:
    return f"{field_type.value.capitalize()} Field"


def check_value(field: TemplateField, value: str | None) -> list[str]:
    """Return the problems found in a filled-in value for ``field``.

    Blank values are only a problem for required fields; the remaining rules
    apply to non-blank values.
    """
    text = "" if value is None else str(value).strip()
    if not text:
        return [f"{field.label} is required"] if field.required else []

    problems: list[str] = []
    if field.type is FieldType.EMAIL and not EMAIL_PATTERN.match(text):
        problems.append(f"{field.label} must be an email address")
    if field.type is FieldType.DROPDOWN and field.options and text not in field.options:
        problems.append(f"{field.label} must be one of: {', '.join(field.options)}")

    rules = field.validation
    if rules is None and field.type is not FieldType.NUMBER:
        return problems

    number: float | None = None
    if field.type is FieldType.NUMBER or (rules and (rules.min is not None or rules.max is not None)):
        try:
            number = float(text.replace(",", ""))
        except ValueError:
            problems.append(f"{field.label} must be a number")

    if rules is None:
        return problems
    if rules.pattern:
        try:
            matched = re.fullmatch(rules.pattern, text) is not None
        except re.error as exc:
            problems.append(f"{field.label} has an invalid format rule: {exc}")
        else:
            if not matched:
                problems.append(f"{field.label} does not match the expected format")
    if rules.min_length is not None and len(text) < rules.min_length:
        problems.append(f"{field.label} must be at least {rules.min_length} characters")
    if rules.max_length is not None and len(text) > rules.max_length:
        problems.append(f"{field.label} must be at most {rules.max_length} characters")
    if number is not None:
        if rules.min is not None and number < rules.min:
            problems.append(f"{field.label} must be at least {rules.min:g}")
        if rules.max is not None and number > rules.max:
            problems.append(f"{field.label} must be at most {rules.max:g}")
    return problems
