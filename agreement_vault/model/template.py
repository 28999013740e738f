"""Agreement template model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agreement_vault.model.field import TemplateField


class TemplateType(str, Enum):
    PURCHASE = "PURCHASE"
    LEASE = "LEASE"
    SERVICE = "SERVICE"
    WARRANTY = "WARRANTY"


class TemplateStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"

    def can_transition(self, target: TemplateStatus) -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[TemplateStatus, frozenset[TemplateStatus]] = {
    TemplateStatus.DRAFT: frozenset({TemplateStatus.ACTIVE}),
    TemplateStatus.ACTIVE: frozenset({TemplateStatus.ARCHIVED}),
    TemplateStatus.ARCHIVED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class TemplateMetadata:
    id: str
    name: str
    type: TemplateType
    status: TemplateStatus
    version: int
    created_at: datetime
    updated_at: datetime
    created_by: str
    description: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TemplateSettings:
    allow_editing: bool = True
    require_all_fields: bool = False
    auto_save: bool = True


@dataclass(frozen=True, slots=True)
class AgreementTemplate:
    metadata: TemplateMetadata
    fields: tuple[TemplateField, ...] = ()
    merge_fields: tuple[str, ...] = ()
    terms: str = ""
    settings: TemplateSettings = field(default_factory=TemplateSettings)
    document_id: str | None = None

    @property
    def id(self) -> str:
        return self.metadata.id


class TemplateListItem(BaseModel):
    """One row of the template index, stored with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    type: TemplateType
    status: TemplateStatus
    last_modified: datetime
    created_by: str = ""
    field_count: int = Field(0, ge=0)

    @classmethod
    def from_template(cls, template: AgreementTemplate) -> TemplateListItem:
        meta = template.metadata
        return cls(
            id=meta.id,
            name=meta.name,
            type=meta.type,
            status=meta.status,
            last_modified=meta.updated_at,
            created_by=meta.created_by,
            field_count=len(template.fields),
        )


def new_template_id() -> str:
    return f"template_{uuid.uuid4().hex[:12]}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_template(
    name: str,
    template_type: TemplateType,
    created_by: str,
    *,
    description: str | None = None,
    terms: str = "",
    merge_fields: tuple[str, ...] = (),
    now: datetime | None = None,
) -> AgreementTemplate:
    timestamp = now or utc_now()
    metadata = TemplateMetadata(
        id=new_template_id(),
        name=name,
        type=template_type,
        status=TemplateStatus.DRAFT,
        version=1,
        created_at=timestamp,
        updated_at=timestamp,
        created_by=created_by,
        description=description,
    )
    return AgreementTemplate(metadata=metadata, merge_fields=tuple(merge_fields), terms=terms)

