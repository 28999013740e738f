"""Stored (camelCase JSON) shape of agreement templates."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agreement_vault.model.field import FieldRect, FieldType, FieldValidation, TemplateField
from agreement_vault.model.template import (
    AgreementTemplate,
    TemplateMetadata,
    TemplateSettings,
    TemplateStatus,
    TemplateType,
)


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PositionRecord(_Record):
    x: float = Field(ge=0)
    y: float = Field(ge=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class ValidationRecord(_Record):
    pattern: str | None = None
    min_length: int | None = Field(None, ge=0)
    max_length: int | None = Field(None, ge=0)
    min: float | None = None
    max: float | None = None


class FieldRecord(_Record):
    id: str
    type: FieldType
    label: str = ""
    position: PositionRecord
    page: int = Field(1, ge=1)
    required: bool = False
    default_value: str | None = None
    options: list[str] = Field(default_factory=list)
    merge_field: str | None = None
    validation: ValidationRecord | None = None

    @classmethod
    def from_field(cls, item: TemplateField) -> FieldRecord:
        rules = item.validation
        return cls(
            id=item.id,
            type=item.type,
            label=item.label,
            position=PositionRecord(
                x=item.rect.x, y=item.rect.y, width=item.rect.width, height=item.rect.height
            ),
            page=item.page,
            required=item.required,
            default_value=item.default_value,
            options=list(item.options),
            merge_field=item.merge_field,
            validation=None if rules is None else ValidationRecord(
                pattern=rules.pattern,
                min_length=rules.min_length,
                max_length=rules.max_length,
                min=rules.min,
                max=rules.max,
            ),
        )

    def to_field(self) -> TemplateField:
        position = self.position
        return TemplateField(
            id=self.id,
            type=self.type,
            label=self.label,
            rect=FieldRect(position.x, position.y, position.width, position.height),
            page=self.page,
            required=self.required,
            default_value=self.default_value,
            options=tuple(self.options),
            merge_field=self.merge_field or None,
            validation=None if self.validation is None else FieldValidation(**self.validation.model_dump()),
        )


class MetadataRecord(_Record):
    id: str
    name: str
    type: TemplateType
    status: TemplateStatus
    version: int = Field(1, ge=1)
    created_at: datetime
    updated_at: datetime
    created_by: str = ""
    description: str | None = None
    tags: list[str] = Field(default_factory=list)


class SettingsRecord(_Record):
    allow_editing: bool = True
    require_all_fields: bool = False
    auto_save: bool = True


class TemplateRecord(_Record):
    metadata: MetadataRecord
    fields: list[FieldRecord] = Field(default_factory=list)
    merge_fields: list[str] = Field(default_factory=list)
    terms: str = ""
    settings: SettingsRecord = Field(default_factory=SettingsRecord)
    document_id: str | None = None

    @classmethod
    def from_template(cls, template: AgreementTemplate) -> TemplateRecord:
        meta = template.metadata
        settings = template.settings
        return cls(
            metadata=MetadataRecord(
                id=meta.id,
                name=meta.name,
                type=meta.type,
                status=meta.status,
                version=meta.version,
                created_at=meta.created_at,
                updated_at=meta.updated_at,
                created_by=meta.created_by,
                description=meta.description,
                tags=list(meta.tags),
            ),
            fields=[FieldRecord.from_field(item) for item in template.fields],
            merge_fields=list(template.merge_fields),
            terms=template.terms,
            settings=SettingsRecord(
                allow_editing=settings.allow_editing,
                require_all_fields=settings.require_all_fields,
                auto_save=settings.auto_save,
            ),
            document_id=template.document_id,
        )

    def to_template(self) -> AgreementTemplate:
        meta = self.metadata
        return AgreementTemplate(
            metadata=TemplateMetadata(
                id=meta.id,
                name=meta.name,
                type=meta.type,
                status=meta.status,
                version=meta.version,
                created_at=meta.created_at,
                updated_at=meta.updated_at,
                created_by=meta.created_by,
                description=meta.description,
                tags=tuple(meta.tags),
            ),
            fields=tuple(item.to_field() for item in self.fields),
            merge_fields=tuple(self.merge_fields),
            terms=self.terms,
            settings=TemplateSettings(**self.settings.model_dump()),
            document_id=self.document_id,
        )


def template_to_dict(template: AgreementTemplate) -> dict[str, Any]:
    return TemplateRecord.from_template(template).model_dump(mode="json", by_alias=True)


def template_from_dict(data: Any) -> AgreementTemplate:
    """Validate stored data; raises ``pydantic.ValidationError`` on a malformed document."""
    return TemplateRecord.model_validate(data).to_template()
