"""Template persistence: the storage adapter contract and the library service on top."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
import json
import logging
from pathlib import Path
import re
from typing import Callable

from pydantic import ValidationError

from agreement_vault.errors import PersistenceError, TemplateValidationError
from agreement_vault.model.records import template_from_dict, template_to_dict
from agreement_vault.model.template import (
    AgreementTemplate,
    TemplateListItem,
    TemplateStatus,
    TemplateType,
    new_template,
    new_template_id,
    utc_now,
)

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100

SAFE_ID = re.compile(r"^[A-Za-z0-9_\-]+$")


class TemplateStore(ABC):
    """Storage-medium agnostic save/load of whole templates."""

    @abstractmethod
    def save(self, template: AgreementTemplate) -> bool:
        ...

    @abstractmethod
    def load(self, template_id: str) -> AgreementTemplate | None:
        ...

    @abstractmethod
    def list(self) -> list[TemplateListItem]:
        ...

    @abstractmethod
    def delete(self, template_id: str) -> bool:
        ...


class InMemoryTemplateStore(TemplateStore):
    def __init__(self) -> None:
        self._templates: dict[str, AgreementTemplate] = {}

    def save(self, template: AgreementTemplate) -> bool:
        self._templates[template.id] = template
        return True

    def load(self, template_id: str) -> AgreementTemplate | None:
        return self._templates.get(template_id)

    def list(self) -> list[TemplateListItem]:
        return [TemplateListItem.from_template(item) for item in self._templates.values()]

    def delete(self, template_id: str) -> bool:
        return self._templates.pop(template_id, None) is not None


class JsonTemplateStore(TemplateStore):
    """One JSON document per template plus a summary index, in one directory."""

    INDEX_NAME = "agreement_templates_list.json"
    FILE_PREFIX = "agreement_template_"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def save(self, template: AgreementTemplate) -> bool:
        if not SAFE_ID.match(template.id):
            logger.error("Refusing to save template with unsafe id %r", template.id)
            return False
        path = self._path(template.id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            previous = path.read_bytes() if path.exists() else None
            self._write(path, template_to_dict(template))
        except OSError as exc:
            logger.error("Failed to save template %s: %s", template.id, exc)
            return False

        index = [item for item in self._read_index() if item.id != template.id]
        index.append(TemplateListItem.from_template(template))
        try:
            self._write_index(index)
        except OSError as exc:
            logger.error("Failed to update template index for %s: %s", template.id, exc)
            self._restore(path, previous)
            return False
        logger.info("Saved template %s to %s", template.id, self.directory)
        return True

    def load(self, template_id: str) -> AgreementTemplate | None:
        if not SAFE_ID.match(template_id):
            return None
        path = self._path(template_id)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                return template_from_dict(json.load(handle))
        except ValidationError as exc:
            logger.error("Invalid template document %s: %s", path, exc)
            return None
        except (OSError, ValueError) as exc:
            logger.error("Failed to load template %s: %s", template_id, exc)
            return None

    def list(self) -> list[TemplateListItem]:
        return self._read_index()

    def delete(self, template_id: str) -> bool:
        if not SAFE_ID.match(template_id):
            return False
        path = self._path(template_id)
        index = self._read_index()
        remaining = [item for item in index if item.id != template_id]
        if not path.exists() and len(remaining) == len(index):
            return False
        try:
            if path.exists():
                path.unlink()
            self._write_index(remaining)
        except OSError as exc:
            logger.error("Failed to delete template %s: %s", template_id, exc)
            return False
        return True

    def _path(self, template_id: str) -> Path:
        return self.directory / f"{self.FILE_PREFIX}{template_id}.json"

    def _read_index(self) -> list[TemplateListItem]:
        path = self.directory / self.INDEX_NAME
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                rows = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable template index %s: %s", path, exc)
            return []
        if not isinstance(rows, list):
            logger.warning("Ignoring template index %s: expected a list", path)
            return []

        items: list[TemplateListItem] = []
        for row in rows:
            try:
                items.append(TemplateListItem.model_validate(row))
            except ValidationError as exc:
                logger.warning("Skipping invalid template index row %r: %s", row, exc)
        return items

    def _write_index(self, items: list[TemplateListItem]) -> None:
        self._write(
            self.directory / self.INDEX_NAME,
            [item.model_dump(mode="json", by_alias=True) for item in items],
        )

    def _restore(self, path: Path, previous: bytes | None) -> None:
        try:
            if previous is None:
                path.unlink(missing_ok=True)
            else:
                path.write_bytes(previous)
        except OSError as exc:
            logger.error("Failed to roll back %s: %s", path, exc)

    @staticmethod
    def _write(path: Path, payload: object) -> None:
        temp = path.with_suffix(".tmp")
        with temp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        temp.replace(path)


class TemplateLibrary:
    """Create, save, duplicate and retire templates through a ``TemplateStore``.

    A failed save leaves the caller's in-memory template untouched and raises
    ``PersistenceError``; retrying or discarding is up to the caller. The last
    save wins.
    """

    def __init__(self, store: TemplateStore, clock: Callable[[], datetime] = utc_now) -> None:
        self.store = store
        self._clock = clock

    def list(self) -> list[TemplateListItem]:
        return self.store.list()

    def get(self, template_id: str) -> AgreementTemplate | None:
        return self.store.load(template_id)

    def create(
        self,
        name: str,
        template_type: TemplateType | str,
        created_by: str,
        *,
        description: str | None = None,
        terms: str = "",
        merge_fields: tuple[str, ...] = (),
    ) -> AgreementTemplate:
        template = new_template(
            name.strip(),
            TemplateType(template_type),
            created_by,
            description=description,
            terms=terms,
            merge_fields=merge_fields,
            now=self._clock(),
        )
        return self.save(template)

    def save(self, template: AgreementTemplate) -> AgreementTemplate:
        self._check_name(template.metadata.name, exclude_id=template.id)
        stamped = replace(template, metadata=replace(template.metadata, updated_at=self._clock()))
        try:
            saved = self.store.save(stamped)
        except Exception as exc:
            raise PersistenceError(f"Failed to save template '{template.metadata.name}'") from exc
        if not saved:
            raise PersistenceError(f"Failed to save template '{template.metadata.name}'")
        return stamped

    def delete(self, template_id: str) -> None:
        try:
            deleted = self.store.delete(template_id)
        except Exception as exc:
            raise PersistenceError(f"Failed to delete template {template_id}") from exc
        if not deleted:
            raise PersistenceError(f"Failed to delete template {template_id}")
        logger.info("Deleted template %s", template_id)

    def duplicate(self, template_id: str, new_name: str | None = None) -> AgreementTemplate:
        original = self._require(template_id)
        now = self._clock()
        copy = replace(
            original,
            metadata=replace(
                original.metadata,
                id=new_template_id(),
                name=(new_name or f"{original.metadata.name} (Copy)").strip(),
                status=TemplateStatus.DRAFT,
                version=original.metadata.version + 1,
                created_at=now,
                updated_at=now,
            ),
        )
        return self.save(copy)

    def set_status(self, template_id: str, status: TemplateStatus | str) -> AgreementTemplate:
        template = self._require(template_id)
        target = TemplateStatus(status)
        current = template.metadata.status
        if not current.can_transition(target):
            raise TemplateValidationError(
                f"Cannot move template from {current.value} to {target.value}"
            )
        logger.info("Template %s: %s -> %s", template_id, current.value, target.value)
        return self.save(replace(template, metadata=replace(template.metadata, status=target)))

    def by_type(self, template_type: TemplateType | str) -> list[TemplateListItem]:
        wanted = TemplateType(template_type)
        return [item for item in self.list() if item.type is wanted]

    def active(self) -> list[TemplateListItem]:
        return [item for item in self.list() if item.status is TemplateStatus.ACTIVE]

    def search(self, query: str) -> list[TemplateListItem]:
        needle = query.lower()
        return [
            item
            for item in self.list()
            if needle in item.name.lower() or needle in item.type.value.lower()
        ]

    def _require(self, template_id: str) -> AgreementTemplate:
        template = self.store.load(template_id)
        if template is None:
            raise KeyError(template_id)
        return template

    def _check_name(self, name: str, exclude_id: str) -> None:
        cleaned = name.strip()
        problems: list[str] = []
        if not NAME_MIN_LENGTH <= len(cleaned) <= NAME_MAX_LENGTH:
            problems.append(
                f"Template name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters"
            )
        folded = cleaned.casefold()
        for item in self.store.list():
            if item.id != exclude_id and item.name.strip().casefold() == folded:
                problems.append(f"A template named '{cleaned}' already exists")
                break
        if problems:
            raise TemplateValidationError("; ".join(problems), problems)
