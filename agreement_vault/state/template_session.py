"""The template being edited: its terms, merge-token bindings and sample values."""

from __future__ import annotations

from dataclasses import replace
import logging

from agreement_vault.errors import TemplateValidationError
from agreement_vault.merge.registry import MergeFieldDefinition, MergeFieldRegistry
from agreement_vault.merge.substitution import extract_tokens
from agreement_vault.merge.validation import finalize, preview, validate
from agreement_vault.model.field import TemplateField
from agreement_vault.model.template import AgreementTemplate
from agreement_vault.state.field_store import FieldStore

logger = logging.getLogger(__name__)


class TemplateSession:
    """Pairs a template with the field store that holds its placed fields.

    The template's ``merge_fields`` are derived, not edited directly: the tokens
    written in the terms come first, followed by tokens bound only to fields.
    Sample values live for the session and are never saved with the template.
    """

    def __init__(
        self,
        template: AgreementTemplate,
        store: FieldStore,
        registry: MergeFieldRegistry | None = None,
    ) -> None:
        self._template = template
        self._store = store
        self.registry = registry or MergeFieldRegistry()
        self._values: dict[str, str] = {}

    @property
    def store(self) -> FieldStore:
        return self._store

    @property
    def terms(self) -> str:
        return self._template.terms

    @property
    def values(self) -> dict[str, str]:
        return dict(self._values)

    def set_terms(self, terms: str) -> None:
        self._template = replace(self._template, terms=terms)

    def merge_fields(self) -> tuple[str, ...]:
        seen = dict.fromkeys(extract_tokens(self._template.terms))
        for token in self.registry.used_tokens(self._store.fields):
            seen.setdefault(token, None)
        return tuple(seen)

    def bind_field(self, field_id: str, token: str | None) -> TemplateField:
        if token and token not in self.registry:
            raise TemplateValidationError(f"Unknown merge field '{token}'")
        bound = self._store.update_field(field_id, merge_field=token or None)
        logger.debug("Bound field %s to %s", field_id, bound.merge_field)
        return bound

    def add_custom_token(self, key: str, label: str, description: str | None = None) -> MergeFieldDefinition:
        return self.registry.add_custom(key, label, description)

    def set_value(self, token: str, value: str) -> None:
        if value == "":
            self._values.pop(token, None)
        else:
            self._values[token] = value

    def missing(self) -> tuple[str, ...]:
        return validate(self.snapshot(), self._values).missing

    def preview(self) -> str:
        return preview(self.snapshot(), self._values)

    def finalize(self) -> str:
        return finalize(self.snapshot(), self._values, self.registry)

    def snapshot(self, name: str | None = None) -> AgreementTemplate:
        """The template as it would be saved right now."""
        metadata = self._template.metadata
        if name is not None:
            metadata = replace(metadata, name=name.strip())
        return replace(
            self._template,
            metadata=metadata,
            fields=self._store.fields,
            merge_fields=self.merge_fields(),
        )

    def mark_saved(self, template: AgreementTemplate) -> None:
        self._template = template
