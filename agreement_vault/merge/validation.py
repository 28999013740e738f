"""Required-value checks and agreement finalization."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from agreement_vault.errors import TemplateValidationError
from agreement_vault.merge.registry import MergeFieldRegistry
from agreement_vault.merge.substitution import Values, filled_value, substitute, unresolved_tokens
from agreement_vault.model.field import check_value
from agreement_vault.model.template import AgreementTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    missing: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.missing


def validate(template: AgreementTemplate, values: Values) -> ValidationResult:
    """Merge tokens the template depends on that have no non-blank value."""
    missing = tuple(token for token in template.merge_fields if filled_value(values, token) is None)
    return ValidationResult(missing=missing)


def finalize(
    template: AgreementTemplate,
    values: Values,
    registry: MergeFieldRegistry | None = None,
) -> str:
    """Render the template terms, refusing while any merge value is missing.

    Raises:
        TemplateValidationError: naming each missing token by its display
            label, or listing field value problems when the template
            requires all fields to be valid.
    """
    registry = registry or MergeFieldRegistry()
    result = validate(template, values)
    if not result.ok:
        labels = [registry.label_for(token) for token in result.missing]
        logger.warning("Refusing to finalize %s; missing %s", template.id, ", ".join(result.missing))
        raise TemplateValidationError(f"Please fill in: {', '.join(labels)}", labels)

    if template.settings.require_all_fields:
        problems: list[str] = []
        for item in template.fields:
            if item.merge_field:
                problems.extend(check_value(item, filled_value(values, item.merge_field)))
        if problems:
            raise TemplateValidationError("; ".join(problems), problems)

    rendered = substitute(template.terms, values)
    logger.info("Finalized agreement text for template %s", template.id)
    return rendered


def preview(template: AgreementTemplate, values: Values) -> str:
    """Render the terms for display, leaving missing tokens visible."""
    gaps = unresolved_tokens(template.terms, values)
    if gaps:
        logger.debug("Preview of %s leaves %d token(s) unresolved: %s", template.id, len(gaps), gaps)
    return substitute(template.terms, values)
