"""Catalog of merge tokens available to agreement templates."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Iterable

from agreement_vault.errors import TemplateValidationError
from agreement_vault.model.field import TemplateField

logger = logging.getLogger(__name__)

TOKEN_KEY = re.compile(r"^[A-Za-z0-9_]+$")
OTHER_CATEGORY = "Other"

CATEGORIES: tuple[str, ...] = (
    "Customer",
    "Vehicle",
    "Financial",
    "Agreement",
    "Company",
    "System",
    "Service",
    "Delivery",
    "Payment",
    "Additional",
)


@dataclass(frozen=True, slots=True)
class MergeFieldDefinition:
    key: str
    label: str
    category: str
    description: str | None = None
    custom: bool = False


@dataclass(frozen=True, slots=True)
class MappingSummary:
    total: int
    mapped: int
    unmapped: int


def _standard(category: str, *entries: tuple[str, str]) -> list[MergeFieldDefinition]:
    return [MergeFieldDefinition(key=key, label=label, category=category) for key, label in entries]


STANDARD_MERGE_FIELDS: tuple[MergeFieldDefinition, ...] = tuple(
    _standard(
        "Customer",
        ("customer_name", "Customer Name"),
        ("customer_email", "Customer Email"),
        ("customer_phone", "Customer Phone"),
        ("customer_address", "Customer Address"),
        ("emergency_contact", "Emergency Contact"),
        ("preferred_contact", "Preferred Contact Method"),
    )
    + _standard(
        "Vehicle",
        ("vehicle_info", "Vehicle/Home Info"),
        ("vehicle_vin", "VIN/Serial Number"),
        ("vehicle_year", "Year"),
        ("vehicle_make", "Make"),
        ("vehicle_model", "Model"),
        ("property_address", "Property Address"),
    )
    + _standard(
        "Financial",
        ("total_amount", "Total Amount"),
        ("down_payment", "Down Payment"),
        ("financing_amount", "Financing Amount"),
        ("monthly_payment", "Monthly Payment"),
        ("security_deposit", "Security Deposit"),
        ("annual_fee", "Annual Fee"),
        ("interest_rate", "Interest Rate"),
        ("loan_term", "Loan Term (months)"),
        ("warranty_fee", "Warranty Fee"),
    )
    + _standard(
        "Agreement",
        ("effective_date", "Effective Date"),
        ("expiration_date", "Expiration Date"),
        ("coverage_level", "Coverage Level"),
        ("lease_term", "Lease Term (months)"),
        ("warranty_period", "Warranty Period (months)"),
    )
    + _standard(
        "Company",
        ("company_name", "Company Name"),
        ("company_phone", "Company Phone"),
        ("company_email", "Company Email"),
        ("company_address", "Company Address"),
    )
    + _standard(
        "System",
        ("current_date", "Current Date"),
        ("quote_number", "Quote Number"),
        ("agreement_number", "Agreement Number"),
    )
    + _standard(
        "Service",
        ("service_address", "Service Address"),
        ("emergency_response_time", "Emergency Response Time"),
        ("routine_response_time", "Routine Response Time"),
        ("maintenance_schedule", "Maintenance Schedule"),
    )
    + _standard(
        "Delivery",
        ("delivery_date", "Delivery Date"),
        ("delivery_address", "Delivery Address"),
    )
    + _standard(
        "Payment",
        ("payment_due_date", "Payment Due Date"),
        ("late_fee_amount", "Late Fee Amount"),
        ("grace_period_days", "Grace Period (days)"),
    )
    + _standard(
        "Additional",
        ("utilities_included", "Utilities Included"),
        ("additional_services", "Additional Services"),
        ("covered_components", "Covered Components"),
        ("additional_terms", "Additional Terms"),
    )
)


def humanize(key: str) -> str:
    """``customer_name`` -> ``Customer Name``."""
    return " ".join(part.capitalize() for part in key.split("_") if part)


class MergeFieldRegistry:
    """Standard tokens plus custom tokens added during an editing session.

    Custom tokens live only as long as this registry; they survive a reload
    only if the host also writes them into the template's merge fields.
    """

    def __init__(
        self,
        custom: Iterable[MergeFieldDefinition] = (),
        standard: Iterable[MergeFieldDefinition] = STANDARD_MERGE_FIELDS,
    ) -> None:
        self._standard = {entry.key: entry for entry in standard}
        self._custom: dict[str, MergeFieldDefinition] = {}
        for entry in custom:
            self.add_custom(entry.key, entry.label, entry.description)

    def resolve(self, key: str) -> MergeFieldDefinition | None:
        return self._standard.get(key) or self._custom.get(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.resolve(key) is not None

    def label_for(self, key: str) -> str:
        entry = self.resolve(key)
        return entry.label if entry is not None else humanize(key)

    def category_for(self, key: str) -> str:
        entry = self.resolve(key)
        return entry.category if entry is not None else OTHER_CATEGORY

    def add_custom(self, key: str, label: str, description: str | None = None) -> MergeFieldDefinition:
        key = (key or "").strip()
        label = (label or "").strip()
        problems: list[str] = []
        if not TOKEN_KEY.match(key):
            problems.append("Token key may only contain letters, digits and underscores")
        if not label:
            problems.append("Token label is required")
        if key in self._standard or key in self._custom:
            problems.append(f"Token '{key}' already exists")
        if problems:
            raise TemplateValidationError("; ".join(problems), problems)

        entry = MergeFieldDefinition(
            key=key,
            label=label,
            category="Custom",
            description=description or f"Custom field: {label}",
            custom=True,
        )
        self._custom[key] = entry
        logger.info("Added custom merge field %s", key)
        return entry

    def remove_custom(self, key: str) -> bool:
        return self._custom.pop(key, None) is not None

    def custom_fields(self) -> list[MergeFieldDefinition]:
        return list(self._custom.values())

    def all_fields(self) -> list[MergeFieldDefinition]:
        return [*self._standard.values(), *self._custom.values()]

    def grouped(self) -> dict[str, list[MergeFieldDefinition]]:
        groups: dict[str, list[MergeFieldDefinition]] = {category: [] for category in CATEGORIES}
        for entry in self._standard.values():
            groups.setdefault(entry.category, []).append(entry)
        if self._custom:
            groups["Custom"] = list(self._custom.values())
        return groups

    @staticmethod
    def used_tokens(fields: Iterable[TemplateField]) -> list[str]:
        seen: dict[str, None] = {}
        for item in fields:
            if item.merge_field:
                seen.setdefault(item.merge_field, None)
        return list(seen)

    @staticmethod
    def mapping_summary(fields: Iterable[TemplateField]) -> MappingSummary:
        items = list(fields)
        mapped = sum(1 for item in items if item.merge_field)
        return MappingSummary(total=len(items), mapped=mapped, unmapped=len(items) - mapped)
