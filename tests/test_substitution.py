"""Token substitution, validation and finalization tests."""

from dataclasses import replace

import pytest

from agreement_vault.errors import TemplateValidationError
from agreement_vault.merge.registry import MergeFieldRegistry
from agreement_vault.merge.substitution import extract_tokens, substitute, unresolved_tokens
from agreement_vault.merge.validation import finalize, preview, validate
from agreement_vault.model.field import FieldRect, FieldType, FieldValidation, TemplateField
from agreement_vault.model.template import TemplateSettings


class TestSubstitute:
    def test_unresolved_left_intact(self):
        assert substitute("Hello {{x}}", {}) == "Hello {{x}}"

    def test_all_occurrences_replaced(self):
        assert substitute("{{a}} and {{a}}", {"a": "Z"}) == "Z and Z"

    def test_end_to_end(self):
        text = "Dealer: {{company_name}}, Buyer: {{customer_name}}"
        values = {"company_name": "Acme RV", "customer_name": "John Doe"}
        assert substitute(text, values) == "Dealer: Acme RV, Buyer: John Doe"

    @pytest.mark.parametrize("empty", ["", None])
    def test_empty_values_do_not_blank_tokens(self, empty):
        assert substitute("Total: {{total_amount}}", {"total_amount": empty}) == "Total: {{total_amount}}"

    def test_whitespace_value_is_inserted(self):
        assert substitute("A{{x}}B", {"x": " "}) == "A B"
        assert unresolved_tokens("A{{x}}B", {"x": " "}) == []

    def test_case_sensitive(self):
        assert substitute("{{Name}} {{name}}", {"name": "x"}) == "{{Name}} x"

    def test_values_inserted_literally(self):
        assert substitute("{{a}}", {"a": r"\1 $0 \g<0>"}) == r"\1 $0 \g<0>"

    def test_values_not_rescanned(self):
        assert substitute("{{a}} {{b}}", {"a": "{{b}}", "b": "B"}) == "{{b}} B"

    def test_non_string_values(self):
        assert substitute("{{term}} months", {"term": 60}) == "60 months"

    def test_malformed_tokens_ignored(self):
        text = "{{ spaced }} {single} {{dash-key}}"
        assert substitute(text, {"spaced": "x", "dash-key": "y"}) == text

    @pytest.mark.parametrize(
        "text,values",
        [
            ("Hello {{x}}", {}),
            ("{{a}}{{a}}{{b}}", {"a": "1"}),
            ("Buyer {{customer_name}} pays {{total_amount}}", {"customer_name": "Jane", "total_amount": ""}),
            ("", {"a": "1"}),
        ],
    )
    def test_idempotent(self, text, values):
        once = substitute(text, values)
        assert substitute(once, values) == once

    def test_extract_tokens_in_order(self):
        assert extract_tokens("{{b}} {{a}} {{b}}") == ["b", "a"]

    def test_unresolved_tokens(self):
        assert unresolved_tokens("{{a}} {{b}}", {"a": "1"}) == ["b"]


class TestValidate:
    def test_reports_missing(self, sample_template):
        template = replace(sample_template, merge_fields=("customer_name", "total_amount"))
        result = validate(template, {"customer_name": "Jane"})
        assert result.missing == ("total_amount",)
        assert not result.ok

    def test_blank_counts_as_missing(self, sample_template):
        result = validate(sample_template, {"company_name": " ", "customer_name": "Jane"})
        assert result.missing == ("company_name",)

    def test_complete(self, sample_template):
        assert validate(sample_template, {"company_name": "Acme RV", "customer_name": "Jane"}).ok


class TestFinalize:
    def test_renders_terms(self, sample_template):
        values = {"company_name": "Acme RV", "customer_name": "John Doe"}
        assert finalize(sample_template, values) == "Dealer: Acme RV, Buyer: John Doe"

    def test_refuses_with_labels(self, sample_template):
        template = replace(sample_template, merge_fields=("customer_name", "total_amount", "trade_in"))
        with pytest.raises(TemplateValidationError) as excinfo:
            finalize(template, {"customer_name": "Jane"})
        assert excinfo.value.problems == ["Total Amount", "Trade In"]
        assert "Total Amount" in str(excinfo.value)

    def test_custom_labels_used(self, sample_template):
        registry = MergeFieldRegistry()
        registry.add_custom("trade_in", "Trade-In Allowance")
        template = replace(sample_template, merge_fields=("trade_in",))
        with pytest.raises(TemplateValidationError) as excinfo:
            finalize(template, {}, registry)
        assert excinfo.value.problems == ["Trade-In Allowance"]

    def test_require_all_fields_checks_values(self, sample_template):
        amount = TemplateField(
            id="f1",
            type=FieldType.NUMBER,
            label="Total Amount",
            rect=FieldRect(0, 0, 120, 30),
            page=1,
            required=True,
            merge_field="total_amount",
            validation=FieldValidation(min=1000),
        )
        template = replace(
            sample_template,
            fields=(amount,),
            merge_fields=("total_amount",),
            terms="Total: {{total_amount}}",
            settings=TemplateSettings(require_all_fields=True),
        )
        with pytest.raises(TemplateValidationError):
            finalize(template, {"total_amount": "500"})
        assert finalize(template, {"total_amount": "45,000"}) == "Total: 45,000"

    def test_preview_never_refuses(self, sample_template):
        assert preview(sample_template, {"customer_name": "Jane"}) == "Dealer: {{company_name}}, Buyer: Jane"

    def test_whitespace_value_still_missing_for_finalize(self, sample_template):
        with pytest.raises(TemplateValidationError) as excinfo:
            finalize(sample_template, {"company_name": "  ", "customer_name": "Jane"})
        assert excinfo.value.problems == ["Company Name"]

    def test_broken_format_rule_is_reported(self, sample_template):
        vin = TemplateField(
            id="f1",
            type=FieldType.TEXT,
            label="VIN",
            rect=FieldRect(0, 0, 120, 30),
            page=1,
            merge_field="customer_name",
            validation=FieldValidation(pattern="[A-Z"),
        )
        template = replace(
            sample_template,
            fields=(vin,),
            settings=TemplateSettings(require_all_fields=True),
        )
        with pytest.raises(TemplateValidationError) as excinfo:
            finalize(template, {"company_name": "Acme RV", "customer_name": "Jane"})
        assert excinfo.value.problems[0].startswith("VIN has an invalid format rule")
