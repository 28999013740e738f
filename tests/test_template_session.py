"""Template editing session tests: terms, token bindings, preview and finalize."""

import pytest

from agreement_vault.errors import TemplateValidationError
from agreement_vault.state.template_session import TemplateSession


@pytest.fixture
def session(sample_template, store) -> TemplateSession:
    return TemplateSession(sample_template, store)


class TestMergeFields:
    def test_terms_tokens_come_first(self, session: TemplateSession, store):
        field = store.add_field("text", 1, 0, 0)
        session.bind_field(field.id, "vehicle_vin")
        assert session.merge_fields() == ("company_name", "customer_name", "vehicle_vin")

    def test_editing_terms_changes_tokens(self, session: TemplateSession):
        session.set_terms("Term: {{loan_term}} months at {{interest_rate}}")
        assert session.merge_fields() == ("loan_term", "interest_rate")

    def test_bound_token_not_repeated(self, session: TemplateSession, store):
        field = store.add_field("text", 1, 0, 0)
        session.bind_field(field.id, "customer_name")
        assert session.merge_fields() == ("company_name", "customer_name")


class TestBinding:
    def test_bind_and_clear(self, session: TemplateSession, store):
        field = store.add_field("text", 1, 0, 0)
        assert session.bind_field(field.id, "customer_name").merge_field == "customer_name"
        assert session.bind_field(field.id, None).merge_field is None

    def test_unknown_token_rejected(self, session: TemplateSession, store):
        field = store.add_field("text", 1, 0, 0)
        with pytest.raises(TemplateValidationError):
            session.bind_field(field.id, "no_such_token")
        assert store.get(field.id).merge_field is None

    def test_custom_token_can_be_bound(self, session: TemplateSession, store):
        field = store.add_field("text", 1, 0, 0)
        session.add_custom_token("trade_in", "Trade-In Allowance")
        assert session.bind_field(field.id, "trade_in").merge_field == "trade_in"


class TestRendering:
    def test_preview_leaves_gaps(self, session: TemplateSession):
        session.set_value("customer_name", "Jane")
        assert session.preview() == "Dealer: {{company_name}}, Buyer: Jane"
        assert session.missing() == ("company_name",)

    def test_finalize_refuses_then_renders(self, session: TemplateSession):
        session.set_value("customer_name", "Jane")
        with pytest.raises(TemplateValidationError) as excinfo:
            session.finalize()
        assert excinfo.value.problems == ["Company Name"]

        session.set_value("company_name", "Acme RV")
        assert session.finalize() == "Dealer: Acme RV, Buyer: Jane"

    def test_clearing_a_value(self, session: TemplateSession):
        session.set_value("company_name", "Acme RV")
        session.set_value("company_name", "")
        assert "company_name" not in session.values

    def test_finalize_uses_custom_labels(self, session: TemplateSession):
        session.add_custom_token("trade_in", "Trade-In Allowance")
        session.set_terms("Allowance: {{trade_in}}")
        with pytest.raises(TemplateValidationError) as excinfo:
            session.finalize()
        assert excinfo.value.problems == ["Trade-In Allowance"]


class TestSnapshot:
    def test_snapshot_carries_fields_and_tokens(self, session: TemplateSession, store):
        field = store.add_field("text", 1, 10, 10)
        session.bind_field(field.id, "vehicle_vin")
        snapshot = session.snapshot(" Retail Purchase ")
        assert snapshot.metadata.name == "Retail Purchase"
        assert snapshot.fields == store.fields
        assert snapshot.merge_fields == ("company_name", "customer_name", "vehicle_vin")

    def test_saved_template_round_trips_through_library(self, session: TemplateSession, library):
        saved = library.save(session.snapshot("Retail Purchase"))
        session.mark_saved(saved)
        assert library.get(saved.id) == session.snapshot()
