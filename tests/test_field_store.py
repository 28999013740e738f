"""FieldStore CRUD, clamping and selection tests."""

import pytest

from agreement_vault.errors import PageOutOfRangeError, TemplateValidationError
from agreement_vault.model.field import DetectedField, FieldRect, FieldType
from agreement_vault.state.field_store import FieldStore


class TestAddField:
    def test_checkbox_default_size(self, store: FieldStore):
        field = store.add_field("checkbox", 1, 10, 10)
        assert (field.rect.width, field.rect.height) == (30, 30)

    def test_text_default_size(self, store: FieldStore):
        field = store.add_field("text", 1, 10, 10)
        assert (field.rect.width, field.rect.height) == (120, 30)

    @pytest.mark.parametrize("field_type", [t for t in FieldType if t is not FieldType.CHECKBOX])
    def test_non_checkbox_types_share_default(self, store: FieldStore, field_type: FieldType):
        field = store.add_field(field_type, 2, 0, 0)
        assert (field.rect.width, field.rect.height) == (120, 30)

    def test_label_and_flags(self, store: FieldStore):
        field = store.add_field(FieldType.SIGNATURE, 1, 40, 50)
        assert field.label == "Signature Field"
        assert field.required is False
        assert field.page == 1
        assert (field.rect.x, field.rect.y) == (40, 50)

    def test_dropdown_gets_placeholder_options(self, store: FieldStore):
        field = store.add_field("dropdown", 1, 0, 0)
        assert field.options == ("Option 1", "Option 2")

    def test_negative_drop_position_is_clamped(self, store: FieldStore):
        field = store.add_field("text", 1, -15, -3)
        assert (field.rect.x, field.rect.y) == (0, 0)

    def test_ids_are_unique(self, store: FieldStore):
        ids = {store.add_field("text", 1, 0, 0).id for _ in range(20)}
        assert len(ids) == 20

    def test_new_field_is_selected(self, store: FieldStore):
        field = store.add_field("date", 1, 0, 0)
        assert store.selected == field

    def test_page_must_exist(self, store: FieldStore):
        with pytest.raises(PageOutOfRangeError):
            store.add_field("text", 4, 0, 0)
        with pytest.raises(PageOutOfRangeError):
            store.add_field("text", 0, 0, 0)

    def test_requires_owning_document(self, settings):
        unbound = FieldStore(settings=settings)
        with pytest.raises(TemplateValidationError):
            unbound.add_field("text", 1, 0, 0)

    def test_notifies_host(self, store: FieldStore, changes: list):
        field = store.add_field("text", 1, 0, 0)
        assert changes == [(field,)]


class TestGeometry:
    def test_move_adds_delta(self, store: FieldStore):
        field = store.add_field("text", 1, 100, 50)
        moved = store.move_field(field.id, 25, -10)
        assert (moved.rect.x, moved.rect.y) == (125, 40)

    def test_move_clamps_at_zero(self, store: FieldStore):
        field = store.add_field("text", 1, 10, 10)
        moved = store.move_field(field.id, -40, -11)
        assert (moved.rect.x, moved.rect.y) == (0, 0)

    def test_resize_adds_delta(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        resized = store.resize_field(field.id, 30, 10)
        assert (resized.rect.width, resized.rect.height) == (150, 40)

    def test_resize_clamps_at_minimum(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        resized = store.resize_field(field.id, -500, -500)
        assert (resized.rect.width, resized.rect.height) == (30, 20)

    def test_operations_do_not_mutate_previous_snapshot(self, store: FieldStore):
        field = store.add_field("text", 1, 10, 10)
        before = store.fields
        store.move_field(field.id, 5, 5)
        assert before[0].rect == FieldRect(10, 10, 120, 30)
        assert store.fields is not before

    def test_unknown_id(self, store: FieldStore):
        with pytest.raises(KeyError):
            store.move_field("missing", 1, 1)


class TestEditing:
    def test_update_properties(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        updated = store.update_field(field.id, label="Buyer", required=True, merge_field="customer_name")
        assert updated.label == "Buyer"
        assert updated.required is True
        assert updated.merge_field == "customer_name"
        assert updated.rect == field.rect

    def test_update_rejects_geometry_and_identity(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        with pytest.raises(TemplateValidationError):
            store.update_field(field.id, rect=FieldRect(0, 0, 1, 1))
        with pytest.raises(TemplateValidationError):
            store.update_field(field.id, id="other")

    def test_update_checks_page(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        assert store.update_field(field.id, page=3).page == 3
        with pytest.raises(PageOutOfRangeError):
            store.update_field(field.id, page=9)

    def test_empty_merge_field_clears_binding(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        store.update_field(field.id, merge_field="customer_name")
        assert store.update_field(field.id, merge_field="").merge_field is None

    def test_invalid_format_rule_rejected(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        with pytest.raises(TemplateValidationError):
            store.update_field(field.id, validation={"pattern": "[A-Z"})
        assert store.get(field.id).validation is None
        assert store.update_field(field.id, validation={"pattern": "[A-Z]+"}).validation.pattern == "[A-Z]+"

    def test_remove_clears_selection(self, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        store.remove_field(field.id)
        assert len(store) == 0
        assert store.selected is None

    def test_duplicate_offsets_copy(self, store: FieldStore):
        field = store.add_field("email", 2, 10, 20)
        copy = store.duplicate_field(field.id)
        assert copy.id != field.id
        assert (copy.rect.x, copy.rect.y) == (22, 32)
        assert copy.page == 2
        assert store.selected == copy

    def test_single_selection(self, store: FieldStore):
        first = store.add_field("text", 1, 0, 0)
        second = store.add_field("text", 1, 0, 50)
        store.select_field(first.id)
        assert store.selected_id == first.id
        store.select_field(second.id)
        assert store.selected_id == second.id
        store.select_field(None)
        assert store.selected is None

    def test_fields_on_page(self, store: FieldStore):
        store.add_field("text", 1, 0, 0)
        on_two = store.add_field("text", 2, 0, 0)
        assert store.fields_on_page(2) == [on_two]


class TestDetectedFields:
    def test_detected_fields_use_creation_path(self, store: FieldStore):
        proposal = DetectedField(
            page=1,
            label="Customer Name",
            field_type=FieldType.TEXT,
            rect=FieldRect(72, 100, 200, 12),
            required=True,
            suggested_merge_field="customer_name",
        )
        (placed,) = store.add_detected([proposal])
        assert placed.label == "Customer Name"
        assert placed.merge_field == "customer_name"
        assert placed.required is True
        assert placed.rect == FieldRect(72, 100, 200, 20)

    def test_blank_label_gets_default(self, store: FieldStore):
        proposal = DetectedField(page=1, label="", field_type=FieldType.DATE, rect=FieldRect(0, 0, 90, 30))
        (placed,) = store.add_detected([proposal])
        assert placed.label == "Date Field"

    def test_duplicate_ids_rejected(self, settings, store: FieldStore):
        field = store.add_field("text", 1, 0, 0)
        with pytest.raises(TemplateValidationError):
            FieldStore("doc.pdf", 1, fields=[field, field], settings=settings)
