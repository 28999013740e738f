"""Document loading and form-widget detection tests."""

from pathlib import Path

import pytest

from agreement_vault.model.field import FieldType
from agreement_vault.pdf.importer import FieldImportError, detect_pdf_fields
from agreement_vault.pdf.loader import DocumentLoader, LoadError, LoadState, load_pdf


class TestLoadPdf:
    def test_page_count_and_sizes(self, pdf_path: Path):
        document = load_pdf(pdf_path)
        try:
            assert document.page_count == 2
            assert document.page_size(2).width_pt == pytest.approx(612)
            assert document.page_size(2).height_pt == pytest.approx(792)
            assert document.document_id == "blank.pdf"
            assert document.working_path != pdf_path
        finally:
            document.close()
        assert not document.working_path.exists()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(LoadError):
            load_pdf(tmp_path / "nope.pdf")

    def test_not_a_pdf(self, tmp_path: Path):
        bogus = tmp_path / "bogus.pdf"
        bogus.write_bytes(b"this is not a pdf")
        with pytest.raises(LoadError):
            load_pdf(bogus)


class TestDocumentLoader:
    def test_ready(self, pdf_path: Path):
        states = []
        loader = DocumentLoader(on_state_change=states.append)
        document = loader.load(pdf_path)
        assert loader.state is LoadState.READY
        assert loader.document is document
        assert states == [LoadState.LOADING, LoadState.READY]
        loader.close()
        assert loader.document is None

    def test_error_then_explicit_retry(self, pdf_path: Path):
        attempts = []

        def flaky(source):
            attempts.append(source)
            if len(attempts) == 1:
                raise LoadError("network hiccup")
            return load_pdf(source)

        loader = DocumentLoader(loader=flaky)
        assert loader.load(pdf_path) is None
        assert loader.state is LoadState.ERROR
        assert loader.error == "network hiccup"
        assert len(attempts) == 1

        assert loader.retry() is not None
        assert loader.state is LoadState.READY
        assert loader.error is None
        loader.close()

    def test_retry_without_source(self):
        with pytest.raises(LoadError):
            DocumentLoader().retry()


class TestDetectFields:
    def test_widgets_become_detected_fields(self, form_pdf_path: Path):
        detected = {item.label: item for item in detect_pdf_fields(form_pdf_path)}
        assert set(detected) == {"Customer Name", "Agree Terms"}

        name = detected["Customer Name"]
        assert name.field_type is FieldType.TEXT
        assert name.page == 1
        assert name.required is True
        assert name.suggested_merge_field == "customer_name"
        assert name.rect.x == pytest.approx(72)
        assert name.rect.y == pytest.approx(100)
        assert name.rect.width == pytest.approx(200)
        assert name.rect.height == pytest.approx(24)

        box = detected["Agree Terms"]
        assert box.field_type is FieldType.CHECKBOX
        assert box.suggested_merge_field is None
        assert box.required is False

    def test_blank_pdf_has_no_fields(self, pdf_path: Path):
        assert detect_pdf_fields(pdf_path) == []

    def test_unreadable_file(self, tmp_path: Path):
        bogus = tmp_path / "bogus.pdf"
        bogus.write_bytes(b"garbage")
        with pytest.raises(FieldImportError):
            detect_pdf_fields(bogus)

    def test_feeds_field_store(self, form_pdf_path: Path, store):
        placed = store.add_detected(detect_pdf_fields(form_pdf_path))
        assert len(placed) == 2
        assert {item.merge_field for item in placed} == {"customer_name", None}
