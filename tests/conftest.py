"""
pytest configuration and shared fixtures

Usage:
    def test_something(store, sample_template):
        assert store.document_id == "contract.pdf"
"""

from __future__ import annotations

from pathlib import Path

import fitz
import pytest

from agreement_vault.config import EditorSettings
from agreement_vault.model.document import PageMetrics
from agreement_vault.model.template import AgreementTemplate, TemplateType, new_template
from agreement_vault.state.field_store import FieldStore
from agreement_vault.storage.templates import InMemoryTemplateStore, TemplateLibrary
from agreement_vault.viewer.page_model import PageCanvasModel

LETTER = (612.0, 792.0)


# ============================================================================
# Settings and editor state
# ============================================================================

@pytest.fixture
def settings() -> EditorSettings:
    """Default editor settings."""
    return EditorSettings()


@pytest.fixture
def changes() -> list:
    """Collects every field tuple reported by the store."""
    return []


@pytest.fixture
def store(settings: EditorSettings, changes: list) -> FieldStore:
    """A store bound to a three-page document."""
    return FieldStore(
        document_id="contract.pdf",
        page_count=3,
        on_fields_change=changes.append,
        settings=settings,
    )


@pytest.fixture
def page_model(settings: EditorSettings) -> PageCanvasModel:
    return PageCanvasModel([PageMetrics(*LETTER)] * 3, settings=settings)


# ============================================================================
# Templates
# ============================================================================

@pytest.fixture
def sample_template() -> AgreementTemplate:
    return new_template(
        "Standard Purchase Agreement",
        TemplateType.PURCHASE,
        "sales@dealer.example",
        terms="Dealer: {{company_name}}, Buyer: {{customer_name}}",
        merge_fields=("company_name", "customer_name"),
    )


@pytest.fixture
def library() -> TemplateLibrary:
    return TemplateLibrary(InMemoryTemplateStore())


# ============================================================================
# PDF files
# ============================================================================

@pytest.fixture
def pdf_path(tmp_path: Path) -> Path:
    """A blank two-page letter PDF."""
    path = tmp_path / "blank.pdf"
    doc = fitz.open()
    doc.new_page(width=LETTER[0], height=LETTER[1])
    doc.new_page(width=LETTER[0], height=LETTER[1])
    doc.save(path)
    doc.close()
    return path


@pytest.fixture
def form_pdf_path(tmp_path: Path) -> Path:
    """A one-page PDF with a required text widget and a checkbox widget."""
    path = tmp_path / "form.pdf"
    doc = fitz.open()
    page = doc.new_page(width=LETTER[0], height=LETTER[1])

    text = fitz.Widget()
    text.field_type = fitz.PDF_WIDGET_TYPE_TEXT
    text.field_name = "customer_name"
    text.rect = fitz.Rect(72, 100, 272, 124)
    text.field_flags = fitz.PDF_FIELD_IS_REQUIRED
    page.add_widget(text)

    box = fitz.Widget()
    box.field_type = fitz.PDF_WIDGET_TYPE_CHECKBOX
    box.field_name = "agree_terms"
    box.rect = fitz.Rect(72, 200, 90, 218)
    page.add_widget(box)

    doc.save(path)
    doc.close()
    return path
