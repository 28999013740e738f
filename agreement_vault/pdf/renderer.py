"""Page rasterization using PyMuPDF."""

from __future__ import annotations

import fitz
from PySide6.QtGui import QImage

from agreement_vault.errors import AgreementVaultError


class PdfRenderError(AgreementVaultError):
    """Raised when a page cannot be rendered."""


def render_page_image(document: fitz.Document, page: int, scale: float = 1.0) -> QImage:
    """Rasterize 1-based ``page`` so one canonical point spans ``scale`` pixels."""
    if page < 1 or page > document.page_count:
        raise PdfRenderError(f"Page out of range: {page}")

    try:
        loaded = document.load_page(page - 1)
        pix = loaded.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False, annots=False)
    except Exception as exc:  # pragma: no cover - PyMuPDF raises assorted types
        raise PdfRenderError(f"Failed to render page {page}") from exc

    image = QImage(pix.samples, pix.width, pix.height, pix.stride, QImage.Format_RGB888)
    return image.copy()
