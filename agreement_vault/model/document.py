"""Document model for the source PDF a template is drawn over."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

import fitz

from agreement_vault.errors import PageOutOfRangeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageMetrics:
    width_pt: float
    height_pt: float


@dataclass(slots=True)
class PdfDocument:
    path: Path
    working_path: Path
    handle: fitz.Document

    @property
    def document_id(self) -> str:
        return self.path.name

    @property
    def page_count(self) -> int:
        return self.handle.page_count

    def page_size(self, page: int) -> PageMetrics:
        if page < 1 or page > self.page_count:
            raise PageOutOfRangeError(f"Page {page} is outside 1..{self.page_count}")
        rect = self.handle.load_page(page - 1).rect
        return PageMetrics(width_pt=float(rect.width), height_pt=float(rect.height))

    def page_sizes(self) -> list[PageMetrics]:
        return [self.page_size(page) for page in range(1, self.page_count + 1)]

    def close(self) -> None:
        if not self.handle.is_closed:
            self.handle.close()
        if self.working_path != self.path and self.working_path.exists():
            try:
                os.remove(self.working_path)
            except OSError:
                logger.warning("Could not remove working copy %s", self.working_path)
