"""PDF loading helpers."""

from __future__ import annotations

from enum import Enum
import logging
import os
from pathlib import Path
import shutil
import tempfile
from typing import Callable

import fitz

from agreement_vault.errors import AgreementVaultError
from agreement_vault.model.document import PdfDocument

logger = logging.getLogger(__name__)


class LoadError(AgreementVaultError):
    """Raised when a PDF cannot be fetched or parsed."""


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


def load_pdf(path: str | Path) -> PdfDocument:
    source_path = Path(path)
    if not source_path.exists():
        raise LoadError(f"File not found: {source_path}")

    fd, temp_path = tempfile.mkstemp(prefix=".pdf_work_", suffix=".pdf")
    os.close(fd)
    try:
        shutil.copy2(source_path, temp_path)
        handle = fitz.open(temp_path)
        if handle.page_count < 1:
            handle.close()
            raise LoadError(f"PDF has no pages: {source_path}")
    except LoadError:
        os.remove(temp_path)
        raise
    except Exception as exc:
        os.remove(temp_path)
        raise LoadError(f"Failed to open PDF: {source_path}") from exc

    logger.info("Loaded %s (%d page(s))", source_path, handle.page_count)
    return PdfDocument(path=source_path, working_path=Path(temp_path), handle=handle)


class DocumentLoader:
    """Tracks one document load as ``loading -> ready | error``.

    A failed load stays in the error state with its message until the host
    calls ``retry`` or loads another source; nothing is retried automatically.
    """

    def __init__(
        self,
        loader: Callable[[str | Path], PdfDocument] = load_pdf,
        on_state_change: Callable[[LoadState], None] | None = None,
    ) -> None:
        self._loader = loader
        self._on_state_change = on_state_change
        self._state = LoadState.IDLE
        self._source: str | Path | None = None
        self._document: PdfDocument | None = None
        self._error: str | None = None

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def document(self) -> PdfDocument | None:
        return self._document

    @property
    def error(self) -> str | None:
        return self._error

    def load(self, source: str | Path) -> PdfDocument | None:
        self.close()
        self._source = source
        self._error = None
        self._set_state(LoadState.LOADING)
        try:
            self._document = self._loader(source)
        except LoadError as exc:
            self._error = str(exc)
            logger.error("Document load failed: %s", exc)
            self._set_state(LoadState.ERROR)
            return None
        self._set_state(LoadState.READY)
        return self._document

    def retry(self) -> PdfDocument | None:
        if self._source is None:
            raise LoadError("Nothing to retry; no document has been requested")
        logger.info("Retrying load of %s", self._source)
        return self.load(self._source)

    def close(self) -> None:
        if self._document is not None:
            self._document.close()
            self._document = None
        if self._state is LoadState.READY:
            self._set_state(LoadState.IDLE)

    def _set_state(self, state: LoadState) -> None:
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)
