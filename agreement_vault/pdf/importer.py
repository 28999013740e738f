"""Detect existing AcroForm widgets in a PDF and propose them as template fields."""

from __future__ import annotations

import logging
from pathlib import Path

from pypdf import PdfReader

from agreement_vault.errors import AgreementVaultError
from agreement_vault.merge.registry import MergeFieldRegistry, humanize
from agreement_vault.model.field import DetectedField, FieldRect, FieldType

logger = logging.getLogger(__name__)

REQUIRED_FLAG = 1 << 1
PUSHBUTTON_FLAG = 1 << 16

_WIDGET_TYPES = {
    "/Tx": FieldType.TEXT,
    "/Btn": FieldType.CHECKBOX,
    "/Ch": FieldType.DROPDOWN,
    "/Sig": FieldType.SIGNATURE,
}


class FieldImportError(AgreementVaultError):
    """Raised when existing form fields cannot be imported."""


def detect_pdf_fields(
    source_path: str | Path,
    registry: MergeFieldRegistry | None = None,
) -> list[DetectedField]:
    """Return the PDF's form widgets in canonical, top-left coordinates.

    A widget named after a known merge token is proposed with that token bound.
    Push buttons are skipped.
    """
    source = Path(source_path)
    registry = registry or MergeFieldRegistry()
    detected: list[DetectedField] = []

    try:
        reader = PdfReader(str(source))
        for page_index, page in enumerate(reader.pages):
            box = page.mediabox
            page_left = float(box.left)
            page_top = float(box.top)
            annots = page.get("/Annots")
            for annot_ref in annots.get_object() if annots is not None else []:
                annot = annot_ref.get_object()
                if annot.get("/Subtype") != "/Widget":
                    continue

                parent = annot.get("/Parent")
                parent_obj = parent.get_object() if parent is not None else None

                widget_type = _inherited(annot, parent_obj, "/FT")
                rect = annot.get("/Rect")
                if widget_type not in _WIDGET_TYPES or rect is None:
                    continue

                flags = int(_inherited(annot, parent_obj, "/Ff") or 0)
                if widget_type == "/Btn" and flags & PUSHBUTTON_FLAG:
                    continue

                llx, lly, urx, ury = (float(value) for value in rect)
                name = str(_inherited(annot, parent_obj, "/T") or "")
                token = name if name in registry else None
                field_type = _WIDGET_TYPES[widget_type]

                detected.append(
                    DetectedField(
                        page=page_index + 1,
                        label=registry.label_for(name) if token else (humanize(name) or name),
                        field_type=field_type,
                        rect=FieldRect(
                            x=min(llx, urx) - page_left,
                            y=page_top - max(lly, ury),
                            width=abs(urx - llx),
                            height=abs(ury - lly),
                        ),
                        required=bool(flags & REQUIRED_FLAG),
                        options=_options(_inherited(annot, parent_obj, "/Opt")),
                        suggested_merge_field=token,
                    )
                )
    except Exception as exc:
        raise FieldImportError(f"Failed to import form fields from: {source}") from exc

    logger.info("Detected %d form field(s) in %s", len(detected), source)
    return detected


def _inherited(annot, parent_obj, key: str):
    value = annot.get(key)
    if value is None and parent_obj is not None:
        value = parent_obj.get(key)
    return value


def _options(raw) -> tuple[str, ...]:
    if not raw:
        return ()
    options: list[str] = []
    for entry in raw.get_object() if hasattr(raw, "get_object") else raw:
        entry = entry.get_object() if hasattr(entry, "get_object") else entry
        if isinstance(entry, (list, tuple)):
            # [export value, display text]
            entry = entry[-1]
        options.append(str(entry))
    return tuple(options)
