"""Replace ``{{token}}`` placeholders in agreement text with supplied values."""

from __future__ import annotations

import re
from typing import Mapping

TOKEN_PATTERN = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")

Values = Mapping[str, object]


def resolved_value(values: Values, token: str) -> str | None:
    """Return the text to insert for ``token``, or None when it is missing or empty."""
    value = values.get(token)
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def filled_value(values: Values, token: str) -> str | None:
    """Like ``resolved_value``, but whitespace-only values also count as missing."""
    text = resolved_value(values, token)
    return text if text is not None and text.strip() else None


def extract_tokens(text: str) -> list[str]:
    """Distinct tokens in ``text``, in order of first appearance."""
    seen: dict[str, None] = {}
    for match in TOKEN_PATTERN.finditer(text or ""):
        seen.setdefault(match.group(1), None)
    return list(seen)


def substitute(text: str, values: Values) -> str:
    """Fill every resolvable token in ``text``.

    Matching is exact and case-sensitive, and every occurrence of a token gets
    the same value. Tokens without a value, or with an empty one, are left as
    written so the gap stays visible. Values are inserted literally in a single
    pass and are not themselves scanned for tokens.
    """
    if not text:
        return text or ""

    def _fill(match: re.Match[str]) -> str:
        value = resolved_value(values, match.group(1))
        return match.group(0) if value is None else value

    return TOKEN_PATTERN.sub(_fill, text)


def unresolved_tokens(text: str, values: Values) -> list[str]:
    return [token for token in extract_tokens(text) if resolved_value(values, token) is None]
