"""Normalization of raw user query text before planning and retrieval."""

from __future__ import annotations

import re
from typing import Any

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")
_BANNED = (
    re.compile(r"--eval", re.IGNORECASE),
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
)


def _sanitize_once(text: str) -> str:
    out = _CONTROL_CHARS.sub("", text)
    for pattern in _BANNED:
        out = pattern.sub("", out)
    return _WHITESPACE.sub(" ", out).strip()


def sanitize_query(value: Any) -> str:
    """Return a cleaned, single-line query string.

    Control characters are dropped, whitespace runs collapse to one space and
    script tags, ``javascript:`` URIs and ``--eval`` markers are removed.
    Removal repeats until the text is stable, so the result sanitizes to
    itself. Non-string input yields an empty string.
    """
    if not isinstance(value, str):
        return ""
    current = value
    while True:
        cleaned = _sanitize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned
