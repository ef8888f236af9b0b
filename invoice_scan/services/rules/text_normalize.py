"""Usage: shared text normalization helpers for pattern matching."""

from __future__ import annotations

import re

# Latin and Hebrew labels of an invoice total row
TOTAL_LABEL = r"(?:Total|סך הכל|סה״כ|סיכום|סכום לתשלום)"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n|\t")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_for_match(text: str) -> str:
    """Collapse a multi-line blob into one line so a label and its value match across breaks."""

    value = _LINE_BREAK_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", value).strip()


def to_full_text(text: str) -> str:
    return text.replace("\r", "\n")


def split_lines(text: str) -> list[str]:
    lines = (line.strip() for line in to_full_text(text).split("\n"))
    return [line for line in lines if line]


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.strip())
