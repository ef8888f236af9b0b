"""Usage: invoice number, date, vendor and bill-to pattern cascades."""

from __future__ import annotations

import logging
import re
from typing import Literal, Sequence

from invoice_scan.services.rules.text_normalize import collapse_whitespace

logger = logging.getLogger(__name__)

MAX_PARTY_LENGTH = 120
_I = re.IGNORECASE

INVOICE_NUMBER_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, _I)
    for pattern in (
        r"(?:מספר|מס['׳״]?)\s*חשבונית\s*[:\s]*(\d[\d\-/]+)",
        r"ח\.?פ\.?\s*[:\s]*(\d[\d\-/]+)",
        r"חשבונית\s*[#:]?\s*(\d[\d\-/]+)",
        r"INVOICE\s+NUMBER\s*:\s*(INV[\-\s]?\d+|\d+)",
        r"(?:N\.?\s*[º°]?\s*)?invoice\s*[#:.\s]*[:\s]*(\d[\d\-/]+)",
        r"(?:Factura|Invoice)\s*[#:.\s]*(\d[\d\-/]+)",
        r"INVOICE\s*#\s*:\s*(\S+)",
        r"Invoice\s+number\s*[:\s]+(INV[\-\d]+|[\d\-]+)",
        r"(?:Invoice|Inv\.?)\s*[#:.]*\s*(INV[\-\d]+|[\d\-/]+)",
        r"\b(INV\s*[\d\-]+)\b",
        r"\b(INV[\d\-]+)\b",
        r"Invoice\s*#\s*[:\s]*(\d[\d\-/]+)",
        r"(?:Ref|Reference|No\.?|#)\s*[#:.]*\s*(\d[\d\-/]+)",
        r"(?:invoice\s+no\.?|inv\s+no\.?)\s*(\d+)",
    )
)

_NUMERIC_DATE = r"\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}"
_WORDY_DATE = r"[A-Za-z]{3,9}\s+\d{1,2},?\s+\d{4}"

# Labeled patterns first; bare date-like tokens last.
DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"תאריך\s*[:\s]*(" + _NUMERIC_DATE + ")", _I),
    re.compile(r"תוקף\s*[:\s]*(" + _NUMERIC_DATE + ")", _I),
    re.compile(r"(?:DUE\s+DATE|DATE\s+ISSUED|DATE\s+ISSUE)\s*:\s*(" + _WORDY_DATE + ")", _I),
    re.compile(r"Due\s+date\s+(" + _NUMERIC_DATE + ")", _I),
    re.compile(r"Date\s*:\s*(" + _NUMERIC_DATE + ")", _I),
    re.compile(r"(?:Date|Due\s+date)\s*[:\s]*(" + _NUMERIC_DATE + ")", _I),
    re.compile(r"(?:Due\s+date|Issue\s+date|Invoice\s+date)\s*[:\s]+(" + _WORDY_DATE + ")", _I),
    re.compile(r"(?:Date|Issued|Due)\s*[:\s]+(" + _WORDY_DATE + ")", _I),
    re.compile(r"(" + _WORDY_DATE + ")"),
    re.compile(r"(" + _NUMERIC_DATE + ")"),
    re.compile(r"(\d{4}[/\-]\d{1,2}[/\-]\d{1,2})"),
)

_HEBREW_STOP = r"(?:\n|לכבוד|תאריך|סך|₪|$)"

# Issuer phrasing: municipality, administration, company, "issued by"; never the addressee.
VENDOR_HEBREW_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(עיריית\s+[\u0590-\u05FF\s\-]+?)" + _HEBREW_STOP),
    re.compile(r"(מנהל\s+[\u0590-\u05FF\s\-]+?)" + _HEBREW_STOP),
    re.compile(r"(חברת\s+[\u0590-\u05FF\s\-]+?)" + _HEBREW_STOP),
    re.compile(r"(?:מנפיק|ניתן על ידי|רשות)\s*[:\s]*([^\n]+?)" + _HEBREW_STOP, _I),
)

_VENDOR_SKIP_RE = re.compile(
    r"^(invoice|חשבונית|date|תאריך|total|סך הכל|סה״כ|amount|סכום|number|מספר|item|תיאור|description"
    r"|bill to|from|to|ship to|לכתובת|נמען|לכבוד|\d|₪|$|scanmarker|topscan)",
    _I,
)
_VENDOR_REJECT_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\d+[,.]?\d*$"),
    re.compile(r"^" + _NUMERIC_DATE + r"$"),
    re.compile(r"^(USD|EUR|GBP|ILS|NIS)", _I),
    re.compile(r"^[\d\s,.\-/]+$"),
    # quantity / price / total table rows
    re.compile(r"^\d+\s+[\d.]+\s+[\d.]+$"),
)
_ADDRESSEE_ONLY_RE = re.compile(r"^לכבוד\s*$")
_TRAILING_COLON_RE = re.compile(r"[:\s]+$")

Source = Literal["full", "normalized"]

BILL_TO_PATTERNS: tuple[tuple[Source, re.Pattern[str]], ...] = (
    ("full", re.compile(r"Bill\s+to\s*:\s*([^\n]+?)(?:\s*,|\s*\d{5,}|$)", _I)),
    ("normalized", re.compile(r"Bill\s+to\s*:\s*([^,]+)", _I)),
    ("full", re.compile(r"(?:לתשלום\s+עבור|נמען)\s*[:\s]*([^\n]+?)(?:\n|$)", _I)),
    ("normalized", re.compile(r"(?:לתשלום\s+עבור|נמען)\s*[:\s]*([^,]+)", _I)),
    ("full", re.compile(r"לכבוד\s*[:\s]*([^\n]+?)(?:\n|תאריך|סך|₪|$)", _I)),
    ("normalized", re.compile(r"לכבוד\s*[:\s]*([^,\n]+)", _I)),
)


def extract_invoice_number(normalized: str, full_text: str) -> str | None:
    for pattern in INVOICE_NUMBER_PATTERNS:
        value = _first_capture(pattern, normalized, full_text)
        if value is None:
            continue
        number = re.sub(r"\s", "", value)
        if len(number) >= 2:
            return number
    logger.debug("Rule field missing: invoice_number")
    return None


def extract_date(normalized: str, full_text: str) -> str | None:
    for pattern in DATE_PATTERNS:
        value = _first_capture(pattern, normalized, full_text)
        if value:
            return value.strip()
    logger.debug("Rule field missing: date")
    return None


def extract_vendor(full_text: str, lines: Sequence[str]) -> str | None:
    for pattern in VENDOR_HEBREW_PATTERNS:
        match = pattern.search(full_text)
        if not match or not match.group(1):
            continue
        value = _TRAILING_COLON_RE.sub("", collapse_whitespace(match.group(1)))[:MAX_PARTY_LENGTH]
        if len(value) >= 3 and not _ADDRESSEE_ONLY_RE.match(value):
            return value
        # only the first matching issuer pattern is considered
        break

    for line in lines:
        candidate = line.strip()
        if is_likely_vendor(candidate):
            return candidate

    if lines and lines[0].strip().lower() != "invoice":
        return lines[0].strip()
    logger.debug("Rule field missing: vendor")
    return None


def is_likely_vendor(value: str) -> bool:
    """A name-like line: not a label, number, date or currency."""

    if not 2 <= len(value) <= 150:
        return False
    if _VENDOR_SKIP_RE.match(value):
        return False
    return not any(pattern.match(value) for pattern in _VENDOR_REJECT_RES)


def extract_bill_to(normalized: str, full_text: str) -> str | None:
    sources = {"full": full_text, "normalized": normalized}
    for source, pattern in BILL_TO_PATTERNS:
        match = pattern.search(sources[source])
        if match and match.group(1):
            value = collapse_whitespace(match.group(1))[:MAX_PARTY_LENGTH]
            return value or None
    logger.debug("Rule field missing: bill_to")
    return None


def _first_capture(pattern: re.Pattern[str], normalized: str, full_text: str) -> str | None:
    match = pattern.search(normalized) or pattern.search(full_text)
    if match and match.group(1):
        return match.group(1)
    return None
