"""Usage: document currency detection and per-match currency resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass

from invoice_scan.schemas.invoice import CurrencyCode

DEFAULT_CURRENCY: CurrencyCode = "USD"


@dataclass(frozen=True)
class CurrencyInfo:
    code: CurrencyCode
    symbol: str
    label: str


CURRENCIES: tuple[CurrencyInfo, ...] = (
    CurrencyInfo(code="₪", symbol="₪", label="Israel (₪)"),
    CurrencyInfo(code="USD", symbol="$", label="USA ($)"),
    CurrencyInfo(code="INR", symbol="₹", label="India (₹)"),
    CurrencyInfo(code="EUR", symbol="€", label="Europe (€)"),
    CurrencyInfo(code="GBP", symbol="£", label="UK (£)"),
)
CURRENCY_CODES: frozenset[str] = frozenset(info.code for info in CURRENCIES)

# Checked in order; the first family with any hit decides the document currency.
_DOCUMENT_SIGNALS: tuple[tuple[CurrencyCode, re.Pattern[str]], ...] = (
    ("USD", re.compile(r"\$[\d,]+\.?\d*|Amount due\s*\$|Total\s*\$|\bUSD\b|Dollar", re.IGNORECASE)),
    ("₪", re.compile(r'₪|ש"ח|\bNIS\b|\bILS\b|שקל', re.IGNORECASE)),
    ("INR", re.compile(r"₹|\bINR\b|Rupee|\bRs\.?(?:\s|$)", re.IGNORECASE)),
    ("EUR", re.compile(r"\bEUR\b|€|Euro", re.IGNORECASE)),
    ("GBP", re.compile(r"\bGBP\b|£|Pound|Sterling", re.IGNORECASE)),
)

_TOKEN_SIGNALS: tuple[tuple[CurrencyCode, re.Pattern[str]], ...] = (
    ("₪", re.compile(r'₪|ש"ח|NIS|ILS', re.IGNORECASE)),
    ("USD", re.compile(r"USD|\$", re.IGNORECASE)),
    ("INR", re.compile(r"₹|INR|Rupee|Rs\.?", re.IGNORECASE)),
    ("EUR", re.compile(r"EUR|€", re.IGNORECASE)),
    ("GBP", re.compile(r"GBP|£", re.IGNORECASE)),
)

_DOLLAR_HINT_RE = re.compile(r"\$|USD", re.IGNORECASE)
_SHEKEL_HINT_RE = re.compile(r'₪|ש"ח|ILS', re.IGNORECASE)


def detect_document_currency(text: str) -> CurrencyCode | None:
    for code, pattern in _DOCUMENT_SIGNALS:
        if pattern.search(text):
            return code
    return None


def resolve_currency(token: str | None, doc_currency: CurrencyCode | None) -> CurrencyCode:
    """Map a captured currency token or symbol to a canonical code."""

    fallback = doc_currency or DEFAULT_CURRENCY
    if not token:
        return fallback
    value = token.strip()
    for code, pattern in _TOKEN_SIGNALS:
        if pattern.search(value):
            return code
    return fallback


def infer_currency_hint(text: str, *, default: CurrencyCode | None = None) -> CurrencyCode | None:
    """Guess dollar or shekel from loose symbols when no document currency was detected."""

    if _DOLLAR_HINT_RE.search(text):
        return "USD"
    if _SHEKEL_HINT_RE.search(text):
        return "₪"
    return default
