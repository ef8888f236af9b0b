"""Usage: resolve the invoice total through an ordered cascade of amount strategies."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Literal, Sequence

from invoice_scan.schemas.invoice import CurrencyCode
from invoice_scan.services.rules.currency import (
    DEFAULT_CURRENCY,
    infer_currency_hint,
    resolve_currency,
)
from invoice_scan.services.rules.text_normalize import TOTAL_LABEL

logger = logging.getLogger(__name__)

MAX_AMOUNT = 1e8
FALLBACK_MAX_AMOUNT = 1e7
YEAR_MIN, YEAR_MAX = 2020, 2035
TWO_DECIMAL_BONUS = 1e10
TOTAL_LOOKAHEAD = 120
KEYWORD_WINDOW = 80

_HEBREW_TOTAL = r"(?:סך הכל|סה״כ|סיכום)"
_CURRENCY_TOKEN = r"(USD|EUR|GBP|₪|ILS|\$)"
_TWO_DECIMAL_RE = re.compile(r"^\d+\.\d{2}$")
_DECIMAL_AMOUNT_RE = re.compile(r"([\d,]+\.\d{1,2})")
_DOLLAR_AMOUNT_RE = re.compile(r"\$\s*([\d,]+\.?\d*)")

_TOTAL_THEN_AMOUNT_RE = re.compile(
    TOTAL_LABEL + r"[\s\S]{0," + str(TOTAL_LOOKAHEAD) + r"}?([\d,]+\.\d{1,2})",
    re.IGNORECASE,
)
_TOTAL_LINE_RE = re.compile(TOTAL_LABEL + r"\s+[\s\S]*?(?:\$|₪)\s*([\d,]+\.?\d*)", re.IGNORECASE)
_TOTAL_LABEL_RE = re.compile(TOTAL_LABEL, re.IGNORECASE)
_NEXT_LINE_AMOUNT_RES = (
    re.compile(r"\$\s*([\d,]+\.\d{1,2})\s*$"),
    re.compile(r"^\$?\s*([\d,]+\.\d{1,2})\s*$"),
    re.compile(r"^₪?\s*([\d,]+\.\d{1,2})\s*$"),
)
_SYMBOL_AMOUNT_RE = re.compile(r"(?:\$|₪)\s*([\d,]+\.\d{1,2})")
_WINDOW_KEYWORD_RE = re.compile(
    r"\b(?:total|balance|due|amount|sum|grand|invoice total|payable)\b|סך הכל|סה״כ|סיכום|סכום לתשלום",
    re.IGNORECASE,
)
_WINDOW_AMOUNT_RE = re.compile(r"(?:USD|EUR|GBP|₪|ILS|\$)?\s*([\d,]+\.?\d+)")

TextSource = Literal["normalized", "full"]


@dataclass(frozen=True)
class PatternRule:
    """One candidate-extraction rule: where the amount and its currency come from."""

    pattern: re.Pattern[str]
    amount_group: int = 1
    currency_group: int | None = None
    fixed_currency: CurrencyCode | None = None
    source: TextSource = "normalized"


@dataclass(frozen=True)
class AmountCandidate:
    text: str
    value: float


@dataclass(frozen=True)
class AmountResolution:
    amount: str | None
    currency: CurrencyCode
    stage: str | None = None


@dataclass(frozen=True)
class _AmountContext:
    normalized: str
    full_text: str
    lines: Sequence[str]
    doc_currency: CurrencyCode | None
    rules: Sequence[PatternRule]

    def source(self, name: TextSource) -> str:
        return self.full_text if name == "full" else self.normalized


def _rule(
    pattern: str,
    *,
    amount_group: int = 1,
    currency_group: int | None = None,
    fixed_currency: CurrencyCode | None = None,
    source: TextSource = "normalized",
    flags: int = re.IGNORECASE,
) -> PatternRule:
    return PatternRule(
        pattern=re.compile(pattern, flags),
        amount_group=amount_group,
        currency_group=currency_group,
        fixed_currency=fixed_currency,
        source=source,
    )


# "Total $X.XX" / "סך הכל ₪X.XX" phrasing; the first rule that matches decides.
DIRECT_TOTAL_RULES: tuple[PatternRule, ...] = (
    _rule(r"\bTotal\s*[\t ]+\$\s*([\d,]+\.\d{2})", fixed_currency="USD", source="full"),
    _rule(r"\bTotal\s+\$\s*([\d,]+\.\d{2})", fixed_currency="USD"),
    _rule(_HEBREW_TOTAL + r"\s*[:\s]*₪?\s*([\d,]+\.\d{1,2})", fixed_currency="₪", source="full"),
    _rule(_HEBREW_TOTAL + r"\s*[:\s]*₪?\s*([\d,]+\.\d{1,2})", fixed_currency="₪"),
    _rule(r"₪\s*([\d,]+\.\d{1,2})\s*$", fixed_currency="₪", source="full", flags=re.MULTILINE),
    _rule(r"סכום\s+לתשלום\s*[:\s]*₪?\s*([\d,]+\.\d{1,2})", fixed_currency="₪"),
)

# Evaluated strictly in order against the normalized text.
AMOUNT_RULES: tuple[PatternRule, ...] = (
    _rule(_HEBREW_TOTAL + r"\s*(?:לתשלום)?\s*[:\s]*₪?\s*([\d,]+\.?\d*)", fixed_currency="₪"),
    _rule(r"סכום\s+לתשלום\s*[:\s]*₪?\s*([\d,]+\.?\d*)", fixed_currency="₪"),
    _rule(r"₪\s*([\d,]+\.?\d*)\s*$", fixed_currency="₪", flags=re.MULTILINE),
    _rule(r"([\d,]+\.?\d*)\s*₪", fixed_currency="₪", flags=0),
    _rule(r'(?:ש"ח|ILS)\s*([\d,]+\.?\d*)', fixed_currency="₪"),
    _rule(r"BALANCE\s+DUE\s*:\s*" + _CURRENCY_TOKEN + r"?\s*([\d,]+\.?\d*)", amount_group=2, currency_group=1),
    _rule(r"TOTAL\s+DUE\s*:\s*" + _CURRENCY_TOKEN + r"?\s*([\d,]+\.?\d*)", amount_group=2, currency_group=1),
    _rule(r"AMOUNT\s+DUE\s*:\s*" + _CURRENCY_TOKEN + r"?\s*([\d,]+\.?\d*)", amount_group=2, currency_group=1),
    _rule(r"(?:INVOICE\s+)?TOTAL\s*:\s*" + _CURRENCY_TOKEN + r"?\s*([\d,]+\.?\d*)", amount_group=2, currency_group=1),
    _rule(r"Total\s+\$\s*([\d,]+\.?\d*)", fixed_currency="USD"),
    _rule(r"Total\s+[\s\S]{0,40}?\$\s*([\d,]+\.?\d*)", fixed_currency="USD"),
    _rule(r"GRAND\s+TOTAL\s*:\s*" + _CURRENCY_TOKEN + r"?\s*([\d,]+\.?\d*)", amount_group=2, currency_group=1),
    _rule(r"NET\s+TOTAL\s*:\s*" + _CURRENCY_TOKEN + r"?\s*([\d,]+\.?\d*)", amount_group=2, currency_group=1),
    _rule(r"Amount\s+due\s+(?:USD|EUR|\$)?\s*([\d,]+\.?\d*)", fixed_currency="USD"),
    _rule(r"Total\s+due\s+(?:USD|EUR|\$)?\s*([\d,]+\.?\d*)", fixed_currency="USD"),
    _rule(r"Balance\s+due\s+(?:USD|EUR|\$)?\s*([\d,]+\.?\d*)", fixed_currency="USD"),
    _rule(r"Amount\s+due\s*\$?\s*([\d,]+\.?\d*)", fixed_currency="USD"),
    _rule(r"TOTAL\s+DUE\s*\$?\s*([\d,]+\.?\d*)", fixed_currency="USD"),
    # no fixed currency: falls back to the document currency
    _rule(r"(?:Invoice\s+)?Total\s*[:\s]+\$?\s*([\d,]+\.?\d*)"),
    _rule(r"(?:Total|Amount)\s*[:\s]+([\d,]+\.?\d*)\s*(USD|EUR|₪|ILS|\$)?", currency_group=2),
    _rule(r'(?:total|invoice total)\s*[:\s]+([\d,]+\.?\d*)\s*(₪|ש"ח|NIS|ILS|USD|EUR|\$)?', currency_group=2),
    _rule(r"\$\s*([\d,]+\.?\d*)\s*$", fixed_currency="USD", flags=re.MULTILINE),
    _rule(r"(USD|EUR|GBP|₪|ILS)\s*([\d,]+\.?\d*)\s*$", amount_group=2, currency_group=1, flags=re.IGNORECASE | re.MULTILINE),
    _rule(r"\$\s*([\d,]+\.?\d*)", fixed_currency="USD", flags=0),
    _rule(r"([\d,]+\.?\d*)\s*(USD|EUR|₪|ILS|\$)", currency_group=2, flags=0),
    _rule(r"(₪|USD|EUR|\$)\s*([\d,]+\.?\d*)", amount_group=2, currency_group=1, flags=0),
)


def parse_amount(value: str | None) -> float | None:
    if not value or not isinstance(value, str):
        return None
    raw = value.replace(",", "").strip()
    try:
        number = float(raw)
    except ValueError:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def is_reasonable_amount(text: str, value: float | None) -> bool:
    """Reject years, zip codes, fragments and small bare integers."""

    if value is None or value < 0:
        return False
    if len(text) <= 1:
        return False
    has_decimal = "." in text
    if value < 1 and not has_decimal:
        return False
    if _is_year(value):
        return False
    if not has_decimal and value < 1000:
        return False
    if not has_decimal and 10000 <= value < 100000:
        return False
    if has_decimal and len(text.split(".")[1]) > 2:
        return False
    return True


def score_amount(text: str, value: float | None) -> float:
    """Prefer currency-shaped amounts (two decimals), then larger values."""

    if not text or value is None:
        return -1
    bonus = TWO_DECIMAL_BONUS if _TWO_DECIMAL_RE.match(text.replace(",", "")) else 0
    return bonus + value


def run_cascade(
    rules: Sequence[PatternRule],
    sources: Callable[[TextSource], str],
    doc_currency: CurrencyCode | None,
) -> tuple[AmountCandidate, CurrencyCode, int] | None:
    """Return the best plausible match of the first rule with any, plus its currency and index."""

    for index, rule in enumerate(rules):
        best: AmountCandidate | None = None
        best_currency: CurrencyCode | None = None
        for match in rule.pattern.finditer(sources(rule.source)):
            text = match.group(rule.amount_group)
            value = parse_amount(text)
            if value is None or not is_reasonable_amount(text, value) or value >= MAX_AMOUNT:
                continue
            if best is None or value > best.value:
                best = AmountCandidate(text=text, value=value)
                best_currency = _rule_currency(rule, match, doc_currency)
        if best is not None:
            return best, best_currency or doc_currency or DEFAULT_CURRENCY, index
    return None


def resolve_amount(
    normalized: str,
    lines: Sequence[str],
    full_text: str,
    doc_currency: CurrencyCode | None,
    *,
    rules: Sequence[PatternRule] = AMOUNT_RULES,
) -> AmountResolution:
    ctx = _AmountContext(
        normalized=normalized,
        full_text=full_text,
        lines=lines,
        doc_currency=doc_currency,
        rules=rules,
    )
    for name, stage in _STAGES:
        result = stage(ctx)
        if result is not None:
            return _resolved(name, *result)
    logger.debug("Amount missing after all stages")
    return AmountResolution(amount=None, currency=doc_currency or DEFAULT_CURRENCY)


_StageResult = tuple[AmountCandidate, CurrencyCode] | None


def _direct_total(ctx: _AmountContext) -> _StageResult:
    for rule in DIRECT_TOTAL_RULES:
        match = rule.pattern.search(ctx.source(rule.source))
        if not match:
            continue
        text = match.group(rule.amount_group)
        value = parse_amount(text)
        if value is None or not 1 <= value < MAX_AMOUNT:
            return None
        return AmountCandidate(text=text, value=value), ctx.doc_currency or rule.fixed_currency or DEFAULT_CURRENCY
    return None


def _largest_after_total(ctx: _AmountContext) -> _StageResult:
    best: AmountCandidate | None = None
    for match in _TOTAL_THEN_AMOUNT_RE.finditer(ctx.normalized):
        text = match.group(1)
        value = parse_amount(text)
        if value is None or not 1 <= value < MAX_AMOUNT or _is_year(value):
            continue
        if best is None or value > best.value:
            best = AmountCandidate(text=text, value=value)
    if best is None:
        return None
    return best, ctx.doc_currency or infer_currency_hint(ctx.full_text, default=DEFAULT_CURRENCY)


def _total_lines(ctx: _AmountContext) -> _StageResult:
    lines = ctx.lines
    best: AmountCandidate | None = None

    def consider(text: str | None) -> None:
        nonlocal best
        candidate = _strict_candidate(text)
        if candidate and (best is None or candidate.value > best.value):
            best = candidate

    for idx, line in enumerate(lines):
        match = _TOTAL_LINE_RE.search(line)
        if match:
            consider(match.group(1))
        if best is not None or not _TOTAL_LABEL_RE.search(line):
            continue
        following = lines[idx + 1].strip() if idx + 1 < len(lines) else ""
        if following:
            for pattern in _NEXT_LINE_AMOUNT_RES:
                bare = pattern.search(following)
                if bare:
                    consider(bare.group(1))
                    break
        if best is not None:
            continue
        window = " ".join(lines[idx : idx + 3])
        combined = _TOTAL_LINE_RE.search(window)
        if combined:
            consider(combined.group(1))
        if best is None:
            symbol = _SYMBOL_AMOUNT_RE.search(window)
            if symbol:
                consider(symbol.group(1))

    if best is None:
        return None
    return best, ctx.doc_currency or infer_currency_hint(ctx.full_text, default="₪")


def _declared_patterns(ctx: _AmountContext) -> _StageResult:
    result = run_cascade(ctx.rules, ctx.source, ctx.doc_currency)
    if result is None:
        return None
    candidate, currency, index = result
    logger.debug("Amount pattern rule matched: index=%d", index)
    return candidate, currency


def _keyword_window(ctx: _AmountContext) -> _StageResult:
    text = ctx.normalized
    best: AmountCandidate | None = None
    for start in range(len(text) - 20):
        window = text[start : start + KEYWORD_WINDOW]
        if not _WINDOW_KEYWORD_RE.search(window):
            continue
        for match in _WINDOW_AMOUNT_RE.finditer(window):
            candidate = _strict_candidate(match.group(1))
            if candidate and (best is None or candidate.value > best.value):
                best = candidate
    if best is None:
        return None
    return best, ctx.doc_currency or DEFAULT_CURRENCY


def _dollar_after_last_total(ctx: _AmountContext) -> _StageResult:
    tail = _after_last_total(ctx.normalized)
    if tail is None:
        return None
    candidates = _collect(_DOLLAR_AMOUNT_RE.finditer(tail), _strict_candidate)
    best = _best_by(candidates, lambda c: score_amount(c.text, c.value))
    return _with_fallback_currency(best, ctx)


def _largest_dollar(ctx: _AmountContext) -> _StageResult:
    candidates = [
        candidate
        for candidate in _collect(_DOLLAR_AMOUNT_RE.finditer(ctx.normalized), _strict_candidate)
        if candidate.value > 0
    ]
    best = _best_by(candidates, lambda c: score_amount(c.text, c.value))
    return _with_fallback_currency(best, ctx)


def _decimal_after_last_total(ctx: _AmountContext) -> _StageResult:
    tail = _after_last_total(ctx.normalized)
    if tail is None:
        return None
    candidates = _collect(
        _DECIMAL_AMOUNT_RE.finditer(tail),
        lambda text: _ranged_candidate(text, upper=MAX_AMOUNT),
    )
    return _with_fallback_currency(_best_by(candidates, lambda c: c.value), ctx)


def _largest_decimal(ctx: _AmountContext) -> _StageResult:
    candidates = _collect(
        _DECIMAL_AMOUNT_RE.finditer(ctx.normalized),
        lambda text: _ranged_candidate(text, upper=FALLBACK_MAX_AMOUNT, skip_years=True),
    )
    return _with_fallback_currency(_best_by(candidates, lambda c: c.value), ctx)


_Stage = tuple[str, Callable[[_AmountContext], _StageResult]]

_STAGES: tuple[_Stage, ...] = (
    ("direct_total", _direct_total),
    ("largest_after_total", _largest_after_total),
    ("total_lines", _total_lines),
    ("declared_patterns", _declared_patterns),
    ("keyword_window", _keyword_window),
    ("dollar_after_last_total", _dollar_after_last_total),
    ("largest_dollar", _largest_dollar),
    ("decimal_after_last_total", _decimal_after_last_total),
    ("largest_decimal", _largest_decimal),
)


def _resolved(name: str, candidate: AmountCandidate, currency: CurrencyCode) -> AmountResolution:
    logger.debug("Amount resolved: stage=%s amount=%s currency=%s", name, candidate.text, currency)
    return AmountResolution(amount=candidate.text, currency=currency, stage=name)


def _rule_currency(
    rule: PatternRule,
    match: re.Match[str],
    doc_currency: CurrencyCode | None,
) -> CurrencyCode | None:
    if rule.fixed_currency:
        return rule.fixed_currency
    if rule.currency_group is not None:
        return resolve_currency(match.group(rule.currency_group), doc_currency)
    return None


def _strict_candidate(text: str | None) -> AmountCandidate | None:
    if not text:
        return None
    value = parse_amount(text)
    if value is None or not is_reasonable_amount(text, value) or value >= MAX_AMOUNT:
        return None
    return AmountCandidate(text=text, value=value)


def _ranged_candidate(text: str, *, upper: float, skip_years: bool = False) -> AmountCandidate | None:
    value = parse_amount(text)
    if value is None or not 1 <= value < upper:
        return None
    if skip_years and _is_year(value):
        return None
    return AmountCandidate(text=text, value=value)


def _collect(
    matches: Iterable[re.Match[str]],
    build: Callable[[str], AmountCandidate | None],
) -> list[AmountCandidate]:
    candidates: list[AmountCandidate] = []
    for match in matches:
        candidate = build(match.group(1))
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def _best_by(
    candidates: Sequence[AmountCandidate],
    key: Callable[[AmountCandidate], float],
) -> AmountCandidate | None:
    # on equal keys the later candidate wins
    best: AmountCandidate | None = None
    for candidate in candidates:
        if best is None or key(candidate) >= key(best):
            best = candidate
    return best


def _after_last_total(text: str) -> str | None:
    idx = text.lower().rfind("total")
    if idx < 0:
        return None
    return text[idx:]


def _with_fallback_currency(best: AmountCandidate | None, ctx: _AmountContext) -> _StageResult:
    if best is None:
        return None
    return best, ctx.doc_currency or DEFAULT_CURRENCY


def _is_year(value: float) -> bool:
    return YEAR_MIN <= value <= YEAR_MAX
