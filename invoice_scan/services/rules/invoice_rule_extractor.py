"""Usage: rule-based invoice field extraction from document text."""

from __future__ import annotations

import logging
from typing import Sequence

from invoice_scan.schemas.invoice import ExtractionDetails
from invoice_scan.services.rules.amounts import AMOUNT_RULES, PatternRule, resolve_amount
from invoice_scan.services.rules.currency import detect_document_currency
from invoice_scan.services.rules.fields import (
    extract_bill_to,
    extract_date,
    extract_invoice_number,
    extract_vendor,
)
from invoice_scan.services.rules.text_normalize import normalize_for_match, split_lines, to_full_text

logger = logging.getLogger(__name__)


class InvoiceRuleExtractor:
    """Heuristic extractor: one pass of pattern cascades over a document's text.

    Holds no per-document state, so one instance can serve concurrent calls.
    """

    def __init__(self, *, amount_rules: Sequence[PatternRule] = AMOUNT_RULES) -> None:
        self._amount_rules = tuple(amount_rules)

    def extract(self, text: str | None) -> ExtractionDetails:
        if not text or not isinstance(text, str):
            logger.debug("Rule extraction skipped: empty_text")
            return ExtractionDetails()

        full_text = to_full_text(text)
        normalized = normalize_for_match(full_text)
        lines = split_lines(full_text)
        doc_currency = detect_document_currency(full_text)

        amount = resolve_amount(
            normalized,
            lines,
            full_text,
            doc_currency,
            rules=self._amount_rules,
        )
        details = ExtractionDetails(
            amount=amount.amount,
            currency=amount.currency,
            invoice_number=extract_invoice_number(normalized, full_text),
            date=extract_date(normalized, full_text),
            vendor=extract_vendor(full_text, lines),
            bill_to=extract_bill_to(normalized, full_text),
        )
        logger.debug(
            "Rule extraction done: amount=%s currency=%s stage=%s doc_currency=%s",
            details.amount,
            details.currency,
            amount.stage,
            doc_currency,
        )
        return details


_default_extractor = InvoiceRuleExtractor()


def extract_details(text: str | None) -> ExtractionDetails:
    return _default_extractor.extract(text)
