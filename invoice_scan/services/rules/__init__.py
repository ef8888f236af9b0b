"""Usage: rule-based invoice extraction helpers."""

from invoice_scan.services.rules.invoice_rule_extractor import InvoiceRuleExtractor, extract_details
from invoice_scan.services.rules.layout import LayoutConfig, ReconstructedText, extract_lines, merge_pages
from invoice_scan.services.rules.payment import DEFAULT_PAYMENT_MARKERS, classify_payment_type

__all__ = [
    "DEFAULT_PAYMENT_MARKERS",
    "InvoiceRuleExtractor",
    "LayoutConfig",
    "ReconstructedText",
    "classify_payment_type",
    "extract_details",
    "extract_lines",
    "merge_pages",
]
