from __future__ import annotations

import re

import pytest

from invoice_scan.schemas.invoice import ExtractionDetails
from invoice_scan.services.rules.amounts import PatternRule
from invoice_scan.services.rules.currency import CURRENCY_CODES
from invoice_scan.services.rules.invoice_rule_extractor import InvoiceRuleExtractor, extract_details

ENGLISH_INVOICE = """Acme Widgets Ltd
Invoice Number: INV-2024
Date: 12/03/2024
Bill to: Jane Doe, 12 Main St
Widget 2 x $10.00
Subtotal $20.00
Total $21.60
"""

HEBREW_INVOICE = """עיריית תל אביב
לכבוד: משה כהן
מספר חשבונית: 45871
תאריך: 01/02/2024
סך הכל לתשלום ₪1,250.00
"""


def test_extracts_english_invoice() -> None:
    details = InvoiceRuleExtractor().extract(ENGLISH_INVOICE)

    assert details == ExtractionDetails(
        amount="21.60",
        currency="USD",
        invoice_number="INV-2024",
        date="12/03/2024",
        vendor="Acme Widgets Ltd",
        bill_to="Jane Doe",
    )


def test_extracts_hebrew_invoice() -> None:
    details = InvoiceRuleExtractor().extract(HEBREW_INVOICE)

    assert details.amount == "1,250.00"
    assert details.currency == "₪"
    assert details.invoice_number == "45871"
    assert details.date == "01/02/2024"
    assert details.vendor == "עיריית תל אביב"
    assert details.bill_to == "משה כהן"


@pytest.mark.parametrize("text", [None, "", 123, ["Total $5.00"]])
def test_invalid_input_returns_empty_details(text) -> None:
    details = extract_details(text)

    assert details == ExtractionDetails()
    assert details.currency == "USD"
    assert details.amount is None


@pytest.mark.parametrize(
    "text",
    [
        ENGLISH_INVOICE,
        HEBREW_INVOICE,
        "2024",
        "$",
        "Total",
        "₪₪₪ 1.2.3.4 ,,,, Total Total",
        "\n\n\t",
    ],
)
def test_never_raises_and_currency_is_known(text: str) -> None:
    details = extract_details(text)

    assert details.currency in CURRENCY_CODES


def test_extraction_is_idempotent() -> None:
    assert extract_details(ENGLISH_INVOICE) == extract_details(ENGLISH_INVOICE)


def test_amount_stays_a_string() -> None:
    details = extract_details("Total $1,234.56")

    assert details.amount == "1,234.56"
    assert details.amount_value == pytest.approx(1234.56)


def test_custom_amount_rules() -> None:
    extractor = InvoiceRuleExtractor(
        amount_rules=(PatternRule(re.compile(r"Fee\s+(\d+\.\d{2})"), fixed_currency="GBP"),),
    )

    details = extractor.extract("Fee 45.50 only")

    assert (details.amount, details.currency) == ("45.50", "GBP")


def test_camel_case_dump() -> None:
    payload = extract_details(ENGLISH_INVOICE).model_dump(by_alias=True)

    assert payload["invoiceNumber"] == "INV-2024"
    assert payload["billTo"] == "Jane Doe"
