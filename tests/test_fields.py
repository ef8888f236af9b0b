from __future__ import annotations

import pytest

from invoice_scan.services.rules.fields import (
    extract_bill_to,
    extract_date,
    extract_invoice_number,
    extract_vendor,
    is_likely_vendor,
)
from invoice_scan.services.rules.text_normalize import normalize_for_match, split_lines


def _number(text: str) -> str | None:
    return extract_invoice_number(normalize_for_match(text), text)


def _date(text: str) -> str | None:
    return extract_date(normalize_for_match(text), text)


def _bill_to(text: str) -> str | None:
    return extract_bill_to(normalize_for_match(text), text)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Invoice Number: INV-1234", "INV-1234"),
        ("מספר חשבונית: 45871", "45871"),
        ("Invoice # 2024-001", "2024-001"),
        ("Invoice\nNumber: 7788", "7788"),
        ("Ref: 12", "12"),
    ],
)
def test_extract_invoice_number(text: str, expected: str) -> None:
    assert _number(text) == expected


def test_invoice_number_requires_two_characters() -> None:
    assert _number("INVOICE #: A") is None
    assert _number("no identifiers here") is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Date: 12/03/2024", "12/03/2024"),
        ("תאריך: 01.02.2024", "01.02.2024"),
        ("Paid on January 5, 2024", "January 5, 2024"),
        ("Shipped March 3, 2024\nDue date: 15/04/2024", "15/04/2024"),
    ],
)
def test_extract_date(text: str, expected: str) -> None:
    assert _date(text) == expected


def test_extract_date_none() -> None:
    assert _date("no dates at all") is None


def test_vendor_prefers_hebrew_issuer_phrase() -> None:
    text = "לכבוד: משה כהן\nעיריית תל אביב\nסך הכל ₪10.00"

    assert extract_vendor(text, split_lines(text)) == "עיריית תל אביב"


def test_vendor_skips_label_and_number_lines() -> None:
    lines = ["Invoice", "12/03/2024", "Total", "Acme Widgets Ltd", "Other Co"]

    assert extract_vendor("\n".join(lines), lines) == "Acme Widgets Ltd"


def test_vendor_falls_back_to_first_line() -> None:
    lines = ["Invoice #12", "Total 5"]

    assert extract_vendor("\n".join(lines), lines) == "Invoice #12"
    assert extract_vendor("invoice", ["invoice"]) is None
    assert extract_vendor("", []) is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Acme", True),
        ("Total", False),
        ("12345", False),
        ("USD 100", False),
        ("A", False),
        ("Scanmarker Inc.", False),
        ("Bill to: Jane", False),
    ],
)
def test_is_likely_vendor(value: str, expected: bool) -> None:
    assert is_likely_vendor(value) is expected


def test_bill_to_english() -> None:
    assert _bill_to("Bill to: Jane Doe, 12 Main St\nTotal $5.00") == "Jane Doe"


def test_bill_to_hebrew_addressee() -> None:
    assert _bill_to("עיריית חיפה\nלכבוד: משה כהן\nתאריך: 01/02/2024") == "משה כהן"


def test_bill_to_missing() -> None:
    assert _bill_to("nothing to see") is None
