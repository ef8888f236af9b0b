from __future__ import annotations

import fitz
import pytest

from invoice_scan.services.pdf.pymupdf_reader import PyMuPdfReader
from invoice_scan.services.pipelines.invoice import InvoiceExtractionPipeline


def _make_pdf(*pages: list[tuple[float, float, str]]) -> bytes:
    doc = fitz.open()
    for rows in pages:
        page = doc.new_page()
        for x, y, text in rows:
            page.insert_text((x, y), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def test_read_sync_returns_span_fragments() -> None:
    data = _make_pdf([(72, 72, "Acme Widgets Ltd"), (72, 700, "Total $21.60")])

    result = PyMuPdfReader().read_sync(data, filename="acme.pdf")

    assert result.page_count == 1
    assert result.y_axis_up is False
    by_text = {fragment.text: fragment for fragment in result.pages[0]}
    assert set(by_text) == {"Acme Widgets Ltd", "Total $21.60"}
    assert by_text["Acme Widgets Ltd"].y == pytest.approx(72, abs=1)
    assert by_text["Total $21.60"].x == pytest.approx(72, abs=1)


@pytest.mark.asyncio
async def test_read_multi_page_feeds_pipeline() -> None:
    data = _make_pdf(
        [(72, 72, "Acme Widgets Ltd"), (72, 120, "Invoice Number: INV-5512")],
        [(72, 600, "Total $1,480.00")],
    )
    pipeline = InvoiceExtractionPipeline(PyMuPdfReader())

    document = await pipeline.run(data, filename="acme.pdf")

    assert document.page_count == 2
    assert document.details.vendor == "Acme Widgets Ltd"
    assert document.details.invoice_number == "INV-5512"
    assert document.details.amount == "1,480.00"
    assert document.details.currency == "USD"


def test_unreadable_pdf_raises_value_error() -> None:
    with pytest.raises(ValueError):
        PyMuPdfReader().read_sync(b"definitely not a pdf", filename="broken.pdf")
