"""Usage: invoice extraction pipeline (PDF text layer -> layout -> rules)."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Sequence

from invoice_scan.core.config import settings
from invoice_scan.schemas.invoice import ExtractionDetails, InvoiceDocument
from invoice_scan.schemas.layout import PdfReadResult
from invoice_scan.services.pdf.base import BasePdfReader
from invoice_scan.services.rules.invoice_rule_extractor import InvoiceRuleExtractor
from invoice_scan.services.rules.layout import LayoutConfig, ReconstructedText, extract_lines, merge_pages
from invoice_scan.services.rules.payment import classify_payment_type

logger = logging.getLogger(__name__)

SHEKEL = "₪"

# marks "not passed" so None can still disable the shekel channel
_FROM_SETTINGS: Any = object()


class InvoiceExtractionPipeline:
    """Pipeline orchestrating PDF reading, line reconstruction and rule extraction."""

    def __init__(
        self,
        pdf_reader: BasePdfReader | None = None,
        *,
        rule_extractor: InvoiceRuleExtractor | None = None,
        payment_markers: Mapping[str, Sequence[str]] | None = None,
        layout_config: LayoutConfig | None = None,
        shekel_payment_type: str | None = _FROM_SETTINGS,
    ) -> None:
        self.pdf_reader = pdf_reader
        self.rule_extractor = rule_extractor or InvoiceRuleExtractor()
        self.payment_markers = settings.payment_markers if payment_markers is None else payment_markers
        self.layout_config = layout_config
        self.shekel_payment_type = (
            settings.shekel_payment_type if shekel_payment_type is _FROM_SETTINGS else shekel_payment_type
        )

    async def run(self, source: bytes, *, filename: str | None = None) -> InvoiceDocument:
        """Read the PDF, rebuild its lines and extract invoice details."""

        if self.pdf_reader is None:
            raise RuntimeError("Pipeline has no PDF reader configured")

        start_time = time.perf_counter()
        logger.info("⏱ [TIMER] Pipeline started for file: %s", filename)

        read_result = await self.pdf_reader.read(source, filename=filename)
        read_duration = time.perf_counter() - start_time
        logger.info("⏱ [TIMER] Step 1: PDF read finished. Duration: %.4fs", read_duration)

        reconstructed = self.reconstruct(read_result)
        document = self.run_text(
            reconstructed.text,
            raw_text=reconstructed.raw_text,
            filename=filename,
            page_count=read_result.page_count,
        )

        total_duration = time.perf_counter() - start_time
        logger.info(
            "⏱ [TIMER] Pipeline completed. Total: %.4fs (read: %.2fs)",
            total_duration,
            read_duration,
        )
        return document

    def reconstruct(self, read_result: PdfReadResult) -> ReconstructedText:
        config = self.layout_config or self._layout_config_for(read_result)
        pages = [extract_lines(fragments, config) for fragments in read_result.pages]
        return merge_pages(pages)

    def run_text(
        self,
        text: str,
        *,
        raw_text: str | None = None,
        filename: str | None = None,
        page_count: int = 0,
    ) -> InvoiceDocument:
        """Extract details from already materialized text and classify the payment channel."""

        text_to_use = text or raw_text or ""
        if len(text_to_use.strip()) < settings.short_text_warning_chars:
            logger.warning(
                "PDF text is very short (%d chars), extraction may fail: %s",
                len(text_to_use.strip()),
                filename,
            )

        by_lines = self.rule_extractor.extract(text_to_use)
        by_raw = None
        if raw_text and raw_text != text_to_use:
            by_raw = self.rule_extractor.extract(raw_text)
        details, text_source = _choose_details(by_lines, by_raw)

        payment_type = classify_payment_type(text_to_use, self.payment_markers) or classify_payment_type(
            filename, self.payment_markers
        )
        if details.currency == SHEKEL and self.shekel_payment_type:
            payment_type = self.shekel_payment_type

        logger.info(
            "Invoice extracted: file=%s source=%s amount=%s currency=%s payment_type=%s",
            filename,
            text_source,
            details.amount,
            details.currency,
            payment_type,
        )
        return InvoiceDocument(
            filename=filename,
            page_count=page_count,
            payment_type=payment_type,
            text_source=text_source,
            details=details,
        )

    def _layout_config_for(self, read_result: PdfReadResult) -> LayoutConfig:
        y_axis_up = settings.layout_y_axis_up
        if y_axis_up is None:
            y_axis_up = read_result.y_axis_up
        return LayoutConfig(tolerance=settings.layout_tolerance, y_axis_up=y_axis_up)


def _choose_details(
    by_lines: ExtractionDetails,
    by_raw: ExtractionDetails | None,
) -> tuple[ExtractionDetails, str]:
    # the raw rendition wins only when it finds a larger amount
    if by_raw is None or by_raw.amount_value is None:
        return by_lines, "lines"
    line_value = by_lines.amount_value
    if line_value is None or by_raw.amount_value > line_value:
        return by_raw, "raw"
    return by_lines, "lines"
