from __future__ import annotations

import asyncio
import logging
from typing import Any

import fitz  # PyMuPDF

from invoice_scan.schemas.layout import PdfReadResult, TextFragment
from invoice_scan.services.pdf.base import BasePdfReader

logger = logging.getLogger(__name__)

# get_text("dict") block type for text blocks
_TEXT_BLOCK = 0


class PyMuPdfReader(BasePdfReader):
    """Read the PDF text layer with PyMuPDF, one fragment per text span."""

    # PyMuPDF reports coordinates with y growing downwards
    y_axis_up = False

    async def read(
        self,
        source: bytes,
        *,
        filename: str | None = None,
    ) -> PdfReadResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.read_sync(source, filename=filename))

    def read_sync(self, source: bytes, *, filename: str | None = None) -> PdfReadResult:
        try:
            doc = fitz.open(stream=source, filetype="pdf")
        except Exception as exc:
            logger.warning("PDF 打开失败: %s (%s)", filename or "bytes", exc)
            raise ValueError(f"Unable to read PDF: {filename or 'upload'}") from exc

        pages: list[list[TextFragment]] = []
        try:
            for page_idx, page in enumerate(doc, start=1):
                pages.append(self._page_fragments(page.get_text("dict"), page_idx))
        finally:
            doc.close()

        logger.info(
            "PyMuPDF 提取完成: %s pages=%d fragments=%d",
            filename or "bytes",
            len(pages),
            sum(len(page) for page in pages),
        )
        return PdfReadResult(pages=pages, y_axis_up=self.y_axis_up)

    def _page_fragments(self, payload: dict[str, Any], page_idx: int) -> list[TextFragment]:
        fragments: list[TextFragment] = []
        for block in payload.get("blocks", []):
            if block.get("type") != _TEXT_BLOCK:
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    text = span.get("text") or ""
                    if not text.strip():
                        continue
                    x, y = self._span_origin(span)
                    fragments.append(TextFragment(text=text, x=x, y=y, page=page_idx))
        return fragments

    def _span_origin(self, span: dict[str, Any]) -> tuple[float, float]:
        origin = span.get("origin")
        if origin:
            return float(origin[0]), float(origin[1])
        x0, _y0, _x1, y1 = span.get("bbox", (0.0, 0.0, 0.0, 0.0))
        return float(x0), float(y1)
