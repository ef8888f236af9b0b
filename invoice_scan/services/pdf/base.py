from typing import Protocol, runtime_checkable

from invoice_scan.schemas.layout import PdfReadResult


@runtime_checkable
class BasePdfReader(Protocol):
    async def read(
        self,
        source: bytes,
        *,
        filename: str | None = None,
    ) -> PdfReadResult:
        """Decode a PDF and return its positioned text fragments per page."""
        ...
