import logging
from typing import Final

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from invoice_scan.api.deps import PdfReaderDep
from invoice_scan.schemas.invoice import (
    CurrencyOption,
    InvoiceExtractionResponse,
    TextExtractionRequest,
)
from invoice_scan.services.pipelines.invoice import InvoiceExtractionPipeline
from invoice_scan.services.rules.currency import CURRENCIES

router = APIRouter(prefix="/invoice", tags=["invoice"])

logger = logging.getLogger(__name__)
ALLOWED_CONTENT_TYPES: Final[set[str]] = {
    "application/pdf",
    "application/x-pdf",
}


@router.post(
    "/extract",
    summary="Extract invoice fields from a PDF",
    response_model=InvoiceExtractionResponse,
)
async def extract_invoice(
    pdf_reader: PdfReaderDep,
    file: UploadFile = File(..., description="Invoice PDF"),
) -> InvoiceExtractionResponse:
    """Read the PDF text layer and run the heuristic field extraction."""

    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: {file.content_type}. Please upload a PDF file.",
        )

    try:
        payload = await file.read()
    except Exception as exc:  # pragma: no cover - upload IO errors are rare
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to read uploaded file.",
        ) from exc

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )

    pipeline = InvoiceExtractionPipeline(pdf_reader)
    try:
        document = await pipeline.run(payload, filename=file.filename)
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - passthrough for unexpected failures
        logger.exception("Invoice extraction failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Invoice extraction failed.",
        ) from exc

    return InvoiceExtractionResponse(success=True, data=document, message="ok")


@router.post(
    "/extract-text",
    summary="Extract invoice fields from text",
    response_model=InvoiceExtractionResponse,
)
async def extract_invoice_text(request: TextExtractionRequest) -> InvoiceExtractionResponse:
    pipeline = InvoiceExtractionPipeline()
    document = pipeline.run_text(
        request.text,
        raw_text=request.raw_text,
        filename=request.filename,
    )
    return InvoiceExtractionResponse(success=True, data=document, message="ok")


@router.get(
    "/currencies",
    summary="Supported currencies",
    response_model=list[CurrencyOption],
)
async def list_currencies() -> list[CurrencyOption]:
    return [CurrencyOption(code=info.code, symbol=info.symbol, label=info.label) for info in CURRENCIES]
