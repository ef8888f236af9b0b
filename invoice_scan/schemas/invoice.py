import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CurrencyCode = Literal["USD", "₪", "INR", "EUR", "GBP"]

_NUMERIC_CLEAN_RE = re.compile(r"[^\d\.-]")


def _parse_float_like(value: str | None) -> float | None:
    """Parse a matched amount string like '1,234.56' on demand."""

    if value is None:
        return None
    cleaned = _NUMERIC_CLEAN_RE.sub("", value)
    if cleaned in {"", ".", "-"}:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


class ExtractionDetails(BaseModel):
    """Best-guess invoice fields extracted from one document's text."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    amount: Optional[str] = Field(
        default=None,
        description="Total amount exactly as matched in the text (e.g. '1,234.56').",
    )
    currency: CurrencyCode = Field(
        default="USD",
        description="Canonical currency code; never empty.",
    )
    invoice_number: Optional[str] = Field(
        default=None,
        description="Invoice or reference number.",
    )
    date: Optional[str] = Field(
        default=None,
        description="Invoice or due date as printed.",
    )
    vendor: Optional[str] = Field(
        default=None,
        description="Issuer of the invoice.",
    )
    bill_to: Optional[str] = Field(
        default=None,
        description="Addressee the invoice is billed to.",
    )

    @property
    def amount_value(self) -> float | None:
        return _parse_float_like(self.amount)


class InvoiceDocument(BaseModel):
    """Extraction result for one uploaded document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    filename: Optional[str] = Field(
        default=None,
        description="Original upload filename.",
    )
    page_count: int = Field(
        default=0,
        ge=0,
        description="Number of PDF pages read.",
    )
    payment_type: Optional[str] = Field(
        default=None,
        description="Payment channel label from the marker table.",
    )
    text_source: Literal["lines", "raw"] = Field(
        default="lines",
        description="Which text rendition produced the details.",
    )
    details: ExtractionDetails = Field(
        default_factory=ExtractionDetails,
        description="Extracted invoice fields.",
    )


class TextExtractionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: str = Field(..., description="Already extracted invoice text.")
    raw_text: Optional[str] = Field(
        default=None,
        description="Flattened fragment text used as a secondary source.",
    )
    filename: Optional[str] = Field(
        default=None,
        description="Filename used as a payment type fallback.",
    )


class InvoiceExtractionResponse(BaseModel):
    """Standard envelope for invoice extraction results."""

    success: bool = Field(
        ...,
        description="Indicates whether extraction ran end-to-end.",
    )
    data: InvoiceDocument = Field(
        ...,
        description="Extracted document payload.",
    )
    message: str = Field(
        ...,
        description="Human-readable status message.",
    )


class CurrencyOption(BaseModel):
    code: CurrencyCode
    symbol: str
    label: str
