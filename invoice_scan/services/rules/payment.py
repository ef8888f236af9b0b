"""Usage: map invoice text to a payment channel via keyword markers."""

from __future__ import annotations

from typing import Mapping, Sequence

# Payment channel label -> issuer keywords (matched case-insensitively as substrings).
DEFAULT_PAYMENT_MARKERS: Mapping[str, tuple[str, ...]] = {
    "VB": ("scanmarker",),
    "IL": ("topscan", "top scan", "topscan ltd"),
}


def classify_payment_type(
    text: str | None,
    markers: Mapping[str, Sequence[str] | str] | None = None,
) -> str | None:
    """Return the first channel whose keyword appears in the text, else None."""

    if not text or not isinstance(text, str):
        return None
    table = DEFAULT_PAYMENT_MARKERS if markers is None else markers
    lower = text.lower()
    for label, keywords in table.items():
        if isinstance(keywords, str):
            keywords = [keywords]
        for keyword in keywords:
            if keyword and str(keyword).lower() in lower:
                return label
    return None
