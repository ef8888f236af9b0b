"""Usage: rebuild visual text lines from positioned PDF text fragments."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from invoice_scan.schemas.layout import TextFragment
from invoice_scan.services.rules.text_normalize import TOTAL_LABEL

_TOTAL_LABEL_RE = re.compile(TOTAL_LABEL, re.IGNORECASE)
_BARE_AMOUNT_RES = (
    re.compile(r"^\$?\s*[\d,]+\.\d{1,2}\s*$"),
    re.compile(r"^₪?\s*[\d,]+\.\d{1,2}\s*$"),
)
_CURRENCY_MARKERS = ("$", "₪")


@dataclass(frozen=True)
class LayoutConfig:
    tolerance: float = 8.0
    # True: PDF user space, larger y is higher on the page
    y_axis_up: bool = True


@dataclass(frozen=True)
class ReconstructedText:
    lines: list[str] = field(default_factory=list)
    raw_text: str = ""

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def extract_lines(
    fragments: Iterable[TextFragment],
    config: LayoutConfig | None = None,
) -> ReconstructedText:
    """Group one page's fragments into top-to-bottom lines plus a flattened raw string."""

    cfg = config or LayoutConfig()
    ordered = list(fragments)
    raw_text = " ".join(fragment.text for fragment in ordered)

    by_y: dict[int, list[TextFragment]] = {}
    for fragment in ordered:
        by_y.setdefault(_round_half_up(fragment.y), []).append(fragment)

    keys = sorted(by_y, reverse=cfg.y_axis_up)
    lines: list[str] = []
    for band in _chain_bands(keys, cfg.tolerance):
        members = sorted(
            (fragment for key in band for fragment in by_y[key]),
            key=lambda fragment: fragment.x,
        )
        lines.append(" ".join(fragment.text for fragment in members))

    return ReconstructedText(lines=merge_total_rows(lines), raw_text=raw_text)


def merge_pages(pages: Sequence[ReconstructedText]) -> ReconstructedText:
    lines = [line for page in pages for line in page.lines]
    raw_text = " ".join(page.raw_text for page in pages).strip()
    return ReconstructedText(lines=lines, raw_text=raw_text)


def merge_total_rows(lines: Sequence[str]) -> list[str]:
    """Fuse a total label row with a following row that holds only the amount."""

    merged: list[str] = []
    idx = 0
    while idx < len(lines):
        line = lines[idx].strip()
        following = lines[idx + 1].strip() if idx + 1 < len(lines) else ""
        if _is_bare_amount(following) and _TOTAL_LABEL_RE.search(line):
            amount = following
            if not any(marker in line or marker in following for marker in _CURRENCY_MARKERS):
                amount = f"$ {following}"
            merged.append(f"{line} {amount}")
            idx += 2
            continue
        merged.append(lines[idx])
        idx += 1
    return merged


def _chain_bands(keys: Sequence[int], tolerance: float) -> list[list[int]]:
    # membership is checked against the band's last key only
    bands: list[list[int]] = []
    for key in keys:
        if bands and abs(bands[-1][-1] - key) <= tolerance:
            bands[-1].append(key)
        else:
            bands.append([key])
    return bands


def _is_bare_amount(value: str) -> bool:
    return any(pattern.match(value) for pattern in _BARE_AMOUNT_RES)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
