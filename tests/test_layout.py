from __future__ import annotations

import pytest
from pydantic import ValidationError

from invoice_scan.schemas.layout import TextFragment
from invoice_scan.services.rules.layout import (
    LayoutConfig,
    ReconstructedText,
    extract_lines,
    merge_pages,
    merge_total_rows,
)


def _frag(text: str, x: float, y: float, page: int = 1) -> TextFragment:
    return TextFragment(text=text, x=x, y=y, page=page)


def test_same_row_fragments_join_left_to_right() -> None:
    result = extract_lines([_frag("$500.00", 50, 100), _frag("Total", 0, 100)])

    assert result.lines == ["Total $500.00"]
    # raw text keeps the encounter order
    assert result.raw_text == "$500.00 Total"


def test_rows_sorted_top_to_bottom_in_pdf_space() -> None:
    fragments = [
        _frag("Footer", 0, 40),
        _frag("Header", 0, 700),
        _frag("Body", 0, 400),
    ]

    assert extract_lines(fragments).lines == ["Header", "Body", "Footer"]


def test_y_axis_down_reverses_row_order() -> None:
    fragments = [_frag("Header", 0, 10), _frag("Footer", 0, 700)]

    down = extract_lines(fragments, LayoutConfig(y_axis_up=False))
    up = extract_lines(fragments, LayoutConfig(y_axis_up=True))

    assert down.lines == ["Header", "Footer"]
    assert up.lines == ["Footer", "Header"]


def test_band_tolerance_chains_through_neighbours() -> None:
    fragments = [
        _frag("a", 0, 100),
        _frag("b", 10, 94),
        _frag("c", 20, 88),
        _frag("d", 30, 82),
        _frag("e", 0, 70),
    ]

    result = extract_lines(fragments)

    # 100 and 82 are 18 apart but every neighbour step is within tolerance
    assert result.lines == ["a b c d", "e"]


def test_tolerance_is_configurable() -> None:
    fragments = [_frag("a", 0, 100), _frag("b", 10, 95)]

    assert extract_lines(fragments, LayoutConfig(tolerance=2)).lines == ["a", "b"]
    assert extract_lines(fragments, LayoutConfig(tolerance=8)).lines == ["a b"]


def test_baselines_round_before_grouping() -> None:
    fragments = [_frag("left", 0, 100.4), _frag("right", 40, 99.6)]

    assert extract_lines(fragments, LayoutConfig(tolerance=0)).lines == ["left right"]


def test_total_row_merges_with_amount_row() -> None:
    result = extract_lines([_frag("Total", 0, 200), _frag("$500.00", 0, 180)])

    assert result.lines == ["Total $500.00"]
    assert "$500.00" not in result.lines


def test_total_row_merge_adds_dollar_prefix_without_symbol() -> None:
    assert merge_total_rows(["Total", "500.00"]) == ["Total $ 500.00"]
    assert merge_total_rows(["Total ($)", "500.00"]) == ["Total ($) 500.00"]
    assert merge_total_rows(["סך הכל", "₪500.00"]) == ["סך הכל ₪500.00"]


def test_non_total_rows_are_not_merged() -> None:
    lines = ["Shipping", "$5.00", "Total", "Thanks"]

    assert merge_total_rows(lines) == lines


def test_empty_page() -> None:
    result = extract_lines([])

    assert result == ReconstructedText(lines=[], raw_text="")
    assert result.text == ""


def test_merge_pages_concatenates_in_order() -> None:
    first = extract_lines([_frag("Acme Ltd", 0, 700)])
    second = extract_lines([_frag("Total", 0, 200, page=2), _frag("$42.00", 60, 200, page=2)])

    merged = merge_pages([first, second])

    assert merged.lines == ["Acme Ltd", "Total $42.00"]
    assert merged.raw_text == "Acme Ltd Total $42.00"
    assert merged.text == "Acme Ltd\nTotal $42.00"


def test_non_finite_coordinates_rejected() -> None:
    with pytest.raises(ValidationError):
        TextFragment(text="a", x=0, y=float("nan"))
    with pytest.raises(ValidationError):
        TextFragment(text="a", x=float("inf"), y=10)
