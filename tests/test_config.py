from __future__ import annotations

import pytest
from pydantic import ValidationError

from invoice_scan.core.config import Settings
from invoice_scan.services.rules.payment import DEFAULT_PAYMENT_MARKERS


def test_defaults() -> None:
    config = Settings()

    assert config.layout_tolerance == 8.0
    assert config.layout_y_axis_up is None
    assert config.shekel_payment_type == "IL"
    assert config.payment_markers == {label: list(keywords) for label, keywords in DEFAULT_PAYMENT_MARKERS.items()}


def test_payment_markers_are_normalized() -> None:
    config = Settings(payment_markers={" VB ": [" ScanMarker ", "", "  "]})

    assert config.payment_markers == {"VB": ["scanmarker"]}


@pytest.mark.parametrize(
    "markers",
    [
        {},
        {"  ": ["scanmarker"]},
        {"VB": ["a"], " VB ": ["b"]},
    ],
)
def test_invalid_payment_markers(markers: dict[str, list[str]]) -> None:
    with pytest.raises(ValidationError):
        Settings(payment_markers=markers)


def test_negative_tolerance_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(layout_tolerance=-1)


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAYOUT_TOLERANCE", "4.5")
    monkeypatch.setenv("LAYOUT_Y_AXIS_UP", "false")
    monkeypatch.setenv("PAYMENT_MARKERS", '{"VB": ["Scanmarker"]}')

    config = Settings()

    assert config.layout_tolerance == 4.5
    assert config.layout_y_axis_up is False
    assert config.payment_markers == {"VB": ["scanmarker"]}
