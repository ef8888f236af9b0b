from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from invoice_scan.services.rules.payment import DEFAULT_PAYMENT_MARKERS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_env: str = "dev"
    log_level: str = "info"
    log_dir: str = "logs"
    layout_tolerance: float = Field(default=8.0, ge=0)
    # None keeps the coordinate convention reported by the PDF reader
    layout_y_axis_up: bool | None = None
    payment_markers: dict[str, list[str]] = Field(
        default_factory=lambda: {label: list(keywords) for label, keywords in DEFAULT_PAYMENT_MARKERS.items()}
    )
    shekel_payment_type: str | None = "IL"
    short_text_warning_chars: int = 50

    @field_validator("payment_markers")
    @classmethod
    def _normalize_markers(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        if not value:
            raise ValueError("PAYMENT_MARKERS must contain at least one payment type")
        normalized: dict[str, list[str]] = {}
        for label, keywords in value.items():
            name = label.strip()
            if not name:
                raise ValueError("Payment type label cannot be blank")
            if name in normalized:
                raise ValueError(f"Duplicate payment type label: {name}")
            normalized[name] = [kw.strip().lower() for kw in keywords if kw and kw.strip()]
        return normalized


settings = Settings()
