from pydantic import BaseModel, Field


class TextFragment(BaseModel):
    text: str
    x: float = Field(..., allow_inf_nan=False, description="Horizontal origin of the text run")
    y: float = Field(..., allow_inf_nan=False, description="Baseline of the text run")
    page: int = Field(default=1, ge=1)


class PdfReadResult(BaseModel):
    pages: list[list[TextFragment]] = Field(default_factory=list)
    y_axis_up: bool = Field(
        default=True,
        description="True when larger y values sit higher on the page (PDF user space).",
    )

    @property
    def page_count(self) -> int:
        return len(self.pages)
