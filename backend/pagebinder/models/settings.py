"""
PageBinder — Conversion settings and raster payloads.

ConversionSettings is validated once at the boundary and is immutable
for the rest of the conversion: one settings object governs every page
of one output document.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from pagebinder.errors import ValidationError
from pagebinder.pdf.geometry import Orientation, PageSize


class ConversionSettings(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=False)

    page_size: PageSize = PageSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    quality: int = Field(default=100, ge=1, le=100)
    compression: bool = True
    watermark_text: str | None = Field(default=None, max_length=200)

    @field_validator("watermark_text")
    @classmethod
    def _blank_watermark_is_absent(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ConversionSettings":
        """
        Validate a raw settings dict (API form fields, stored project settings).
        Raises ValidationError with one message per bad field.
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ValidationError(errors) from exc


@dataclass
class RasterPayload:
    """Image bytes plus the pixel dimensions, when known."""
    data: bytes
    source_width: int | None = None
    source_height: int | None = None
    format: str | None = None

    @property
    def aspect(self) -> float | None:
        if self.source_width and self.source_height:
            return self.source_width / self.source_height
        return None
