"""
PageBinder — Image to PDF document builder.

Converts an ordered list of raster payloads into a single PDF.
Each image becomes one page, placed with the geometry rules in
pagebinder.pdf.geometry, with an optional watermark on every page.

The document is first planned as a plain value (Document) and then
serialized once with pymupdf.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import fitz

from pagebinder.errors import BuildFailedError, PageBinderError
from pagebinder.models.settings import ConversionSettings, RasterPayload
from pagebinder.pdf.encoder import ImageEncoder, SourceRef, reencode_jpeg
from pagebinder.pdf.geometry import (
    PRINT_MARGIN_MM,
    Placement,
    dimensions_for,
    mm_to_pt,
    placement_for,
)
from pagebinder.utils.logging import logger, step_timer

WATERMARK_FONT_SIZE = 60
WATERMARK_OPACITY = 0.3
WATERMARK_ANGLE = 45
WATERMARK_COLOR = (200 / 255, 200 / 255, 200 / 255)
WATERMARK_FONT = "helv"


def unsupported_watermark_chars(text: str) -> list[str]:
    """
    Characters the watermark font would draw as placeholder dots.

    The base-14 font is written with a single-byte encoding, so anything
    past Latin-1 is lost even when the font file has a glyph for it.
    """
    font = fitz.Font(WATERMARK_FONT)
    missing: list[str] = []
    for ch in text:
        if ch.isspace() or ch in missing:
            continue
        if ord(ch) > 0xFF or not font.has_glyph(ord(ch)):
            missing.append(ch)
    return missing


@dataclass(frozen=True)
class WatermarkSpec:
    text: str
    font_size: float = WATERMARK_FONT_SIZE
    opacity: float = WATERMARK_OPACITY
    angle: float = WATERMARK_ANGLE
    color: tuple[float, float, float] = WATERMARK_COLOR


@dataclass
class PageSpec:
    """One planned page. Geometry is in points."""
    width: float
    height: float
    image: bytes | None = None
    placement: Placement | None = None


@dataclass
class Document:
    pages: list[PageSpec] = field(default_factory=list)
    watermark: WatermarkSpec | None = None
    compression: bool = True


class DocumentBuilder:
    """Plans and serializes image documents. Holds no per-document state."""

    def __init__(self, margin_mm: float = PRINT_MARGIN_MM):
        self.margin_mm = margin_mm

    def build(self, images: Sequence[RasterPayload | None], settings: ConversionSettings) -> bytes:
        """
        Build one PDF, one page per entry, in input order.

        A None entry or an image that fails to embed gives a blank page.
        Raises BuildFailedError when no page could be populated or the
        document cannot be serialized.
        """
        return self.render(self.plan(images, settings))

    def plan(self, images: Sequence[RasterPayload | None], settings: ConversionSettings) -> Document:
        if not images:
            raise BuildFailedError("plan", "no images supplied")

        page_mm = dimensions_for(settings.page_size, settings.orientation)
        page_w, page_h = mm_to_pt(page_mm.width), mm_to_pt(page_mm.height)

        doc = Document(compression=settings.compression)
        if settings.watermark_text:
            doc.watermark = WatermarkSpec(text=settings.watermark_text)

        for i, payload in enumerate(images):
            page = PageSpec(width=page_w, height=page_h)
            doc.pages.append(page)
            if payload is None:
                logger.warning("  Page %d: no image data, leaving page blank", i + 1)
                continue

            placed = placement_for(page_mm, self.margin_mm, payload.aspect)
            page.placement = Placement(
                x=mm_to_pt(placed.x),
                y=mm_to_pt(placed.y),
                width=mm_to_pt(placed.width),
                height=mm_to_pt(placed.height),
            )
            page.image = payload.data
            if settings.quality < 100:
                try:
                    page.image = reencode_jpeg(payload.data, settings.quality)
                except Exception as exc:
                    logger.warning("  Page %d: could not re-encode image (%s), leaving page blank", i + 1, exc)
                    page.image = None
                    page.placement = None

        return doc

    def render(self, document: Document) -> bytes:
        with step_timer("Render PDF"):
            pdf = fitz.open()
            try:
                populated = 0
                for i, spec in enumerate(document.pages):
                    page = pdf.new_page(width=spec.width, height=spec.height)
                    if spec.image is None or spec.placement is None:
                        continue
                    p = spec.placement
                    rect = fitz.Rect(p.x, p.y, p.x + p.width, p.y + p.height)
                    try:
                        page.insert_image(rect, stream=spec.image, keep_proportion=False)
                    except Exception as exc:
                        logger.warning("  Page %d: image could not be embedded (%s), leaving page blank", i + 1, exc)
                        continue
                    populated += 1
                    logger.info("  Page %d: inserted image (%d bytes)", i + 1, len(spec.image))

                if populated == 0:
                    raise BuildFailedError("embed", f"none of the {len(document.pages)} images could be embedded")

                if document.watermark is not None:
                    self._apply_watermark(pdf, document.watermark)

                try:
                    if document.compression:
                        pdf_bytes = pdf.tobytes(garbage=3, deflate=True)
                    else:
                        pdf_bytes = pdf.tobytes()
                except Exception as exc:
                    raise BuildFailedError("serialize", str(exc)) from exc
            finally:
                pdf.close()

        logger.info("  Created %d-page PDF (%d bytes)", len(document.pages), len(pdf_bytes))
        return pdf_bytes

    @staticmethod
    def _apply_watermark(pdf: fitz.Document, mark: WatermarkSpec) -> None:
        """Draw the same rotated text centred on every page, or fail the build."""
        missing = unsupported_watermark_chars(mark.text)
        if missing:
            raise BuildFailedError(
                "watermark", f"font {WATERMARK_FONT!r} cannot draw {''.join(missing)!r}"
            )
        text_width = fitz.get_text_length(mark.text, fontname=WATERMARK_FONT, fontsize=mark.font_size)
        for i, page in enumerate(pdf):
            center = fitz.Point(page.rect.width / 2, page.rect.height / 2)
            # baseline start so the text box is centred on the pivot
            origin = fitz.Point(center.x - text_width / 2, center.y + mark.font_size * 0.35)
            try:
                page.insert_text(
                    origin,
                    mark.text,
                    fontsize=mark.font_size,
                    fontname=WATERMARK_FONT,
                    color=mark.color,
                    fill_opacity=mark.opacity,
                    stroke_opacity=mark.opacity,
                    morph=(center, fitz.Matrix(mark.angle)),
                    overlay=True,
                )
            except Exception as exc:
                raise BuildFailedError("watermark", f"page {i + 1}: {exc}") from exc
        logger.info("  Watermark %r applied to %d pages", mark.text, len(pdf))


async def images_to_pdf(
    sources: Sequence[SourceRef],
    settings: ConversionSettings,
    encoder: ImageEncoder | None = None,
    builder: DocumentBuilder | None = None,
    warnings: list[str] | None = None,
) -> bytes:
    """
    Encode each source in order, then build the PDF.

    A source that cannot be read or decoded is logged (and appended to
    `warnings` when given) and becomes a blank page; order is never changed.
    """
    encoder = encoder or ImageEncoder()
    builder = builder or DocumentBuilder()

    with step_timer("Convert images → PDF"):
        payloads = await encode_all(sources, encoder, warnings)
        return builder.build(payloads, settings)


async def encode_all(
    sources: Sequence[SourceRef],
    encoder: ImageEncoder,
    warnings: list[str] | None = None,
) -> list[RasterPayload | None]:
    """Encode sources one at a time, in order. Failures become None."""
    payloads: list[RasterPayload | None] = []
    for i, source in enumerate(sources):
        try:
            payloads.append(await encoder.encode(source))
        except PageBinderError as exc:
            logger.warning("  Image %d skipped: %s", i + 1, exc.message)
            if warnings is not None:
                warnings.append(f"image {i + 1}: {exc.message}")
            payloads.append(None)
    return payloads
