"""
PageBinder — OCR text extraction.

Thin async client for a Vision-style `images:annotate` endpoint.
The service is opaque: one request per image, no retries.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Sequence

import httpx

from pagebinder.core.config import settings
from pagebinder.errors import OCRServiceError, PageBinderError
from pagebinder.pdf.encoder import ImageEncoder, SourceRef
from pagebinder.utils.logging import logger, step_timer

ANNOTATE_PATH = "/v1/images:annotate"


@dataclass
class OCRResult:
    text: str = ""
    confidence: float = 0.0  # 0.0 to 1.0
    language: str = ""


class OCRClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
        encoder: ImageEncoder | None = None,
    ):
        self.base_url = (base_url or settings.ocr.base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.ocr.api_key
        self.timeout = timeout
        self.transport = transport
        self.encoder = encoder or ImageEncoder(transport=transport)

    async def extract_text(self, image: SourceRef, language: str | None = None) -> OCRResult:
        """Run OCR on one image. A response without annotations is an empty result."""
        language = language or settings.ocr.default_language
        if not self.api_key:
            raise OCRServiceError("no API key configured")

        payload = await self.encoder.encode(image)
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(payload.data).decode("ascii")},
                    "features": [
                        {"type": "TEXT_DETECTION", "maxResults": 10},
                        {"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 10},
                    ],
                    "imageContext": {"languageHints": [language]},
                }
            ]
        }

        with step_timer("OCR — extract text from image"):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    resp = await client.post(
                        f"{self.base_url}{ANNOTATE_PATH}",
                        params={"key": self.api_key},
                        json=body,
                    )
            except httpx.HTTPError as exc:
                raise OCRServiceError(str(exc)) from exc

            if not resp.is_success:
                logger.error("  OCR service returned %d: %s", resp.status_code, resp.text[:200])
                raise OCRServiceError(f"HTTP {resp.status_code}", status=resp.status_code)

            data = resp.json()
            responses = data.get("responses") or [{}]
            annotation = responses[0].get("fullTextAnnotation")
            if not annotation:
                logger.info("  OCR: no text found")
                return OCRResult(text="", confidence=0.0, language=language)

            text = annotation.get("text", "")
            confidence = float(annotation.get("confidence", 0.95))
            logger.info("  OCR: %d chars, confidence %.0f%%", len(text), confidence * 100)
            return OCRResult(text=text, confidence=confidence, language=language)

    async def extract_from_images(
        self, images: Sequence[SourceRef], language: str | None = None
    ) -> list[OCRResult]:
        """OCR several images in order; a failed image gives an empty result."""
        language = language or settings.ocr.default_language
        results: list[OCRResult] = []
        for i, image in enumerate(images):
            try:
                results.append(await self.extract_text(image, language))
            except PageBinderError as exc:
                logger.warning("  OCR image %d failed: %s", i + 1, exc.message)
                results.append(OCRResult(text="", confidence=0.0, language=language))
        return results


def merge_texts(results: Sequence[OCRResult]) -> str:
    return "\n\n".join(r.text for r in results if r.text)
