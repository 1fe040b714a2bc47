"""
PageBinder — PDF verification module.

Inspects built or merged PDFs locally using pymupdf (fitz).

Checks:
  1. PDF opens and parses
  2. Page count matches
  3. Watermark text detected
  4. Watermark on all pages
  5. Encryption flags match expectation
  6. Page size matches
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

import fitz

from pagebinder.models.job import VerificationResult
from pagebinder.utils.logging import logger, step_timer

SIZE_TOLERANCE_PT = 0.5


@dataclass
class VerifyExpectations:
    watermark_text: str = ""
    should_be_encrypted: bool = False
    expected_pages: int | None = None
    page_size_pt: tuple[float, float] | None = None


class PDFVerifier:
    """Local PDF inspection using pymupdf. No external calls."""

    def verify(self, pdf_bytes: bytes, expectations: VerifyExpectations) -> VerificationResult:
        with step_timer("Verify PDF"):
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
            try:
                checks: dict[str, bool] = {}

                # 1. Opens and parses
                checks["opens_and_parses"] = len(doc) > 0

                # 2. Page count
                if expectations.expected_pages is not None:
                    checks["page_count_matches"] = len(doc) == expectations.expected_pages
                else:
                    checks["page_count_matches"] = True

                # 3-4. Watermark
                watermark_pages = 0
                if expectations.watermark_text:
                    wm = expectations.watermark_text.upper()
                    watermark_pages = sum(1 for page in doc if wm in page.get_text().upper())
                    checks["watermark_detected"] = watermark_pages > 0
                    checks["watermark_all_pages"] = watermark_pages == len(doc)
                else:
                    checks["watermark_detected"] = True
                    checks["watermark_all_pages"] = True

                # 5. Encryption
                checks["encryption_matches"] = doc.is_encrypted == expectations.should_be_encrypted

                # 6. Page size
                page_sizes = [(round(p.rect.width, 2), round(p.rect.height, 2)) for p in doc]
                if expectations.page_size_pt is not None:
                    ew, eh = expectations.page_size_pt
                    checks["page_size_matches"] = all(
                        abs(w - ew) <= SIZE_TOLERANCE_PT and abs(h - eh) <= SIZE_TOLERANCE_PT
                        for w, h in page_sizes
                    )
                else:
                    checks["page_size_matches"] = True

                passed_count = sum(checks.values())
                total_count = len(checks)

                metadata_raw = doc.metadata or {}
                metadata: dict[str, Any] = {k: v for k, v in metadata_raw.items() if v}

                result = VerificationResult(
                    page_count=len(doc),
                    page_sizes=page_sizes,
                    image_count=sum(len(p.get_images()) for p in doc),
                    watermark_detected=checks["watermark_detected"] and bool(expectations.watermark_text),
                    watermark_on_all_pages=checks["watermark_all_pages"] and bool(expectations.watermark_text),
                    is_encrypted=doc.is_encrypted,
                    file_size=len(pdf_bytes),
                    content_hash=hashlib.sha256(pdf_bytes).hexdigest(),
                    metadata=metadata,
                    checks=checks,
                    checks_passed=passed_count,
                    checks_total=total_count,
                    passed=passed_count == total_count,
                )
            finally:
                doc.close()

            logger.info(
                "  Verification: %d/%d checks passed %s",
                passed_count, total_count,
                "✓" if result.passed else "✗",
            )
            return result
