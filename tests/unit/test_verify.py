"""Unit tests for the PDF verification module."""

import fitz
import pytest

from pagebinder.models.settings import ConversionSettings, RasterPayload
from pagebinder.pdf.builder import DocumentBuilder
from pagebinder.pdf.verify import PDFVerifier, VerifyExpectations


class TestPDFVerifier:
    @pytest.fixture
    def verifier(self):
        return PDFVerifier()

    @pytest.fixture
    def watermarked_pdf(self, make_png):
        images = [RasterPayload(make_png(80, 60), 80, 60)] * 2
        return DocumentBuilder().build(images, ConversionSettings(watermark_text="INTERNAL"))

    def test_simple_pdf_opens(self, verifier, make_pdf):
        result = verifier.verify(make_pdf(["Hello"]), VerifyExpectations())
        assert result.page_count == 1
        assert result.passed is True
        assert result.checks_total == 6

    def test_has_content_hash(self, verifier, make_pdf):
        result = verifier.verify(make_pdf(["Hello"]), VerifyExpectations())
        assert len(result.content_hash) == 64

    def test_page_count_mismatch(self, verifier, make_pdf):
        result = verifier.verify(make_pdf(["a", "b"]), VerifyExpectations(expected_pages=3))
        assert result.checks["page_count_matches"] is False
        assert result.passed is False

    def test_watermark_on_all_pages(self, verifier, watermarked_pdf):
        result = verifier.verify(watermarked_pdf, VerifyExpectations(watermark_text="INTERNAL"))
        assert result.watermark_detected is True
        assert result.watermark_on_all_pages is True
        assert result.image_count == 2

    def test_watermark_not_found(self, verifier, make_pdf):
        result = verifier.verify(make_pdf(["Hello"]), VerifyExpectations(watermark_text="DRAFT"))
        assert result.watermark_detected is False
        assert result.passed is False

    def test_watermark_on_some_pages(self, verifier, make_pdf):
        result = verifier.verify(make_pdf(["DRAFT", "plain"]), VerifyExpectations(watermark_text="draft"))
        assert result.watermark_detected is True
        assert result.watermark_on_all_pages is False

    def test_page_size(self, verifier, watermarked_pdf):
        ok = verifier.verify(watermarked_pdf, VerifyExpectations(page_size_pt=(595.28, 841.89)))
        assert ok.checks["page_size_matches"] is True
        bad = verifier.verify(watermarked_pdf, VerifyExpectations(page_size_pt=(612, 792)))
        assert bad.checks["page_size_matches"] is False

    def test_not_encrypted(self, verifier, make_pdf):
        result = verifier.verify(make_pdf(["x"]), VerifyExpectations(should_be_encrypted=False))
        assert result.is_encrypted is False
        assert result.checks["encryption_matches"] is True

    def test_unreadable_raises(self, verifier):
        with pytest.raises(Exception):
            verifier.verify(b"nope", VerifyExpectations())
