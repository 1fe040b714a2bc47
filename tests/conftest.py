"""Shared test configuration and fixtures for the PageBinder test suite."""

import io
import sys
from pathlib import Path

import fitz
import pytest
from PIL import Image

# Add backend to Python path so imports work
backend_dir = str(Path(__file__).parent.parent / "backend")
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)


def png_bytes(width: int, height: int, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def pdf_bytes(labels: list[str]) -> bytes:
    """A PDF with one page per label, the label drawn as text."""
    doc = fitz.open()
    for label in labels:
        page = doc.new_page()
        page.insert_text((72, 72), label, fontsize=14)
    data = doc.tobytes()
    doc.close()
    return data


def page_texts(data: bytes) -> list[str]:
    doc = fitz.open(stream=data, filetype="pdf")
    texts = [page.get_text().strip() for page in doc]
    doc.close()
    return texts


@pytest.fixture
def make_png():
    return png_bytes


@pytest.fixture
def make_pdf():
    return pdf_bytes


@pytest.fixture
def corpus_dir(tmp_path):
    """A directory with a few images on disk."""
    (tmp_path / "wide.png").write_bytes(png_bytes(400, 200))
    (tmp_path / "tall.png").write_bytes(png_bytes(200, 400, (30, 30, 200)))
    (tmp_path / "notes.txt").write_text("not an image")
    return tmp_path


@pytest.fixture
def texts_of():
    return page_texts
