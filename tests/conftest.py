"""Shared fixtures for the test suite.

All fixtures here produce real frames / real files so tests exercise actual
pixel and geometry code paths rather than hand-crafted stubs.
"""

import io
from pathlib import Path

import fitz  # PyMuPDF
import pytest
from click.testing import CliRunner
from PIL import Image

from scanprep.context import RenderContext
from scanprep.enhance import EnhancementPipeline
from scanprep.frame import Frame


# ── CLI runner ─────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# ── Frame fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def sensor_frame() -> Frame:
    """A 1200×1600 camera-sized frame split into a dark top and light bottom."""
    img = Image.new("RGB", (1200, 1600), (30, 30, 30))
    img.paste((220, 220, 220), (0, 800, 1200, 1600))
    return Frame.from_pil(img)


@pytest.fixture
def quadrant_frame() -> Frame:
    """A 40×20 frame with four distinctly coloured quadrants.

    Raster layout (rows top-down)::

        red   | green
        ------+------
        blue  | white
    """
    img = Image.new("RGB", (40, 20))
    img.paste((255, 0, 0), (0, 0, 20, 10))
    img.paste((0, 255, 0), (20, 0, 40, 10))
    img.paste((0, 0, 255), (0, 10, 20, 20))
    img.paste((255, 255, 255), (20, 10, 40, 20))
    return Frame.from_pil(img)


@pytest.fixture
def context() -> RenderContext:
    return RenderContext()


@pytest.fixture
def pipeline(context: RenderContext) -> EnhancementPipeline:
    return EnhancementPipeline(context=context)


# ── Image file fixtures ────────────────────────────────────────────────────


@pytest.fixture
def png_bytes() -> bytes:
    """A real, valid 60×40 dark-grey PNG image as raw bytes."""
    buf = io.BytesIO()
    Image.new("RGB", (60, 40), color=(40, 40, 40)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_file(tmp_path: Path, png_bytes: bytes) -> Path:
    """The PNG written to a temporary file on disk."""
    path = tmp_path / "test.png"
    path.write_bytes(png_bytes)
    return path


# ── PDF fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def single_page_pdf(tmp_path: Path) -> Path:
    """A real single-page PDF containing a text line."""
    path = tmp_path / "single.pdf"
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)  # A4
    page.insert_text((72, 100), "Hello, scan world!")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def multi_page_pdf(tmp_path: Path) -> Path:
    """A real 3-page PDF with distinct text on each page."""
    path = tmp_path / "multi.pdf"
    doc = fitz.open()
    for i in range(3):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 100), f"Page {i + 1} content")
    doc.save(str(path))
    doc.close()
    return path
