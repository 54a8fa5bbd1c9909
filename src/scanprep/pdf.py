"""PDF pages as frames, rendered with PyMuPDF."""

from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image

from scanprep.frame import Frame


def pdf_to_frames(pdf_path: Path, dpi: int = 150) -> list[Frame]:
    """Render each page of a PDF to an RGB frame.

    150 DPI keeps small print legible for most recognizers without producing
    huge rasters.  Use 200+ for dense documents with tiny text.
    """
    doc = fitz.open(str(pdf_path))
    frames = []
    matrix = fitz.Matrix(dpi / 72, dpi / 72)  # 72 is the base DPI in the PDF spec

    try:
        for page in doc:
            pixmap = page.get_pixmap(matrix=matrix, colorspace=fitz.csRGB, alpha=False)
            image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
            frames.append(Frame.from_pil(image))
    finally:
        doc.close()
    return frames
