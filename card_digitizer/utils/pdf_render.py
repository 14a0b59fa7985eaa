"""
PDF Rendering Utilities

Opens identity-document PDFs, renders pages to images and reads the
positioned text layer. Uses PyMuPDF (fitz) for high-quality rendering.
"""

import logging
from typing import Dict, List, Union

import fitz  # PyMuPDF
from PIL import Image

from ..contracts import PageGlyphRun
from ..errors import ExtractionFailed

logger = logging.getLogger(__name__)

PdfSource = Union[bytes, bytearray, str]


def open_pdf(source: PdfSource) -> fitz.Document:
    """
    Open a PDF from raw bytes or a file path.

    Args:
        source: PDF bytes or a filesystem path

    Returns:
        Open fitz.Document (caller closes it)

    Raises:
        ExtractionFailed: If the data is not a readable PDF or has no pages
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            doc = fitz.open(stream=bytes(source), filetype="pdf")
        else:
            doc = fitz.open(source, filetype="pdf")
    except (RuntimeError, OSError, ValueError) as exc:  # fitz.FileDataError is a RuntimeError
        raise ExtractionFailed(f"Could not open PDF: {exc}") from exc

    if doc.page_count < 1:
        doc.close()
        raise ExtractionFailed("PDF has no pages")
    return doc


def render_page(page: fitz.Page, scale: float) -> Image.Image:
    """
    Render a whole page at the given scale (1.0 = 72 DPI, one pixel per point).

    Args:
        page: Loaded PyMuPDF page
        scale: Zoom factor applied to both axes

    Returns:
        RGB PIL Image of the full page
    """
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    img = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)
    logger.debug("Rendered page %d at scale %.2f: %dx%dpx",
                 page.number, scale, pix.width, pix.height)
    return img


class PageRenderer:
    """
    Renders one page at each requested scale exactly once.

    Several regions usually share a scale; the rendered page is kept for
    the lifetime of this object (one pipeline invocation).
    """

    def __init__(self, page: fitz.Page):
        self.page = page
        self._renders: Dict[float, Image.Image] = {}

    def at_scale(self, scale: float) -> Image.Image:
        if scale not in self._renders:
            self._renders[scale] = render_page(self.page, scale)
        return self._renders[scale]


def page_glyph_runs(page: fitz.Page) -> List[PageGlyphRun]:
    """
    Read the positioned text spans of a page.

    PyMuPDF reports span origins with Y growing downward; they are flipped
    into PDF user space (Y grows upward) so readers can sort by descending
    baseline.

    Args:
        page: Loaded PyMuPDF page

    Returns:
        One PageGlyphRun per non-blank span, in content-stream order
    """
    height = page.rect.height
    runs = []
    for block in page.get_text("dict").get("blocks", []):
        if block.get("type", 0) != 0:  # image block
            continue
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text", "")
                if not text.strip():
                    continue
                x, y = span["origin"]
                runs.append(PageGlyphRun(
                    text=text,
                    baseline_y=height - y,
                    x=x,
                    font_size=span.get("size", 0.0),
                ))
    return runs
