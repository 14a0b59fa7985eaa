"""Utility modules (PDF open/render/text layer)."""

from .pdf_render import (
    PageRenderer,
    open_pdf,
    render_page,
    page_glyph_runs,
)

__all__ = [
    "PageRenderer",
    "open_pdf",
    "render_page",
    "page_glyph_runs",
]
