"""Inter-stage data contracts for the document-to-card pipeline."""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class PageGlyphRun:
    """One positioned text fragment read from the PDF text layer."""
    text: str
    baseline_y: float  # PDF user space, Y grows upward
    x: float
    font_size: float = 0.0

    def sort_key(self) -> Tuple[float, float, str, float]:
        """Total order: top-to-bottom, then left-to-right."""
        return (-self.baseline_y, self.x, self.text, self.font_size)


@dataclass
class TextLine:
    """Glyph runs merged into one visual line."""
    baseline_y: float
    fragments: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        out = ""
        for frag in self.fragments:
            if out and not out[-1].isspace():
                out += " "
            out += frag
        return out.strip()


@dataclass(frozen=True)
class RegionSpec:
    """
    A rectangle on the source page that holds one sub-image.

    Coordinates are unscaled page units (PDF points, origin top-left).
    """
    x: float
    y: float
    width: float
    height: float
    scale: float = 1.0
    rotation: float = 0.0
    remove_near_white_background: bool = False
    grayscale: bool = True
    code_formats: Tuple[str, ...] = ()  # Non-empty marks a code region


@dataclass(frozen=True)
class DecodedCode:
    """Output from the optical code scanner."""
    payload: str
    format: str
    window: float     # Fraction of image height scanned when found
    scan_pass: str    # Preprocessing pass that decoded it
