"""
Placement tables for the card compositor.

Coordinates and font sizes are in design units (a 1760x1110 card). The
compositor scales them to the actual template resolution, so one table
serves every template size with the same aspect ratio.
"""

from dataclasses import dataclass, field
from typing import Mapping, Sequence, Tuple

from ..models.profile import ProfileRecord

DESIGN_WIDTH = 1760
DESIGN_HEIGHT = 1110

# Combination modes for multi-source text fields
SINGLE = "single"
STACKED = "stacked"
PIPE = "pipe"
COMBINE_MODES = (SINGLE, STACKED, PIPE)


def combine_values(values: Sequence[str], mode: str) -> str:
    """
    Join source values for one text field.

    single: first value only. stacked: non-empty values on separate lines.
    pipe: non-empty values joined by " | " on one line.
    """
    cleaned = [str(v or "").strip() for v in values]
    if mode == SINGLE:
        return cleaned[0] if cleaned else ""
    present = [v for v in cleaned if v]
    if mode == STACKED:
        return "\n".join(present)
    if mode == PIPE:
        return " | ".join(present)
    raise ValueError(f"Unknown combination mode: {mode!r}")


@dataclass(frozen=True)
class TextPlacement:
    """Where and how one text field is drawn."""
    x: float
    y: float
    sources: Tuple[str, ...]          # ProfileRecord field names
    max_width: float = 880
    font_size: float = 48
    font_family: str = "Ebrima"
    font_weight: str = "bold"
    rotation: float = 0.0             # Degrees, clockwise about (x, y)
    combine: str = SINGLE

    def value_for(self, profile: ProfileRecord) -> str:
        return combine_values([getattr(profile, name) for name in self.sources], self.combine)


@dataclass(frozen=True)
class ImageSlot:
    """A rectangle that receives a sub-image, stretched to fit."""
    x: float
    y: float
    width: float
    height: float
    source: str                       # Sub-image key
    rotation: float = 0.0             # Applied to the sub-image before stretching


@dataclass(frozen=True)
class CardLayout:
    """Placement table for one card side."""
    text_fields: Mapping[str, TextPlacement] = field(default_factory=dict)
    image_slots: Mapping[str, ImageSlot] = field(default_factory=dict)
    design_width: int = DESIGN_WIDTH
    design_height: int = DESIGN_HEIGHT

    @property
    def design_size(self) -> Tuple[int, int]:
        return (self.design_width, self.design_height)


# ===========================================================================
# Default layouts
# ===========================================================================

_DATE_STRIP = dict(max_width=880, font_size=38, font_weight="normal", rotation=-90)

DEFAULT_FRONT_LAYOUT = CardLayout(
    text_fields={
        "full_name": TextPlacement(705, 320, ("name_am", "name_en"), combine=STACKED),
        "date_of_birth": TextPlacement(705, 530, ("date_of_birth_am", "date_of_birth_en"), combine=PIPE),
        "sex": TextPlacement(705, 645, ("sex_am", "sex_en"), combine=PIPE),
        "date_of_issue": TextPlacement(705, 755, ("issue_date_am", "issue_date_en"), combine=PIPE),
        "issue_date_en": TextPlacement(20, 440, ("issue_date_en",), **_DATE_STRIP),
        "issue_date_am": TextPlacement(20, 890, ("issue_date_am",), **_DATE_STRIP),
    },
    image_slots={
        "photo": ImageSlot(100, 270, 570, 750, source="photo"),
        "small_photo": ImageSlot(1410, 785, 215, 235, source="photo"),
        "barcode": ImageSlot(750, 864, 590, 155, source="barcode"),
        "issue_date_strip": ImageSlot(15, 270, 60, 500, source="issue_date", rotation=-90),
    },
)

DEFAULT_BACK_LAYOUT = CardLayout(
    text_fields={
        "phone_number": TextPlacement(50, 140, ("phone_number",)),
        "address": TextPlacement(
            50, 400,
            ("region_am", "region_en", "zone_am", "zone_en", "woreda_am", "woreda_en"),
            font_size=40,
            combine=STACKED,
        ),
        "fin": TextPlacement(240, 913, ("secondary_id",), max_width=450, font_size=40, font_weight="600"),
        "sn": TextPlacement(1450, 1002, ("serial_number",), max_width=450, font_size=40, font_weight="600"),
    },
    image_slots={
        "qr_code": ImageSlot(800, 48, 900, 914, source="qr_code"),
    },
)
