"""Card rendering: placement tables, asset cache and compositor."""

from .assets import AssetCache, FontTable, shared_assets
from .layouts import (
    CardLayout,
    ImageSlot,
    TextPlacement,
    DEFAULT_FRONT_LAYOUT,
    DEFAULT_BACK_LAYOUT,
)
from .compositor import (
    compute_scale,
    wrap_text,
    layout_text,
    compose_card,
    render_card,
    export_image,
    write_card,
    suggest_filename,
)

__all__ = [
    "AssetCache",
    "FontTable",
    "shared_assets",
    "CardLayout",
    "ImageSlot",
    "TextPlacement",
    "DEFAULT_FRONT_LAYOUT",
    "DEFAULT_BACK_LAYOUT",
    "compute_scale",
    "wrap_text",
    "layout_text",
    "compose_card",
    "render_card",
    "export_image",
    "write_card",
    "suggest_filename",
]
