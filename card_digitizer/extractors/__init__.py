"""Text and image extraction from ID document PDFs."""

# Text pipeline (pure Python, no fitz/numpy at import time)
from .layout import reconstruct_lines, reconstruct_text, normalize_text
from .patterns import RULES_BY_FIELD, FieldRule
from .fields import resolve_field, extract_region, extract_profile

# Raster names that pull in fitz/numpy
_RASTER_NAMES = {
    "rasterize_region": ("region", "rasterize_region"),
    "rasterize_regions": ("region", "rasterize_regions"),
    "crop_box": ("region", "crop_box"),
}


def __getattr__(name):
    """Lazy import for the region rasterizer to avoid pulling in fitz eagerly."""
    if name in _RASTER_NAMES:
        module_name, attr_name = _RASTER_NAMES[name]
        import importlib
        mod = importlib.import_module(f".{module_name}", __package__)
        return getattr(mod, attr_name)
    raise AttributeError(f"module 'card_digitizer.extractors' has no attribute {name!r}")


__all__ = [
    # Raster (lazy)
    "rasterize_region",
    "rasterize_regions",
    "crop_box",
    # Text (eager)
    "reconstruct_lines",
    "reconstruct_text",
    "normalize_text",
    "RULES_BY_FIELD",
    "FieldRule",
    "resolve_field",
    "extract_region",
    "extract_profile",
]
