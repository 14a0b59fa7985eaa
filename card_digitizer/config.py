"""
Configuration for the card digitizer pipeline.

All tunables centralized here. Override by creating a Config instance
with custom values.

Usage:
    from card_digitizer.config import Config, default_config

    # Use defaults
    print(default_config.line_tolerance)  # 8.0

    # Override for a run
    my_config = Config(output_format="jpeg", jpeg_quality=85)
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Config:
    """
    Central configuration for the digitizer pipeline.

    Frozen so one instance can be shared by concurrent pipeline runs.
    Create a new instance to override any setting.
    """

    # === Text Layout ===
    line_tolerance: float = 8.0       # Baseline gap (page units) that starts a new line
    min_text_length: int = 50         # Below this the PDF has no usable text layer

    # === Region Rasterizer ===
    near_white_threshold: int = 240   # All channels above this -> transparent

    # === Optical Code Scanning ===
    scan_windows: Tuple[float, ...] = (0.25, 0.5, 0.75, 1.0)
    scan_passes: Tuple[str, ...] = ("raw", "contrast", "grayscale", "upscaled")
    min_decode_dimension: int = 400   # Windows smaller than this get upscaled
    min_upscale_factor: float = 1.5
    contrast_pivot: int = 128
    contrast_boost: float = 1.2       # Applied to pixels brighter than the pivot
    contrast_cut: float = 0.8         # Applied to pixels at or below the pivot

    # === Optical Code Encoding ===
    qr_size: int = 600
    qr_box_size: int = 10
    qr_border: int = 2
    qr_error_correction: str = "H"
    barcode_module_width: float = 0.3   # mm
    barcode_module_height: float = 15.0  # mm
    barcode_quiet_zone: float = 3.0     # mm
    barcode_dpi: int = 300

    # === Card Compositor ===
    line_height_ratio: float = 1.3
    text_color: Tuple[int, int, int] = (0, 0, 0)
    output_format: str = "png"
    jpeg_quality: int = 90


# Default configuration instance
default_config = Config()
