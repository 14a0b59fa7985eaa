"""Pipeline orchestration for the card digitizer."""

from .regions import DEFAULT_REGIONS, iter_regions
from .orchestrator import (
    CardTemplateSet,
    DigitizationResult,
    digitize_and_render,
    extract_document,
    scan_codes,
    merge_side_channels,
    derive_serial_number,
)

__all__ = [
    "DEFAULT_REGIONS",
    "iter_regions",
    "CardTemplateSet",
    "DigitizationResult",
    "digitize_and_render",
    "extract_document",
    "scan_codes",
    "merge_side_channels",
    "derive_serial_number",
]
