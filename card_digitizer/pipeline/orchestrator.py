"""Main orchestrator for the document-to-card pipeline.

This module ties all components together into a single run:
1. Open the PDF and reconstruct its text layer
2. Extract the ProfileRecord
3. Rasterize the declared regions (photo, barcode, date strip, QR)
4. Decode optical codes and merge them into the record
5. Compose and export the front and back cards

Usage:
    from card_digitizer.pipeline import CardTemplateSet, digitize_and_render
    from card_digitizer.render import FontTable

    templates = CardTemplateSet(
        front_template="assets/front.png",
        back_template="assets/back.png",
        fonts=FontTable({("Ebrima", "normal"): "fonts/ebrima.ttf",
                         ("Ebrima", "bold"): "fonts/ebrimabd.ttf"}),
    )
    with open("id.pdf", "rb") as f:
        result = digitize_and_render(f.read(), templates)

    print(result.profile.name_en)
    result.save("output")
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple
import json
import logging
import os
import re
import time

from PIL import Image

from ..codec.encoder import encode
from ..codec.scanner import QR, decode
from ..config import Config, default_config
from ..contracts import DecodedCode
from ..errors import CodeEncodeInvalid, ExtractionFailed, RenderFailed
from ..extractors.fields import extract_profile
from ..extractors.layout import reconstruct_text
from ..extractors.patterns import clean_primary_id
from ..extractors.region import rasterize_region
from ..models.profile import ProfileRecord
from ..render.assets import AssetCache, FontTable, shared_assets
from ..render.compositor import render_card, suggest_filename, write_card
from ..render.layouts import DEFAULT_BACK_LAYOUT, DEFAULT_FRONT_LAYOUT, CardLayout
from ..utils.pdf_render import PageRenderer, open_pdf, page_glyph_runs
from .regions import DEFAULT_REGIONS, RegionTable, iter_regions

logger = logging.getLogger(__name__)

SIDES = ("front", "back")

# Sub-image keys filled by code re-encoding
BARCODE_SLOT = "barcode"
QR_SLOT = "qr_code"
DATE_STRIP_SLOT = "issue_date"


@dataclass(frozen=True)
class CardTemplateSet:
    """
    Static rendering configuration for both card sides.

    Attributes:
        front_template: Path to the front template image
        back_template: Path to the back template image
        fonts: Font table for every family/weight the layouts use
        output_format: "png" or "jpeg" (None = config.output_format)
        jpeg_quality: JPEG quality (None = config.jpeg_quality)
    """
    front_template: str
    back_template: str
    fonts: FontTable
    front_layout: CardLayout = DEFAULT_FRONT_LAYOUT
    back_layout: CardLayout = DEFAULT_BACK_LAYOUT
    output_format: Optional[str] = None
    jpeg_quality: Optional[int] = None

    def template_for(self, side: str) -> str:
        return self.front_template if side == "front" else self.back_template

    def layout_for(self, side: str) -> CardLayout:
        return self.front_layout if side == "front" else self.back_layout

    def validate(self, cache: AssetCache = shared_assets) -> None:
        """
        Load every template and font once, at startup.

        Raises:
            TemplateLoadFailed / FontResolutionFailed: On the first bad asset
        """
        for side in SIDES:
            cache.template(self.template_for(side))
            for placement in self.layout_for(side).text_fields.values():
                self.fonts.load(placement.font_family, placement.font_weight,
                                int(placement.font_size), cache)


@dataclass
class DigitizationResult:
    """
    Complete result of one pipeline run.

    Attributes:
        profile: Extracted and merged record
        front_image: Exported front card
        back_image: Exported back card
        front_filename: Suggested file name for the front card
        back_filename: Suggested file name for the back card
        codes: DecodedCode per code region (None if not found)
        timing: Seconds spent in each stage
    """
    profile: ProfileRecord
    front_image: bytes = b""
    back_image: bytes = b""
    front_filename: str = ""
    back_filename: str = ""
    codes: Dict[str, Optional[DecodedCode]] = field(default_factory=dict)
    timing: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization (images as byte counts)."""
        return {
            "profile": self.profile.to_dict(),
            "frontFilename": self.front_filename,
            "backFilename": self.back_filename,
            "frontImageBytes": len(self.front_image),
            "backImageBytes": len(self.back_image),
            "codes": {name: asdict(code) if code else None for name, code in self.codes.items()},
            "timing": self.timing,
        }

    def save(self, output_dir: str) -> Dict[str, str]:
        """Write both card images and profile.json; returns the written paths."""
        os.makedirs(output_dir, exist_ok=True)
        paths = {
            "front": write_card(self.front_image, os.path.join(output_dir, self.front_filename)),
            "back": write_card(self.back_image, os.path.join(output_dir, self.back_filename)),
        }

        profile_path = os.path.join(output_dir, "profile.json")
        with open(profile_path, "w", encoding="utf-8") as f:
            json.dump(self.profile.to_dict(), f, indent=2, ensure_ascii=False)
        paths["profile"] = profile_path
        return paths


# ===========================================================================
# Stages
# ===========================================================================

def extract_document(
    pdf_bytes: bytes,
    regions: RegionTable = DEFAULT_REGIONS,
    config: Config = default_config,
) -> Tuple[ProfileRecord, Dict[str, Image.Image]]:
    """
    Read the text layer and rasterize every region of the first page.

    Returns:
        (profile, sub-images keyed by region name)

    Raises:
        ExtractionFailed: Unreadable PDF, too little text, or no field found
        RegionOutOfBounds: A region does not fit the rendered page
        ValueError: A region name is declared under both sides
    """
    doc = open_pdf(pdf_bytes)
    try:
        if doc.page_count > 1:
            logger.warning("PDF has %d pages, only the first is used", doc.page_count)
        page = doc.load_page(0)

        text = reconstruct_text(page_glyph_runs(page), config)
        if len(text) < config.min_text_length:
            raise ExtractionFailed(
                f"PDF text layer too short ({len(text)} chars); the file may be scanned or empty"
            )

        profile = extract_profile(text)
        if profile.is_empty():
            raise ExtractionFailed("No ID fields found in the PDF text")

        renderer = PageRenderer(page)
        images = {
            name: rasterize_region(renderer, spec, name=name, config=config)
            for _, name, spec in iter_regions(regions)
        }
    finally:
        doc.close()

    logger.info("Extracted profile and %d sub-images", len(images))
    return profile, images


def scan_codes(
    images: Dict[str, Image.Image],
    regions: RegionTable = DEFAULT_REGIONS,
    config: Config = default_config,
) -> Dict[str, Optional[DecodedCode]]:
    """Decode every region that declares code formats."""
    return {
        name: decode(images[name], spec.code_formats, config)
        for _, name, spec in iter_regions(regions)
        if spec.code_formats
    }


def derive_serial_number(profile: ProfileRecord) -> str:
    """Digits of the primary identifier, else of the secondary one."""
    return re.sub(r"\D", "", profile.primary_id or profile.secondary_id)


def _try_encode(payload: str, fmt: str, config: Config) -> Optional[Image.Image]:
    try:
        return encode(payload, fmt, config)
    except CodeEncodeInvalid as exc:
        logger.warning("Cannot re-encode %s payload: %s", fmt, exc)
        return None


def merge_side_channels(
    profile: ProfileRecord,
    images: Dict[str, Image.Image],
    codes: Dict[str, Optional[DecodedCode]],
    config: Config = default_config,
) -> Tuple[ProfileRecord, Dict[str, Image.Image]]:
    """
    Fold decoded codes into the record and pick the image for each slot.

    - A barcode payload of exactly 16 digits overrides primary_id
    - Barcode slot: Code 128 of the payload, else of primary_id, else the raw crop
    - QR slot: QR of the payload, else the raw crop
    - The date strip is dropped when issue dates were read as text
    - serial_number is derived from the final identifiers
    """
    slot_images = dict(images)
    barcode_code = next((c for c in codes.values() if c and c.format != QR), None)
    qr_code = next((c for c in codes.values() if c and c.format == QR), None)

    if barcode_code:
        scanned_id = clean_primary_id(barcode_code.payload)
        if scanned_id:
            if profile.primary_id and scanned_id != profile.primary_id:
                logger.info("Scanned barcode overrides primary_id %s", profile.primary_id)
            profile = profile.replace(primary_id=scanned_id)

    barcode_image = None
    if barcode_code:
        barcode_image = _try_encode(barcode_code.payload, "code128", config)
    if barcode_image is None and profile.primary_id:
        barcode_image = _try_encode(re.sub(r"\D", "", profile.primary_id), "code128", config)
    if barcode_image is not None:
        slot_images[BARCODE_SLOT] = barcode_image

    if qr_code:
        qr_image = _try_encode(qr_code.payload, QR, config)
        if qr_image is not None:
            slot_images[QR_SLOT] = qr_image

    if profile.issue_date_am or profile.issue_date_en:
        slot_images.pop(DATE_STRIP_SLOT, None)

    profile = profile.replace(serial_number=derive_serial_number(profile))
    return profile, slot_images


# ===========================================================================
# Entry point
# ===========================================================================

def digitize_and_render(
    pdf_bytes: bytes,
    templates: CardTemplateSet,
    regions: RegionTable = DEFAULT_REGIONS,
    config: Config = default_config,
    cache: AssetCache = shared_assets,
) -> DigitizationResult:
    """
    Turn an ID document PDF into a profile record and front/back card images.

    Args:
        pdf_bytes: Raw PDF data
        templates: Template paths, fonts, layouts and output format
        regions: Region table per side
        config: Pipeline configuration
        cache: Template/font cache shared across runs

    Returns:
        DigitizationResult

    Raises:
        ExtractionFailed: The document yielded no usable fields
        RenderFailed: (or a subclass) A card side could not be produced
        RegionOutOfBounds: The region table does not fit the document page
    """
    timing = {}

    t0 = time.time()
    profile, images = extract_document(pdf_bytes, regions, config)
    timing["extract"] = time.time() - t0

    t0 = time.time()
    codes = scan_codes(images, regions, config)
    profile, slot_images = merge_side_channels(profile, images, codes, config)
    timing["codes"] = time.time() - t0

    fmt = templates.output_format or config.output_format
    quality = templates.jpeg_quality or config.jpeg_quality
    result = DigitizationResult(profile=profile, codes=codes, timing=timing)

    for side in SIDES:
        t0 = time.time()
        try:
            data = render_card(
                templates.template_for(side),
                profile,
                slot_images,
                templates.layout_for(side),
                templates.fonts,
                side=side,
                fmt=fmt,
                quality=quality,
                config=config,
                cache=cache,
            )
        except RenderFailed as exc:
            if exc.side is None:
                exc.side = side
            raise
        except (OSError, ValueError) as exc:
            raise RenderFailed(f"Could not render {side} card: {exc}", side=side) from exc
        setattr(result, f"{side}_image", data)
        setattr(result, f"{side}_filename", suggest_filename(profile, side, fmt))
        timing[f"render_{side}"] = time.time() - t0

    logger.info("Rendered cards for %s", profile.name_en or profile.primary_id or "<unnamed>")
    return result
