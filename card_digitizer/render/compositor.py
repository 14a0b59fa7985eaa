"""
Card compositor.

Draws a finished card side from a template image, a ProfileRecord, the
rasterized sub-images and a CardLayout. All layout coordinates are in
design units and are multiplied by one uniform scale factor derived from
the template's actual size.

Usage:
    from card_digitizer.render.compositor import render_card

    png = render_card("assets/front.png", profile, {"photo": photo},
                      DEFAULT_FRONT_LAYOUT, fonts, side="front")
"""

import io
import logging
import math
import os
import re
from typing import Callable, List, Mapping, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from ..config import Config, default_config
from ..errors import RenderFailed, UnsupportedFormat
from ..models.profile import ProfileRecord
from .assets import AssetCache, FontTable, shared_assets
from .layouts import CardLayout, ImageSlot, TextPlacement

logger = logging.getLogger(__name__)

Measure = Callable[[str], float]
PlacedLine = Tuple[float, float, str]

EXPORT_FORMATS = {"png": "PNG", "jpeg": "JPEG", "jpg": "JPEG"}

_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\?%*:|"<>]')


# ===========================================================================
# Geometry and text layout
# ===========================================================================

def compute_scale(template_size: Tuple[int, int], design_size: Tuple[int, int]) -> float:
    """Uniform scale: average of the width and height ratios."""
    tw, th = template_size
    dw, dh = design_size
    return (tw / dw + th / dh) / 2


def wrap_text(paragraph: str, measure: Measure, max_width: float) -> List[str]:
    """
    Greedy word wrap.

    Words are added to the current line while it measures within
    max_width. A single word wider than max_width gets a line of its own.
    """
    lines = []
    line = ""
    for word in paragraph.split():
        candidate = f"{line} {word}" if line else word
        if line and measure(candidate) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


def layout_text(
    value: str,
    x: float,
    y: float,
    max_width: float,
    line_height: float,
    measure: Measure,
) -> List[PlacedLine]:
    """
    Position every wrapped line of a (possibly multi-paragraph) value.

    Each "\\n"-separated paragraph is wrapped independently; lines advance
    by line_height from y.

    Returns:
        (x, y, text) per line, top to bottom
    """
    placed = []
    offset = y
    for paragraph in value.split("\n"):
        for line in wrap_text(paragraph, measure, max_width):
            placed.append((x, offset, line))
            offset += line_height
    return placed


def _rotated_bounds(width: float, height: float, degrees: float) -> Tuple[float, float]:
    """Top-left corner of a width x height box after clockwise rotation about its origin."""
    theta = math.radians(degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    corners = [(0, 0), (width, 0), (0, height), (width, height)]
    xs = [cx * cos_t - cy * sin_t for cx, cy in corners]
    ys = [cx * sin_t + cy * cos_t for cx, cy in corners]
    return min(xs), min(ys)


# ===========================================================================
# Drawing
# ===========================================================================

def draw_text_field(
    canvas: Image.Image,
    value: str,
    placement: TextPlacement,
    font: ImageFont.FreeTypeFont,
    scale: float,
    config: Config = default_config,
) -> Image.Image:
    """
    Draw one text field; returns the (possibly new) canvas.

    Rotated fields are laid out in their own frame on a transparent layer,
    rotated about the anchor and composited at the anchor.
    """
    color = tuple(config.text_color) + (255,)
    line_height = placement.font_size * scale * config.line_height_ratio
    max_width = placement.max_width * scale
    anchor_x, anchor_y = placement.x * scale, placement.y * scale

    if not placement.rotation % 360:
        draw = ImageDraw.Draw(canvas)
        for x, y, line in layout_text(value, anchor_x, anchor_y, max_width, line_height, font.getlength):
            draw.text((x, y), line, font=font, fill=color)
        return canvas

    lines = layout_text(value, 0, 0, max_width, line_height, font.getlength)
    if not lines:
        return canvas
    layer_w = int(math.ceil(max(font.getlength(text) for _, _, text in lines))) + 2
    layer_h = int(math.ceil(len(lines) * line_height)) + 2
    layer = Image.new("RGBA", (layer_w, layer_h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    for x, y, line in lines:
        draw.text((x, y), line, font=font, fill=color)

    # PIL rotates counter-clockwise
    rotated = layer.rotate(-placement.rotation, resample=Image.BICUBIC, expand=True)
    min_x, min_y = _rotated_bounds(layer_w, layer_h, placement.rotation)
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    overlay.paste(rotated, (int(round(anchor_x + min_x)), int(round(anchor_y + min_y))))
    return Image.alpha_composite(canvas, overlay)


def place_image(canvas: Image.Image, image: Image.Image, slot: ImageSlot, scale: float) -> None:
    """Stretch a sub-image into a slot at the scaled slot origin."""
    if slot.rotation % 360:
        image = image.convert("RGBA").rotate(-slot.rotation, resample=Image.BICUBIC, expand=True)
    size = (max(1, int(round(slot.width * scale))), max(1, int(round(slot.height * scale))))
    resized = image.convert("RGBA").resize(size, Image.LANCZOS)
    canvas.alpha_composite(resized, (int(round(slot.x * scale)), int(round(slot.y * scale))))


def compose_card(
    template: Image.Image,
    profile: ProfileRecord,
    images: Mapping[str, Optional[Image.Image]],
    layout: CardLayout,
    fonts: FontTable,
    side: str = "front",
    config: Config = default_config,
    cache: AssetCache = shared_assets,
) -> Image.Image:
    """
    Draw one card side.

    Args:
        template: Template image (not modified)
        profile: Field values
        images: Sub-images keyed by ImageSlot.source; missing keys are skipped
        layout: Placement table for this side
        fonts: Font table used to resolve each field's family/weight
        side: "front" or "back", for errors and logs
        config: Pipeline configuration
        cache: Font cache

    Returns:
        RGBA card image the size of the template

    Raises:
        RenderFailed: (or a subclass) if a font cannot be resolved
    """
    canvas = template.convert("RGBA")
    scale = compute_scale(canvas.size, layout.design_size)

    for slot_name, slot in layout.image_slots.items():
        image = images.get(slot.source)
        if image is None:
            logger.debug("No '%s' image for %s slot '%s'", slot.source, side, slot_name)
            continue
        place_image(canvas, image, slot, scale)

    for field_name, placement in layout.text_fields.items():
        value = placement.value_for(profile)
        if not value:
            continue
        size = max(1, int(round(placement.font_size * scale)))
        try:
            font = fonts.load(placement.font_family, placement.font_weight, size, cache)
        except RenderFailed as exc:
            if exc.side is None:
                exc.side = side
            raise
        canvas = draw_text_field(canvas, value, placement, font, scale, config)
        logger.debug("Drew %s field '%s'", side, field_name)

    logger.info("Composed %s card %dx%d (scale %.3f)", side, canvas.width, canvas.height, scale)
    return canvas


# ===========================================================================
# Export
# ===========================================================================

def export_image(image: Image.Image, fmt: str = "png", quality: int = 90) -> bytes:
    """
    Serialize a card image.

    Args:
        image: Card image
        fmt: "png" (lossless) or "jpeg"/"jpg" (lossy, uses quality)
        quality: JPEG quality 1-95

    Raises:
        UnsupportedFormat: For any other format
    """
    pil_format = EXPORT_FORMATS.get(str(fmt).lower())
    if pil_format is None:
        raise UnsupportedFormat(f"Unsupported output format: {fmt!r}")

    buf = io.BytesIO()
    rgb = image.convert("RGB")
    if pil_format == "JPEG":
        rgb.save(buf, format="JPEG", quality=int(quality), progressive=True)
    else:
        rgb.save(buf, format="PNG")
    return buf.getvalue()


def render_card(
    template_path: str,
    profile: ProfileRecord,
    images: Mapping[str, Optional[Image.Image]],
    layout: CardLayout,
    fonts: FontTable,
    side: str = "front",
    fmt: str = "png",
    quality: int = 90,
    config: Config = default_config,
    cache: AssetCache = shared_assets,
) -> bytes:
    """Load the side's template, compose the card and export it to bytes."""
    template = cache.template(template_path)
    card = compose_card(template, profile, images, layout, fonts, side, config, cache)
    return export_image(card, fmt, quality)


def write_card(data: bytes, path: str) -> str:
    """Write exported card bytes, creating parent directories."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    logger.info("Card saved: %s (%d bytes)", path, len(data))
    return path


def sanitize_filename(value: str) -> str:
    """Spaces to underscores, path-unsafe characters removed."""
    return _UNSAFE_FILENAME_CHARS.sub("", re.sub(r"\s+", "_", str(value or "").strip()))


def suggest_filename(profile: ProfileRecord, side: str, fmt: str = "png") -> str:
    """
    Suggested output name: <side>-<id digits>-<name_en>.<ext>.

    Empty parts are omitted.
    """
    digits = re.sub(r"\D", "", profile.primary_id or profile.secondary_id)
    ext = "jpg" if str(fmt).lower() in ("jpeg", "jpg") else str(fmt).lower()
    parts = [sanitize_filename(p) for p in (side, digits, profile.name_en)]
    return "-".join(p for p in parts if p) + f".{ext}"
