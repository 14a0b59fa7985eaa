"""Region rasterizer: crop, rotate, background-strip and grayscale page regions."""

import logging
from typing import Dict, Mapping, Optional, Tuple, Union

import fitz  # PyMuPDF
import numpy as np
from PIL import Image

from ..config import Config, default_config
from ..contracts import RegionSpec
from ..errors import RegionOutOfBounds
from ..utils.pdf_render import PageRenderer

logger = logging.getLogger(__name__)

# ITU-R 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)

PageSource = Union[fitz.Page, PageRenderer, Image.Image]


def crop_box(
    spec: RegionSpec,
    page_size: Tuple[int, int],
    name: str = "region",
) -> Tuple[int, int, int, int]:
    """
    Compute the pixel crop rectangle of a region on a page rendered at spec.scale.

    Coordinates are scaled first and rounded once, so the box is always
    exactly round(width*scale) x round(height*scale) pixels.

    Raises:
        RegionOutOfBounds: If any edge falls outside the rendered page
    """
    left = int(round(spec.x * spec.scale))
    upper = int(round(spec.y * spec.scale))
    right = left + int(round(spec.width * spec.scale))
    lower = upper + int(round(spec.height * spec.scale))
    box = (left, upper, right, lower)

    page_w, page_h = page_size
    if left < 0 or upper < 0 or right > page_w or lower > page_h or right <= left or lower <= upper:
        raise RegionOutOfBounds(name, box, page_size)
    return box


def rotate_on_canvas(image: Image.Image, degrees: float) -> Image.Image:
    """
    Rotate clockwise about the image centre onto a transparent canvas.

    Quarter turns swap the canvas width/height so content stays
    axis-aligned and unclipped; other angles keep the original canvas size.
    """
    if degrees % 360 == 0:
        return image
    w, h = image.size
    canvas_size = (h, w) if degrees % 180 == 90 else (w, h)

    rgba = image.convert("RGBA")
    # PIL rotates counter-clockwise
    content = rgba.rotate(-degrees, resample=Image.BICUBIC, expand=True)
    canvas = Image.new("RGBA", canvas_size, (0, 0, 0, 0))
    offset = (
        (canvas_size[0] - content.size[0]) // 2,
        (canvas_size[1] - content.size[1]) // 2,
    )
    canvas.paste(content, offset, content)
    return canvas


def remove_near_white(image: Image.Image, threshold: int) -> Image.Image:
    """Make every pixel whose R, G and B all exceed threshold fully transparent."""
    arr = np.array(image.convert("RGBA"))
    mask = np.all(arr[:, :, :3] > threshold, axis=2)
    arr[mask, 3] = 0
    logger.debug("Background removal cleared %d of %d pixels", int(mask.sum()), mask.size)
    return Image.fromarray(arr, "RGBA")


def to_grayscale(image: Image.Image) -> Image.Image:
    """
    Convert to luminance (0.299R + 0.587G + 0.114B), keeping transparency.

    Returns mode "L" for fully opaque input, "LA" otherwise.
    """
    arr = np.array(image.convert("RGBA")).astype(np.float32)
    luma = np.clip(np.rint(arr[:, :, :3] @ LUMA_WEIGHTS), 0, 255).astype(np.uint8)
    alpha = arr[:, :, 3].astype(np.uint8)
    if alpha.min() == 255:
        return Image.fromarray(luma, "L")
    return Image.fromarray(np.dstack([luma, alpha]), "LA")


def _page_image(source: PageSource, scale: float) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, PageRenderer):
        return source.at_scale(scale)
    return PageRenderer(source).at_scale(scale)


def rasterize_region(
    source: PageSource,
    spec: RegionSpec,
    name: str = "region",
    rotation: Optional[float] = None,
    config: Config = default_config,
) -> Image.Image:
    """
    Render one region of a page to an isolated sub-image.

    Steps:
    1. Render the whole page at spec.scale
    2. Crop the scaled rectangle (fails if outside the page)
    3. Rotate onto a centred canvas
    4. Optionally strip the near-white background
    5. Convert to grayscale

    Args:
        source: PDF page, a PageRenderer for it, or a page already rendered at spec.scale
        spec: Region declaration
        name: Region name used in errors and logs
        rotation: Overrides spec.rotation when given
        config: Pipeline configuration

    Returns:
        PIL Image, round(width*scale) x round(height*scale) (swapped on quarter turns)
    """
    page_img = _page_image(source, spec.scale)
    box = crop_box(spec, page_img.size, name)
    image = page_img.crop(box)

    degrees = spec.rotation if rotation is None else rotation
    image = rotate_on_canvas(image, degrees)

    if spec.remove_near_white_background:
        image = remove_near_white(image, config.near_white_threshold)

    if spec.grayscale:
        image = to_grayscale(image)

    logger.debug("Rasterized region '%s' box=%s rotation=%s -> %dx%d",
                 name, box, degrees, image.width, image.height)
    return image


def rasterize_regions(
    page: fitz.Page,
    specs: Mapping[str, RegionSpec],
    config: Config = default_config,
) -> Dict[str, Image.Image]:
    """Rasterize every named region of a page, rendering each scale only once."""
    renderer = PageRenderer(page)
    return {
        name: rasterize_region(renderer, spec, name=name, config=config)
        for name, spec in specs.items()
    }
