"""
Optical code scanner.

Decodes one QR or 1D barcode from a raster image by trying an ordered
table of (scan window, preprocessing pass) strategies; the first strategy
that decodes wins. Windows grow top-down (25%, 50%, 75%, 100% of the
image height) because the symbol sits near the top of the source crop.

Backends:
- QR: OpenCV QRCodeDetector, then zbar
- 1D (code128, code39, ean13, ean8): zbar via pyzbar

Absence of a code is a None result, never an exception.
"""

import functools
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

import cv2
import numpy as np
from PIL import Image

from ..config import Config, default_config
from ..contracts import DecodedCode

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

QR = "qr"
BARCODE_FORMATS = ("code128", "code39", "ean13", "ean8")
DECODE_FORMATS = (QR,) + BARCODE_FORMATS

# zbar symbol type names per format
_ZBAR_TYPES = {
    "qr": "QRCODE",
    "code128": "CODE128",
    "code39": "CODE39",
    "ean13": "EAN13",
    "ean8": "EAN8",
}
_FORMAT_BY_ZBAR = {v: k for k, v in _ZBAR_TYPES.items()}

Strategy = Tuple[float, str]


# ===========================================================================
# Strategy table
# ===========================================================================

def build_strategies(config: Config = default_config) -> List[Strategy]:
    """Ordered (window fraction, pass name) pairs: every pass of a window before the next window."""
    return [(window, pass_name) for window in config.scan_windows for pass_name in config.scan_passes]


def first_success(
    candidates: Iterable[T],
    attempt: Callable[[T], Optional[R]],
) -> Optional[Tuple[T, R]]:
    """Return the first candidate whose attempt gives a non-None result, with that result."""
    for candidate in candidates:
        result = attempt(candidate)
        if result is not None:
            return candidate, result
    return None


# ===========================================================================
# Preprocessing passes
# ===========================================================================

def flatten(image: Image.Image) -> Image.Image:
    """Composite any transparency onto white and return RGB."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return image.convert("RGB")


def scan_window(image: Image.Image, fraction: float) -> Image.Image:
    """Top `fraction` of the image height (at least one row)."""
    height = max(1, int(round(image.height * fraction)))
    return image.crop((0, 0, image.width, min(height, image.height)))


def enhance_contrast(image: Image.Image, config: Config = default_config) -> Image.Image:
    """Brighten light pixels and darken dark ones around the luminance pivot."""
    arr = np.asarray(image.convert("RGB")).astype(np.float32)
    gray = arr @ np.array([0.299, 0.587, 0.114], dtype=np.float32)
    factor = np.where(gray > config.contrast_pivot, config.contrast_boost, config.contrast_cut)
    out = np.clip(arr * factor[:, :, None], 0, 255).astype(np.uint8)
    return Image.fromarray(out, "RGB")


def upscale_factor(size: Tuple[int, int], config: Config = default_config) -> Optional[float]:
    """Scale needed to bring a window up to the minimum decode size, or None if already large enough."""
    w, h = size
    minimum = config.min_decode_dimension
    if w >= minimum and h >= minimum:
        return None
    return max(minimum / w, minimum / h, config.min_upscale_factor)


def preprocess(image: Image.Image, pass_name: str, config: Config = default_config) -> Optional[Image.Image]:
    """
    Apply one named preprocessing pass.

    Returns:
        Processed image, or None when the pass does not apply (upscaling a
        window that is already large enough).
    """
    if pass_name == "raw":
        return image
    if pass_name == "contrast":
        return enhance_contrast(image, config)
    if pass_name == "grayscale":
        return image.convert("L")
    if pass_name == "upscaled":
        factor = upscale_factor(image.size, config)
        if factor is None:
            return None
        new_size = (int(round(image.width * factor)), int(round(image.height * factor)))
        return image.resize(new_size, Image.BICUBIC)
    raise ValueError(f"Unknown scan pass: {pass_name!r}")


# ===========================================================================
# Decoder backends
# ===========================================================================

def _decode_qr_opencv(image: Image.Image) -> Optional[str]:
    arr = np.asarray(image.convert("L"))
    detector = cv2.QRCodeDetector()
    try:
        data, _points, _ = detector.detectAndDecode(arr)
    except cv2.error as exc:
        logger.debug("OpenCV QR detector failed: %s", exc)
        return None
    return data or None


@functools.lru_cache(maxsize=None)
def load_zbar():
    """
    Import pyzbar once per process.

    Returns:
        The pyzbar.pyzbar module, or None (warned once) when pyzbar or the
        zbar shared library is not installed
    """
    try:
        from pyzbar import pyzbar
    except ImportError as exc:
        logger.warning("zbar unavailable, 1D barcodes will not be decoded: %s", exc)
        return None
    return pyzbar


def _decode_zbar(image: Image.Image, formats: Sequence[str]) -> Optional[Tuple[str, str]]:
    pyzbar = load_zbar()
    if pyzbar is None:
        return None

    symbols = [getattr(pyzbar.ZBarSymbol, _ZBAR_TYPES[f]) for f in formats]
    for result in pyzbar.decode(image.convert("L"), symbols=symbols):
        fmt = _FORMAT_BY_ZBAR.get(result.type)
        if fmt in formats:
            return result.data.decode("utf-8", errors="replace"), fmt
    return None


def decode_once(image: Image.Image, formats: Sequence[str]) -> Optional[Tuple[str, str]]:
    """Try every backend once on an already-preprocessed image."""
    if QR in formats:
        payload = _decode_qr_opencv(image)
        if payload:
            return payload, QR
    return _decode_zbar(image, formats)


# ===========================================================================
# Public API
# ===========================================================================

def _validate(image: Image.Image, formats: Sequence[str]) -> Tuple[str, ...]:
    if not isinstance(image, Image.Image):
        raise TypeError(f"Expected a PIL Image, got {type(image).__name__}")
    if image.width < 1 or image.height < 1:
        raise ValueError(f"Cannot scan an empty image ({image.width}x{image.height})")
    formats = tuple(f.lower() for f in formats)
    if not formats:
        raise ValueError("At least one code format is required")
    unknown = [f for f in formats if f not in DECODE_FORMATS]
    if unknown:
        raise ValueError(f"Unsupported code format(s): {', '.join(unknown)}")
    return formats


def iter_attempts(
    image: Image.Image,
    config: Config = default_config,
) -> Iterator[Tuple[Strategy, Image.Image]]:
    """Yield each applicable strategy with its preprocessed window image."""
    base = flatten(image)
    windows = {}
    for window, pass_name in build_strategies(config):
        if window not in windows:
            windows[window] = scan_window(base, window)
        processed = preprocess(windows[window], pass_name, config)
        if processed is not None:
            yield (window, pass_name), processed


def decode(
    image: Image.Image,
    formats: Sequence[str] = (QR,),
    config: Config = default_config,
) -> Optional[DecodedCode]:
    """
    Locate and decode one optical code.

    Args:
        image: Source raster (any PIL mode)
        formats: Accepted symbologies, e.g. ("qr",) or ("code128", "code39")
        config: Pipeline configuration (windows, passes, thresholds)

    Returns:
        DecodedCode, or None if no strategy decoded anything

    Raises:
        TypeError / ValueError: For a non-image, an empty image or an unknown format
    """
    formats = _validate(image, formats)

    found = first_success(
        iter_attempts(image, config),
        lambda attempt: decode_once(attempt[1], formats),
    )
    if found is None:
        logger.warning("No %s code found in %dx%d image", "/".join(formats), image.width, image.height)
        return None

    ((window, pass_name), _), (payload, fmt) = found
    logger.debug("Decoded %s in window %.2f with pass '%s'", fmt, window, pass_name)
    return DecodedCode(payload=payload, format=fmt, window=window, scan_pass=pass_name)
