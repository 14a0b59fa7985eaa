"""
Optical code encoder.

Regenerates clean QR / 1D barcode images from decoded payloads so the
output card carries a crisp symbol instead of the scanned crop.
Encoding is deterministic: same payload, format and config give
byte-identical PNG output.
"""

import io
import logging
import re

import barcode
import qrcode
from barcode.errors import BarcodeError
from barcode.writer import ImageWriter
from PIL import Image
from qrcode.exceptions import DataOverflowError

from ..config import Config, default_config
from ..errors import CodeEncodeInvalid

logger = logging.getLogger(__name__)

ENCODE_FORMATS = ("qr", "code128", "code39")

_ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}

# Printable ASCII for Code 128, the 43-character set for Code 39
_CODE128_CHARS = re.compile(r"[\x20-\x7e]+")
_CODE39_CHARS = re.compile(r"[0-9A-Z \-.$/+%]+")


def validate_payload(payload: str, fmt: str) -> None:
    """
    Check that a payload can be represented in a symbology.

    Raises:
        CodeEncodeInvalid: Empty payload, unknown format or illegal characters
    """
    if fmt not in ENCODE_FORMATS:
        raise CodeEncodeInvalid(f"Unsupported encode format: {fmt!r}")
    if not isinstance(payload, str) or not payload:
        raise CodeEncodeInvalid(f"Empty payload for {fmt}")
    if fmt == "code128" and not _CODE128_CHARS.fullmatch(payload):
        raise CodeEncodeInvalid(f"Payload {payload!r} has characters outside Code 128 printable ASCII")
    if fmt == "code39" and not _CODE39_CHARS.fullmatch(payload):
        raise CodeEncodeInvalid(f"Payload {payload!r} has characters outside the Code 39 set")


def _encode_qr(payload: str, config: Config) -> Image.Image:
    qr = qrcode.QRCode(
        error_correction=_ERROR_CORRECTION[config.qr_error_correction.upper()],
        box_size=config.qr_box_size,
        border=config.qr_border,
    )
    qr.add_data(payload)
    try:
        qr.make(fit=True)
    # qrcode < 8 raises DataOverflowError, later releases an "Invalid version" ValueError
    except (DataOverflowError, ValueError) as exc:
        raise CodeEncodeInvalid(f"Payload too long for a QR code ({len(payload)} chars)") from exc
    img = qr.make_image(fill_color="black", back_color="white").get_image().convert("L")
    return img.resize((config.qr_size, config.qr_size), Image.NEAREST)


def _encode_barcode(payload: str, fmt: str, config: Config) -> Image.Image:
    barcode_class = barcode.get_barcode_class(fmt)
    kwargs = {"writer": ImageWriter()}
    if fmt == "code39":
        kwargs["add_checksum"] = False
    try:
        symbol = barcode_class(payload, **kwargs)
        img = symbol.render(writer_options={
            "module_width": config.barcode_module_width,
            "module_height": config.barcode_module_height,
            "quiet_zone": config.barcode_quiet_zone,
            "dpi": config.barcode_dpi,
            "write_text": False,
        })
    except (BarcodeError, ValueError) as exc:
        raise CodeEncodeInvalid(f"Cannot encode {payload!r} as {fmt}: {exc}") from exc
    return img.convert("L")


def encode(payload: str, fmt: str, config: Config = default_config) -> Image.Image:
    """
    Encode a payload as a clean code image.

    Args:
        payload: String to encode
        fmt: "qr", "code128" or "code39"
        config: Sizes and error-correction settings

    Returns:
        Grayscale PIL Image (QR images are config.qr_size square)

    Raises:
        CodeEncodeInvalid: If the payload cannot be encoded in fmt
    """
    fmt = fmt.lower()
    validate_payload(payload, fmt)
    if fmt == "qr":
        img = _encode_qr(payload, config)
    else:
        img = _encode_barcode(payload, fmt, config)
    logger.debug("Encoded %d-char payload as %s: %dx%d", len(payload), fmt, img.width, img.height)
    return img


def encode_png(payload: str, fmt: str, config: Config = default_config) -> bytes:
    """Encode a payload and serialize it as PNG bytes."""
    buf = io.BytesIO()
    encode(payload, fmt, config).save(buf, format="PNG")
    return buf.getvalue()
