"""Optical code codec: progressive QR/barcode decoding and clean re-encoding."""

from .scanner import decode, build_strategies, first_success, DECODE_FORMATS, BARCODE_FORMATS
from .encoder import encode, encode_png, validate_payload, ENCODE_FORMATS

__all__ = [
    "decode",
    "build_strategies",
    "first_success",
    "DECODE_FORMATS",
    "BARCODE_FORMATS",
    "encode",
    "encode_png",
    "validate_payload",
    "ENCODE_FORMATS",
]
