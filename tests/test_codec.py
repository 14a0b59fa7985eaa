import logging
import sys

import pytest
from PIL import Image

from card_digitizer.codec import decode, encode, encode_png
from card_digitizer.codec.scanner import build_strategies, first_success, load_zbar, preprocess, upscale_factor
from card_digitizer.config import Config
from card_digitizer.errors import CodeEncodeInvalid


def _zbar_available():
    # pyzbar raises a plain ImportError when the zbar shared library is missing
    try:
        from pyzbar import pyzbar  # noqa: F401
    except ImportError:
        return False
    return True


requires_zbar = pytest.mark.skipif(not _zbar_available(), reason="zbar shared library not installed")


def test_qr_round_trip():
    code = decode(encode("ET-FIN-000111", "qr"))
    assert code is not None
    assert code.payload == "ET-FIN-000111"
    assert code.format == "qr"


def test_qr_near_top_found_in_half_window():
    canvas = Image.new("RGB", (1000, 1400), "white")
    qr = encode("ET-FIN-000111", "qr", Config(qr_size=300))
    canvas.paste(qr, (350, 200))

    code = decode(canvas, ("qr",))
    assert code is not None
    assert code.payload == "ET-FIN-000111"
    assert code.format == "qr"
    assert code.window == 0.5
    assert code.scan_pass == "raw"


def test_transparent_input_is_flattened():
    qr = encode("1234567890", "qr").convert("LA")
    assert decode(qr).payload == "1234567890"


def test_no_code_returns_none():
    assert decode(Image.new("RGB", (300, 300), "white")) is None


@pytest.mark.parametrize("formats", [(), ("pdf417",)])
def test_bad_formats_raise(formats):
    with pytest.raises(ValueError):
        decode(Image.new("RGB", (10, 10)), formats)


def test_empty_image_raises():
    with pytest.raises(ValueError):
        decode(Image.new("RGB", (0, 0)))


@pytest.mark.parametrize("payload, fmt", [
    ("1234567890123456", "code128"),
    ("ID-42 abc", "code128"),
    ("FIN 000111", "code39"),
])
@requires_zbar
def test_barcode_round_trip(payload, fmt):
    code = decode(encode(payload, fmt), (fmt,))
    assert code is not None
    assert code.payload == payload
    assert code.format == fmt


@pytest.mark.parametrize("payload, fmt", [
    ("", "qr"),
    ("", "code128"),
    ("abc", "code39"),
    ("ሰላም", "code128"),
    ("A" * 5000, "qr"),
    ("123", "pdf417"),
])
def test_invalid_payloads(payload, fmt):
    with pytest.raises(CodeEncodeInvalid):
        encode(payload, fmt)


def test_encode_is_deterministic():
    assert encode_png("ET-FIN-000111", "qr") == encode_png("ET-FIN-000111", "qr")
    assert encode_png("1234567890123456", "code128") == encode_png("1234567890123456", "code128")


def test_qr_size_from_config():
    assert encode("x", "qr", Config(qr_size=250)).size == (250, 250)


def test_strategy_table_order():
    strategies = build_strategies()
    assert strategies[:4] == [
        (0.25, "raw"), (0.25, "contrast"), (0.25, "grayscale"), (0.25, "upscaled"),
    ]
    assert strategies[-1] == (1.0, "upscaled")
    assert len(strategies) == 16


def test_first_success_stops_early():
    tried = []

    def attempt(n):
        tried.append(n)
        return "hit" if n == 2 else None

    assert first_success([1, 2, 3], attempt) == (2, "hit")
    assert tried == [1, 2]
    assert first_success([], attempt) is None


def test_upscale_pass():
    assert upscale_factor((200, 100)) == 4.0
    assert upscale_factor((390, 390)) == pytest.approx(1.5)
    assert upscale_factor((400, 800)) is None

    small = Image.new("RGB", (200, 100))
    assert preprocess(small, "upscaled").size == (800, 400)
    assert preprocess(Image.new("RGB", (500, 500)), "upscaled") is None


def test_contrast_pass_pushes_away_from_pivot():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), (200, 200, 200))
    img.putpixel((1, 0), (100, 100, 100))
    out = preprocess(img, "contrast")
    assert out.getpixel((0, 0)) == (240, 240, 240)
    assert out.getpixel((1, 0)) == (80, 80, 80)


def test_missing_zbar_warns_once(monkeypatch, caplog):
    monkeypatch.setitem(sys.modules, "pyzbar", None)
    monkeypatch.setitem(sys.modules, "pyzbar.pyzbar", None)
    load_zbar.cache_clear()
    try:
        with caplog.at_level(logging.WARNING, logger="card_digitizer.codec.scanner"):
            assert decode(Image.new("RGB", (300, 120), "white"), ("code128",)) is None
            assert decode(Image.new("RGB", (300, 120), "white"), ("code39",)) is None
    finally:
        load_zbar.cache_clear()

    zbar_warnings = [r for r in caplog.records if "zbar unavailable" in r.getMessage()]
    assert len(zbar_warnings) == 1


def test_qr_still_decodes_without_zbar(monkeypatch):
    monkeypatch.setitem(sys.modules, "pyzbar", None)
    monkeypatch.setitem(sys.modules, "pyzbar.pyzbar", None)
    load_zbar.cache_clear()
    try:
        assert decode(encode("ET-FIN-000111", "qr")).payload == "ET-FIN-000111"
    finally:
        load_zbar.cache_clear()


def test_oversized_qr_payload_is_invalid():
    with pytest.raises(CodeEncodeInvalid) as info:
        encode("A" * 1500 + "a" * 3000, "qr")
    assert isinstance(info.value.__cause__, Exception)
