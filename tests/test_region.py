import fitz
import numpy as np
import pytest
from PIL import Image

from card_digitizer.contracts import RegionSpec
from card_digitizer.errors import RegionOutOfBounds
from card_digitizer.extractors.region import (
    crop_box,
    rasterize_region,
    rasterize_regions,
    remove_near_white,
    rotate_on_canvas,
    to_grayscale,
)


@pytest.fixture
def page():
    doc = fitz.open()
    pg = doc.new_page(width=200, height=100)
    pg.draw_rect(fitz.Rect(20, 20, 40, 25), color=(0, 0, 0), fill=(0, 0, 0))
    yield pg
    doc.close()


def test_region_size_is_scaled(page):
    img = rasterize_region(page, RegionSpec(10, 10, 50, 20, scale=2))
    assert img.size == (100, 40)


def test_quarter_turn_swaps_size(page):
    for rotation in (90, 270, -90):
        img = rasterize_region(page, RegionSpec(10, 10, 50, 20, scale=2, rotation=rotation))
        assert img.size == (40, 100)
    img = rasterize_region(page, RegionSpec(10, 10, 50, 20, scale=2, rotation=180))
    assert img.size == (100, 40)


def test_rotation_argument_overrides_region_rotation(page):
    img = rasterize_region(page, RegionSpec(10, 10, 50, 20, scale=2), rotation=90)
    assert img.size == (40, 100)


@pytest.mark.parametrize("spec", [
    RegionSpec(190, 10, 50, 20, scale=2),
    RegionSpec(10, 90, 50, 20, scale=2),
    RegionSpec(-1, 10, 50, 20, scale=2),
    RegionSpec(0, 0, 201, 10),
])
def test_out_of_bounds_raises(page, spec):
    with pytest.raises(RegionOutOfBounds) as info:
        rasterize_region(page, spec, name="photo")
    assert info.value.region == "photo"


def test_region_on_the_page_edge_is_allowed(page):
    img = rasterize_region(page, RegionSpec(0, 0, 200, 100, scale=1.5))
    assert img.size == (300, 150)


def test_crop_box_never_clamps():
    with pytest.raises(RegionOutOfBounds) as info:
        crop_box(RegionSpec(0, 0, 60, 10, scale=2), (100, 100), "qr")
    assert info.value.box == (0, 0, 120, 20)
    assert info.value.page_size == (100, 100)


def test_grayscale_uses_luma_weights():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), (255, 0, 0))
    img.putpixel((1, 0), (0, 0, 255))
    gray = to_grayscale(img)
    assert gray.mode == "L"
    assert gray.getpixel((0, 0)) == 76   # 0.299 * 255
    assert gray.getpixel((1, 0)) == 29   # 0.114 * 255


def test_near_white_becomes_transparent():
    img = Image.new("RGB", (10, 10), (250, 250, 250))
    img.paste((0, 0, 0), (2, 2, 5, 5))
    out = to_grayscale(remove_near_white(img, 240))
    alpha = np.array(out)[:, :, 1]
    assert out.mode == "LA"
    assert alpha[0, 0] == 0
    assert alpha[3, 3] == 255


def test_background_kept_without_flag(page):
    img = rasterize_region(page, RegionSpec(0, 0, 100, 50, scale=1))
    assert img.mode == "L"


def test_background_removed_with_flag(page):
    img = rasterize_region(page, RegionSpec(0, 0, 100, 50, scale=1, remove_near_white_background=True))
    assert img.mode == "LA"
    alpha = np.array(img)[:, :, 1]
    assert alpha[5, 5] == 0          # white page
    assert alpha[22, 30] == 255      # inside the black rectangle


def test_color_kept_when_grayscale_disabled(page):
    img = rasterize_region(page, RegionSpec(0, 0, 50, 50, grayscale=False))
    assert img.mode in ("RGB", "RGBA")


def test_arbitrary_angle_keeps_canvas_size():
    img = Image.new("RGB", (60, 20), "black")
    rotated = rotate_on_canvas(img, 30)
    assert rotated.size == (60, 20)
    assert rotated.mode == "RGBA"


def test_rasterize_regions_names_every_region(page):
    images = rasterize_regions(page, {
        "a": RegionSpec(0, 0, 10, 10, scale=2),
        "b": RegionSpec(10, 10, 20, 10, scale=2),
    })
    assert images["a"].size == (20, 20)
    assert images["b"].size == (40, 20)
