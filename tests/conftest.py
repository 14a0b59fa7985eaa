"""Shared fixtures: synthetic PDFs, fonts and sample ID text."""

import glob
import io
import os

import barcode
import fitz
import pytest
from PIL import Image

from card_digitizer.render import FontTable

PAGE_WIDTH = 595
PAGE_HEIGHT = 842

# Reconstructed text of a typical document (bilingual, one field per line)
SAMPLE_ID_TEXT = "\n".join([
    "Ethiopian Digital ID Card",
    "ሙሉ ስም / Full Name",
    "አበበ ከበደ በቀለ",
    "FCN: 1234 5678 9012 3456",
    "Abebe Kebede Bekele",
    "Date of Birth / የትውልድ ቀን",
    "25/09/1981 ደቡብ ኢትዮጵያ ክልል",
    "1989/06/02 South Ethiopia Region",
    "ፆታ / SEX",
    "ሴት ወላይታ ዞን",
    "Disclaimer: Female Wolaita Zone",
    "ወረዳ / Woreda",
    "Ethiopia ሶዶ ከተማ",
    "Ethiopian Sodo Town",
    "Phone Number: +251911223344",
    "FIN 1111 2222 3333",
    "Date of Issue 05/04/2016 | 2023/Dec/14",
])

# Latin-only lines (the base-14 PDF fonts carry no Ethiopic glyphs)
PDF_LINES = [
    "Ethiopian Digital ID Card",
    "FCN: 1234 5678 9012 3456",
    "SURNAME Name",
    "Date of Birth",
    "25/09/1981",
    "1989/06/02",
    "Phone Number: 0911223344",
    "FIN 1111 2222 3333",
]


def build_pdf(lines, images=None, width=PAGE_WIDTH, height=PAGE_HEIGHT):
    """
    Build a one-page PDF.

    Args:
        lines: Text lines, drawn top-down 20pt apart from y=72
        images: Optional [(fitz.Rect, PIL Image)] to place on the page
    """
    doc = fitz.open()
    page = doc.new_page(width=width, height=height)
    for i, line in enumerate(lines):
        page.insert_text((300, 72 + i * 20), line, fontsize=11, fontname="helv")
    for rect, img in images or []:
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        page.insert_image(rect, stream=buf.getvalue())
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_builder():
    return build_pdf


@pytest.fixture
def sample_text():
    return SAMPLE_ID_TEXT


@pytest.fixture(scope="session")
def font_path():
    """A TrueType font shipped with python-barcode."""
    fonts = sorted(glob.glob(os.path.join(os.path.dirname(barcode.__file__), "fonts", "*.ttf")))
    if not fonts:
        pytest.skip("python-barcode ships no TrueType font")
    return fonts[0]


@pytest.fixture
def font_table(font_path):
    return FontTable({("Ebrima", "normal"): font_path})


@pytest.fixture
def white_template(tmp_path):
    """Write a white template image and return a factory for its path."""
    def make(size=(1760, 1110), name="template.png"):
        path = tmp_path / name
        Image.new("RGB", size, "white").save(path)
        return str(path)
    return make
