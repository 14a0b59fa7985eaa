import random

import fitz

from card_digitizer.config import Config
from card_digitizer.contracts import PageGlyphRun
from card_digitizer.extractors.layout import normalize_text, reconstruct_lines, reconstruct_text
from card_digitizer.utils.pdf_render import open_pdf, page_glyph_runs


def _runs():
    return [
        PageGlyphRun("FCN:", baseline_y=700, x=50),
        PageGlyphRun("1234 5678 9012 3456", baseline_y=702, x=90),
        PageGlyphRun("SURNAME", baseline_y=680, x=50),
        PageGlyphRun("Name", baseline_y=680, x=120),
        PageGlyphRun("Date of Birth", baseline_y=640, x=50),
    ]


def test_lines_follow_reading_order():
    lines = reconstruct_lines(_runs())
    assert [line.text for line in lines] == [
        "FCN: 1234 5678 9012 3456",
        "SURNAME Name",
        "Date of Birth",
    ]


def test_output_is_independent_of_input_order():
    expected = [line.text for line in reconstruct_lines(_runs())]
    rng = random.Random(7)
    for _ in range(10):
        shuffled = _runs()
        rng.shuffle(shuffled)
        assert [line.text for line in reconstruct_lines(shuffled)] == expected


def test_no_double_space_after_trailing_whitespace():
    runs = [PageGlyphRun("Phone ", 500, 10), PageGlyphRun("Number", 500, 60)]
    assert reconstruct_lines(runs)[0].text == "Phone Number"


def test_gap_beyond_tolerance_starts_new_line():
    runs = [PageGlyphRun("a", 100, 0), PageGlyphRun("b", 95, 10)]
    assert len(reconstruct_lines(runs)) == 1
    assert len(reconstruct_lines(runs, Config(line_tolerance=3))) == 2


def test_normalize_text():
    raw = "  ab\u200bc \t  d\r\ne\rf\ufeff  "
    assert normalize_text(raw) == "abc d\ne\nf"


def test_normalize_text_composes_unicode():
    assert normalize_text("e\u0301") == "\u00e9"


def test_empty_input():
    assert reconstruct_lines([]) == []
    assert reconstruct_text([]) == ""


def test_glyph_runs_from_pdf(pdf_builder):
    doc = open_pdf(pdf_builder(["FCN: 1234 5678 9012 3456", "SURNAME Name"]))
    try:
        runs = page_glyph_runs(doc.load_page(0))
    finally:
        doc.close()

    assert [r.text for r in runs] == ["FCN: 1234 5678 9012 3456", "SURNAME Name"]
    # PDF user space: the first line sits higher, so its baseline is larger
    assert runs[0].baseline_y > runs[1].baseline_y
    assert reconstruct_text(runs) == "FCN: 1234 5678 9012 3456\nSURNAME Name"


def test_blank_spans_are_dropped():
    doc = fitz.open()
    page = doc.new_page(width=200, height=200)
    page.insert_text((20, 50), "   ", fontsize=11)
    page.insert_text((20, 80), "text", fontsize=11)
    runs = page_glyph_runs(page)
    doc.close()
    assert [r.text for r in runs] == ["text"]
