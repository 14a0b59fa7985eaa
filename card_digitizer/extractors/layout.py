"""
Text layout reconstruction.

Turns the unordered glyph runs of one page into visual reading order:
top-to-bottom lines, fragments left-to-right within a line. Single pass,
no backtracking; meant for single-column fixed-layout documents only.

Usage:
    from card_digitizer.extractors.layout import reconstruct_text

    text = reconstruct_text(page_glyph_runs(page))
"""

import logging
import re
import unicodedata
from typing import Iterable, List

from ..config import Config, default_config
from ..contracts import PageGlyphRun, TextLine

logger = logging.getLogger(__name__)

_ZERO_WIDTH = re.compile(r"[\u200B-\u200D\uFEFF]")
_HSPACE = re.compile(r"[ \t]+")


def reconstruct_lines(
    runs: Iterable[PageGlyphRun],
    config: Config = default_config,
) -> List[TextLine]:
    """
    Group glyph runs into ordered text lines.

    Runs are sorted by descending baseline then ascending X. A run whose
    baseline differs from the previous run's by more than
    `config.line_tolerance` starts a new line. Within a line, fragments
    are ordered left to right even when their baselines differ slightly.

    Args:
        runs: Glyph runs in any order
        config: Pipeline configuration

    Returns:
        TextLines in reading order. Output is independent of input order.
    """
    ordered = sorted(runs, key=PageGlyphRun.sort_key)
    groups: List[List[PageGlyphRun]] = []
    last_y = None

    for run in ordered:
        if last_y is None or abs(run.baseline_y - last_y) > config.line_tolerance:
            groups.append([])
        groups[-1].append(run)
        last_y = run.baseline_y

    lines = []
    for group in groups:
        group.sort(key=lambda r: (r.x, r.text))
        line = TextLine(baseline_y=group[0].baseline_y, fragments=[r.text for r in group])
        if line.text:
            lines.append(line)

    logger.debug("Reconstructed %d lines from %d glyph runs", len(lines), len(ordered))
    return lines


def normalize_text(text: str) -> str:
    """NFC-normalize, collapse horizontal whitespace, unify line breaks, drop zero-width chars."""
    text = unicodedata.normalize("NFC", text)
    text = _HSPACE.sub(" ", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ZERO_WIDTH.sub("", text)
    return text.strip()


def reconstruct_text(
    runs: Iterable[PageGlyphRun],
    config: Config = default_config,
) -> str:
    """Reconstruct lines and join them into one normalized, newline-separated string."""
    lines = reconstruct_lines(runs, config)
    return normalize_text("\n".join(line.text for line in lines))
