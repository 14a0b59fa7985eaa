"""
Field extraction from reconstructed ID text.

Applies the ordered rule tables from patterns.py to the full page text and
builds a ProfileRecord. Extraction never raises: a field with no matching
rule stays "". Whether the record as a whole is usable is for the caller
to decide (see ProfileRecord.is_empty).
"""

import logging
from typing import Iterable, Sequence, Tuple, Union

from ..contracts import TextLine
from ..models.profile import ProfileRecord
from .layout import normalize_text
from .patterns import (
    DEFAULT_NATIONALITY,
    NATIONALITY_CONTEXT,
    REGION_ALIASES,
    REGION_GENERIC_AM,
    REGION_GENERIC_EN,
    REGION_POSITIONAL,
    RULES_BY_FIELD,
    SEX_TRANSLATIONS,
    FieldRule,
    clean_ethiopic,
    clean_latin,
)

logger = logging.getLogger(__name__)

TextSource = Union[str, Sequence[TextLine], Sequence[str]]


def resolve_field(text: str, rules: Iterable[FieldRule]) -> str:
    """
    Run rules in order; the first match that survives cleanup wins.

    Args:
        text: Normalized page text
        rules: Ordered FieldRule records for one field

    Returns:
        Cleaned value, or "" if no rule produced one
    """
    for index, rule in enumerate(rules):
        match = rule.pattern.search(text)
        if not match:
            continue
        raw = match.group(rule.group) or ""
        value = rule.cleanup(raw)
        if value:
            logger.debug("Rule %d matched: %r", index, value)
            return value
    return ""


def extract_region(text: str) -> Tuple[str, str]:
    """
    Extract the region name in both scripts.

    Tiers, first one that yields anything wins:
      1. Positional: region printed right after the two birth-date lines
      2. Known region names and aliases, in either script, anywhere
      3. Generic "<words> Region" / "<words> ክልል"

    Returns:
        (region_am, region_en); either may be ""
    """
    match = REGION_POSITIONAL.search(text)
    if match:
        region_am = clean_ethiopic(match.group(1))
        region_en = clean_latin(match.group(2))
        if region_am or region_en:
            logger.debug("Region from position: %s / %s", region_am, region_en)
            return region_am, region_en

    for name_en, name_am, patterns in REGION_ALIASES:
        if any(p.search(text) for p in patterns):
            logger.debug("Region from alias table: %s", name_en)
            return name_am, name_en

    region_en = ""
    region_am = ""
    match = REGION_GENERIC_EN.search(text)
    if match:
        region_en = clean_latin(f"{match.group(1)} Region")
    match = REGION_GENERIC_AM.search(text)
    if match:
        region_am = clean_ethiopic(f"{match.group(1)} ክልል")
    return region_am, region_en


def _as_text(source: TextSource) -> str:
    if isinstance(source, str):
        return normalize_text(source)
    parts = [line.text if isinstance(line, TextLine) else str(line) for line in source]
    return normalize_text("\n".join(parts))


def extract_profile(source: TextSource) -> ProfileRecord:
    """
    Build a ProfileRecord from reconstructed page text.

    Args:
        source: Normalized text, or the TextLines / strings it was built from

    Returns:
        ProfileRecord with every field present (possibly "").
        serial_number is left empty; it is derived after side-channel merge.
    """
    try:
        text = _as_text(source)
    except (TypeError, AttributeError) as exc:
        logger.warning("Unreadable extraction input: %s", exc)
        return ProfileRecord()

    values = {name: resolve_field(text, rules) for name, rules in RULES_BY_FIELD.items()}

    # Sex: fill a missing side from its counterpart
    if values["sex_am"] and not values["sex_en"]:
        values["sex_en"] = SEX_TRANSLATIONS.get(values["sex_am"], "")
    elif values["sex_en"] and not values["sex_am"]:
        values["sex_am"] = SEX_TRANSLATIONS.get(values["sex_en"], "")

    # Nationality defaults to Ethiopian inside an Ethiopian document
    nationality_am, nationality_en = DEFAULT_NATIONALITY
    if not values["nationality_en"] and (values["nationality_am"] or NATIONALITY_CONTEXT.search(text)):
        values["nationality_en"] = nationality_en
    if not values["nationality_am"] and values["nationality_en"] == nationality_en:
        values["nationality_am"] = nationality_am

    values["region_am"], values["region_en"] = extract_region(text)

    profile = ProfileRecord(**values)
    found = sum(1 for v in profile.to_dict().values() if v)
    logger.info("Extracted %d non-empty fields", found)
    return profile
