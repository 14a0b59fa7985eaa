"""Profile record extracted from an identity document."""

import dataclasses
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, FrozenSet, Mapping


@dataclass(frozen=True)
class ProfileRecord:
    """
    Structured bilingual identity data for one document.

    Every field is a string and defaults to "", so rendering never has
    to handle a missing value. `_am` fields carry the Amharic rendition,
    `_en` fields the English one.

    Attributes:
        primary_id: Card number (FCN), four groups of four digits
        secondary_id: Fayda identification number (FIN), three groups of four
        serial_number: Printed card serial, derived from the identifiers
    """

    name_am: str = ""
    name_en: str = ""
    date_of_birth_am: str = ""
    date_of_birth_en: str = ""
    sex_am: str = ""
    sex_en: str = ""
    nationality_am: str = ""
    nationality_en: str = ""
    phone_number: str = ""
    region_am: str = ""
    region_en: str = ""
    zone_am: str = ""
    zone_en: str = ""
    woreda_am: str = ""
    woreda_en: str = ""
    primary_id: str = ""
    secondary_id: str = ""
    serial_number: str = ""
    issue_date_am: str = ""
    issue_date_en: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProfileRecord":
        """Build a record from a mapping; unknown keys are ignored, None becomes ""."""
        values = {}
        for name in FIELD_NAMES:
            value = data.get(name)
            values[name] = "" if value is None else str(value)
        return cls(**values)

    def replace(self, **changes: str) -> "ProfileRecord":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **{k: ("" if v is None else v) for k, v in changes.items()})

    def is_empty(self) -> bool:
        """True when no field carries a value."""
        return not any(v.strip() for v in asdict(self).values())


FIELD_NAMES = tuple(f.name for f in fields(ProfileRecord))

# Fields written in Ethiopic script. Ethiopian-calendar dates use Arabic
# numerals, so the `_am` date fields are Latin-tagged.
ETHIOPIC_FIELDS: FrozenSet[str] = frozenset({
    "name_am",
    "sex_am",
    "nationality_am",
    "region_am",
    "zone_am",
    "woreda_am",
})

LATIN_FIELDS: FrozenSet[str] = frozenset(FIELD_NAMES) - ETHIOPIC_FIELDS
