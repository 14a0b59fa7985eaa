"""Data models for the card digitizer."""

from .profile import ProfileRecord, FIELD_NAMES, ETHIOPIC_FIELDS, LATIN_FIELDS

__all__ = [
    "ProfileRecord",
    "FIELD_NAMES",
    "ETHIOPIC_FIELDS",
    "LATIN_FIELDS",
]
