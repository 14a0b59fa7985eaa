"""Bilingual regex rules per profile field for parsing reconstructed ID text.

Each field maps to an ordered list of FieldRule records, most reliable
first. A rule is a compiled pattern, the capture group holding the value,
and a cleanup applied to that capture. The resolver in fields.py takes the
first rule whose cleaned capture is non-empty.

Usage:
    from card_digitizer.extractors.patterns import RULES_BY_FIELD
    from card_digitizer.extractors.fields import resolve_field

    resolve_field("FCN: 1234 5678 9012 3456", RULES_BY_FIELD["primary_id"])
    # == "1234 5678 9012 3456"
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Pattern, Tuple


# Ethiopic syllabary block (U+1200..U+137F)
_ETH = "\u1200-\u137F"

_DMY = r"\d{2}/\d{2}/\d{4}"
_YMD = r"\d{4}/\d{2}/\d{2}"
_GROUP_SEP = r"[\s.-]"

_SEX_TOKENS = re.compile(r"ሴት|ወንድ|\b(?:Female|Male)\b", re.IGNORECASE)
_NOT_ETHIOPIC = re.compile(rf"[^{_ETH}\s]")
_NOT_LATIN = re.compile(r"[^A-Za-z0-9/\-\s]")
_WS = re.compile(r"\s+")


# ===========================================================================
# Cleanups
# ===========================================================================

def clean_ethiopic(value: str) -> str:
    """Keep Ethiopic code points and whitespace; collapse whitespace."""
    return _WS.sub(" ", _NOT_ETHIOPIC.sub("", value)).strip()


def clean_latin(value: str) -> str:
    """Keep Latin letters, digits, '/', '-' and whitespace; collapse whitespace."""
    return _WS.sub(" ", _NOT_LATIN.sub("", value)).strip()


def clean_title(value: str) -> str:
    return clean_latin(value).title()


def _digit_groups(count: int, size: int = 4) -> Callable[[str], str]:
    """Build a cleanup that validates `count * size` digits and regroups them."""
    def cleanup(value: str) -> str:
        digits = re.sub(r"\D", "", value)
        if len(digits) != count * size:
            return ""
        return " ".join(digits[i:i + size] for i in range(0, len(digits), size))
    return cleanup


clean_primary_id = _digit_groups(4)
clean_secondary_id = _digit_groups(3)


def clean_phone(value: str) -> str:
    """Normalize +2519XXXXXXXX / 2519XXXXXXXX to 09XXXXXXXX."""
    value = re.sub(r"\D", "", value.strip())
    if value.startswith("251"):
        value = "0" + value[3:]
    return value if re.fullmatch(r"09\d{8}", value) else ""


def clean_zone_ethiopic(value: str) -> str:
    return clean_ethiopic(_SEX_TOKENS.sub("", value))


def clean_zone_latin(value: str) -> str:
    return clean_latin(_SEX_TOKENS.sub("", value))


def clean_woreda_ethiopic(value: str) -> str:
    return clean_ethiopic(re.sub(r"^\s*Ethiopian?\b", "", value, flags=re.IGNORECASE))


def clean_woreda_latin(value: str) -> str:
    return clean_latin(re.sub(r"^\s*Ethiopian?\b", "", value, flags=re.IGNORECASE))


@dataclass(frozen=True)
class FieldRule:
    """One extraction attempt for a field."""
    pattern: Pattern
    group: int = 1
    cleanup: Callable[[str], str] = clean_latin


def _rule(regex: str, cleanup: Callable[[str], str] = clean_latin,
          flags: int = 0, group: int = 1) -> FieldRule:
    return FieldRule(re.compile(regex, flags), group, cleanup)


# ===========================================================================
# Identifier rules
# ===========================================================================

# Examples: "FCN: 1234 5678 9012 3456", "nce: 1234-5678-9012-3456"
_FCN_DIGITS = rf"(\d{{4}}{_GROUP_SEP}*\d{{4}}{_GROUP_SEP}*\d{{4}}{_GROUP_SEP}*\d{{4}})"

PRIMARY_ID_RULES = [
    _rule(rf"FCN[:\s]*{_FCN_DIGITS}", clean_primary_id, re.IGNORECASE),
    # Label frequently mis-read as "nce"
    _rule(rf"nce[:\s]*{_FCN_DIGITS}", clean_primary_id, re.IGNORECASE),
    _rule(
        rf"\b(\d{{4}}{_GROUP_SEP}+\d{{4}}{_GROUP_SEP}+\d{{4}}{_GROUP_SEP}+\d{{4}})\b",
        clean_primary_id,
    ),
    _rule(r"\b(\d{16})\b", clean_primary_id),
]

# Examples: "FIN 1234 5678 9012"
SECONDARY_ID_RULES = [
    _rule(
        rf"\bFIN\b[:\s]*(\d{{4}}{_GROUP_SEP}*\d{{4}}{_GROUP_SEP}*\d{{4}})(?!\d)",
        clean_secondary_id,
    ),
]


# ===========================================================================
# Name rules
# ===========================================================================

NAME_AM_RULES = [
    # Ethiopic line after the "ሙሉ ስም" (full name) label
    _rule(rf"ሙሉ\s*ስም[^\n]*\n([{_ETH} ]+)(?=\n|$)", clean_ethiopic),
    # First line made only of two or more Ethiopic words
    _rule(rf"^(?!ሙሉ\s*ስም)((?:[{_ETH}]+ +)+[{_ETH}]+) *$", clean_ethiopic, re.MULTILINE),
]

NAME_EN_RULES = [
    # Latin line right after the FCN line
    _rule(rf"FCN[:\s]*{_FCN_DIGITS}[ \t]*\n([A-Za-z][A-Za-z ]*)(?=\n|$)", group=2),
    # Latin line after "Full Name", optionally past one Ethiopic line
    _rule(
        rf"Full\s*Name[^\n]*\n(?:[^\n]*[{_ETH}][^\n]*\n)?([A-Za-z][A-Za-z ]*)(?=\n|$)",
        flags=re.IGNORECASE,
    ),
]


# ===========================================================================
# Date rules
# ===========================================================================

# Layout:
#   Date of Birth ...
#   25/09/1981 ...      (Ethiopian calendar)
#   1989/06/02 ...      (Gregorian calendar)
DATE_OF_BIRTH_AM_RULES = [
    _rule(rf"Date\s*of\s*Birth[^\n]*\n({_DMY})", flags=re.IGNORECASE),
    _rule(rf"\b({_DMY})\b"),
]

DATE_OF_BIRTH_EN_RULES = [
    _rule(rf"Date\s*of\s*Birth[^\n]*\n{_DMY}[^\n]*\n({_YMD})", flags=re.IGNORECASE),
    _rule(rf"Date\s*of\s*Birth[\s\S]*?\b({_YMD})\b", flags=re.IGNORECASE),
    _rule(rf"\b({_YMD})\b"),
]

# Examples: "Date of Issue 05/04/2016 | 2023/Dec/14"
_ISSUE_LABEL = r"Date\s*of\s*Issue[^\d]*"

ISSUE_DATE_AM_RULES = [
    _rule(rf"{_ISSUE_LABEL}({_DMY}|{_YMD})", flags=re.IGNORECASE),
]

ISSUE_DATE_EN_RULES = [
    _rule(
        rf"{_ISSUE_LABEL}(?:{_DMY}|{_YMD})\s*\|?\s*(\d{{4}}/[A-Za-z]{{3}}/\d{{2}})",
        flags=re.IGNORECASE,
    ),
]


# ===========================================================================
# Sex / nationality / phone rules
# ===========================================================================

_SEX_LABEL = r"ፆታ\s*/\s*SEX"

SEX_AM_RULES = [
    _rule(rf"{_SEX_LABEL}[\s\S]*?\n(ሴት|ወንድ)", clean_ethiopic),
    _rule(r"(ሴት|ወንድ)", clean_ethiopic),
]

SEX_EN_RULES = [
    _rule(rf"{_SEX_LABEL}[\s\S]*?Disclaimer:[^\n]*?\b(Female|Male)\b", clean_title, re.IGNORECASE),
    _rule(r"\b(Female|Male)\b", clean_title, re.IGNORECASE),
]

SEX_TRANSLATIONS: Dict[str, str] = {
    "ሴት": "Female",
    "ወንድ": "Male",
    "Female": "ሴት",
    "Male": "ወንድ",
}

NATIONALITY_AM_RULES = [
    _rule(r"(ኢትዮጵያዊ)", clean_ethiopic),
]

NATIONALITY_EN_RULES = [
    _rule(r"\b(Ethiopian)\b", clean_title, re.IGNORECASE),
]

# Any of these implies an Ethiopian document
NATIONALITY_CONTEXT = re.compile(r"Ethiopia|Ethiopian\s*Digital|ኢትዮጵያ", re.IGNORECASE)
DEFAULT_NATIONALITY: Tuple[str, str] = ("ኢትዮጵያዊ", "Ethiopian")

_PHONE = r"((?:\+251|251|0)9\d{8})"

PHONE_RULES = [
    _rule(rf"Phone\s*(?:Number)?[:\s]*{_PHONE}", clean_phone, re.IGNORECASE),
    _rule(rf"ስልክ[:\s]*{_PHONE}", clean_phone),
    _rule(r"\b(09\d{8})\b", clean_phone),
    _rule(r"(\+2519\d{8})", clean_phone),
    _rule(r"\b(2519\d{8})\b", clean_phone),
]


# ===========================================================================
# Address rules
# ===========================================================================

# Region printed right after the two date-of-birth values:
#   25/09/1981 ደቡብ ኢትዮጵያ ክልል
#   1989/06/02 South Ethiopia Region
REGION_POSITIONAL = re.compile(
    rf"{_DMY}[ \t]*([{_ETH} ]+ክልል)[ \t]*\n{_YMD}[ \t]*([A-Za-z ]+Region)"
)

# (English name, Amharic name, patterns). Order matters: "South West"
# must be tried before "South Ethiopia".
REGION_ALIASES: List[Tuple[str, str, Tuple[Pattern, ...]]] = [
    ("Addis Ababa", "አዲስ አበባ",
     (re.compile(r"Addis\s*Ababa", re.I), re.compile(r"አዲስ\s*አበባ"))),
    ("Dire Dawa", "ድሬ ዳዋ",
     (re.compile(r"Dire\s*Dawa", re.I), re.compile(r"ድሬ\s*ዳዋ"))),
    ("Afar Region", "አፋር ክልል",
     (re.compile(r"Afar", re.I), re.compile(r"አፋር"))),
    ("Amhara Region", "አማራ ክልል",
     (re.compile(r"Amhara", re.I), re.compile(r"አማራ"))),
    ("Benishangul-Gumuz Region", "ቤንሻንጉል ጉሙዝ ክልል",
     (re.compile(r"Benishangul", re.I), re.compile(r"ቤንሻንጉል"))),
    ("Gambela Region", "ጋምቤላ ክልል",
     (re.compile(r"Gambela", re.I), re.compile(r"ጋምቤላ"))),
    ("Harari Region", "ሐረሪ ክልል",
     (re.compile(r"Harari", re.I), re.compile(r"ሐረሪ"))),
    ("Oromia Region", "ኦሮሚያ ክልል",
     (re.compile(r"Oromia", re.I), re.compile(r"ኦሮሚያ"))),
    ("Somali Region", "ሶማሌ ክልል",
     (re.compile(r"Somali", re.I), re.compile(r"ሶማሌ"))),
    ("Tigray Region", "ትግራይ ክልል",
     (re.compile(r"Tigray", re.I), re.compile(r"ትግራይ"))),
    ("Sidama Region", "ሲዳማ ክልል",
     (re.compile(r"Sidama", re.I), re.compile(r"ሲዳማ"))),
    ("South West Ethiopia Peoples Region", "ደቡብ ምዕራብ ኢትዮጵያ ክልል",
     (re.compile(r"South\s*West", re.I), re.compile(r"ደቡብ\s*ምዕራብ"))),
    ("South Ethiopia Regional State", "ደቡብ ኢትዮጵያ ክልል",
     (re.compile(r"South\s*Ethiopia", re.I), re.compile(r"ደቡብ\s*ኢትዮጵያ"))),
    ("Central Ethiopia Regional State", "መካከለኛ ኢትዮጵያ ክልል",
     (re.compile(r"Central\s*Ethiopia", re.I), re.compile(r"መካከለኛ\s*ኢትዮጵያ"))),
]

REGION_GENERIC_EN = re.compile(r"([A-Za-z]+(?: +[A-Za-z]+)?) +Region", re.IGNORECASE)
REGION_GENERIC_AM = re.compile(rf"([{_ETH}]+(?: +[{_ETH}]+)?) *ክልል")

ZONE_AM_RULES = [
    _rule(rf"{_SEX_LABEL}[^\n]*\n([{_ETH} ]+)", clean_zone_ethiopic),
]

ZONE_EN_RULES = [
    _rule(r"Disclaimer:\s*(?:Female|Male)[ \t]+([A-Za-z ]+)", clean_zone_latin),
]

# Two lines after the label: "Ethiopia <woreda am>" then "Ethiopian <woreda en>"
_WOREDA_LABEL = r"ወረዳ\s*/\s*Woreda[ \t]*\n"

WOREDA_AM_RULES = [
    _rule(rf"{_WOREDA_LABEL}([^\n]+)", clean_woreda_ethiopic),
]

WOREDA_EN_RULES = [
    _rule(rf"{_WOREDA_LABEL}[^\n]+\n([^\n]+)", clean_woreda_latin),
]


# ===========================================================================
# Master lookup: profile field -> ordered rules
# ===========================================================================
RULES_BY_FIELD: Dict[str, List[FieldRule]] = {
    "name_am": NAME_AM_RULES,
    "name_en": NAME_EN_RULES,
    "date_of_birth_am": DATE_OF_BIRTH_AM_RULES,
    "date_of_birth_en": DATE_OF_BIRTH_EN_RULES,
    "sex_am": SEX_AM_RULES,
    "sex_en": SEX_EN_RULES,
    "nationality_am": NATIONALITY_AM_RULES,
    "nationality_en": NATIONALITY_EN_RULES,
    "phone_number": PHONE_RULES,
    "zone_am": ZONE_AM_RULES,
    "zone_en": ZONE_EN_RULES,
    "woreda_am": WOREDA_AM_RULES,
    "woreda_en": WOREDA_EN_RULES,
    "primary_id": PRIMARY_ID_RULES,
    "secondary_id": SECONDARY_ID_RULES,
    "issue_date_am": ISSUE_DATE_AM_RULES,
    "issue_date_en": ISSUE_DATE_EN_RULES,
}
