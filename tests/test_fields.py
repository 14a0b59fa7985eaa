import re

import pytest

from card_digitizer.contracts import TextLine
from card_digitizer.extractors.fields import extract_profile, extract_region, resolve_field
from card_digitizer.extractors.patterns import (
    FieldRule,
    PRIMARY_ID_RULES,
    PHONE_RULES,
    clean_ethiopic,
    clean_latin,
)
from card_digitizer.models.profile import ETHIOPIC_FIELDS, FIELD_NAMES, LATIN_FIELDS

ETHIOPIC_OR_SPACE = re.compile("[\u1200-\u137F\\s]*")
LATIN_OR_SPACE = re.compile(r"[A-Za-z0-9/\-\s]*")


def test_fcn_and_name_scenario():
    profile = extract_profile("FCN: 1234 5678 9012 3456\nSURNAME Name")
    assert profile.primary_id == "1234 5678 9012 3456"
    assert "SURNAME Name" in profile.name_en


def test_accepts_text_lines():
    lines = [TextLine(700, ["FCN:", "1234 5678 9012 3456"]), TextLine(680, ["SURNAME Name"])]
    assert extract_profile(lines).primary_id == "1234 5678 9012 3456"


def test_full_document(sample_text):
    p = extract_profile(sample_text)
    assert p.name_am == "አበበ ከበደ በቀለ"
    assert p.name_en == "Abebe Kebede Bekele"
    assert p.primary_id == "1234 5678 9012 3456"
    assert p.secondary_id == "1111 2222 3333"
    assert p.date_of_birth_am == "25/09/1981"
    assert p.date_of_birth_en == "1989/06/02"
    assert p.sex_am == "ሴት"
    assert p.sex_en == "Female"
    assert p.nationality_am == "ኢትዮጵያዊ"
    assert p.nationality_en == "Ethiopian"
    assert p.phone_number == "0911223344"
    assert p.region_am == "ደቡብ ኢትዮጵያ ክልል"
    assert p.region_en == "South Ethiopia Region"
    assert p.zone_am == "ወላይታ ዞን"
    assert p.zone_en == "Wolaita Zone"
    assert p.woreda_am == "ሶዶ ከተማ"
    assert p.woreda_en == "Sodo Town"
    assert p.issue_date_am == "05/04/2016"
    assert p.issue_date_en == "2023/Dec/14"
    assert p.serial_number == ""


@pytest.mark.parametrize("text", ["", "   ", "\n\n", "garbage ### 123", "አበበ", "{}[]()"])
def test_every_field_present_and_string(text):
    record = extract_profile(text).to_dict()
    assert set(record) == set(FIELD_NAMES)
    assert all(isinstance(v, str) for v in record.values())


def test_empty_text_gives_empty_record():
    assert extract_profile("").is_empty()


def test_fields_keep_only_their_script(sample_text):
    noisy = sample_text.replace("Sodo Town", "Sodo Town*").replace("Wolaita Zone", "Wolaita_Zone")
    record = extract_profile(noisy).to_dict()
    for name in ETHIOPIC_FIELDS:
        assert ETHIOPIC_OR_SPACE.fullmatch(record[name]), name
    for name in LATIN_FIELDS:
        assert LATIN_OR_SPACE.fullmatch(record[name]), name
    assert record["woreda_en"] == "Sodo Town"


def test_first_surviving_rule_wins():
    rules = [
        FieldRule(re.compile(r"(x+)"), cleanup=lambda value: ""),
        FieldRule(re.compile(r"(y+)")),
        FieldRule(re.compile(r"(z+)")),
    ]
    assert resolve_field("xxx yyy zzz", rules) == "yyy"
    assert resolve_field("nothing here", rules) == ""


@pytest.mark.parametrize("text, expected", [
    ("FCN: 1234-5678-9012-3456", "1234 5678 9012 3456"),
    ("nce: 1234.5678.9012.3456", "1234 5678 9012 3456"),
    ("card 1234 5678 9012 3456 issued", "1234 5678 9012 3456"),
    ("1234567890123456", "1234 5678 9012 3456"),
    ("FCN: 1234 5678 9012", ""),
])
def test_primary_id_normalization(text, expected):
    assert resolve_field(text, PRIMARY_ID_RULES) == expected


@pytest.mark.parametrize("text, expected", [
    ("Phone Number: 0911223344", "0911223344"),
    ("ስልክ: +251922334455", "0922334455"),
    ("call 251933445566 now", "0933445566"),
    ("+251944556677", "0944556677"),
    ("no phone", ""),
])
def test_phone_normalization(text, expected):
    assert resolve_field(text, PHONE_RULES) == expected


def test_sex_filled_from_counterpart():
    assert extract_profile("ፆታ / SEX\nወንድ").sex_en == "Male"
    assert extract_profile("Sex: Female").sex_am == "ሴት"


def test_nationality_defaults_from_context():
    profile = extract_profile("Federal Democratic Republic of Ethiopia")
    assert profile.nationality_en == "Ethiopian"
    assert profile.nationality_am == "ኢትዮጵያዊ"


def test_region_positional_tier_wins_over_alias():
    text = "25/09/1981 ደቡብ ኢትዮጵያ ክልል\n1989/06/02 South Ethiopia Region\nborn in Addis Ababa"
    assert extract_region(text) == ("ደቡብ ኢትዮጵያ ክልል", "South Ethiopia Region")


@pytest.mark.parametrize("text, expected", [
    ("Residence: Addis Ababa", ("አዲስ አበባ", "Addis Ababa")),
    ("ኦሮሚያ", ("ኦሮሚያ ክልል", "Oromia Region")),
    ("South West Ethiopia", ("ደቡብ ምዕራብ ኢትዮጵያ ክልል", "South West Ethiopia Peoples Region")),
])
def test_region_alias_tier(text, expected):
    assert extract_region(text) == expected


def test_region_generic_tier():
    assert extract_region("Foo Bar Region") == ("", "Foo Bar Region")
    assert extract_region("ቀበሌ ክልል") == ("ቀበሌ ክልል", "")


def test_region_absent():
    assert extract_region("nothing to see") == ("", "")


def test_cleanups():
    assert clean_ethiopic(" አበበ  Abebe 12 ከበደ ") == "አበበ ከበደ"
    assert clean_latin("Abebe*  Kebede_ 1/2-3 ሰ") == "Abebe Kebede 1/2-3"
