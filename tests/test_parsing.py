"""Tests for GEDCOM import and date normalization."""

import pytest

from models import Gender, LayoutDirection
from parsing import import_gedcom, parse_date_string, strip_xref


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1839-08-29", "1839-08-29"),
        ("25 NOV 1954", "1954-11-25"),
        ("02 May1838", "1838-05-02"),
        ("April 17, 1850", "1850-04-17"),
        ("NOV 1954", "1954-11-01"),
        ("May, 1837", "1837-05-01"),
        ("01/27/1920", "1920-01-27"),
        ("1698", "1698-01-01"),
        ("ABT 1900", "1900-01-01"),
        ("BEFORE 3 MAR 1777", "1777-03-03"),
        ("around 1810?", "1810-01-01"),
        ("(1750)", "1750-01-01"),
    ],
)
def test_parse_date_string(raw, expected):
    assert parse_date_string(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "unknown", "13/45/1900", "Smarch 1900"])
def test_unparseable_dates(raw):
    assert parse_date_string(raw) is None


def test_strip_xref():
    assert strip_xref("@I12@") == "I12"


GEDCOM = """\
0 HEAD
1 SOUR TEST
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 25 NOV 1954
0 @I2@ INDI
1 NAME Mary /Jones/
1 SEX F
0 @I3@ INDI
1 NAME Tom /Smith/
1 SEX M
1 DEAT
2 DATE BEF 2001
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
0 TRLR
"""


@pytest.fixture
def gedcom_file(tmp_path):
    path = tmp_path / "family.ged"
    path.write_text(GEDCOM, encoding="utf-8")
    return path


def test_import_gedcom(gedcom_file):
    dataset = import_gedcom(gedcom_file, direction=LayoutDirection.LR)

    assert [p.id for p in dataset.members] == ["I1", "I2", "I3"]
    assert dataset.settings.direction is LayoutDirection.LR

    john, mary, tom = dataset.members
    assert "Smith" in john.name
    assert "1954" in john.birth_date
    assert mary.gender is Gender.FEMALE
    assert (john.spouse_id, mary.spouse_id) == ("I2", "I1")
    assert tom.parent_ids == ("I1", "I2")
    assert "2001" in tom.death_date
    assert tom.birth_date is None
