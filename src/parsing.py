"""GEDCOM import into a FamilyDataset, with date normalization."""

import logging
import re
from pathlib import Path

from ged4py import GedcomReader

from models import FamilyDataset, FamilySettings, Gender, LayoutDirection, Person

logger = logging.getLogger(__name__)

MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

QUALIFIER_RE = re.compile(
    r"^(ABOUT|ABT|BEFORE|BEF|AFTER|AFT|EST|CAL|CIRCA|CA|AROUND)\.?:?\s*", re.IGNORECASE
)

# (pattern, group order) where order names the day/month/year groups
DATE_PATTERNS = [
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"), "ymd"),  # 1839-08-29
    (re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$"), "dMy"),  # 25 NOV 1954, 02 May1838
    (re.compile(r"^([A-Za-z]+)\.?\s*(\d{1,2}),\s*(\d{4})$"), "Mdy"),  # April 17, 1850
    (re.compile(r"^([A-Za-z]+)\.?,?\s*(\d{4})$"), "My"),  # NOV 1954, May, 1837
    (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$"), "mdy"),  # 01/27/1920
    (re.compile(r"^(\d{4})$"), "y"),  # 1698
]


def _month_number(name: str) -> int | None:
    return MONTHS.get(name.upper()[:3])


def parse_date_string(date_str: str | None) -> str | None:
    """
    Normalize a free-form genealogy date to ISO format (YYYY-MM-DD).

    Qualifiers such as "ABT" or "around" are dropped, missing day/month default to 1.
    Returns None when nothing recognisable remains.
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?").strip()
    s = QUALIFIER_RE.sub("", s).strip()
    if not s:
        return None

    for pattern, order in DATE_PATTERNS:
        match = pattern.match(s)
        if not match:
            continue

        parts = dict(zip(order, match.groups()))
        year = int(parts["y"])
        if "M" in parts:
            month = _month_number(parts["M"])
        else:
            month = int(parts.get("m", 1)) or 1
        day = int(parts.get("d", 1)) or 1

        if month and 1 <= month <= 12 and 1 <= day <= 31:
            return f"{year:04d}-{month:02d}-{day:02d}"

    return None


def strip_xref(xref_id: str) -> str:
    """'@I12@' -> 'I12'"""
    return xref_id.strip("@")


def extract_name(indi) -> str:
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return "Unknown"

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_rec.value, tuple):
        parts = [p for p in name_rec.value if p]
        return " ".join(parts) if parts else "Unknown"

    return str(name_rec.value).replace("/", "").strip() or "Unknown"


def extract_date(indi, tag: str) -> str | None:
    """Date of an event tag (BIRT, DEAT), normalized when possible, raw otherwise."""
    event = indi.sub_tag(tag)
    if event is None:
        return None
    date_rec = event.sub_tag("DATE")
    if not date_rec or not date_rec.value:
        return None
    raw = str(date_rec.value)
    return parse_date_string(raw) or raw


def extract_gender(indi) -> Gender:
    sex_rec = indi.sub_tag("SEX")
    if sex_rec and str(sex_rec.value).upper() == "F":
        return Gender.FEMALE
    return Gender.MALE


def import_gedcom(
    filepath: Path, direction: LayoutDirection = LayoutDirection.TB
) -> FamilyDataset:
    """
    Read a GEDCOM file into a dataset.

    HUSB/WIFE of a FAM record become spouses (the first family of a person wins) and
    the parents of each CHIL, husband first.
    """
    reader = GedcomReader(str(filepath))
    people: dict[str, dict] = {}
    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue
        person_id = strip_xref(rec.xref_id)
        people[person_id] = {
            "id": person_id,
            "name": extract_name(rec),
            "gender": extract_gender(rec),
            "birth_date": extract_date(rec, "BIRT"),
            "death_date": extract_date(rec, "DEAT"),
            "spouse_id": None,
            "parent_ids": (),
        }

    for rec in reader.records0("FAM"):
        husb = rec.sub_tag("HUSB")
        wife = rec.sub_tag("WIFE")
        husb_id = strip_xref(husb.xref_id) if husb and husb.xref_id else None
        wife_id = strip_xref(wife.xref_id) if wife and wife.xref_id else None
        husb_id = husb_id if husb_id in people else None
        wife_id = wife_id if wife_id in people else None

        if husb_id and wife_id:
            if people[husb_id]["spouse_id"] is None and people[wife_id]["spouse_id"] is None:
                people[husb_id]["spouse_id"] = wife_id
                people[wife_id]["spouse_id"] = husb_id
            else:
                logger.debug("Keeping first marriage for %s / %s", husb_id, wife_id)

        parent_ids = tuple(p for p in (husb_id, wife_id) if p)
        for child in rec.sub_tags("CHIL"):
            child_id = strip_xref(child.xref_id) if child.xref_id else None
            if child_id in people and not people[child_id]["parent_ids"]:
                people[child_id]["parent_ids"] = parent_ids

    members = tuple(Person(**fields) for fields in people.values())
    return FamilyDataset(members=members, settings=FamilySettings(direction=direction))
