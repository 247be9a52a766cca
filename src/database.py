"""Loading and saving family datasets (JSON documents and SQLite)."""

import json
import sqlite3
from pathlib import Path

from models import FamilyDataset, FamilySettings, Gender, LayoutDirection, Person


class DatasetError(ValueError):
    """Raised when a stored dataset cannot be interpreted."""


DEFAULT_DATASET = FamilyDataset()


# ============================================================================
# JSON
# ============================================================================


def person_to_dict(person: Person) -> dict:
    data = {
        "id": person.id,
        "name": person.name,
        "gender": person.gender.value,
        "parentIds": list(person.parent_ids),
    }
    if person.birth_date:
        data["birthDate"] = person.birth_date
    if person.death_date:
        data["deathDate"] = person.death_date
    if person.spouse_id:
        data["spouseId"] = person.spouse_id
    return data


def person_from_dict(data: dict) -> Person:
    try:
        return Person(
            id=str(data["id"]),
            name=data.get("name", ""),
            gender=Gender(data.get("gender", Gender.MALE.value)),
            birth_date=data.get("birthDate") or None,
            death_date=data.get("deathDate") or None,
            spouse_id=data.get("spouseId") or None,
            parent_ids=tuple(data.get("parentIds", ())),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise DatasetError(f"Invalid person record {data!r}: {e}") from e


def dataset_to_dict(dataset: FamilyDataset) -> dict:
    return {
        "members": [person_to_dict(p) for p in dataset.members],
        "settings": {"direction": dataset.settings.direction.value},
    }


def dataset_from_dict(data: dict) -> FamilyDataset:
    """Build a dataset from the JSON payload shape `{"members": [...], "settings": {...}}`."""
    if not isinstance(data, dict):
        raise DatasetError("Dataset must be a JSON object")

    members = tuple(person_from_dict(m) for m in data.get("members", []))

    direction = data.get("settings", {}).get("direction", LayoutDirection.TB.value)
    try:
        settings = FamilySettings(direction=LayoutDirection(direction))
    except ValueError as e:
        raise DatasetError(f"Unknown layout direction: {direction!r}") from e

    return FamilyDataset(members=members, settings=settings)


def load_json(path: Path) -> FamilyDataset:
    """Load a dataset from a JSON file. A missing file gives the empty default dataset."""
    if not path.exists():
        return DEFAULT_DATASET
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DatasetError(f"{path} is not valid JSON: {e}") from e
    return dataset_from_dict(data)


def save_json(path: Path, dataset: FamilyDataset):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dataset_to_dict(dataset), f, indent=2)


# ============================================================================
# SQLite
# ============================================================================


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Create SQLite database with person, parent link and setting tables."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS person (
            id TEXT PRIMARY KEY,
            position INTEGER NOT NULL,
            name TEXT NOT NULL,
            gender TEXT NOT NULL,
            birth_date TEXT,
            death_date TEXT,
            spouse_id TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS parent_link (
            child_id TEXT NOT NULL,
            parent_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            FOREIGN KEY (child_id) REFERENCES person(id)
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS setting (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    conn.commit()
    return conn


def store_dataset(conn: sqlite3.Connection, dataset: FamilyDataset):
    """Replace the stored dataset with `dataset`, all or nothing."""
    with conn:
        cursor = conn.cursor()

        cursor.execute("DELETE FROM parent_link")
        cursor.execute("DELETE FROM person")

        cursor.executemany(
            """
            INSERT INTO person (id, position, name, gender, birth_date, death_date, spouse_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (p.id, i, p.name, p.gender.value, p.birth_date, p.death_date, p.spouse_id)
                for i, p in enumerate(dataset.members)
            ],
        )

        # Parent order matters: only the first parent sources an edge
        cursor.executemany(
            "INSERT INTO parent_link (child_id, parent_id, position) VALUES (?, ?, ?)",
            [
                (p.id, parent_id, i)
                for p in dataset.members
                for i, parent_id in enumerate(p.parent_ids)
            ],
        )

        cursor.execute(
            "INSERT OR REPLACE INTO setting (key, value) VALUES ('direction', ?)",
            (dataset.settings.direction.value,),
        )


def load_dataset(conn: sqlite3.Connection) -> FamilyDataset:
    cursor = conn.cursor()

    parents: dict[str, list[str]] = {}
    cursor.execute("SELECT child_id, parent_id FROM parent_link ORDER BY child_id, position")
    for child_id, parent_id in cursor.fetchall():
        parents.setdefault(child_id, []).append(parent_id)

    cursor.execute(
        "SELECT id, name, gender, birth_date, death_date, spouse_id FROM person ORDER BY position"
    )
    try:
        members = tuple(
            Person(
                id=row[0],
                name=row[1],
                gender=Gender(row[2]),
                birth_date=row[3],
                death_date=row[4],
                spouse_id=row[5],
                parent_ids=tuple(parents.get(row[0], ())),
            )
            for row in cursor.fetchall()
        )
    except ValueError as e:
        raise DatasetError(f"Invalid stored person: {e}") from e

    cursor.execute("SELECT value FROM setting WHERE key = 'direction'")
    row = cursor.fetchone()
    try:
        direction = LayoutDirection(row[0]) if row else LayoutDirection.TB
    except ValueError as e:
        raise DatasetError(f"Unknown layout direction: {row[0]!r}") from e

    return FamilyDataset(members=members, settings=FamilySettings(direction=direction))
