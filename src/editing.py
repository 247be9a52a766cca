"""Immutable edits and lookups on a FamilyDataset."""

import itertools
import secrets
import time
from collections.abc import Callable, Iterable
from dataclasses import replace

from models import CoupleKey, FamilyDataset, FamilySettings, Gender, LayoutDirection, Person

IdGenerator = Callable[[], str]


class PersonNotFoundError(KeyError):
    """Raised when an edit refers to a person id missing from the dataset."""


class SequentialIdGenerator:
    """Deterministic ids: person-1, person-2, ..."""

    def __init__(self, prefix: str = "person", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


class RandomIdGenerator:
    """Ids from a base-36 millisecond timestamp plus random hex, e.g. person-lx2k9f0a-3f9a1c."""

    def __init__(self, prefix: str = "person"):
        self.prefix = prefix

    def __call__(self) -> str:
        return f"{self.prefix}-{_base36(int(time.time() * 1000))}-{secrets.token_hex(3)}"


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while True:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
        if value == 0:
            return out


# ============================================================================
# Lookups
# ============================================================================


def get_person(dataset: FamilyDataset, person_id: str) -> Person:
    person = dataset.get(person_id)
    if person is None:
        raise PersonNotFoundError(person_id)
    return person


def get_children_of(dataset: FamilyDataset, person_id: str) -> list[Person]:
    return [p for p in dataset.members if person_id in p.parent_ids]


def has_children(dataset: FamilyDataset, person_id: str) -> bool:
    return any(person_id in p.parent_ids for p in dataset.members)


def get_spouse_of(dataset: FamilyDataset, person_id: str) -> Person | None:
    person = dataset.get(person_id)
    if person is None or not person.spouse_id:
        return None
    return dataset.get(person.spouse_id)


def get_parents_of(dataset: FamilyDataset, person_id: str) -> list[Person]:
    person = dataset.get(person_id)
    if person is None:
        return []
    return [p for p in dataset.members if p.id in person.parent_ids]


# ============================================================================
# Edits (each returns a new dataset)
# ============================================================================


def add_person(dataset: FamilyDataset, person: Person) -> FamilyDataset:
    return replace(dataset, members=dataset.members + (person,))


def update_person(dataset: FamilyDataset, person_id: str, **changes) -> FamilyDataset:
    get_person(dataset, person_id)
    members = tuple(replace(p, **changes) if p.id == person_id else p for p in dataset.members)
    return replace(dataset, members=members)


def delete_person(dataset: FamilyDataset, person_id: str) -> FamilyDataset:
    """Remove a person and every spouse/parent reference to them."""
    get_person(dataset, person_id)
    members = tuple(
        replace(
            p,
            spouse_id=None if p.spouse_id == person_id else p.spouse_id,
            parent_ids=tuple(pid for pid in p.parent_ids if pid != person_id),
        )
        for p in dataset.members
        if p.id != person_id
    )
    return replace(dataset, members=members)


def set_direction(dataset: FamilyDataset, direction: LayoutDirection) -> FamilyDataset:
    return replace(dataset, settings=FamilySettings(direction=LayoutDirection(direction)))


def _new_person(
    id_generator: IdGenerator,
    name: str,
    gender: Gender,
    birth_date: str | None,
    death_date: str | None,
) -> Person:
    return Person(
        id=id_generator(), name=name, gender=gender, birth_date=birth_date, death_date=death_date
    )


def add_child(
    dataset: FamilyDataset,
    parent_ids: Iterable[str],
    name: str,
    gender: Gender = Gender.MALE,
    birth_date: str | None = None,
    death_date: str | None = None,
    id_generator: IdGenerator = RandomIdGenerator(),
) -> tuple[FamilyDataset, Person]:
    """Add a new child of the given parents (in order). Returns the new dataset and child."""
    parent_ids = tuple(parent_ids)
    for parent_id in parent_ids:
        get_person(dataset, parent_id)
    child = replace(
        _new_person(id_generator, name, gender, birth_date, death_date), parent_ids=parent_ids
    )
    return add_person(dataset, child), child


def add_parent(
    dataset: FamilyDataset,
    child_ids: Iterable[str],
    name: str,
    gender: Gender = Gender.MALE,
    birth_date: str | None = None,
    death_date: str | None = None,
    id_generator: IdGenerator = RandomIdGenerator(),
) -> tuple[FamilyDataset, Person]:
    """Add a new person and append them to each child's parent list."""
    child_ids = list(child_ids)
    for child_id in child_ids:
        get_person(dataset, child_id)
    parent = _new_person(id_generator, name, gender, birth_date, death_date)
    dataset = add_person(dataset, parent)
    for child_id in child_ids:
        child = get_person(dataset, child_id)
        dataset = update_person(dataset, child_id, parent_ids=child.parent_ids + (parent.id,))
    return dataset, parent


def add_spouse(
    dataset: FamilyDataset,
    person_id: str,
    name: str,
    gender: Gender = Gender.FEMALE,
    birth_date: str | None = None,
    death_date: str | None = None,
    id_generator: IdGenerator = RandomIdGenerator(),
) -> tuple[FamilyDataset, Person]:
    """Add a new person married to `person_id`; both spouse links are set."""
    get_person(dataset, person_id)
    spouse = replace(
        _new_person(id_generator, name, gender, birth_date, death_date), spouse_id=person_id
    )
    dataset = add_person(dataset, spouse)
    return update_person(dataset, person_id, spouse_id=spouse.id), spouse


def toggle_collapsed(
    collapse_set: frozenset[str | CoupleKey], node_id: str | CoupleKey
) -> frozenset[str | CoupleKey]:
    """Return a new collapse set with `node_id` flipped."""
    if node_id in collapse_set:
        return collapse_set - {node_id}
    return collapse_set | {node_id}
