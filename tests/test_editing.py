"""Tests for dataset edits and lookups."""

import re

import pytest

from conftest import make_dataset, make_person
from editing import (
    PersonNotFoundError,
    RandomIdGenerator,
    SequentialIdGenerator,
    add_child,
    add_parent,
    add_spouse,
    delete_person,
    get_children_of,
    get_parents_of,
    get_spouse_of,
    has_children,
    set_direction,
    toggle_collapsed,
    update_person,
)
from models import CoupleKey, Gender, LayoutDirection


@pytest.fixture
def couple():
    return make_dataset(make_person("a", spouse="b"), make_person("b", spouse="a", gender=Gender.FEMALE))


def test_sequential_ids():
    ids = SequentialIdGenerator()
    assert [ids(), ids()] == ["person-1", "person-2"]
    assert SequentialIdGenerator("p", start=10)() == "p-10"


def test_random_ids_are_unique():
    ids = RandomIdGenerator()
    first, second = ids(), ids()
    assert re.fullmatch(r"person-[0-9a-z]+-[0-9a-f]{6}", first)
    assert first != second


def test_add_child_keeps_parent_order(couple):
    dataset, child = add_child(couple, ["b", "a"], "Kid", id_generator=SequentialIdGenerator())

    assert child.id == "person-1"
    assert child.parent_ids == ("b", "a")
    assert [p.id for p in get_children_of(dataset, "a")] == ["person-1"]
    assert has_children(dataset, "b")
    # original untouched
    assert len(couple.members) == 2


def test_add_child_with_unknown_parent(couple):
    with pytest.raises(PersonNotFoundError):
        add_child(couple, ["ghost"], "Kid")


def test_add_parent_appends_to_children(couple):
    dataset, kid = add_child(couple, ["a"], "Kid", id_generator=SequentialIdGenerator("k"))
    dataset, parent = add_parent(dataset, [kid.id], "Gran", id_generator=SequentialIdGenerator("g"))

    assert dataset.get(kid.id).parent_ids == ("a", "g-1")
    assert [p.id for p in get_parents_of(dataset, kid.id)] == ["a", "g-1"]
    assert parent.parent_ids == ()


def test_add_spouse_links_both_ways():
    dataset, spouse = add_spouse(
        make_dataset(make_person("solo")), "solo", "Partner", id_generator=SequentialIdGenerator()
    )

    assert spouse.gender is Gender.FEMALE
    assert dataset.get("solo").spouse_id == spouse.id
    assert get_spouse_of(dataset, "solo") == spouse
    assert get_spouse_of(dataset, "nobody") is None


def test_delete_person_removes_references(couple):
    dataset, kid = add_child(couple, ["a", "b"], "Kid", id_generator=SequentialIdGenerator())
    dataset = delete_person(dataset, "a")

    assert dataset.get("a") is None
    assert dataset.get("b").spouse_id is None
    assert dataset.get(kid.id).parent_ids == ("b",)


def test_edits_on_missing_person_raise(couple):
    with pytest.raises(PersonNotFoundError):
        delete_person(couple, "ghost")
    with pytest.raises(PersonNotFoundError):
        update_person(couple, "ghost", name="x")


def test_update_and_direction(couple):
    dataset = update_person(couple, "a", name="Alan")
    dataset = set_direction(dataset, "LR")

    assert dataset.get("a").name == "Alan"
    assert dataset.settings.direction is LayoutDirection.LR


def test_toggle_collapsed():
    key = CoupleKey("a", "b")
    collapsed = toggle_collapsed(frozenset(), key)
    collapsed = toggle_collapsed(collapsed, "c")

    assert collapsed == {key, "c"}
    assert toggle_collapsed(collapsed, key) == {"c"}
