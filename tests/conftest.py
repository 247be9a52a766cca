"""Shared fixtures for the family graph tests."""

import shutil

import pytest

from models import FamilyDataset, FamilySettings, Gender, GraphEdge, GraphNode, LayoutDirection, NodeKind, Person

requires_dot = pytest.mark.skipif(shutil.which("dot") is None, reason="Graphviz dot not installed")


def make_person(person_id, parents=(), spouse=None, gender=Gender.MALE, name=None):
    return Person(
        id=person_id,
        name=name or person_id.title(),
        gender=gender,
        spouse_id=spouse,
        parent_ids=tuple(parents),
    )


def make_dataset(*members, direction=LayoutDirection.TB):
    return FamilyDataset(members=tuple(members), settings=FamilySettings(direction=direction))


def person_node(node_id):
    return GraphNode(id=node_id, kind=NodeKind.PERSON, persons=(make_person(node_id),))


def edge(source, target, **kwargs):
    return GraphEdge(id=f"edge-{source}-{target}", source=source, target=target, child_id=target, **kwargs)


@pytest.fixture
def three_generations():
    """
    grandpa + grandma
          |
        father + mother
          |
     child1, child2

    uncle is a second child of grandpa, unmarried.
    """
    return make_dataset(
        make_person("grandpa", spouse="grandma"),
        make_person("grandma", spouse="grandpa", gender=Gender.FEMALE),
        make_person("father", parents=["grandpa", "grandma"], spouse="mother"),
        make_person("mother", spouse="father", gender=Gender.FEMALE),
        make_person("uncle", parents=["grandpa", "grandma"]),
        make_person("child1", parents=["father", "mother"]),
        make_person("child2", parents=["father", "mother"], gender=Gender.FEMALE),
    )
