"""Descendant hiding for collapsed nodes."""

import logging
from collections import deque
from collections.abc import Iterable, Sequence

from models import CoupleKey, Person

logger = logging.getLogger(__name__)

COUPLE_PREFIX = "couple-"


def build_children_index(members: Sequence[Person]) -> dict[str, list[str]]:
    """Map each parent id to the ids of people listing it in `parent_ids`."""
    children: dict[str, list[str]] = {}
    for person in members:
        for parent_id in person.parent_ids:
            children.setdefault(parent_id, []).append(person.id)
    return children


def calculate_hidden_people(members: Sequence[Person], collapse_root_ids: Iterable[str]) -> set[str]:
    """
    Compute the ids of everyone hidden below the collapse roots.

    Breadth-first over the parent -> child relation. Each hidden descendant drags its
    spouse along, and the spouse is traversed too so that children from another
    relationship disappear with them.

    Args:
        members: Full member list of the dataset
        collapse_root_ids: Person ids whose descendants should be hidden

    Returns:
        The set of hidden person ids. The roots themselves stay visible unless they
        are their own descendants (cyclic data).
    """
    children_of = build_children_index(members)
    spouse_of = {p.id: p.spouse_id for p in members}
    known = set(spouse_of)

    hidden: set[str] = set()
    queue = deque(collapse_root_ids)

    while queue:
        current = queue.popleft()
        for child_id in children_of.get(current, []):
            if child_id in hidden:
                continue
            hidden.add(child_id)
            queue.append(child_id)

            spouse_id = spouse_of.get(child_id)
            if spouse_id and spouse_id in known and spouse_id not in hidden:
                hidden.add(spouse_id)
                queue.append(spouse_id)

    return hidden


def decode_couple_id(node_id: str, members: Sequence[Person]) -> CoupleKey | None:
    """
    Recover the two person ids from a `couple-{a}-{b}` node id.

    Person ids may contain '-', so every split point is tried and the first one whose
    halves are both member ids wins.
    """
    if not node_id.startswith(COUPLE_PREFIX):
        return None

    body = node_id[len(COUPLE_PREFIX):]
    member_ids = {p.id for p in members}

    start = 0
    while True:
        index = body.find("-", start)
        if index == -1:
            return None
        first, second = body[:index], body[index + 1:]
        if first in member_ids and second in member_ids:
            return CoupleKey(first, second)
        start = index + 1


def resolve_collapse_roots(
    collapse_set: Iterable[str | CoupleKey], members: Sequence[Person]
) -> list[str]:
    """Turn collapse set entries (person ids, couple keys, couple ids) into person ids."""
    member_ids = {p.id for p in members}
    roots: list[str] = []

    for entry in collapse_set:
        if isinstance(entry, CoupleKey):
            roots.extend(entry.person_ids())
        elif entry in member_ids:
            roots.append(entry)
        else:
            key = decode_couple_id(entry, members)
            if key is None:
                logger.debug("Ignoring unknown collapse id %r", entry)
                continue
            roots.extend(key.person_ids())

    return roots
