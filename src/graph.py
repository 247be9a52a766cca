"""Building the visual node/edge graph from a family dataset."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

import networkx as nx

from collapse import calculate_hidden_people, decode_couple_id, resolve_collapse_roots
from models import CoupleKey, FamilyDataset, GraphEdge, GraphNode, NodeKind, Person

logger = logging.getLogger(__name__)


@dataclass
class FamilyGraph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def node_for_person(self, person_id: str) -> GraphNode | None:
        for node in self.nodes:
            if person_id in node.person_ids:
                return node
        return None

    def to_networkx(self) -> nx.DiGraph:
        """Export as a NetworkX directed graph keyed by node id."""
        G = nx.DiGraph()
        for node in self.nodes:
            G.add_node(node.id, kind=node.kind.value, person_ids=node.person_ids)
        for edge in self.edges:
            G.add_edge(edge.source, edge.target, edge_type=edge.edge_type.value, child_id=edge.child_id)
        return G


def _collapse_lookup(
    collapse_set: Iterable[str | CoupleKey], members: Sequence[Person]
) -> tuple[set[str], set[frozenset[str]]]:
    """Split collapse entries into plain ids and unordered couple pairs (couple ids decoded)."""
    ids: set[str] = set()
    pairs: set[frozenset[str]] = set()
    for entry in collapse_set:
        if isinstance(entry, CoupleKey):
            pairs.add(frozenset(entry.person_ids()))
            continue
        ids.add(entry)
        key = decode_couple_id(entry, members)
        if key is not None:
            pairs.add(frozenset(key.person_ids()))
    return ids, pairs


def build_family_graph(
    dataset: FamilyDataset, collapse_set: Iterable[str | CoupleKey] = ()
) -> FamilyGraph:
    """
    Convert a family dataset into couple/person nodes and parent -> child edges.

    Spouses are merged into a single couple node on a first-seen basis while walking
    the members in order. Descendants of collapsed nodes are left out entirely.

    Args:
        dataset: The family dataset to render
        collapse_set: Node ids (person ids, couple ids or CoupleKey records) whose
            descendants should be hidden

    Returns:
        A FamilyGraph with connector flags and collapsed flags filled in
    """
    collapse_set = list(collapse_set)
    members = dataset.members
    member_map: dict[str, Person] = {p.id: p for p in members}

    hidden = calculate_hidden_people(members, resolve_collapse_roots(collapse_set, members))
    collapsed_ids, collapsed_pairs = _collapse_lookup(collapse_set, members)

    # Pass 1: nodes
    nodes: list[GraphNode] = []
    person_to_node: dict[str, GraphNode] = {}

    for person in members:
        if person.id in hidden or person.id in person_to_node:
            continue

        spouse = member_map.get(person.spouse_id) if person.spouse_id else None
        if (
            spouse is not None
            and spouse.id != person.id
            and spouse.id not in hidden
            and spouse.id not in person_to_node
        ):
            key = CoupleKey(person.id, spouse.id)
            node = GraphNode(
                id=key.node_id,
                kind=NodeKind.COUPLE,
                persons=(person, spouse),
                couple=key,
                is_collapsed=key.node_id in collapsed_ids
                or frozenset(key.person_ids()) in collapsed_pairs,
            )
            person_to_node[spouse.id] = node
        else:
            node = GraphNode(
                id=person.id,
                kind=NodeKind.PERSON,
                persons=(person,),
                is_collapsed=person.id in collapsed_ids,
            )

        person_to_node[person.id] = node
        nodes.append(node)

    # Pass 2: edges from the first listed parent
    edges: list[GraphEdge] = []
    seen: set[tuple[str, str]] = set()
    with_children: set[str] = set()
    with_parents: dict[str, set[str]] = {}

    for person in members:
        if person.id in hidden or not person.parent_ids:
            continue

        parent_node = person_to_node.get(person.parent_ids[0])
        if parent_node is None:
            logger.debug("No visible node for parent %r of %r", person.parent_ids[0], person.id)
            continue

        child_node = person_to_node[person.id]
        key = (parent_node.id, person.id)
        if key in seen:
            continue
        seen.add(key)

        if child_node.kind is NodeKind.COUPLE:
            target_handle = f"parents-{person.id}"
        else:
            target_handle = "parents"

        edges.append(
            GraphEdge(
                id=f"edge-{parent_node.id}-{person.id}",
                source=parent_node.id,
                target=child_node.id,
                child_id=person.id,
                source_handle="children",
                target_handle=target_handle,
            )
        )
        with_children.add(parent_node.id)
        with_parents.setdefault(child_node.id, set()).add(person.id)

    nodes = [
        replace(
            node,
            has_child_connection=node.id in with_children,
            has_parent_connection=node.id in with_parents,
            parent_connections=frozenset(with_parents.get(node.id, ())),
        )
        for node in nodes
    ]

    return FamilyGraph(nodes=nodes, edges=edges)


def get_connected_node_ids(graph: FamilyGraph, node_id: str, radius: int = 1) -> set[str]:
    """
    Node ids within `radius` edges of `node_id`, ignoring edge direction.

    Used to highlight the neighbourhood of a hovered node and dim everything else.
    """
    G = graph.to_networkx()
    if node_id not in G:
        return set()
    ego = nx.ego_graph(G.to_undirected(), node_id, radius=radius)
    return set(ego.nodes())
