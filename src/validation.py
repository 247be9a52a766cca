"""Structural validation of node/edge sets before layout."""

from collections import deque
from collections.abc import Sequence

import networkx as nx

from models import GraphEdge, GraphNode, ValidationResult


def build_adjacency(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> nx.DiGraph:
    """Directed graph over the given node ids, keeping only edges between known nodes."""
    G = nx.DiGraph()
    G.add_nodes_from(node.id for node in nodes)
    for edge in edges:
        if edge.source in G and edge.target in G:
            G.add_edge(edge.source, edge.target)
    return G


def detect_cycles(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> list[list[str]]:
    """
    Find cycles with a depth-first search that tracks the current path.

    Every unvisited node is used as a traversal root. When an edge leads back to a
    node still on the path, the path segment from that node is reported as a cycle,
    closed by repeating the node: ["a", "b", "a"].

    The traversal is iterative so long ancestor chains do not hit the recursion limit.
    """
    G = build_adjacency(nodes, edges)
    visited: set[str] = set()
    cycles: list[list[str]] = []

    for root in G.nodes:
        if root in visited:
            continue

        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(G.successors(root))]

        while stack:
            for neighbor in stack[-1]:
                if neighbor in on_path:
                    start = path.index(neighbor)
                    cycles.append(path[start:] + [neighbor])
                elif neighbor not in visited:
                    visited.add(neighbor)
                    on_path.add(neighbor)
                    path.append(neighbor)
                    stack.append(iter(G.successors(neighbor)))
                    break
            else:
                stack.pop()
                on_path.discard(path.pop())

    return cycles


def find_source_nodes(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> list[GraphNode]:
    """Nodes with no incoming edges."""
    G = build_adjacency(nodes, edges)
    return [node for node in nodes if G.in_degree(node.id) == 0]


def find_sink_nodes(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> list[GraphNode]:
    """Nodes with no outgoing edges."""
    G = build_adjacency(nodes, edges)
    return [node for node in nodes if G.out_degree(node.id) == 0]


def find_disconnected_nodes(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]
) -> list[GraphNode]:
    """Nodes that no edge touches at all."""
    connected: set[str] = set()
    for edge in edges:
        connected.update((edge.source, edge.target))
    return [node for node in nodes if node.id not in connected]


def calculate_node_layers(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> dict[str, int]:
    """
    Assign each node its topological depth (Kahn's algorithm).

    Nodes that never reach in-degree zero (cycle members and whatever hangs below
    them) fall back to layer 0.
    """
    G = build_adjacency(nodes, edges)
    in_degree = dict(G.in_degree())
    layers: dict[str, int] = {}

    queue = deque(n for n, degree in in_degree.items() if degree == 0)
    for n in queue:
        layers[n] = 0

    while queue:
        current = queue.popleft()
        for neighbor in G.successors(current):
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                layers[neighbor] = layers[current] + 1
                queue.append(neighbor)

    for n in G.nodes:
        layers.setdefault(n, 0)

    return layers


def validate_graph_structure(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]
) -> ValidationResult:
    """
    Validate a node/edge set for layout.

    Fatal problems (errors):
    - No nodes at all
    - Duplicate node ids

    Non-fatal problems (warnings):
    - Edges pointing at unknown nodes
    - Self-loops
    - Cycles
    - Nodes without any edge
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not nodes:
        errors.append("No nodes provided for layout")
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

    node_ids = {node.id for node in nodes}
    if len(node_ids) != len(nodes):
        errors.append("Duplicate node IDs found")

    invalid_edges = [e for e in edges if e.source not in node_ids or e.target not in node_ids]
    if invalid_edges:
        warnings.append(f"{len(invalid_edges)} edges reference non-existent nodes")

    self_loops = [e for e in edges if e.source == e.target]
    if self_loops:
        warnings.append(f"{len(self_loops)} self-loop edges found")

    cycles = detect_cycles(nodes, edges)
    if cycles:
        described = ", ".join(" -> ".join(cycle) for cycle in cycles)
        warnings.append(f"{len(cycles)} cycles detected in graph: {described}")

    disconnected = find_disconnected_nodes(nodes, edges)
    if disconnected:
        warnings.append(f"{len(disconnected)} disconnected nodes found")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
