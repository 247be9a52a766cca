"""
Layered (Sugiyama) layout through Graphviz `dot`, and the strategy dispatcher.

Graphviz does rank assignment, per-rank ordering and coordinate assignment. We only
translate nodes in, and centre-anchored, y-up coordinates back out as top-left,
y-down positions.
"""

import json
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum

import pydot

from config import DEFAULT_LAYOUT_OPTIONS, LayoutOptions, get_node_dimensions_for_direction
from geometry import get_node_dimensions, validate_node_positions
from models import GraphEdge, GraphNode, LayoutDirection, LayoutResult, Position
from tree_layout import calculate_tree_layout
from validation import validate_graph_structure

logger = logging.getLogger(__name__)

# Graphviz sizes are in inches, coordinates in points
POINTS_PER_INCH = 72.0


class LayoutStrategy(str, Enum):
    LAYERED = "layered"
    TREE = "tree"


@dataclass(frozen=True)
class LayoutGraphNode:
    id: str
    width: float
    height: float
    original: GraphNode


@dataclass
class LayoutGraph:
    nodes: dict[str, LayoutGraphNode]
    edges: list[GraphEdge]


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def create_layout_graph(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge], direction: LayoutDirection
) -> LayoutGraph:
    """Attach per-direction sizes to nodes and drop edges whose endpoints are unknown."""
    table = get_node_dimensions_for_direction(direction)
    graph_nodes: dict[str, LayoutGraphNode] = {}

    for node in nodes:
        dims = get_node_dimensions(node.kind, table)
        graph_nodes[node.id] = LayoutGraphNode(node.id, dims.width, dims.height, node)

    graph_edges = [e for e in edges if e.source in graph_nodes and e.target in graph_nodes]
    return LayoutGraph(nodes=graph_nodes, edges=graph_edges)


def create_dot_graph(layout_graph: LayoutGraph, options: LayoutOptions) -> tuple[pydot.Dot, dict[str, str]]:
    """
    Build the pydot graph handed to `dot`.

    Node ids are replaced by short generated names so ids containing ':' or other DOT
    syntax never reach Graphviz. Returns the graph and a generated name -> id map.
    """
    P = pydot.Dot(graph_type="digraph")
    P.set("rankdir", LayoutDirection(options.direction).value)
    P.set("nodesep", f"{options.node_spacing / POINTS_PER_INCH:.4f}")
    P.set("ranksep", f"{options.layer_spacing / POINTS_PER_INCH:.4f}")

    names: dict[str, str] = {}
    for index, (node_id, node) in enumerate(layout_graph.nodes.items()):
        name = f"n{index}"
        names[node_id] = name
        P.add_node(
            pydot.Node(
                name,
                shape="box",
                fixedsize="true",
                label="",
                width=f"{node.width / POINTS_PER_INCH:.4f}",
                height=f"{node.height / POINTS_PER_INCH:.4f}",
            )
        )

    for edge in layout_graph.edges:
        P.add_edge(pydot.Edge(names[edge.source], names[edge.target]))

    return P, {name: node_id for node_id, name in names.items()}


def run_dot(P: pydot.Dot) -> tuple[dict[str, tuple[float, float]], float]:
    """
    Run `dot` and read node centres from its JSON output.

    Returns the centre of each generated node name (y-up) and the bounding box height.
    """
    output = json.loads(P.create(prog="dot", format="json"))
    bb_height = float(output["bb"].split(",")[3])

    centres: dict[str, tuple[float, float]] = {}
    for obj in output.get("objects", []):
        pos = obj.get("pos")
        if not pos:
            continue
        x, y = pos.split(",")[:2]
        centres[obj["name"]] = (float(x), float(y))

    return centres, bb_height


def apply_layout_positions(
    centres: dict[str, tuple[float, float]],
    bb_height: float,
    names: dict[str, str],
    layout_graph: LayoutGraph,
    options: LayoutOptions,
) -> list[GraphNode]:
    """Convert Graphviz centres into top-left positions offset by the margins."""
    by_id = {names[name]: centre for name, centre in centres.items() if name in names}
    positioned: list[GraphNode] = []

    for node_id, node in layout_graph.nodes.items():
        centre = by_id.get(node_id)
        if centre is None:
            # Not placed by Graphviz, keep whatever position it had
            positioned.append(node.original)
            continue
        cx, cy = centre[0], bb_height - centre[1]
        x = cx - node.width / 2 + options.margin_x
        y = cy - node.height / 2 + options.margin_y
        positioned.append(replace(node.original, position=Position(x, y)))

    return positioned


def calculate_layered_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    options: LayoutOptions = DEFAULT_LAYOUT_OPTIONS,
) -> LayoutResult:
    """
    Position nodes with Graphviz's layered algorithm.

    Never raises: validation failures, unusable coordinates and Graphviz errors all
    come back as a failed LayoutResult carrying the original nodes.
    """
    start = time.perf_counter()
    nodes = list(nodes)

    try:
        validation = validate_graph_structure(nodes, edges)
        if not validation.is_valid:
            return LayoutResult(
                nodes=nodes,
                success=False,
                warnings=validation.warnings,
                error=f"Layout validation failed: {', '.join(validation.errors)}",
                execution_time=_elapsed_ms(start),
            )

        layout_graph = create_layout_graph(nodes, edges, options.direction)
        if not layout_graph.nodes:
            return LayoutResult(
                nodes=nodes,
                success=False,
                error="No valid nodes to layout",
                execution_time=_elapsed_ms(start),
            )

        P, names = create_dot_graph(layout_graph, options)
        centres, bb_height = run_dot(P)
        positioned = apply_layout_positions(centres, bb_height, names, layout_graph, options)

        if not validate_node_positions(positioned):
            return LayoutResult(
                nodes=nodes,
                success=False,
                warnings=validation.warnings,
                error="Layout produced invalid node positions",
                execution_time=_elapsed_ms(start),
            )

        return LayoutResult(
            nodes=positioned,
            success=True,
            warnings=validation.warnings,
            execution_time=_elapsed_ms(start),
        )

    except Exception as e:
        logger.warning("Layered layout failed: %s", e)
        return LayoutResult(
            nodes=nodes,
            success=False,
            error=f"Layout calculation failed: {e}",
            execution_time=_elapsed_ms(start),
        )


def calculate_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    options: LayoutOptions = DEFAULT_LAYOUT_OPTIONS,
    strategy: LayoutStrategy = LayoutStrategy.LAYERED,
) -> LayoutResult:
    if LayoutStrategy(strategy) is LayoutStrategy.TREE:
        return calculate_tree_layout(nodes, edges, options)
    return calculate_layered_layout(nodes, edges, options)


def calculate_left_to_right_layout(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge], **overrides
) -> LayoutResult:
    """Layered layout forced to left-to-right."""
    options = replace(replace(DEFAULT_LAYOUT_OPTIONS, **overrides), direction=LayoutDirection.LR)
    return calculate_layered_layout(nodes, edges, options)


def calculate_pipeline_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    node_spacing: float | None = None,
    layer_spacing: float | None = None,
) -> LayoutResult:
    """Left-to-right layout with optional custom spacing; unset values keep the defaults."""
    overrides = {}
    if node_spacing:
        overrides["node_spacing"] = node_spacing
    if layer_spacing:
        overrides["layer_spacing"] = layer_spacing
    return calculate_left_to_right_layout(nodes, edges, **overrides)
