"""Geometry helpers for positioned nodes."""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from config import DEFAULT_NODE_DIMENSIONS, FALLBACK_DIMENSIONS, MAX_COORDINATE, NodeDimensions
from models import GraphNode, NodeKind, Position

# Nodes whose y differs by less than this are treated as one row
SAME_ROW_THRESHOLD = 10


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def get_node_dimensions(
    kind: NodeKind | str | None,
    table: Mapping[NodeKind | str, NodeDimensions] = DEFAULT_NODE_DIMENSIONS,
) -> NodeDimensions:
    """Look up a node kind in a dimension table, falling back to the table default."""
    if kind is not None and kind in table:
        return table[kind]
    return table.get("default", FALLBACK_DIMENSIONS)


def get_nodes_bounding_box(
    nodes: Sequence[GraphNode],
    table: Mapping[NodeKind | str, NodeDimensions] = DEFAULT_NODE_DIMENSIONS,
) -> BoundingBox:
    if not nodes:
        return BoundingBox(0, 0, 0, 0)

    min_x = min_y = math.inf
    max_x = max_y = -math.inf

    for node in nodes:
        dims = get_node_dimensions(node.kind, table)
        min_x = min(min_x, node.position.x)
        min_y = min(min_y, node.position.y)
        max_x = max(max_x, node.position.x + dims.width)
        max_y = max(max_y, node.position.y + dims.height)

    return BoundingBox(min_x, min_y, max_x, max_y)


def center_nodes_in_area(
    nodes: Sequence[GraphNode],
    area_width: float,
    area_height: float,
    offset_x: float = 0,
    offset_y: float = 0,
    table: Mapping[NodeKind | str, NodeDimensions] = DEFAULT_NODE_DIMENSIONS,
) -> list[GraphNode]:
    """Translate all nodes by the same delta so their bounding box is centred in the area."""
    box = get_nodes_bounding_box(nodes, table)

    delta_x = (area_width - box.width) / 2 + offset_x - box.min_x
    delta_y = (area_height - box.height) / 2 + offset_y - box.min_y

    return [
        replace(node, position=Position(node.position.x + delta_x, node.position.y + delta_y))
        for node in nodes
    ]


def apply_minimum_spacing(
    nodes: Sequence[GraphNode],
    min_spacing_x: float = 20,
    min_spacing_y: float = 20,
    table: Mapping[NodeKind | str, NodeDimensions] = DEFAULT_NODE_DIMENSIONS,
) -> list[GraphNode]:
    """
    Push nodes right when they overlap their predecessor in the same row.

    Nodes are sorted row-major first. This is a heuristic: only neighbours in the
    sorted order are compared, so rows of different heights can still overlap
    vertically. The result is returned in sorted order.
    """

    def row_major(node: GraphNode) -> tuple[float, float]:
        return (node.position.y, node.position.x)

    ordered = sorted(nodes, key=row_major)
    # Merge y values that are within the row threshold into one row
    rows: list[list[GraphNode]] = []
    for node in ordered:
        if rows and abs(node.position.y - rows[-1][0].position.y) < SAME_ROW_THRESHOLD:
            rows[-1].append(node)
        else:
            rows.append([node])
    adjusted = [node for row in rows for node in sorted(row, key=lambda n: n.position.x)]

    for i in range(1, len(adjusted)):
        current = adjusted[i]
        previous = adjusted[i - 1]
        current_dims = get_node_dimensions(current.kind, table)
        previous_dims = get_node_dimensions(previous.kind, table)

        horizontal_overlap = (
            previous.position.x + previous_dims.width + min_spacing_x > current.position.x
        )
        vertical_overlap = abs(current.position.y - previous.position.y) < (
            max(current_dims.height, previous_dims.height) + min_spacing_y
        )

        if horizontal_overlap and vertical_overlap:
            adjusted[i] = replace(
                current,
                position=Position(
                    previous.position.x + previous_dims.width + min_spacing_x,
                    current.position.y,
                ),
            )

    return adjusted


def validate_node_positions(nodes: Sequence[GraphNode]) -> bool:
    """True when every coordinate is finite and within the allowed range."""
    return all(
        math.isfinite(node.position.x)
        and math.isfinite(node.position.y)
        and -MAX_COORDINATE <= node.position.x <= MAX_COORDINATE
        and -MAX_COORDINATE <= node.position.y <= MAX_COORDINATE
        for node in nodes
    )
