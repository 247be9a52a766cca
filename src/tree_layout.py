"""
Tidy tree layout for rooted family trees.

Each node is laid out as a family unit: the node itself followed by its spousal
"next-after" nodes, with every child of the unit hanging below it. Parents are
centred over their children, and subtrees are packed side by side by their full
extent. Only vertical (TB) and horizontal (LR) trees are computed directly; BT and
RL are mirrored from them.
"""

import logging
import time
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace

from config import DEFAULT_LAYOUT_OPTIONS, LayoutOptions, get_node_dimensions_for_direction
from geometry import get_node_dimensions
from models import EdgeType, GraphEdge, GraphNode, LayoutDirection, LayoutResult, Position

logger = logging.getLogger(__name__)


@dataclass
class TreeInputNode:
    id: str
    width: float
    height: float
    children: list[str] = field(default_factory=list)
    spouses: list[str] = field(default_factory=list)


@dataclass
class _Placement:
    """Breadth/depth coordinates of a subtree, before axes are mapped to x/y."""

    positions: dict[str, tuple[float, float]]
    extent: float
    center: float


@dataclass
class _Frame:
    """One family unit on the placement stack, measured from its own subtree origin."""

    node_id: str
    depth: float
    unit: list[str]
    unit_breadth: float
    child_depth: float
    kids: Iterator[str]
    cursor: float = 0.0
    previous_leaf: bool | None = None
    children: list[str] = field(default_factory=list)
    centers: list[float] = field(default_factory=list)
    unit_start: float = 0.0


def build_flat_tree(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge], direction: LayoutDirection
) -> dict[str, TreeInputNode]:
    """Adjacency keyed by node id: children from parent edges, spouses from spousal edges."""
    table = get_node_dimensions_for_direction(direction)
    flat: dict[str, TreeInputNode] = {}
    for node in nodes:
        dims = get_node_dimensions(node.kind, table)
        flat[node.id] = TreeInputNode(node.id, dims.width, dims.height)

    for edge in edges:
        if edge.source not in flat or edge.target not in flat:
            continue
        if edge.edge_type is EdgeType.SPOUSE:
            flat[edge.source].spouses.append(edge.target)
        else:
            flat[edge.source].children.append(edge.target)

    return flat


def find_root_candidates(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> list[str]:
    """Nodes without a parent edge that are not placed next to a partner."""
    with_parents = {e.target for e in edges if e.edge_type is not EdgeType.SPOUSE}
    spouse_targets = {e.target for e in edges if e.edge_type is EdgeType.SPOUSE}
    return [n.id for n in nodes if n.id not in with_parents and n.id not in spouse_targets]


class _TreeBuilder:
    def __init__(self, flat: dict[str, TreeInputNode], options: LayoutOptions, horizontal: bool):
        self.flat = flat
        self.horizontal = horizontal
        self.sibling_gap = options.node_spacing
        self.subtree_gap = options.node_spacing * 1.5
        self.spouse_gap = options.node_spacing / 2
        self.layer_gap = options.layer_spacing
        self.visited: set[str] = set()

    def breadth(self, node_id: str) -> float:
        node = self.flat[node_id]
        return node.height if self.horizontal else node.width

    def depth_size(self, node_id: str) -> float:
        node = self.flat[node_id]
        return node.width if self.horizontal else node.height

    def _enter(self, node_id: str, depth: float) -> _Frame:
        unit = [node_id] + [s for s in self.flat[node_id].spouses if s not in self.visited]
        unit = list(dict.fromkeys(unit))
        self.visited.update(unit)

        unit_breadth = sum(self.breadth(m) for m in unit) + self.spouse_gap * (len(unit) - 1)
        child_depth = depth + max(self.depth_size(m) for m in unit) + self.layer_gap
        kids = list(dict.fromkeys(c for m in unit for c in self.flat[m].children))
        return _Frame(node_id, depth, unit, unit_breadth, child_depth, iter(kids))

    def layout(self, node_id: str, offset: float, depth: float) -> _Placement:
        """
        Place the subtree rooted at `node_id` with its left (top) edge at `offset`.

        Subtrees are measured post-order on an explicit stack, each relative to its own
        origin, so deep lineages do not hit the recursion limit. A second pass turns
        the relative origins into absolute breadth offsets.
        """
        # subtree root -> offset of its origin inside the parent subtree
        origins: dict[str, float] = {}
        parent_of: dict[str, str] = {}
        frames: list[_Frame] = []

        root = self._enter(node_id, depth)
        frames.append(root)
        stack = [root]
        extent = center = 0.0

        while stack:
            frame = stack[-1]
            for child_id in frame.kids:
                if child_id in self.visited:
                    continue
                is_leaf = not self.flat[child_id].children
                if frame.previous_leaf is not None:
                    both_leaves = frame.previous_leaf and is_leaf
                    frame.cursor += self.sibling_gap if both_leaves else self.subtree_gap
                frame.previous_leaf = is_leaf

                child = self._enter(child_id, frame.child_depth)
                origins[child_id] = frame.cursor
                parent_of[child_id] = frame.node_id
                frame.children.append(child_id)
                frames.append(child)
                stack.append(child)
                break
            else:
                stack.pop()
                extent, center = self._finish(frame, origins)
                if stack:
                    parent = stack[-1]
                    parent.centers.append(parent.cursor + center)
                    parent.cursor += extent

        absolute: dict[str, float] = {node_id: offset}
        positions: dict[str, tuple[float, float]] = {}
        for frame in frames:
            if frame.node_id != node_id:
                absolute[frame.node_id] = absolute[parent_of[frame.node_id]] + origins[frame.node_id]
            b = absolute[frame.node_id] + frame.unit_start
            for member in frame.unit:
                positions[member] = (b, frame.depth)
                b += self.breadth(member) + self.spouse_gap

        return _Placement(positions, extent, offset + center)

    def _finish(self, frame: _Frame, origins: dict[str, float]) -> tuple[float, float]:
        """Centre a unit over its children; returns the subtree extent and unit centre."""
        children_end = frame.cursor
        unit_start = 0.0
        if frame.centers:
            unit_start = (frame.centers[0] + frame.centers[-1]) / 2 - frame.unit_breadth / 2
            if unit_start < 0:
                # Parents are wider than their children: push the children right
                shift = -unit_start
                for child_id in frame.children:
                    origins[child_id] += shift
                children_end += shift
                unit_start = 0.0

        frame.unit_start = unit_start
        extent = max(unit_start + frame.unit_breadth, children_end)
        return extent, unit_start + frame.unit_breadth / 2


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def calculate_tree_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    options: LayoutOptions = DEFAULT_LAYOUT_OPTIONS,
) -> LayoutResult:
    """
    Lay out a family tree rooted at the first root candidate.

    Further root candidates (a forest) and nodes unreachable from any root (cycles)
    become additional trees to the right of (or below, for horizontal layouts) the
    first one, in input order.
    """
    start = time.perf_counter()
    nodes = list(nodes)

    try:
        if not nodes:
            return LayoutResult(nodes=[], success=True, execution_time=_elapsed_ms(start))

        roots = find_root_candidates(nodes, edges)
        if not roots:
            return LayoutResult(
                nodes=nodes,
                success=False,
                error="No root node found for family tree",
                execution_time=_elapsed_ms(start),
            )

        direction = LayoutDirection(options.direction)
        horizontal = direction.is_horizontal
        flat = build_flat_tree(nodes, edges, direction)
        builder = _TreeBuilder(flat, options, horizontal)

        positions: dict[str, tuple[float, float]] = {}
        offset = 0.0
        for root_id in roots + [n.id for n in nodes]:
            if root_id in builder.visited:
                continue
            if positions:
                offset += builder.subtree_gap
            placement = builder.layout(root_id, offset, 0.0)
            positions.update(placement.positions)
            offset += placement.extent

        # Map breadth/depth onto x/y for the unmirrored orientation
        coords: dict[str, tuple[float, float]] = {}
        for node_id, (b, d) in positions.items():
            if horizontal:
                coords[node_id] = (options.margin_x + d, options.margin_y + b)
            else:
                coords[node_id] = (options.margin_x + b, options.margin_y + d)

        if direction is LayoutDirection.BT:
            max_bottom = max(y + flat[n].height for n, (_, y) in coords.items())
            coords = {n: (x, max_bottom - y) for n, (x, y) in coords.items()}
        elif direction is LayoutDirection.RL:
            max_right = max(x + flat[n].width for n, (x, _) in coords.items())
            coords = {n: (max_right - x, y) for n, (x, y) in coords.items()}

        positioned: list[GraphNode] = []
        for node in nodes:
            x, y = coords[node.id]
            positioned.append(replace(node, position=Position(x, y)))

        return LayoutResult(nodes=positioned, success=True, execution_time=_elapsed_ms(start))

    except Exception as e:
        logger.warning("Tree layout failed: %s", e)
        return LayoutResult(
            nodes=nodes,
            success=False,
            error=f"Tree layout failed: {e}",
            execution_time=_elapsed_ms(start),
        )
