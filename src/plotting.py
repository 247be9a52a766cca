"""Static rendering of a positioned family graph."""

from collections.abc import Sequence
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch

from config import get_handle_positions, get_node_dimensions_for_direction
from geometry import get_node_dimensions, get_nodes_bounding_box
from models import Gender, GraphEdge, GraphNode, LayoutDirection, NodeKind, Person

FILL_COLORS = {Gender.MALE: "lightblue", Gender.FEMALE: "lightpink"}


def format_date_range(birth_date: str | None, death_date: str | None) -> str:
    if not birth_date and not death_date:
        return ""
    if death_date:
        return f"{birth_date or '?'} - {death_date}"
    return birth_date or ""


def person_label(person: Person) -> str:
    dates = format_date_range(person.birth_date, person.death_date)
    return f"{person.name}\n{dates}" if dates else person.name


def _slots(node: GraphNode, width: float, height: float, horizontal: bool):
    """Yield (person, x, y, w, h) for each person card inside a node."""
    if node.kind is NodeKind.PERSON:
        yield node.persons[0], node.position.x, node.position.y, width, height
        return
    # Couple cards sit side by side in vertical layouts and stacked in horizontal ones
    for i, person in enumerate(node.persons):
        if horizontal:
            yield person, node.position.x, node.position.y + i * height / 2, width, height / 2
        else:
            yield person, node.position.x + i * width / 2, node.position.y, width / 2, height


def _anchor(x: float, y: float, w: float, h: float, side: str) -> tuple[float, float]:
    return {
        "top": (x + w / 2, y),
        "bottom": (x + w / 2, y + h),
        "left": (x, y + h / 2),
        "right": (x + w, y + h / 2),
    }[side]


def plot_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    direction: LayoutDirection,
    output_path: Path | None = None,
    title: str | None = None,
):
    """
    Draw positioned nodes as cards and parent -> child edges as lines.

    Couple nodes are drawn as two cards. An edge into a couple ends at the card of
    the specific child it belongs to.

    Args:
        nodes: Nodes with top-left positions from a layout
        edges: Edges produced by the graph builder
        direction: Layout direction, decides card stacking and connector sides
        output_path: Where to save the image (format from the extension). If None,
            the figure is returned without saving.
    """
    direction = LayoutDirection(direction)
    table = get_node_dimensions_for_direction(direction)
    handles = get_handle_positions(direction)
    horizontal = direction.is_horizontal

    fig, ax = plt.subplots(figsize=(20, 16))
    node_by_id = {node.id: node for node in nodes}
    cards: dict[str, tuple[float, float, float, float]] = {}

    for node in nodes:
        dims = get_node_dimensions(node.kind, table)
        for person, x, y, w, h in _slots(node, dims.width, dims.height, horizontal):
            cards[person.id] = (x, y, w, h)
            ax.add_patch(
                FancyBboxPatch(
                    (x + 2, y + 2),
                    w - 4,
                    h - 4,
                    boxstyle="round,pad=0,rounding_size=6",
                    facecolor=FILL_COLORS.get(person.gender, "lightgray"),
                    edgecolor="darkgray",
                    linewidth=2 if node.is_collapsed else 1,
                )
            )
            ax.text(x + w / 2, y + h / 2, person_label(person), ha="center", va="center", fontsize=7)

    for edge in edges:
        source = node_by_id.get(edge.source)
        target = node_by_id.get(edge.target)
        if source is None or target is None:
            continue
        source_dims = get_node_dimensions(source.kind, table)
        start = _anchor(
            source.position.x, source.position.y, source_dims.width, source_dims.height,
            handles["children"],
        )
        if edge.child_id in cards and target.kind is NodeKind.COUPLE:
            end = _anchor(*cards[edge.child_id], handles["parents"])
        else:
            target_dims = get_node_dimensions(target.kind, table)
            end = _anchor(
                target.position.x, target.position.y, target_dims.width, target_dims.height,
                handles["parents"],
            )
        ax.annotate(
            "",
            xy=end,
            xytext=start,
            arrowprops={"arrowstyle": "-|>", "color": "darkgray", "linestyle": "--"},
        )

    box = get_nodes_bounding_box(nodes, table)
    ax.set_xlim(box.min_x - 20, box.max_x + 20)
    ax.set_ylim(box.max_y + 20, box.min_y - 20)  # y grows downwards
    ax.set_aspect("equal")
    ax.axis("off")
    if title:
        ax.set_title(title)
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
    return fig
