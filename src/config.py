"""Layout defaults, node dimension tables and logging setup."""

import logging
from dataclasses import dataclass, replace

from models import FamilySettings, LayoutDirection, NodeKind


@dataclass(frozen=True)
class NodeDimensions:
    width: float
    height: float


@dataclass(frozen=True)
class LayoutOptions:
    """
    Options shared by both layout strategies.

    `preserve_selection` and `animate` are carried for the caller; the layout code
    never reads them.
    """

    direction: LayoutDirection = LayoutDirection.LR
    node_spacing: float = 50
    layer_spacing: float = 80
    margin_x: float = 20
    margin_y: float = 20
    preserve_selection: bool = True
    animate: bool = True

    @classmethod
    def from_settings(cls, settings: FamilySettings, **overrides) -> "LayoutOptions":
        """Build options for a dataset's stored direction, applying any overrides."""
        return replace(DEFAULT_LAYOUT_OPTIONS, **{"direction": settings.direction, **overrides})


DEFAULT_LAYOUT_OPTIONS = LayoutOptions()

# Used when a node kind is missing from a table
FALLBACK_DIMENSIONS = NodeDimensions(width=180, height=80)

# Vertical layouts (TB, BT): couple cards sit side by side
DEFAULT_NODE_DIMENSIONS: dict[NodeKind | str, NodeDimensions] = {
    "default": NodeDimensions(width=164, height=56),
    NodeKind.PERSON: NodeDimensions(width=164, height=56),
    NodeKind.COUPLE: NodeDimensions(width=312, height=56),
}

# Horizontal layouts (LR, RL): couple cards are stacked
HORIZONTAL_NODE_DIMENSIONS: dict[NodeKind | str, NodeDimensions] = {
    **DEFAULT_NODE_DIMENSIONS,
    NodeKind.COUPLE: NodeDimensions(width=164, height=112),
}

DIRECTION_LABELS: dict[LayoutDirection, str] = {
    LayoutDirection.TB: "Top to Bottom",
    LayoutDirection.BT: "Bottom to Top",
    LayoutDirection.LR: "Left to Right",
    LayoutDirection.RL: "Right to Left",
}

# Side of a node holding the (parents, children) connectors
HANDLE_POSITIONS: dict[LayoutDirection, tuple[str, str]] = {
    LayoutDirection.TB: ("top", "bottom"),
    LayoutDirection.BT: ("bottom", "top"),
    LayoutDirection.LR: ("left", "right"),
    LayoutDirection.RL: ("right", "left"),
}

# Coordinates outside this range are treated as a failed layout
MAX_COORDINATE = 10000


def get_node_dimensions_for_direction(
    direction: LayoutDirection,
) -> dict[NodeKind | str, NodeDimensions]:
    """Return the dimension table matching the layout direction."""
    if LayoutDirection(direction).is_horizontal:
        return HORIZONTAL_NODE_DIMENSIONS
    return DEFAULT_NODE_DIMENSIONS


def get_handle_positions(direction: LayoutDirection) -> dict[str, str]:
    parents, children = HANDLE_POSITIONS[LayoutDirection(direction)]
    return {"parents": parents, "children": children}


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
