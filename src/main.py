"""
1) Load a family dataset (JSON, SQLite or GEDCOM).
2) Build the couple/person graph, hiding descendants of collapsed nodes.
3) Validate the graph for cycles, dangling edges and disconnected nodes.
4) Lay it out with the layered or the tree strategy.
5) Plot the positioned graph.
"""

import argparse
import sys
from pathlib import Path

from config import DIRECTION_LABELS, LayoutOptions, configure_logging
from database import create_database, load_dataset, load_json
from graph import build_family_graph
from layout import LayoutStrategy, calculate_layout
from models import FamilyDataset, LayoutDirection
from parsing import import_gedcom
from plotting import plot_layout
from validation import validate_graph_structure

SUFFIX_FORMATS = {".json": "json", ".db": "sqlite", ".sqlite": "sqlite", ".ged": "gedcom"}


def load_input(path: Path, fmt: str | None) -> FamilyDataset:
    fmt = fmt or SUFFIX_FORMATS.get(path.suffix.lower(), "json")
    if fmt == "gedcom":
        return import_gedcom(path)
    if fmt == "sqlite":
        conn = create_database(path)
        try:
            return load_dataset(conn)
        finally:
            conn.close()
    return load_json(path)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="famgraph", description="Lay out and plot a family tree graph.")
    parser.add_argument("input", type=Path, help="Dataset file (.json, .db/.sqlite or .ged)")
    parser.add_argument("--format", choices=["json", "sqlite", "gedcom"], help="Override input format")
    parser.add_argument(
        "--direction",
        choices=[d.value for d in LayoutDirection],
        help="Layout direction (defaults to the dataset setting)",
    )
    parser.add_argument(
        "--strategy", choices=[s.value for s in LayoutStrategy], default=LayoutStrategy.LAYERED.value
    )
    parser.add_argument(
        "--collapse", action="append", default=[], metavar="NODE_ID", help="Collapse a node (repeatable)"
    )
    parser.add_argument("--node-spacing", type=float)
    parser.add_argument("--layer-spacing", type=float)
    parser.add_argument("--output", type=Path, default=Path("family_tree.png"))
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    print(f"Loading dataset: {args.input}")
    dataset = load_input(args.input, args.format)
    print(f"  Found {len(dataset.members)} persons")

    overrides = {}
    if args.direction:
        overrides["direction"] = LayoutDirection(args.direction)
    if args.node_spacing is not None:
        overrides["node_spacing"] = args.node_spacing
    if args.layer_spacing is not None:
        overrides["layer_spacing"] = args.layer_spacing
    options = LayoutOptions.from_settings(dataset.settings, **overrides)

    print("Building graph...")
    graph = build_family_graph(dataset, args.collapse)
    print(f"  Graph has {len(graph.nodes)} nodes and {len(graph.edges)} edges")

    print("Validating graph...")
    validation = validate_graph_structure(graph.nodes, graph.edges)
    for message in validation.errors:
        print(f"  Error: {message}")
    if validation.warnings:
        print(f"  Found {len(validation.warnings)} validation warnings:")
        for w in validation.warnings[:10]:
            print(f"    - {w}")
        if len(validation.warnings) > 10:
            print(f"    ... and {len(validation.warnings) - 10} more")
    elif validation.is_valid:
        print("  No validation issues found")

    print(f"Calculating {args.strategy} layout ({DIRECTION_LABELS[options.direction]})...")
    result = calculate_layout(graph.nodes, graph.edges, options, LayoutStrategy(args.strategy))
    if not result.success:
        print(f"  Layout failed: {result.error}")
        return 1
    print(f"  Done in {result.execution_time:.1f} ms")

    print(f"Plotting graph to: {args.output}")
    plot_layout(result.nodes, graph.edges, options.direction, args.output)

    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
