"""Tests for the layered (Graphviz) layout and the strategy dispatcher."""

import pytest

import layout
from config import LayoutOptions
from conftest import edge, person_node, requires_dot
from graph import build_family_graph
from layout import (
    LayoutStrategy,
    calculate_layered_layout,
    calculate_layout,
    calculate_pipeline_layout,
    create_dot_graph,
    create_layout_graph,
)
from models import LayoutDirection, NodeKind, Position


def by_id(result):
    return {n.id: n for n in result.nodes}


def test_create_layout_graph_sizes_and_filters(three_generations):
    graph = build_family_graph(three_generations)
    extra = edge("uncle", "ghost")

    layout_graph = create_layout_graph(graph.nodes, graph.edges + [extra], LayoutDirection.LR)

    couple = layout_graph.nodes["couple-father-mother"]
    assert (couple.width, couple.height) == (164, 112)
    assert extra not in layout_graph.edges
    assert len(layout_graph.edges) == 4


def test_dot_graph_uses_generated_names():
    layout_graph = create_layout_graph(
        [person_node("a:b"), person_node("graph")], [edge("a:b", "graph")], LayoutDirection.TB
    )
    P, names = create_dot_graph(layout_graph, LayoutOptions(direction=LayoutDirection.BT, node_spacing=72))

    assert names == {"n0": "a:b", "n1": "graph"}
    assert P.get("rankdir") == "BT"
    assert P.get("nodesep") == "1.0000"
    assert len(P.get_edges()) == 1


def test_centres_are_converted_to_top_left(monkeypatch):
    monkeypatch.setattr(layout, "run_dot", lambda P: ({"n0": (82.0, 28.0), "n1": (82.0, 164.0)}, 192.0))

    result = calculate_layered_layout([person_node("a"), person_node("b")], [edge("a", "b")])

    assert result.success
    assert by_id(result)["a"].position == Position(20, 156)
    assert by_id(result)["b"].position == Position(20, 20)


def test_nodes_missing_from_output_keep_their_position(monkeypatch):
    monkeypatch.setattr(layout, "run_dot", lambda P: ({"n0": (82.0, 28.0)}, 56.0))

    result = calculate_layered_layout([person_node("a"), person_node("b")], [edge("a", "b")])

    assert result.success
    assert by_id(result)["b"].position == Position(0, 0)


def test_validation_failure_short_circuits():
    result = calculate_layered_layout([], [])

    assert not result.success
    assert result.error == "Layout validation failed: No nodes provided for layout"
    assert result.nodes == []


def test_duplicate_ids_return_original_nodes():
    nodes = [person_node("a"), person_node("a")]
    result = calculate_layered_layout(nodes, [edge("a", "ghost")])

    assert not result.success
    assert "Duplicate node IDs found" in result.error
    assert result.nodes == nodes
    assert result.warnings == ["1 edges reference non-existent nodes"]


def test_out_of_range_positions_fail(monkeypatch):
    monkeypatch.setattr(layout, "run_dot", lambda P: ({"n0": (50000.0, 28.0)}, 56.0))
    nodes = [person_node("a"), person_node("b")]

    result = calculate_layered_layout(nodes, [])

    assert not result.success
    assert result.error == "Layout produced invalid node positions"
    assert result.nodes == nodes
    assert result.warnings == ["2 disconnected nodes found"]


def test_graphviz_errors_become_failed_results(monkeypatch):
    def missing_dot(P):
        raise FileNotFoundError("dot not found")

    monkeypatch.setattr(layout, "run_dot", missing_dot)
    nodes = [person_node("a")]

    result = calculate_layered_layout(nodes, [])

    assert not result.success
    assert result.error == "Layout calculation failed: dot not found"
    assert result.nodes == nodes
    assert result.execution_time >= 0


def test_dispatcher_selects_tree_strategy():
    nodes = [person_node("r"), person_node("c")]
    result = calculate_layout(nodes, [edge("r", "c")], LayoutOptions(direction=LayoutDirection.TB), LayoutStrategy.TREE)

    assert result.success
    assert by_id(result)["c"].position == Position(20, 156)


def test_pipeline_layout_forces_left_to_right(monkeypatch):
    seen = []
    monkeypatch.setattr(layout, "calculate_layered_layout", lambda n, e, o: seen.append(o))

    calculate_pipeline_layout([], [], node_spacing=10)

    assert seen[0].direction is LayoutDirection.LR
    assert seen[0].node_spacing == 10
    assert seen[0].layer_spacing == 80


@requires_dot
@pytest.mark.parametrize("direction", list(LayoutDirection))
def test_layered_layout_orders_generations(three_generations, direction):
    graph = build_family_graph(three_generations)
    result = calculate_layered_layout(graph.nodes, graph.edges, LayoutOptions(direction=direction))

    assert result.success, result.error
    nodes = by_id(result)
    top = nodes["couple-grandpa-grandma"].position
    child = nodes["child1"].position

    if direction is LayoutDirection.TB:
        assert top.y < child.y
    elif direction is LayoutDirection.BT:
        assert top.y > child.y
    elif direction is LayoutDirection.LR:
        assert top.x < child.x
    else:
        assert top.x > child.x
    # margins keep every card off the canvas edge
    assert all(n.position.x >= 19 and n.position.y >= 19 for n in result.nodes)


@requires_dot
def test_layered_layout_is_deterministic(three_generations):
    graph = build_family_graph(three_generations)
    opts = LayoutOptions(direction=LayoutDirection.TB)

    first = calculate_layered_layout(graph.nodes, graph.edges, opts)
    second = calculate_layered_layout(graph.nodes, graph.edges, opts)

    assert first.nodes == second.nodes


@requires_dot
def test_layered_layout_with_cycle_warns_but_returns():
    nodes = [person_node("x"), person_node("y")]
    result = calculate_layered_layout(nodes, [edge("x", "y"), edge("y", "x")])

    assert result.success
    assert any("cycles detected" in w for w in result.warnings)


@requires_dot
def test_couple_nodes_are_wider_in_vertical_layouts(three_generations):
    graph = build_family_graph(three_generations)
    result = calculate_layered_layout(graph.nodes, graph.edges, LayoutOptions(direction=LayoutDirection.TB))
    nodes = by_id(result)

    assert nodes["couple-father-mother"].kind is NodeKind.COUPLE
    # child1 and child2 share a rank and must not overlap a 164 wide card
    assert abs(nodes["child1"].position.x - nodes["child2"].position.x) >= 164
