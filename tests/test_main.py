"""End-to-end tests for the command line entry point and plotting."""

import matplotlib.pyplot as plt
import pytest

import main
from config import LayoutOptions
from conftest import make_dataset, make_person
from database import create_database, save_json, store_dataset
from graph import build_family_graph
from models import Gender, LayoutDirection, Person
from plotting import format_date_range, person_label, plot_layout
from tree_layout import calculate_tree_layout


@pytest.fixture
def family():
    return make_dataset(
        make_person("dad", spouse="mum"),
        make_person("mum", spouse="dad", gender=Gender.FEMALE),
        make_person("kid", parents=["dad", "mum"]),
        make_person("kid2", parents=["dad", "mum"], gender=Gender.FEMALE),
    )


def test_json_input_with_tree_strategy_writes_image(tmp_path, family, capsys):
    source = tmp_path / "family.json"
    output = tmp_path / "tree.png"
    save_json(source, family)

    code = main.main([str(source), "--strategy", "tree", "--output", str(output)])

    assert code == 0
    assert output.exists() and output.stat().st_size > 0
    out = capsys.readouterr().out
    assert "Found 4 persons" in out
    assert "Graph has 3 nodes and 2 edges" in out
    assert "Top to Bottom" in out


def test_sqlite_input_and_direction_override(tmp_path, family, capsys):
    source = tmp_path / "family.db"
    conn = create_database(source)
    store_dataset(conn, family)
    conn.close()

    code = main.main(
        [str(source), "--strategy", "tree", "--direction", "LR", "--output", str(tmp_path / "lr.png")]
    )

    assert code == 0
    assert "Left to Right" in capsys.readouterr().out


def test_collapse_option_hides_children(tmp_path, family, capsys):
    source = tmp_path / "family.json"
    save_json(source, family)

    main.main(
        [str(source), "--strategy", "tree", "--collapse", "couple-dad-mum", "--output", str(tmp_path / "c.png")]
    )

    assert "Graph has 1 nodes and 0 edges" in capsys.readouterr().out


def test_layout_failure_returns_nonzero(tmp_path, capsys):
    source = tmp_path / "empty.json"
    save_json(source, make_dataset())

    code = main.main([str(source), "--output", str(tmp_path / "none.png")])

    assert code == 1
    assert "Layout failed: Layout validation failed: No nodes provided for layout" in capsys.readouterr().out


def test_date_labels():
    assert format_date_range(None, None) == ""
    assert format_date_range("1900-01-01", None) == "1900-01-01"
    assert format_date_range(None, "1950-01-01") == "? - 1950-01-01"
    assert person_label(Person(id="x", name="Ann", birth_date="1900")) == "Ann\n1900"


@pytest.mark.parametrize("direction", [LayoutDirection.TB, LayoutDirection.RL])
def test_plot_layout_draws_one_card_per_person(family, direction):
    graph = build_family_graph(family)
    result = calculate_tree_layout(graph.nodes, graph.edges, LayoutOptions(direction=direction))

    fig = plot_layout(result.nodes, graph.edges, direction, title="Family")

    ax = fig.axes[0]
    assert len(ax.patches) == 4
    assert ax.get_title() == "Family"
    plt.close(fig)
