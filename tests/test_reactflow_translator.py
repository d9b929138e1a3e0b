"""Tests for the React Flow translator."""

from services.graph_builder import build_graph
from services.layout_engine import apply_layout
from translators import ReactFlowTranslator


def test_translate_layouted_graph(simple_records):
    graph = apply_layout(build_graph(simple_records))

    result = ReactFlowTranslator().translate(graph)

    assert result["metadata"] == {"direction": "TB", "node_count": 3, "edge_count": 2}
    t1 = next(n for n in result["nodes"] if n["id"] == "t1")
    assert t1["type"] == "transformation"
    assert t1["draggable"] is False
    assert t1["sourcePosition"] == "bottom"
    assert t1["targetPosition"] == "top"
    assert set(t1["position"]) == {"x", "y"}
    assert t1["data"]["label"] == "T1"
    assert t1["data"]["originalData"]["Id узла"] == "t1"
    assert t1["data"]["originalData"]["Входы"] == ["p1"]


def test_edges(simple_records):
    result = ReactFlowTranslator().translate(build_graph(simple_records))

    assert result["edges"][0] == {
        "id": "p1-t1-input-0",
        "source": "p1",
        "target": "t1",
        "type": "smoothstep",
        "animated": False,
        "label": None,
        "style": {"stroke": "#b1b1b7", "strokeWidth": 2},
    }


def test_connection_sides_absent_before_layout(simple_records):
    result = ReactFlowTranslator().translate(build_graph(simple_records))

    for node in result["nodes"]:
        assert "sourcePosition" not in node
        assert "targetPosition" not in node
