"""Pytest fixtures for graph core tests."""

import pytest


@pytest.fixture
def simple_records():
    """p1 -> t1 -> p2"""
    from tests.graph_test_helpers import make_record

    return [
        make_record("p1"),
        make_record("p2"),
        make_record("t1", kind="transformation", inputs=["p1"], outputs=["p2"]),
    ]


@pytest.fixture
def pipeline_records():
    """Two transformations sharing an intermediate product."""
    from tests.graph_test_helpers import make_record

    return [
        make_record("ore", name="Ore"),
        make_record("coal", name="Coal"),
        make_record("steel", name="Steel"),
        make_record("rail", name="Rail"),
        make_record("smelt", kind="transformation", inputs=["ore", "coal"], outputs=["steel"]),
        make_record("roll", kind="transformation", inputs=["steel"], outputs=["rail"]),
    ]


@pytest.fixture
def diamond_graph():
    """A -> B, A -> C, B -> D, C -> D"""
    from tests.graph_test_helpers import make_graph

    return make_graph(("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"))


@pytest.fixture
def chain_graph():
    """A -> B -> C -> D"""
    from tests.graph_test_helpers import make_graph

    return make_graph(("A", "B"), ("B", "C"), ("C", "D"))


@pytest.fixture
def session(pipeline_records):
    """GraphSession loaded with the pipeline records."""
    from services.graph_session import GraphSession

    graph_session = GraphSession()
    graph_session.load(pipeline_records)
    return graph_session
