"""Tests for the GraphSession state container."""

import pytest

from schemas.process_graph import LayoutDirection, RecordKind, HandlePosition
from services.cascade_delete import CascadeMode
from services.graph_session import (
    DuplicateRecordError,
    GraphSession,
    GraphSessionError,
    RecordNotFoundError,
)
from tests.graph_test_helpers import make_record


def _positions(graph):
    return {n.id: (n.position.x, n.position.y) for n in graph.nodes}


class TestLoad:
    def test_load_builds_and_lays_out(self, session, pipeline_records):
        assert session.graph.node_ids() == [r.id for r in pipeline_records]
        assert len(session.graph.edges) == 5
        assert all(n.target_position == HandlePosition.TOP for n in session.graph.nodes)

    def test_load_replaces_previous_records(self, session, simple_records):
        session.load(simple_records)

        assert [r.id for r in session.records] == ["p1", "p2", "t1"]
        assert session.graph.node_ids() == ["p1", "p2", "t1"]

    def test_load_with_direction(self, simple_records):
        graph_session = GraphSession()

        graph = graph_session.load(simple_records, LayoutDirection.LR)

        assert graph_session.direction == LayoutDirection.LR
        assert graph.direction == LayoutDirection.LR
        assert all(n.source_position == HandlePosition.RIGHT for n in graph.nodes)

    def test_load_keeps_first_of_repeated_ids(self, caplog):
        graph_session = GraphSession()

        with caplog.at_level("WARNING"):
            graph_session.load([make_record("p1", name="Ore"), make_record("p1", name="Other")])

        assert graph_session.graph.node_ids() == ["p1"]
        assert [r.name for r in graph_session.records] == ["Ore"]
        assert "Duplicate node ID 'p1'" in caplog.text

    def test_empty_session(self):
        graph_session = GraphSession()

        assert graph_session.records == []
        assert graph_session.graph.nodes == []


class TestRelayout:
    def test_keeps_node_and_edge_sets(self, session):
        nodes_before = session.graph.node_ids()
        edges_before = [e.id for e in session.graph.edges]

        graph = session.relayout(LayoutDirection.LR)

        assert graph.node_ids() == nodes_before
        assert [e.id for e in graph.edges] == edges_before
        assert session.direction == LayoutDirection.LR

    def test_round_trip_direction_restores_positions(self, session):
        original = _positions(session.graph)

        session.relayout(LayoutDirection.LR)
        session.relayout(LayoutDirection.TB)

        assert _positions(session.graph) == original


class TestMutations:
    def test_add_record(self, session):
        session.add_record(make_record("slag"))

        assert session.get_record("slag") is not None
        assert "slag" in session.graph.node_ids()

    def test_add_duplicate_raises(self, session):
        with pytest.raises(DuplicateRecordError):
            session.add_record(make_record("ore"))

    def test_update_fields(self, session):
        session.update_record("ore", {"name": "Iron ore", "description": "Mined"})

        node = session.graph.get_node("ore")
        assert node.data.label == "Iron ore"
        assert node.data.description == "Mined"
        assert session.get_record("ore").name == "Iron ore"

    def test_update_type_recomputes_kind(self, session):
        session.update_record("rail", {"type_label": "Преобразование", "inputs": ["steel"]})

        assert session.get_record("rail").kind == RecordKind.TRANSFORMATION
        assert "steel-rail-input-0" in [e.id for e in session.graph.edges]

    def test_update_unknown_raises(self, session):
        with pytest.raises(RecordNotFoundError):
            session.update_record("ghost", {"name": "x"})

    def test_update_cannot_change_id(self, session):
        with pytest.raises(GraphSessionError):
            session.update_record("ore", {"id": "other"})

    def test_update_connections(self, session):
        session.update_connections("roll", outputs=["rail", "slag"])
        session.add_record(make_record("slag"))

        assert session.get_record("roll").inputs == ["steel"]
        assert "roll-slag-output-1" in [e.id for e in session.graph.edges]

    def test_update_connections_without_changes(self, session):
        graph = session.update_connections("roll")

        assert graph is session.graph

    def test_update_connections_unknown_raises(self, session):
        with pytest.raises(RecordNotFoundError):
            session.update_connections("ghost", inputs=[])


class TestDeletion:
    def test_preview_does_not_apply(self, session):
        deletion = session.preview_deletion("smelt")

        assert deletion.node_ids == ["smelt", "steel", "roll", "rail"]
        assert "smelt" in session.graph.node_ids()

    def test_delete_removes_records_and_graph_elements(self, session):
        positions_before = _positions(session.graph)

        deletion = session.delete_node("smelt")

        assert set(deletion.node_ids) == {"smelt", "steel", "roll", "rail"}
        assert [r.id for r in session.records] == ["ore", "coal"]
        assert session.graph.node_ids() == ["ore", "coal"]
        assert session.graph.edges == []
        # Survivors are not re-laid out
        assert _positions(session.graph) == {
            node_id: positions_before[node_id] for node_id in ("ore", "coal")
        }

    def test_delete_product_keeps_transformation_with_other_input(self, session):
        deletion = session.delete_node("ore")

        assert deletion.node_ids == ["ore"]
        assert "smelt" in session.graph.node_ids()
        assert [e.id for e in session.graph.edges] == [
            "coal-smelt-input-1",
            "smelt-steel-output-0",
            "steel-roll-input-0",
            "roll-rail-output-0",
        ]

    def test_delete_unknown_is_noop(self, session):
        records_before = list(session.records)

        deletion = session.delete_node("ghost")

        assert deletion.is_empty
        assert session.records == records_before

    def test_rebuild_after_delete_matches_graph(self, session):
        session.delete_node("ore")
        kept_edges = [e.id for e in session.graph.edges]

        session.load(session.records)

        assert [e.id for e in session.graph.edges] == kept_edges

    def test_cascade_mode_is_used(self):
        records = [
            make_record("a", kind="transformation", outputs=["p", "d"]),
            make_record("p"),
            make_record("q", kind="transformation", inputs=["p"], outputs=["d"]),
            make_record("d"),
        ]
        single = GraphSession()
        single.load(records)
        fixed = GraphSession(cascade_mode=CascadeMode.FIXED_POINT)
        fixed.load(records)

        assert single.preview_deletion("a").node_ids == ["a", "p", "q"]
        assert fixed.preview_deletion("a").node_ids == ["a", "p", "q", "d"]


class TestInspection:
    def test_dependencies(self, session):
        assert sorted(session.dependencies("rail")) == ["coal", "ore", "roll", "smelt", "steel"]

    def test_inspect(self, session):
        inspection = session.inspect("smelt")

        assert inspection.id == "smelt"
        assert inspection.kind == RecordKind.TRANSFORMATION
        assert inspection.label == "SMELT"
        assert sorted(inspection.dependencies) == ["coal", "ore"]

    def test_inspect_unknown_raises(self, session):
        with pytest.raises(RecordNotFoundError):
            session.inspect("ghost")
