"""
Graph Session

State container owned by the composition root. Holds the record list (source
of truth) and the positioned graph derived from it; every record mutation goes
through here so both stay consistent.
"""

from typing import Any, Dict, List, Optional, Sequence
import logging

from schemas.process_graph import (
    Record, ProcessGraph, LayoutDirection, DeletionSet, NodeInspection
)
from services.graph_builder import build_graph
from services.layout_engine import apply_layout
from services.cascade_delete import CascadeMode, compute_deletion_set
from services.dependency_resolver import compute_ancestors

logger = logging.getLogger(__name__)


class GraphSessionError(Exception):
    """Raised when a record mutation cannot be applied"""
    pass


class RecordNotFoundError(GraphSessionError):
    pass


class DuplicateRecordError(GraphSessionError):
    pass


class GraphSession:
    """
    Single owner of the current snapshot.
    The core functions stay pure; this class applies their results.
    """

    def __init__(
        self,
        direction: LayoutDirection = LayoutDirection.TB,
        cascade_mode: CascadeMode = CascadeMode.SINGLE_PASS,
    ):
        self.direction = LayoutDirection(direction)
        self.cascade_mode = CascadeMode(cascade_mode)
        self.records: List[Record] = []
        self.graph = ProcessGraph(direction=self.direction)

    # ---------- Loading & layout ----------

    def load(self, records: Sequence[Record], direction: Optional[LayoutDirection] = None) -> ProcessGraph:
        """Replace the record list and rebuild everything. Repeated ids keep the first record."""
        if direction is not None:
            self.direction = LayoutDirection(direction)

        unique: Dict[str, Record] = {}
        for record in records:
            if record.id in unique:
                logger.warning(f"Duplicate node ID '{record.id}' ignored on load")
                continue
            unique[record.id] = record

        self.records = list(unique.values())
        return self._rebuild()

    def relayout(self, direction: LayoutDirection) -> ProcessGraph:
        """Recompute positions only; the node and edge sets stay the same."""
        self.direction = LayoutDirection(direction)
        self.graph = apply_layout(self.graph, self.direction)
        return self.graph

    def _rebuild(self) -> ProcessGraph:
        built = build_graph(self.records, self.direction)
        self.graph = apply_layout(built, self.direction)
        return self.graph

    # ---------- Record mutations ----------

    def get_record(self, node_id: str) -> Optional[Record]:
        return next((r for r in self.records if r.id == node_id), None)

    def _index_of(self, node_id: str) -> int:
        for i, record in enumerate(self.records):
            if record.id == node_id:
                return i
        raise RecordNotFoundError(f"Node with ID '{node_id}' not found")

    def add_record(self, record: Record) -> ProcessGraph:
        if any(r.id == record.id for r in self.records):
            raise DuplicateRecordError(f"Node with ID '{record.id}' already exists")
        self.records.append(record)
        logger.info(f"Added node '{record.id}' ({record.kind.value})")
        return self._rebuild()

    def update_record(self, node_id: str, updates: Dict[str, Any]) -> ProcessGraph:
        """Update fields of a record by id. The kind follows an updated type text."""
        index = self._index_of(node_id)
        if "id" in updates and updates["id"] != node_id:
            raise GraphSessionError(f"Node ID '{node_id}' cannot be changed")

        merged = self.records[index].model_dump(exclude={"kind"})
        merged.update({key: value for key, value in updates.items() if key != "id"})
        self.records[index] = Record.model_validate(merged)
        logger.info(f"Updated node '{node_id}': {sorted(updates)}")
        return self._rebuild()

    def update_connections(
        self,
        node_id: str,
        inputs: Optional[List[str]] = None,
        outputs: Optional[List[str]] = None,
    ) -> ProcessGraph:
        updates: Dict[str, Any] = {}
        if inputs is not None:
            updates["inputs"] = inputs
        if outputs is not None:
            updates["outputs"] = outputs
        if not updates:
            self._index_of(node_id)
            return self.graph
        return self.update_record(node_id, updates)

    # ---------- Deletion ----------

    def preview_deletion(self, node_id: str) -> DeletionSet:
        return compute_deletion_set(node_id, self.graph, self.cascade_mode)

    def delete_node(self, node_id: str) -> DeletionSet:
        """
        Cascade-delete a node. Records and graph elements are removed together;
        surviving nodes keep their positions.
        """
        deletion = self.preview_deletion(node_id)
        if deletion.is_empty:
            return deletion

        node_ids = set(deletion.node_ids)
        edge_ids = set(deletion.edge_ids)

        self.records = [r for r in self.records if r.id not in node_ids]
        self.graph = ProcessGraph(
            nodes=[n for n in self.graph.nodes if n.id not in node_ids],
            edges=[e for e in self.graph.edges if e.id not in edge_ids],
            direction=self.graph.direction,
        )
        logger.info(f"Deleted nodes {deletion.node_ids}")
        return deletion

    # ---------- Inspection ----------

    def dependencies(self, node_id: str) -> List[str]:
        return compute_ancestors(node_id, self.graph.edges)

    def inspect(self, node_id: str) -> NodeInspection:
        node = self.graph.get_node(node_id)
        if node is None:
            raise RecordNotFoundError(f"Node with ID '{node_id}' not found")

        dependencies = self.dependencies(node_id)
        logger.info(f"Node '{node.data.label}' depends on: {dependencies}")
        return NodeInspection(
            id=node.id,
            kind=node.kind,
            label=node.data.label,
            description=node.data.description,
            dependencies=dependencies,
        )
