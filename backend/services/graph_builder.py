"""
Graph Builder

Derives the renderable node/edge graph from the flat record list.
Pure function of its input: dangling references are dropped, never raised.
"""

from typing import List, Sequence
import logging

from schemas.process_graph import (
    Record, RecordKind, GraphNode, GraphEdge, NodeData, Position,
    ProcessGraph, LayoutDirection
)

logger = logging.getLogger(__name__)

# Placeholder spacing until the layout engine assigns real positions
INITIAL_ROW_SPACING = 100


def build_graph(records: Sequence[Record], direction: LayoutDirection = LayoutDirection.TB) -> ProcessGraph:
    """
    Build one node per record and the edges declared by transformation records.

    Args:
        records: Complete record list (full rebuild, no incremental path)
        direction: Direction carried on the resulting graph

    Returns:
        ProcessGraph with unpositioned nodes and edges
    """
    logger.info(f"Building graph from {len(records)} records")

    nodes = [_build_node(record, index) for index, record in enumerate(records)]
    node_ids = {node.id for node in nodes}

    edges: List[GraphEdge] = []
    for record in records:
        if record.kind != RecordKind.TRANSFORMATION:
            continue

        for index, input_id in enumerate(record.inputs):
            if input_id in node_ids and record.id in node_ids:
                edges.append(_build_edge(input_id, record.id, "input", index))
            else:
                logger.debug(f"Skipping dangling input '{input_id}' of '{record.id}'")

        for index, output_id in enumerate(record.outputs):
            if record.id in node_ids and output_id in node_ids:
                edges.append(_build_edge(record.id, output_id, "output", index))
            else:
                logger.debug(f"Skipping dangling output '{output_id}' of '{record.id}'")

    logger.info(f"Graph built: {len(nodes)} nodes, {len(edges)} edges")
    return ProcessGraph(nodes=nodes, edges=edges, direction=direction)


def _build_node(record: Record, index: int) -> GraphNode:
    return GraphNode(
        id=record.id,
        kind=record.kind,
        position=Position(x=0, y=index * INITIAL_ROW_SPACING),
        data=NodeData(
            label=record.name,
            description=record.description or "",
            original_data=record,
        ),
        draggable=False,
    )


def _build_edge(source: str, target: str, role: str, index: int) -> GraphEdge:
    # Edges carry no label and a fixed style
    return GraphEdge(
        id=f"{source}-{target}-{role}-{index}",
        source=source,
        target=target,
    )
