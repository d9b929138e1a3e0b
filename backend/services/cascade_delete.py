"""
Cascade-Delete Engine

Decides which nodes disappear together with a deleted node: a descendant is
removed only when none of its parents survives. Pure computation; the caller
applies the returned DeletionSet to both the records and the rendered graph.
"""

from typing import Dict, Iterable, List, Set
from collections import defaultdict
from enum import Enum
import logging

from schemas.process_graph import ProcessGraph, GraphEdge, DeletionSet

logger = logging.getLogger(__name__)


class CascadeMode(str, Enum):
    # One pass over the descendants in discovery order
    SINGLE_PASS = "single_pass"
    # Repeat the pass until no further descendant becomes orphaned
    FIXED_POINT = "fixed_point"


def _children_by_node(edges: Iterable[GraphEdge]) -> Dict[str, List[str]]:
    children: Dict[str, List[str]] = defaultdict(list)
    for edge in edges:
        children[edge.source].append(edge.target)
    return children


def _parents_by_node(edges: Iterable[GraphEdge], node_ids: Set[str]) -> Dict[str, Set[str]]:
    parents: Dict[str, Set[str]] = defaultdict(set)
    for edge in edges:
        if edge.source in node_ids:
            parents[edge.target].add(edge.source)
    return parents


def _discover_descendants(root_id: str, node_ids: Set[str], edges: Iterable[GraphEdge]) -> List[str]:
    """
    Depth-first walk along source -> target with an explicit stack.

    Returns descendants in discovery order. A node reached again through a
    not yet visited parent is listed again, so the pass below re-evaluates it.
    """
    children = _children_by_node(edges)
    visited: Set[str] = set()
    stack = [root_id]
    discovered: List[str] = []

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)

        for child in children.get(current, []):
            if child not in visited and child in node_ids:
                discovered.append(child)
                stack.append(child)

    return discovered


def find_descendants(root_id: str, graph: ProcessGraph) -> List[str]:
    """All nodes transitively reachable from root_id, root excluded, no duplicates."""
    node_ids = set(graph.node_ids())
    if root_id not in node_ids:
        return []
    discovered = _discover_descendants(root_id, node_ids, graph.edges)
    return [node_id for node_id in dict.fromkeys(discovered) if node_id != root_id]


def compute_deletion_set(
    root_id: str,
    graph: ProcessGraph,
    mode: CascadeMode = CascadeMode.SINGLE_PASS,
) -> DeletionSet:
    """
    Compute the nodes and edges removed when root_id is deleted.

    Args:
        root_id: Node the user deletes
        graph: Current (pre-deletion) snapshot
        mode: SINGLE_PASS evaluates each descendant once in discovery order,
            against the nodes scheduled so far. FIXED_POINT repeats the pass,
            which also catches descendants evaluated before all of their
            parents were scheduled.

    Returns:
        DeletionSet; empty when root_id is not a node of the graph
    """
    node_ids = set(graph.node_ids())
    if root_id not in node_ids:
        logger.info(f"Delete requested for unknown node '{root_id}', nothing to do")
        return DeletionSet()

    descendants = _discover_descendants(root_id, node_ids, graph.edges)
    parents = _parents_by_node(graph.edges, node_ids)

    nodes_to_delete: List[str] = [root_id]
    scheduled: Set[str] = {root_id}

    while True:
        changed = False
        for descendant in descendants:
            if descendant in scheduled:
                continue
            remaining_parents = parents.get(descendant, set()) - scheduled
            if not remaining_parents:
                scheduled.add(descendant)
                nodes_to_delete.append(descendant)
                changed = True
        if mode == CascadeMode.SINGLE_PASS or not changed:
            break

    edges_to_delete = list(dict.fromkeys(
        edge.id for edge in graph.edges
        if edge.source in scheduled or edge.target in scheduled
    ))

    logger.info(
        f"Deleting '{root_id}' removes {len(nodes_to_delete)} nodes and "
        f"{len(edges_to_delete)} edges ({mode.value})"
    )
    return DeletionSet(node_ids=nodes_to_delete, edge_ids=edges_to_delete)
