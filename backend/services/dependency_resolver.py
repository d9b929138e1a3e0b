"""
Dependency Resolver

Transitive ancestors of a node, for inspection only.
"""

from typing import Dict, Iterable, List, Set
from collections import defaultdict

from schemas.process_graph import GraphEdge


def compute_ancestors(node_id: str, edges: Iterable[GraphEdge]) -> List[str]:
    """
    Walk edges backwards (target -> source) from node_id.

    Returns every distinct ancestor, direct and transitive, in discovery order.
    The visited set guarantees termination on cyclic graphs; inside a cycle
    node_id is its own ancestor and is reported as such.
    """
    parents: Dict[str, List[str]] = defaultdict(list)
    for edge in edges:
        parents[edge.target].append(edge.source)

    dependencies: Dict[str, None] = {}
    visited: Set[str] = set()
    stack = [node_id]

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)

        for source in parents.get(current, []):
            dependencies.setdefault(source, None)
            stack.append(source)

    return list(dependencies)
