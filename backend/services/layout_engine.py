"""
Layout Engine

Hierarchical (Sugiyama-style) layout for process graphs:
  1. Cycle removal (greedy feedback-arc-set ordering)
  2. Layer assignment (longest path)
  3. Dummy vertices for arcs spanning several layers
  4. Crossing minimisation (barycenter sweeps)
  5. Coordinate assignment (centre point per vertex)

The layered algorithm is only reached through `layout_centers`, so any other
layered implementation can replace it without touching `apply_layout`.
Every step iterates over ordered sequences: identical input, identical output.
"""

from typing import Dict, Hashable, List, Sequence, Set, Tuple
import copy
import logging

import networkx as nx

from schemas.process_graph import (
    ProcessGraph, GraphNode, Position, LayoutDirection, HandlePosition
)

logger = logging.getLogger(__name__)

NODE_WIDTH = 200
NODE_HEIGHT = 80
RANK_SEPARATION = 100   # distance between layers
NODE_SEPARATION = 50    # distance between nodes of one layer
MAX_SWEEPS = 24

# Dummy vertices are tuples so they never collide with string node ids
DUMMY_TAG = "dummy"

Arc = Tuple[str, str]


def apply_layout(graph: ProcessGraph, direction: LayoutDirection = LayoutDirection.TB) -> ProcessGraph:
    """
    Position every node of the graph. Edges are returned unchanged.

    Nodes get a top-left anchor (centre minus half the box) and the
    connection sides matching the orientation.
    """
    direction = LayoutDirection(direction)
    is_horizontal = direction == LayoutDirection.LR

    centers = layout_centers(
        [node.id for node in graph.nodes],
        [(edge.source, edge.target) for edge in graph.edges],
        direction,
    )

    layouted_nodes: List[GraphNode] = []
    for node in graph.nodes:
        center_x, center_y = centers[node.id]
        layouted_nodes.append(node.model_copy(update={
            "position": Position(x=center_x - NODE_WIDTH / 2, y=center_y - NODE_HEIGHT / 2),
            "target_position": HandlePosition.LEFT if is_horizontal else HandlePosition.TOP,
            "source_position": HandlePosition.RIGHT if is_horizontal else HandlePosition.BOTTOM,
        }))

    logger.info(f"Layout applied ({direction.value}): {len(layouted_nodes)} nodes")
    return ProcessGraph(nodes=layouted_nodes, edges=list(graph.edges), direction=direction)


def layout_centers(
    vertices: Sequence[str],
    arcs: Sequence[Arc],
    direction: LayoutDirection = LayoutDirection.TB,
    width: float = NODE_WIDTH,
    height: float = NODE_HEIGHT,
    rank_separation: float = RANK_SEPARATION,
    node_separation: float = NODE_SEPARATION,
) -> Dict[str, Tuple[float, float]]:
    """
    Compute a centre point for each vertex.

    Args:
        vertices: Vertex ids, every vertex gets a fixed width x height box
        arcs: Directed (source, target) pairs; duplicates allowed
        direction: TB ranks top to bottom, LR ranks left to right

    Returns:
        Dict mapping vertex id -> (x, y) centre
    """
    graph = nx.MultiDiGraph()
    graph.add_nodes_from(vertices)
    # Arcs pointing outside the vertex set are ignored
    graph.add_edges_from((s, t) for s, t in arcs if s in graph and t in graph)

    if graph.number_of_nodes() == 0:
        return {}

    dag = remove_cycles(graph)
    layers = assign_layers(dag)
    augmented, layers = insert_dummy_vertices(dag, layers)
    ordering = minimise_crossings(augmented, layers)
    return assign_coordinates(
        ordering, LayoutDirection(direction), width, height, rank_separation, node_separation
    )


# ─── Cycle Removal ────────────────────────────────────────────────────────────


def _simple_digraph(graph: nx.MultiDiGraph) -> nx.DiGraph:
    """Collapse parallel arcs and drop self loops."""
    simple = nx.DiGraph()
    simple.add_nodes_from(graph.nodes)
    simple.add_edges_from((s, t) for s, t in graph.edges() if s != t)
    return simple


def greedy_fas_ordering(graph: nx.DiGraph) -> List[str]:
    """
    Vertex ordering with few backward arcs (Eades, Lin, Smyth).

    Sinks are peeled to the back, sources to the front; inside a cycle the
    vertex with the largest out - in surplus goes to the front. Ties resolve
    to the earliest vertex in insertion order.
    """
    order = list(graph.nodes)
    remaining: Set[str] = set(order)
    out_deg = {n: graph.out_degree(n) for n in order}
    in_deg = {n: graph.in_degree(n) for n in order}

    head: List[str] = []
    tail: List[str] = []

    def take(vertex: str) -> None:
        remaining.discard(vertex)
        for succ in graph.successors(vertex):
            if succ in remaining:
                in_deg[succ] -= 1
        for pred in graph.predecessors(vertex):
            if pred in remaining:
                out_deg[pred] -= 1

    while remaining:
        sinks = [n for n in order if n in remaining and out_deg[n] == 0]
        while sinks:
            for sink in sinks:
                take(sink)
                tail.append(sink)
            sinks = [n for n in order if n in remaining and out_deg[n] == 0]

        sources = [n for n in order if n in remaining and in_deg[n] == 0]
        while sources:
            for source in sources:
                take(source)
                head.append(source)
            sources = [n for n in order if n in remaining and in_deg[n] == 0]

        if remaining:
            best = max(
                (n for n in order if n in remaining),
                key=lambda n: out_deg[n] - in_deg[n],
            )
            take(best)
            head.append(best)

    tail.reverse()
    return head + tail


def remove_cycles(graph: nx.MultiDiGraph) -> nx.DiGraph:
    """Return an acyclic copy: backward arcs reversed, self loops dropped."""
    simple = _simple_digraph(graph)
    position = {vertex: index for index, vertex in enumerate(greedy_fas_ordering(simple))}

    dag = nx.DiGraph()
    dag.add_nodes_from(simple.nodes)
    for source, target in simple.edges():
        if position[source] > position[target]:
            dag.add_edge(target, source)
        else:
            dag.add_edge(source, target)
    return dag


# ─── Layer Assignment ─────────────────────────────────────────────────────────


def assign_layers(dag: nx.DiGraph) -> Dict[str, int]:
    """Longest-path layering: every arc goes down at least one layer."""
    layers: Dict[str, int] = {}
    for vertex in nx.topological_sort(dag):
        preds = list(dag.predecessors(vertex))
        layers[vertex] = max((layers[p] + 1 for p in preds), default=0)
    return {vertex: layers[vertex] for vertex in dag.nodes}


# ─── Dummy Vertices ───────────────────────────────────────────────────────────


def insert_dummy_vertices(dag: nx.DiGraph, layers: Dict[str, int]) -> Tuple[nx.DiGraph, Dict[Hashable, int]]:
    """Split arcs spanning more than one layer into chains of dummy vertices."""
    augmented = nx.DiGraph()
    augmented.add_nodes_from(dag.nodes)
    layers = copy.copy(layers)

    counter = 0
    for source, target in list(dag.edges()):
        span = layers[target] - layers[source]
        if span <= 1:
            augmented.add_edge(source, target)
            continue

        previous = source
        for step in range(span - 1):
            dummy = (DUMMY_TAG, counter, step)
            augmented.add_node(dummy)
            layers[dummy] = layers[source] + step + 1
            augmented.add_edge(previous, dummy)
            previous = dummy
        augmented.add_edge(previous, target)
        counter += 1

    return augmented, layers


def is_dummy(vertex: Hashable) -> bool:
    return isinstance(vertex, tuple) and len(vertex) == 3 and vertex[0] == DUMMY_TAG


# ─── Crossing Minimisation ────────────────────────────────────────────────────


def minimise_crossings(graph: nx.DiGraph, layers: Dict[str, int]) -> List[List[str]]:
    """
    Order the vertices of each layer with alternating barycenter sweeps.

    The initial order is insertion order; the best ordering seen is kept.
    """
    layer_count = max(layers.values()) + 1 if layers else 0
    ordering: List[List[str]] = [[] for _ in range(layer_count)]
    for vertex in graph.nodes:
        ordering[layers[vertex]].append(vertex)

    best = copy.deepcopy(ordering)
    best_crossings = count_crossings(ordering, graph)

    for _ in range(MAX_SWEEPS):
        if best_crossings == 0:
            break

        for index in range(1, layer_count):
            _sort_by_barycenter(ordering, index, index - 1, graph, incoming=True)
        for index in range(layer_count - 2, -1, -1):
            _sort_by_barycenter(ordering, index, index + 1, graph, incoming=False)

        crossings = count_crossings(ordering, graph)
        if crossings >= best_crossings:
            break
        best = copy.deepcopy(ordering)
        best_crossings = crossings

    return best


def _sort_by_barycenter(
    ordering: List[List[str]], index: int, fixed_index: int, graph: nx.DiGraph, incoming: bool
) -> None:
    fixed = {vertex: float(i) for i, vertex in enumerate(ordering[fixed_index])}
    current = {vertex: float(i) for i, vertex in enumerate(ordering[index])}

    def barycenter(vertex: str) -> float:
        neighbours = graph.predecessors(vertex) if incoming else graph.successors(vertex)
        positions = [fixed[n] for n in neighbours if n in fixed]
        if not positions:
            # Vertices without neighbours in the fixed layer keep their slot
            return current[vertex]
        return sum(positions) / len(positions)

    ordering[index].sort(key=barycenter)


def count_crossings(ordering: List[List[str]], graph: nx.DiGraph) -> int:
    """Count arc crossings between consecutive layers."""
    total = 0
    for index in range(len(ordering) - 1):
        target_pos = {vertex: i for i, vertex in enumerate(ordering[index + 1])}
        arcs: List[Tuple[int, int]] = []
        for source_pos, vertex in enumerate(ordering[index]):
            for succ in graph.successors(vertex):
                if succ in target_pos:
                    arcs.append((source_pos, target_pos[succ]))
        for i in range(len(arcs)):
            for j in range(i + 1, len(arcs)):
                (a0, a1), (b0, b1) = arcs[i], arcs[j]
                if (a0 - b0) * (a1 - b1) < 0:
                    total += 1
    return total


# ─── Coordinate Assignment ────────────────────────────────────────────────────


def assign_coordinates(
    ordering: List[List[str]],
    direction: LayoutDirection,
    width: float,
    height: float,
    rank_separation: float,
    node_separation: float,
) -> Dict[str, Tuple[float, float]]:
    """
    Centre points for real vertices. Layers are centred against the widest one;
    dummy vertices take no room beyond the separation gap.
    """
    is_horizontal = direction == LayoutDirection.LR
    rank_extent = width if is_horizontal else height
    inner_extent = height if is_horizontal else width

    def extents(layer: List[str]) -> List[float]:
        return [0.0 if is_dummy(v) else inner_extent for v in layer]

    def span(layer: List[str]) -> float:
        if not layer:
            return 0.0
        return sum(extents(layer)) + node_separation * (len(layer) - 1)

    widest = max((span(layer) for layer in ordering), default=0.0)

    centers: Dict[str, Tuple[float, float]] = {}
    for rank, layer in enumerate(ordering):
        rank_center = rank * (rank_extent + rank_separation) + rank_extent / 2
        cursor = (widest - span(layer)) / 2
        for vertex, extent in zip(layer, extents(layer)):
            inner_center = cursor + extent / 2
            cursor += extent + node_separation
            if is_dummy(vertex):
                continue
            if is_horizontal:
                centers[vertex] = (rank_center, inner_center)
            else:
                centers[vertex] = (inner_center, rank_center)

    return centers
