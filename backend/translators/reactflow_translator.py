"""
React Flow Translator

Converts a positioned ProcessGraph to React Flow JSON format.
Purely presentational; no graph logic lives here.
"""

from typing import Dict, Any
from schemas.process_graph import ProcessGraph, GraphNode, GraphEdge

class ReactFlowTranslator:
    """
    Deterministic translator from ProcessGraph to React Flow format.
    """

    def translate(self, graph: ProcessGraph) -> Dict[str, Any]:
        """
        Convert ProcessGraph to React Flow format.

        Args:
            graph: Positioned process graph

        Returns:
            Dict containing nodes and edges in React Flow format
        """
        react_nodes = [self._convert_node(node) for node in graph.nodes]
        react_edges = [self._convert_edge(edge) for edge in graph.edges]

        return {
            "nodes": react_nodes,
            "edges": react_edges,
            "metadata": {
                "direction": graph.direction.value,
                "node_count": len(react_nodes),
                "edge_count": len(react_edges)
            }
        }

    def _convert_node(self, node: GraphNode) -> Dict[str, Any]:
        """Convert GraphNode to React Flow node format"""
        react_node = {
            "id": node.id,
            "type": node.kind.value,
            "position": {"x": node.position.x, "y": node.position.y},
            "data": {
                "label": node.data.label,
                "description": node.data.description,
                "originalData": node.data.original_data.to_wire()
            },
            "draggable": node.draggable
        }

        # Connection sides are only known once the layout ran
        if node.source_position is not None:
            react_node["sourcePosition"] = node.source_position.value
        if node.target_position is not None:
            react_node["targetPosition"] = node.target_position.value

        return react_node

    def _convert_edge(self, edge: GraphEdge) -> Dict[str, Any]:
        """Convert GraphEdge to React Flow edge format"""
        return {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "type": edge.type,
            "animated": edge.animated,
            "label": edge.label,
            "style": {
                "stroke": edge.style.stroke,
                "strokeWidth": edge.style.stroke_width
            }
        }
