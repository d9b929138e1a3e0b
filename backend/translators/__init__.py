"""
Deterministic Translator Layer

Converts the positioned ProcessGraph to ReactFlow format.
All rendering details are kept separate from the graph core.
"""

from .reactflow_translator import ReactFlowTranslator

__all__ = ['ReactFlowTranslator']
