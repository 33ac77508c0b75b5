"""Intermediate representation: GraphIR."""

from diagram_layout.ir.graph import EdgeData, GraphIR, NodeData, footprint

__all__ = [
    "EdgeData",
    "GraphIR",
    "NodeData",
    "footprint",
]
