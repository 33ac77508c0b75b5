"""Layout engine and the layered pipeline phases."""

from __future__ import annotations

from diagram_layout.layout.engine import LayoutEngine, layout, layout_async
from diagram_layout.layout.sugiyama import (
    AugmentedGraph,
    DummyEdge,
    LayerAssignment,
    SugiyamaLayout,
    anchor_point,
    assign_coordinates,
    bounded_passes,
    count_crossings,
    greedy_fas_ordering,
    initial_ordering,
    insert_dummy_nodes,
    minimise_crossings,
    remove_cycles,
    route_edges,
)
from diagram_layout.layout.types import LayeredLayout, LayoutNode

__all__ = [
    "AugmentedGraph",
    "DummyEdge",
    "LayerAssignment",
    "LayeredLayout",
    "LayoutEngine",
    "LayoutNode",
    "SugiyamaLayout",
    "anchor_point",
    "assign_coordinates",
    "bounded_passes",
    "count_crossings",
    "greedy_fas_ordering",
    "initial_ordering",
    "insert_dummy_nodes",
    "layout",
    "layout_async",
    "minimise_crossings",
    "remove_cycles",
    "route_edges",
]
