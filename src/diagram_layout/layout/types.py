"""Layout types shared across the layered pipeline and the engine."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LayoutNode:
    """A positioned vertex of the layered graph.

    ``x``/``y`` are the centre of the node. Dummy vertices (edge bends) have a
    zero footprint.
    """

    id: int
    layer: int
    order: int
    x: float
    y: float
    width: float
    height: float
    dummy: bool = False


@dataclass
class LayeredLayout:
    """Everything the layered pipeline produces for one layout call."""

    nodes: dict[int, LayoutNode]
    chains: dict[tuple[int, int], list[int]] = field(default_factory=dict)
    reversed_edges: set[tuple[int, int]] = field(default_factory=set)
    crossings: int = 0
    layer_count: int = 0
