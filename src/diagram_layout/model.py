"""Caller-facing data model: nodes and edges in, positioned nodes out."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from diagram_layout.types import HandleSide


@dataclass
class Point:
    """A 2D point in pixel coordinates."""

    x: float
    y: float


@dataclass
class Node:
    """A diagram node with a rectangular footprint.

    ``position`` is the top-left corner once laid out. ``width``/``height`` of
    ``None`` fall back to the configured default footprint.
    """

    id: str
    width: float | None = None
    height: float | None = None
    position: Point | None = None
    source_position: HandleSide | None = None
    target_position: HandleSide | None = None
    attrs: dict[str, Any] = field(default_factory=dict)


@dataclass
class Edge:
    """A directed edge between two node ids."""

    source: str
    target: str
    id: str | None = None
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


@dataclass
class RoutedEdge:
    """Routing hint for one input edge: a polyline in the edge's own direction."""

    edge_index: int
    source: str
    target: str
    points: list[Point]
    edge_id: str | None = None


@dataclass
class LayoutResult:
    """Layout output: positioned nodes, untouched edges, routing hints."""

    nodes: list[Node]
    edges: list[Edge]
    routes: list[RoutedEdge] = field(default_factory=list)
    fallback: bool = False

    def positions(self) -> dict[str, Point]:
        """Map node id to its top-left position (unpositioned nodes omitted)."""
        return {n.id: n.position for n in self.nodes if n.position is not None}
