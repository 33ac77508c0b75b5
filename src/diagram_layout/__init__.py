"""diagram-layout: deterministic layered layout for diagram editors."""

from diagram_layout.config import FOOTPRINTS, LayoutConfig
from diagram_layout.layout.engine import LayoutEngine, layout, layout_async
from diagram_layout.model import Edge, LayoutResult, Node, Point, RoutedEdge
from diagram_layout.types import DiagramKind, HandlePolicy, HandleSide, LayoutDirection

__all__ = [
    "FOOTPRINTS",
    "DiagramKind",
    "Edge",
    "HandlePolicy",
    "HandleSide",
    "LayoutConfig",
    "LayoutDirection",
    "LayoutEngine",
    "LayoutResult",
    "Node",
    "Point",
    "RoutedEdge",
    "layout",
    "layout_async",
]
