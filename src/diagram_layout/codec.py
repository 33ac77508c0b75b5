"""JSON codec for editor-shaped diagram documents.

A document is ``{"nodes": [...], "edges": [...]}`` where nodes look like the
editor's canvas nodes (``id``, ``position``, ``width``/``height`` or
``measured``, ``sourcePosition``/``targetPosition``) and edges carry
``source``/``target``. Keys the layout does not use are kept in ``attrs`` and
written back unchanged, so a document keeps its shape through a layout:
explicit ``width``/``height`` are kept verbatim, a node sized only by
``measured`` gets no ``width``/``height`` added, and a handle side that does
not parse is kept as it was.
"""

from __future__ import annotations

import json
from typing import Any

from diagram_layout.model import Edge, LayoutResult, Node, Point
from diagram_layout.types import HandleSide

_NODE_KEYS = ("id", "position")
_EDGE_KEYS = ("id", "source", "target")


def load_document(text: str) -> tuple[list[Node], list[Edge]]:
    """Parse a JSON document into nodes and edges.

    Raises:
        ValueError: If the text is not valid JSON or not a diagram document.
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}") from e
    if not isinstance(doc, dict):
        raise ValueError("document must be a JSON object with 'nodes' and 'edges'")

    raw_nodes = doc.get("nodes", [])
    raw_edges = doc.get("edges", [])
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        raise ValueError("'nodes' and 'edges' must be arrays")

    nodes = [node_from_dict(item, i) for i, item in enumerate(raw_nodes)]
    edges = [edge_from_dict(item, i) for i, item in enumerate(raw_edges)]
    return nodes, edges


def dump_document(result: LayoutResult, indent: int | None = 2) -> str:
    doc = {
        "nodes": [node_to_dict(n) for n in result.nodes],
        "edges": [edge_to_dict(e) for e in result.edges],
    }
    return json.dumps(doc, indent=indent)


def node_from_dict(item: Any, index: int = 0) -> Node:
    if not isinstance(item, dict):
        raise ValueError(f"node #{index} is not an object")
    node_id = item.get("id")
    if node_id is None:
        raise ValueError(f"node #{index} has no 'id'")

    width = item.get("width")
    height = item.get("height")
    measured = item.get("measured")
    if isinstance(measured, dict):
        width = width if width is not None else measured.get("width")
        height = height if height is not None else measured.get("height")

    source_side = _side_from_str(item.get("sourcePosition"))
    target_side = _side_from_str(item.get("targetPosition"))
    attrs = {k: v for k, v in item.items() if k not in _NODE_KEYS}
    # Parsed handle sides live on the node; unparseable ones stay in attrs.
    if source_side is not None:
        del attrs["sourcePosition"]
    if target_side is not None:
        del attrs["targetPosition"]

    return Node(
        id=str(node_id),
        width=width,
        height=height,
        position=_point_from_dict(item.get("position")),
        source_position=source_side,
        target_position=target_side,
        attrs=attrs,
    )


def node_to_dict(node: Node) -> dict[str, Any]:
    out: dict[str, Any] = {"id": node.id}
    if node.position is not None:
        out["position"] = {"x": node.position.x, "y": node.position.y}
    # Editor-measured nodes carry their size in ``measured``.
    if "measured" not in node.attrs:
        if node.width is not None:
            out["width"] = node.width
        if node.height is not None:
            out["height"] = node.height
    if node.source_position is not None:
        out["sourcePosition"] = node.source_position.value
    if node.target_position is not None:
        out["targetPosition"] = node.target_position.value
    for key, value in node.attrs.items():
        out.setdefault(key, value)
    return out


def edge_from_dict(item: Any, index: int = 0) -> Edge:
    if not isinstance(item, dict):
        raise ValueError(f"edge #{index} is not an object")
    source = item.get("source")
    target = item.get("target")
    if source is None or target is None:
        raise ValueError(f"edge #{index} needs both 'source' and 'target'")
    edge_id = item.get("id")
    return Edge(
        source=str(source),
        target=str(target),
        id=None if edge_id is None else str(edge_id),
        attrs={k: v for k, v in item.items() if k not in _EDGE_KEYS},
    )


def edge_to_dict(edge: Edge) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if edge.id is not None:
        out["id"] = edge.id
    out["source"] = edge.source
    out["target"] = edge.target
    out.update(edge.attrs)
    return out


def _point_from_dict(value: Any) -> Point | None:
    if not isinstance(value, dict):
        return None
    try:
        return Point(x=float(value["x"]), y=float(value["y"]))
    except (KeyError, TypeError, ValueError):
        return None


def _side_from_str(value: Any) -> HandleSide | None:
    if value is None:
        return None
    try:
        return HandleSide(str(value).lower())
    except ValueError:
        return None
