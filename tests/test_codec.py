"""Tests for diagram_layout.codec: editor JSON documents in and out."""

import json

import pytest

from diagram_layout import layout
from diagram_layout.codec import (
    dump_document,
    edge_from_dict,
    edge_to_dict,
    load_document,
    node_from_dict,
    node_to_dict,
)
from diagram_layout.model import Edge, LayoutResult, Node, Point
from diagram_layout.types import HandleSide

DOC = {
    "nodes": [
        {
            "id": "start",
            "type": "story",
            "position": {"x": 10, "y": 20},
            "width": 256,
            "height": 120,
            "data": {"title": "Start", "order": 1},
            "selected": False,
        },
        {"id": "next", "position": {"x": 0, "y": 0}, "measured": {"width": 200, "height": 90}},
    ],
    "edges": [{"id": "e1", "source": "start", "target": "next", "animated": True}],
}


class TestLoadDocument:
    def test_nodes_and_edges_parsed(self):
        nodes, edges = load_document(json.dumps(DOC))
        assert [n.id for n in nodes] == ["start", "next"]
        assert nodes[0].position == Point(x=10, y=20)
        assert (nodes[0].width, nodes[0].height) == (256, 120)
        assert edges[0].source == "start"
        assert edges[0].target == "next"
        assert edges[0].id == "e1"

    def test_measured_footprint_used(self):
        nodes, _ = load_document(json.dumps(DOC))
        assert (nodes[1].width, nodes[1].height) == (200, 90)

    def test_unknown_keys_kept(self):
        nodes, edges = load_document(json.dumps(DOC))
        assert nodes[0].attrs["data"] == {"title": "Start", "order": 1}
        assert nodes[0].attrs["type"] == "story"
        assert edges[0].attrs == {"animated": True}

    def test_missing_sections_default_empty(self):
        assert load_document("{}") == ([], [])

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="invalid JSON"):
            load_document("{nodes: ")

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            load_document("[1, 2]")

    def test_node_without_id(self):
        with pytest.raises(ValueError, match="has no 'id'"):
            load_document(json.dumps({"nodes": [{"position": {"x": 0, "y": 0}}]}))

    def test_edge_without_target(self):
        with pytest.raises(ValueError, match="'source' and 'target'"):
            load_document(json.dumps({"nodes": [], "edges": [{"source": "a"}]}))


class TestElementCodec:
    def test_handle_sides_parsed(self):
        node = node_from_dict({"id": "a", "sourcePosition": "right", "targetPosition": "left"})
        assert node.source_position == HandleSide.Right
        assert node.target_position == HandleSide.Left

    def test_unknown_handle_side_kept_in_attrs(self):
        node = node_from_dict({"id": "a", "sourcePosition": "middle"})
        assert node.source_position is None
        assert node.attrs == {"sourcePosition": "middle"}
        assert node_to_dict(node) == {"id": "a", "sourcePosition": "middle"}

    def test_parsed_handle_side_wins_over_raw_value(self):
        node = node_from_dict({"id": "a", "sourcePosition": "middle"})
        node.source_position = HandleSide.Bottom
        assert node_to_dict(node)["sourcePosition"] == "bottom"

    def test_bad_position_treated_as_unplaced(self):
        assert node_from_dict({"id": "a", "position": {"x": "left"}}).position is None

    def test_node_to_dict(self):
        node = Node(
            id="a",
            width=100,
            height=40,
            position=Point(x=1.5, y=2),
            source_position=HandleSide.Bottom,
            target_position=HandleSide.Top,
            attrs={"data": {"k": 1}},
        )
        assert node_to_dict(node) == {
            "id": "a",
            "position": {"x": 1.5, "y": 2},
            "width": 100,
            "height": 40,
            "sourcePosition": "bottom",
            "targetPosition": "top",
            "data": {"k": 1},
        }

    def test_numeric_ids_become_strings(self):
        edge = edge_from_dict({"id": 7, "source": 1, "target": 2})
        assert (edge.id, edge.source, edge.target) == ("7", "1", "2")

    def test_edge_to_dict_without_id(self):
        assert edge_to_dict(Edge(source="a", target="b")) == {"source": "a", "target": "b"}


class TestDumpDocument:
    def test_round_trip_keeps_payload(self):
        nodes, edges = load_document(json.dumps(DOC))
        out = json.loads(dump_document(LayoutResult(nodes=nodes, edges=edges)))
        assert out["nodes"][0]["data"] == {"title": "Start", "order": 1}
        assert out["nodes"][0]["selected"] is False
        assert out["edges"] == DOC["edges"]

    def test_measured_only_node_gets_no_explicit_size(self):
        nodes, edges = load_document(json.dumps(DOC))
        out = json.loads(dump_document(LayoutResult(nodes=nodes, edges=edges)))
        assert "width" not in out["nodes"][1]
        assert "height" not in out["nodes"][1]
        assert out["nodes"][1]["measured"] == {"width": 200, "height": 90}

    def test_explicit_size_kept_next_to_measured(self):
        doc = {"nodes": [{"id": "a", "width": 300, "measured": {"width": 280, "height": 90}}]}
        nodes, _ = load_document(json.dumps(doc))
        assert (nodes[0].width, nodes[0].height) == (300, 90)
        out = json.loads(dump_document(LayoutResult(nodes=nodes, edges=[])))
        assert out["nodes"][0]["width"] == 300
        assert "height" not in out["nodes"][0]

    def test_node_keys_unchanged_through_layout(self):
        nodes, edges = load_document(json.dumps(DOC))
        out = json.loads(dump_document(layout(nodes, edges)))
        for before, after in zip(DOC["nodes"], out["nodes"]):
            assert set(after) - set(before) <= {"sourcePosition", "targetPosition"}
