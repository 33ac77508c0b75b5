"""End-to-end tests for the diagram-layout CLI."""

import json

from click.testing import CliRunner

from diagram_layout.__main__ import main

DOC = {
    "nodes": [
        {"id": "a", "position": {"x": 0, "y": 0}, "data": {"title": "A"}},
        {"id": "b", "position": {"x": 0, "y": 0}},
        {"id": "c", "position": {"x": 0, "y": 0}},
    ],
    "edges": [
        {"id": "ab", "source": "a", "target": "b"},
        {"id": "bc", "source": "b", "target": "c"},
        {"id": "ax", "source": "a", "target": "deleted"},
    ],
}


def _run(args, stdin=None):
    runner = CliRunner()
    return runner.invoke(main, args, input=stdin)


class TestCli:
    def test_layout_from_stdin(self):
        result = _run([], json.dumps(DOC))
        assert result.exit_code == 0, result.output
        out = json.loads(result.output)
        ys = [n["position"]["y"] for n in out["nodes"]]
        assert ys[0] < ys[1] < ys[2]
        assert out["nodes"][0]["data"] == {"title": "A"}
        assert out["nodes"][0]["sourcePosition"] == "bottom"
        assert out["edges"] == DOC["edges"]

    def test_direction_option(self):
        result = _run(["-d", "LR"], json.dumps(DOC))
        assert result.exit_code == 0, result.output
        out = json.loads(result.output)
        xs = [n["position"]["x"] for n in out["nodes"]]
        assert xs[0] < xs[1] < xs[2]
        assert out["nodes"][0]["sourcePosition"] == "right"

    def test_td_alias(self):
        assert _run(["-d", "td"], json.dumps(DOC)).exit_code == 0

    def test_unknown_direction(self):
        result = _run(["-d", "sideways"], json.dumps(DOC))
        assert result.exit_code == 1
        assert "Unknown direction" in result.output

    def test_parse_error(self):
        result = _run([], "not json")
        assert result.exit_code == 1
        assert "parse error" in result.output

    def test_negative_spacing_rejected(self):
        result = _run(["--node-sep", "-5"], json.dumps(DOC))
        assert result.exit_code == 1
        assert "node_sep" in result.output

    def test_kind_sets_default_footprint(self):
        result = _run(["-k", "state", "--margin", "0"], json.dumps(DOC))
        out = json.loads(result.output)
        assert out["nodes"][0]["position"] == {"x": 0.0, "y": 0.0}
        assert out["nodes"][1]["position"]["y"] == 80 + 80

    def test_default_kind_is_workflow(self):
        result = _run(["--margin", "0"], json.dumps(DOC))
        out = json.loads(result.output)
        assert out["nodes"][1]["position"]["y"] == 120 + 80

    def test_keep_handles(self):
        doc = {"nodes": [{"id": "a", "sourcePosition": "left"}, {"id": "b"}], "edges": []}
        out = json.loads(_run(["--keep-handles"], json.dumps(doc)).output)
        assert out["nodes"][0]["sourcePosition"] == "left"
        assert "sourcePosition" not in out["nodes"][1]

    def test_file_input_and_output(self, tmp_path):
        src = tmp_path / "diagram.json"
        dst = tmp_path / "out.json"
        src.write_text(json.dumps(DOC))
        result = _run([str(src), "-o", str(dst)])
        assert result.exit_code == 0
        assert result.output == ""
        assert len(json.loads(dst.read_text())["nodes"]) == 3

    def test_empty_document(self):
        result = _run([], json.dumps({"nodes": [], "edges": []}))
        assert result.exit_code == 0
        assert json.loads(result.output) == {"nodes": [], "edges": []}
