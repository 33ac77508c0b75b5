"""Smoke tests: imports work, CLI --help works."""

from click.testing import CliRunner

from diagram_layout.__main__ import main


def test_import():
    import diagram_layout

    assert diagram_layout.layout is not None


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Auto-layout a diagram" in result.output
