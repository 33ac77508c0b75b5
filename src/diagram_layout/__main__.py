"""CLI entry point for diagram-layout."""

import logging
import sys

import click

from diagram_layout.codec import dump_document, load_document
from diagram_layout.config import LayoutConfig
from diagram_layout.layout.engine import LayoutEngine
from diagram_layout.types import DiagramKind, HandlePolicy, LayoutDirection

_KINDS = [kind.value for kind in DiagramKind]


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option("--direction", "-d", "direction", type=str, default="TB", help="Layout direction (TB, BT, LR, RL)")
@click.option(
    "--kind",
    "-k",
    "kind",
    type=click.Choice(_KINDS),
    default=DiagramKind.default().value,
    help="Default node footprint",
)
@click.option("--node-sep", "node_sep", type=float, default=None, help="Gap between nodes in the same rank")
@click.option("--rank-sep", "rank_sep", type=float, default=None, help="Gap between ranks")
@click.option("--margin", "margin", type=float, default=None, help="Margin around the whole layout")
@click.option("--keep-handles", "keep_handles", is_flag=True, help="Keep existing handle sides on nodes")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--debug", "debug", is_flag=True, help="Log pipeline details to stderr")
def main(
    input: str | None,
    direction: str,
    kind: str,
    node_sep: float | None,
    rank_sep: float | None,
    margin: float | None,
    keep_handles: bool,
    output: str | None,
    debug: bool,
) -> None:
    """Auto-layout a diagram JSON document (nodes + edges)."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if input:
        try:
            with open(input) as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    try:
        layout_direction = LayoutDirection.parse(direction)
    except ValueError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)

    try:
        nodes, edges = load_document(text)
    except ValueError as e:
        click.echo(f"parse error:\n{e}", err=True)
        sys.exit(1)

    try:
        config = LayoutConfig.for_kind(DiagramKind(kind)).with_spacing(node_sep, rank_sep, margin)
    except ValueError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)

    policy = HandlePolicy.PRESERVE if keep_handles else HandlePolicy.RESET
    result = LayoutEngine(config).layout(nodes, edges, layout_direction, policy)
    rendered = dump_document(result) + "\n"

    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
