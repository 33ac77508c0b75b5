"""Layout engine: the caller-facing contract around the layered pipeline.

``LayoutEngine.layout`` never raises for well-typed input. Anything that goes
wrong inside the pipeline is logged and the caller gets its original nodes
back with ``fallback=True``, so a failed auto-layout leaves the diagram as it
was instead of breaking the editing session.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
import time
from collections.abc import Iterable
from dataclasses import replace

from diagram_layout.config import LayoutConfig
from diagram_layout.ir.graph import GraphIR
from diagram_layout.layout.sugiyama import SugiyamaLayout, route_edges
from diagram_layout.model import Edge, LayoutResult, Node, Point
from diagram_layout.types import HandlePolicy, HandleSide, LayoutDirection, handle_sides

logger = logging.getLogger(__name__)


class LayoutEngine:
    """Pure ``(nodes, edges, direction) -> positioned nodes`` layout."""

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()
        self._sugiyama = SugiyamaLayout(self.config)

    def layout(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        direction: LayoutDirection | str = LayoutDirection.TB,
        handle_policy: HandlePolicy = HandlePolicy.RESET,
    ) -> LayoutResult:
        """Lay out ``nodes`` and return them repositioned, with edges untouched.

        Args:
            nodes: Diagram nodes; ids should be unique.
            edges: Directed edges; dangling references and self-loops are allowed.
            direction: Flow direction, as an enum or a code such as ``"LR"``.
            handle_policy: Whether handle sides follow the direction or pass through.

        Returns:
            A LayoutResult with one node per input node, in input order.

        Raises:
            ValueError: If ``direction`` is a string that names no direction.
        """
        node_list = list(nodes)
        edge_list = list(edges)
        if isinstance(direction, str):
            direction = LayoutDirection.parse(direction)

        if not node_list:
            return LayoutResult(nodes=[], edges=edge_list)

        started = time.perf_counter()
        try:
            result = self._run(node_list, edge_list, direction, handle_policy)
        except Exception:
            logger.exception("Layout of %d node(s) failed; keeping original positions", len(node_list))
            return LayoutResult(nodes=node_list, edges=edge_list, fallback=True)

        logger.debug(
            "Laid out %d node(s), %d edge(s) %s in %.1f ms",
            len(node_list),
            len(edge_list),
            direction.value,
            (time.perf_counter() - started) * 1000,
        )
        return result

    async def compute(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        direction: LayoutDirection | str = LayoutDirection.TB,
        handle_policy: HandlePolicy = HandlePolicy.RESET,
    ) -> LayoutResult:
        """Awaitable layout; large graphs run in the loop's default executor.

        Cancelling the awaiting task discards the result. Nothing is applied
        anywhere, so there is no partial state to undo.
        """
        node_list = list(nodes)
        edge_list = list(edges)
        if len(node_list) < self.config.offload_threshold:
            return self.layout(node_list, edge_list, direction, handle_policy)

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(self.layout, node_list, edge_list, direction, handle_policy),
        )

    def _run(
        self,
        nodes: list[Node],
        edges: list[Edge],
        direction: LayoutDirection,
        handle_policy: HandlePolicy,
    ) -> LayoutResult:
        gir = GraphIR.from_elements(nodes, edges, direction, self.config)
        layered = self._sugiyama.layout(gir)
        outgoing, incoming = handle_sides(direction)

        positioned: list[Node] = []
        sides: dict[int, tuple[HandleSide, HandleSide]] = {}
        for node in nodes:
            idx = gir.index[node.id]
            placed = layered.nodes[idx]
            position = Point(x=placed.x - placed.width / 2, y=placed.y - placed.height / 2)
            if not (math.isfinite(position.x) and math.isfinite(position.y)):
                raise ArithmeticError(f"non-finite position for node '{node.id}'")

            if handle_policy is HandlePolicy.PRESERVE:
                source_side, target_side = node.source_position, node.target_position
            else:
                source_side, target_side = outgoing, incoming
            sides.setdefault(idx, (source_side or outgoing, target_side or incoming))
            positioned.append(
                replace(node, position=position, source_position=source_side, target_position=target_side)
            )

        routes = route_edges(gir, layered, edges, sides)
        return LayoutResult(nodes=positioned, edges=edges, routes=routes)


def layout(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    direction: LayoutDirection | str = LayoutDirection.TB,
    config: LayoutConfig | None = None,
    handle_policy: HandlePolicy = HandlePolicy.RESET,
) -> LayoutResult:
    """Run the default (Sugiyama) layout pipeline."""
    return LayoutEngine(config).layout(nodes, edges, direction, handle_policy)


async def layout_async(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    direction: LayoutDirection | str = LayoutDirection.TB,
    config: LayoutConfig | None = None,
    handle_policy: HandlePolicy = HandlePolicy.RESET,
) -> LayoutResult:
    """Awaitable variant of :func:`layout`."""
    return await LayoutEngine(config).compute(nodes, edges, direction, handle_policy)
