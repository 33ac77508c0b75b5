"""Graph IR: converts caller nodes/edges into a networkx DiGraph for layout.

This module owns the canonical graph data structure used by all downstream
phases (ranking, ordering, coordinates, routing). Vertices are integer
indices into the caller's node list, so the graph never holds references to
caller objects. Edges the pipeline cannot use are filtered out here:
dangling references, self-loops, and duplicates (merged into a weight).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import networkx as nx

from diagram_layout.config import LayoutConfig
from diagram_layout.model import Edge, Node
from diagram_layout.types import LayoutDirection

logger = logging.getLogger(__name__)


@dataclass
class NodeData:
    id: str
    width: float
    height: float


@dataclass
class EdgeData:
    weight: int = 1
    edge_indices: list[int] = field(default_factory=list)


class GraphIR:
    """The graph intermediate representation built from nodes and edges.

    Wraps an integer-indexed networkx DiGraph and exposes helpers for
    topology queries.
    """

    def __init__(
        self,
        digraph: nx.DiGraph,
        direction: LayoutDirection,
        node_ids: list[str],
        index: dict[str, int],
        dangling: list[int],
        self_loops: list[int],
    ) -> None:
        self.digraph = digraph
        self.direction = direction
        self.node_ids = node_ids
        self.index = index
        self.dangling = dangling
        self.self_loops = self_loops

    @classmethod
    def from_elements(
        cls,
        nodes: list[Node],
        edges: list[Edge],
        direction: LayoutDirection = LayoutDirection.TB,
        config: LayoutConfig | None = None,
    ) -> GraphIR:
        """Build a GraphIR from caller nodes and edges."""
        config = config or LayoutConfig()
        digraph: nx.DiGraph = nx.DiGraph()
        node_ids: list[str] = []
        index: dict[str, int] = {}

        for node in nodes:
            if node.id in index:
                continue
            idx = len(node_ids)
            index[node.id] = idx
            node_ids.append(node.id)
            width, height = footprint(node, config)
            digraph.add_node(idx, data=NodeData(id=node.id, width=width, height=height))

        dangling: list[int] = []
        self_loops: list[int] = []
        for k, edge in enumerate(edges):
            src = index.get(edge.source)
            tgt = index.get(edge.target)
            if src is None or tgt is None:
                dangling.append(k)
                continue
            if edge.is_self_loop:
                self_loops.append(k)
                continue
            if digraph.has_edge(src, tgt):
                data: EdgeData = digraph.edges[src, tgt]["data"]
                data.weight += 1
                data.edge_indices.append(k)
            else:
                digraph.add_edge(src, tgt, data=EdgeData(weight=1, edge_indices=[k]))

        if dangling or self_loops:
            logger.debug(
                "Ignoring %d dangling edge(s) and %d self-loop(s) for ranking",
                len(dangling),
                len(self_loops),
            )

        return cls(
            digraph=digraph,
            direction=direction,
            node_ids=node_ids,
            index=index,
            dangling=dangling,
            self_loops=self_loops,
        )

    def is_dag(self) -> bool:
        return nx.is_directed_acyclic_graph(self.digraph)

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def node_data(self, idx: int) -> NodeData:
        return self.digraph.nodes[idx]["data"]

    def in_degree(self, node_id: str) -> int:
        idx = self.index.get(node_id)
        if idx is None:
            return 0
        return self.digraph.in_degree(idx)

    def out_degree(self, node_id: str) -> int:
        idx = self.index.get(node_id)
        if idx is None:
            return 0
        return self.digraph.out_degree(idx)

    def components(self) -> list[list[int]]:
        """Weakly connected components in first-seen order; isolated nodes last."""
        linked: list[list[int]] = []
        isolated: list[list[int]] = []
        for comp in nx.weakly_connected_components(self.digraph):
            members = sorted(comp)
            if len(members) == 1 and self.digraph.degree(members[0]) == 0:
                isolated.append(members)
            else:
                linked.append(members)
        linked.sort(key=lambda c: c[0])
        isolated.sort(key=lambda c: c[0])
        return linked + isolated


def footprint(node: Node, config: LayoutConfig) -> tuple[float, float]:
    """Resolve a node's (width, height), substituting safe values for bad input."""
    return (
        _dimension(node.width, config.node_width, config.min_node_size),
        _dimension(node.height, config.node_height, config.min_node_size),
    )


def _dimension(value: float | None, default: float, minimum: float) -> float:
    if value is None:
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value) or value <= 0:
        return minimum
    return value
