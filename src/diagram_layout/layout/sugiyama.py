"""Sugiyama-style layered graph layout engine.

Phases:
  1. Cycle removal (greedy-FAS)
  2. Layer assignment (longest path + source tightening)
  3. Dummy node insertion
  4. Crossing minimization (barycenter)
  5. Coordinate assignment
  6. Component packing and direction mapping
  7. Edge routing (through dummy chains)

Every phase works on integer vertex ids and iterates in a fixed order, so
identical input always yields identical coordinates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import networkx as nx

from diagram_layout.config import LayoutConfig
from diagram_layout.ir.graph import GraphIR
from diagram_layout.layout.types import LayeredLayout, LayoutNode
from diagram_layout.model import Edge, Point, RoutedEdge
from diagram_layout.types import HandleSide, LayoutDirection

logger = logging.getLogger(__name__)


# ─── Cycle Removal (Greedy-FAS) ─────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[int]:
    """Compute a vertex ordering with the Eades greedy feedback-arc-set heuristic.

    Sinks are peeled onto the tail and sources onto the head. When neither is
    left, the vertex with the largest ``out - in`` degree goes to the head;
    ties go to the lowest vertex id.
    """
    active: set[int] = set(graph.nodes)
    out_deg: dict[int, int] = {n: graph.out_degree(n) for n in active}
    in_deg: dict[int, int] = {n: graph.in_degree(n) for n in active}
    head: list[int] = []
    tail: list[int] = []

    def take(node: int) -> None:
        active.discard(node)
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        sinks = sorted(n for n in active if out_deg[n] == 0)
        if sinks:
            for sink in sinks:
                take(sink)
                tail.append(sink)
            continue

        sources = sorted(n for n in active if in_deg[n] == 0)
        if sources:
            for source in sources:
                take(source)
                head.append(source)
            continue

        best = max(active, key=lambda n: (out_deg[n] - in_deg[n], -n))
        take(best)
        head.append(best)

    tail.reverse()
    return head + tail


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[int, int]]]:
    """Remove cycles using greedy-FAS. Returns (dag, reversed_edges).

    Reversed edges that collide with an existing forward edge are merged into
    it and their weights summed. Self-loops are reported as reversed and
    dropped from the DAG.
    """
    if graph.number_of_nodes() == 0:
        return nx.DiGraph(), set()

    ordering = greedy_fas_ordering(graph)
    position: dict[int, int] = {node: pos for pos, node in enumerate(ordering)}

    reversed_edges: set[tuple[int, int]] = set()
    for src, tgt in graph.edges():
        if src == tgt or position[src] > position[tgt]:
            reversed_edges.add((src, tgt))

    dag: nx.DiGraph = nx.DiGraph()
    for node_id in sorted(graph.nodes):
        dag.add_node(node_id, **graph.nodes[node_id])

    for src, tgt, edge_attrs in graph.edges(data=True):
        if src == tgt:
            continue
        a, b = (tgt, src) if (src, tgt) in reversed_edges else (src, tgt)
        weight = _edge_weight(edge_attrs)
        if dag.has_edge(a, b):
            dag.edges[a, b]["weight"] += weight
        else:
            dag.add_edge(a, b, weight=weight)

    return dag, reversed_edges


def _edge_weight(edge_attrs: dict) -> int:
    data = edge_attrs.get("data")
    if data is not None:
        return data.weight
    return edge_attrs.get("weight", 1)


# ─── Layer Assignment ────────────────────────────────────────────────────────


class LayerAssignment:
    def __init__(
        self,
        dag: nx.DiGraph,
        layers: dict[int, int],
        layer_count: int,
        reversed_edges: set[tuple[int, int]],
    ) -> None:
        self.dag = dag
        self.layers = layers
        self.layer_count = layer_count
        self.reversed_edges = reversed_edges

    @classmethod
    def assign(cls, graph: nx.DiGraph) -> LayerAssignment:
        """Rank every vertex so each DAG edge points to a strictly higher layer."""
        dag, reversed_edges = remove_cycles(graph)
        order = list(nx.lexicographical_topological_sort(dag))

        layers: dict[int, int] = {}
        for node in order:
            layers[node] = max((layers[p] + 1 for p in dag.predecessors(node)), default=0)

        # Pull sources down next to their nearest successor.
        for node in order:
            if dag.in_degree(node) == 0 and dag.out_degree(node) > 0:
                layers[node] = min(layers[s] for s in dag.successors(node)) - 1

        layer_count = (max(layers.values()) + 1) if layers else 1
        return cls(dag=dag, layers=layers, layer_count=layer_count, reversed_edges=reversed_edges)


# ─── Dummy Node Insertion ────────────────────────────────────────────────────


@dataclass
class DummyEdge:
    original_src: int
    original_tgt: int
    dummy_ids: list[int]
    weight: int


@dataclass
class AugmentedGraph:
    graph: nx.DiGraph
    layers: dict[int, int]
    layer_count: int
    dummy_edges: list[DummyEdge]

    def is_dummy(self, node_id: int) -> bool:
        return bool(self.graph.nodes[node_id].get("dummy", False))


def insert_dummy_nodes(la: LayerAssignment, first_dummy_id: int) -> AugmentedGraph:
    """Insert dummy nodes for edges spanning multiple layers.

    Dummy ids are allocated consecutively from ``first_dummy_id``.
    """
    dag = la.dag
    g: nx.DiGraph = nx.DiGraph()
    for node_id in dag.nodes:
        g.add_node(node_id, **dag.nodes[node_id])

    layers: dict[int, int] = dict(la.layers)
    dummy_edges: list[DummyEdge] = []
    next_id = first_dummy_id

    for src_id, tgt_id, edge_attrs in dag.edges(data=True):
        weight = edge_attrs.get("weight", 1)
        src_layer = layers[src_id]
        layer_diff = layers[tgt_id] - src_layer

        if layer_diff <= 1:
            g.add_edge(src_id, tgt_id, weight=weight)
            continue

        dummy_ids: list[int] = []
        chain_prev = src_id
        for i in range(layer_diff - 1):
            dummy_id = next_id
            next_id += 1
            g.add_node(dummy_id, dummy=True)
            layers[dummy_id] = src_layer + i + 1
            dummy_ids.append(dummy_id)
            g.add_edge(chain_prev, dummy_id, weight=weight)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id, weight=weight)

        dummy_edges.append(DummyEdge(original_src=src_id, original_tgt=tgt_id, dummy_ids=dummy_ids, weight=weight))

    layer_count = (max(layers.values()) + 1) if layers else 1
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count, dummy_edges=dummy_edges)


# ─── Crossing Minimization ───────────────────────────────────────────────────


def initial_ordering(aug: AugmentedGraph) -> list[list[int]]:
    """Order each layer by depth-first discovery from the top layer down."""
    ordering: list[list[int]] = [[] for _ in range(aug.layer_count)]
    visited: set[int] = set()
    for root in sorted(aug.graph.nodes, key=lambda n: (aug.layers[n], n)):
        stack = [root]
        while stack:
            node = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            ordering[aug.layers[node]].append(node)
            stack.extend(reversed(list(aug.graph.successors(node))))
    return ordering


def bounded_passes(requested: int, size: int, budget: int) -> int:
    """Cut a sweep count so ``passes * size`` vertex visits fit in ``budget``.

    Dummy chains can make the augmented graph far larger than the input, so
    the count scales with the vertices actually swept. At least one pass
    always runs when any was requested.
    """
    if requested <= 0 or size <= 0:
        return requested
    return max(1, min(requested, budget // size))


def minimise_crossings(aug: AugmentedGraph, max_passes: int = 8) -> list[list[int]]:
    """Minimise edge crossings using the barycenter heuristic.

    Each pass is a downward then an upward sweep. Stops after ``max_passes``
    or at the first pass that does not improve, returning the best ordering
    seen.
    """
    ordering, _crossings = _barycenter_sweeps(aug, max_passes)
    return ordering


def _barycenter_sweeps(aug: AugmentedGraph, max_passes: int) -> tuple[list[list[int]], int]:
    layer_count = aug.layer_count
    ordering = initial_ordering(aug)
    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(ordering, aug.graph)

    for _pass in range(max_passes):
        if best_crossings == 0:
            break

        for layer_idx in range(1, layer_count):
            prev = {nid: float(i) for i, nid in enumerate(ordering[layer_idx - 1])}
            _sort_layer(ordering[layer_idx], aug.graph, prev, "incoming")

        for layer_idx in range(layer_count - 2, -1, -1):
            nxt = {nid: float(i) for i, nid in enumerate(ordering[layer_idx + 1])}
            _sort_layer(ordering[layer_idx], aug.graph, nxt, "outgoing")

        new = count_crossings(ordering, aug.graph)
        if new >= best_crossings:
            break
        best = [list(layer) for layer in ordering]
        best_crossings = new

    return best, best_crossings


def _sort_layer(layer: list[int], graph: nx.DiGraph, neighbor_pos: dict[int, float], direction: str) -> None:
    keys: dict[int, tuple[float, int]] = {}
    for i, node_id in enumerate(layer):
        bary = _barycenter(node_id, graph, neighbor_pos, direction)
        keys[node_id] = (float(i) if bary is None else bary, i)
    layer.sort(key=lambda n: keys[n])


def _barycenter(node_id: int, graph: nx.DiGraph, neighbor_pos: dict[int, float], direction: str) -> float | None:
    adjacency = graph.pred[node_id] if direction == "incoming" else graph.succ[node_id]
    total = 0.0
    weight_sum = 0
    for nb, edge_attrs in adjacency.items():
        if nb in neighbor_pos:
            weight = edge_attrs.get("weight", 1)
            total += neighbor_pos[nb] * weight
            weight_sum += weight
    if weight_sum == 0:
        return None
    return total / weight_sum


def count_crossings(ordering: list[list[int]], graph: nx.DiGraph) -> int:
    """Count weighted edge crossings between every pair of adjacent layers.

    Edges are visited in (source slot, target slot) order; each one crosses
    every earlier edge that lands strictly to its right. A Fenwick tree over
    target slots keeps this O(E log V) per layer pair.
    """
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos: dict[int, int] = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            if src_id in graph:
                for nb, edge_attrs in graph.succ[src_id].items():
                    if nb in tgt_pos:
                        edges.append((sp, tgt_pos[nb], edge_attrs.get("weight", 1)))
        edges.sort()

        size = len(tgt_pos)
        tree = [0] * (size + 1)
        seen = 0
        for _sp, tp, weight in edges:
            # Weight of earlier edges landing at slots <= tp.
            at_or_left = 0
            i = tp + 1
            while i > 0:
                at_or_left += tree[i]
                i -= i & -i
            total += weight * (seen - at_or_left)
            seen += weight
            i = tp + 1
            while i <= size:
                tree[i] += weight
                i += i & -i
    return total


# ─── Coordinate Assignment ───────────────────────────────────────────────────


def flow_dimensions(aug: AugmentedGraph, node_id: int, horizontal: bool) -> tuple[float, float]:
    """Return (secondary, primary) extent of a vertex in flow space."""
    if aug.is_dummy(node_id):
        return (0.0, 0.0)
    data = aug.graph.nodes[node_id]["data"]
    if horizontal:
        return (data.height, data.width)
    return (data.width, data.height)


def assign_coordinates(
    ordering: list[list[int]],
    aug: AugmentedGraph,
    config: LayoutConfig,
    horizontal: bool = False,
    align_passes: int | None = None,
) -> list[LayoutNode]:
    """Assign flow-space centre coordinates to every vertex.

    ``x`` runs along the secondary axis (within a layer), ``y`` along the
    primary axis (across layers). The leftmost box edge lands on 0 and the
    first layer's top on 0. ``align_passes`` overrides
    ``config.align_passes``.
    """
    if align_passes is None:
        align_passes = config.align_passes
    graph = aug.graph
    dummies: set[int] = {n for n in graph.nodes if aug.is_dummy(n)}
    dims: dict[int, tuple[float, float]] = {n: flow_dimensions(aug, n, horizontal) for n in graph.nodes}
    half_gap: dict[int, float] = {
        n: (config.edge_sep if n in dummies else config.node_sep) / 2 for n in graph.nodes
    }

    # gaps[l][i]: minimum centre distance between slots i - 1 and i of layer l.
    gaps: list[list[float]] = []
    for layer_nodes in ordering:
        layer_gaps = [0.0]
        for left, right in zip(layer_nodes, layer_nodes[1:]):
            layer_gaps.append(dims[left][0] / 2 + half_gap[left] + half_gap[right] + dims[right][0] / 2)
        gaps.append(layer_gaps)

    layer_y: list[float] = []
    y = 0.0
    for layer_nodes in ordering:
        thickness = max((dims[n][1] for n in layer_nodes), default=0.0)
        layer_y.append(y + thickness / 2)
        y += thickness + config.rank_sep

    xs: dict[int, float] = {}
    layer_widths: list[float] = []
    for layer_nodes, layer_gaps in zip(ordering, gaps):
        if not layer_nodes:
            layer_widths.append(0.0)
            continue
        x = dims[layer_nodes[0]][0] / 2
        for node_id, gap in zip(layer_nodes, layer_gaps):
            x += gap
            xs[node_id] = x
        layer_widths.append(x + dims[layer_nodes[-1]][0] / 2)

    max_layer_w = max(layer_widths, default=0.0)
    for layer_nodes, width in zip(ordering, layer_widths):
        offset = (max_layer_w - width) / 2
        for node_id in layer_nodes:
            xs[node_id] += offset

    # Barycenter refinement
    if align_passes > 0:
        upper = {n: list(graph.pred[n]) for n in graph.nodes}
        lower = {n: list(graph.succ[n]) for n in graph.nodes}
        for _pass in range(align_passes):
            for layer_idx in range(1, len(ordering)):
                _align_layer(ordering[layer_idx], gaps[layer_idx], xs, upper)
            for layer_idx in range(len(ordering) - 2, -1, -1):
                _align_layer(ordering[layer_idx], gaps[layer_idx], xs, lower)

    if xs:
        min_x = min(xs[n] - dims[n][0] / 2 for n in xs)
        for n in xs:
            xs[n] -= min_x

    nodes: list[LayoutNode] = []
    for layer_idx, layer_nodes in enumerate(ordering):
        for order, node_id in enumerate(layer_nodes):
            sec, prim = dims[node_id]
            nodes.append(
                LayoutNode(
                    id=node_id,
                    layer=layer_idx,
                    order=order,
                    x=xs[node_id],
                    y=layer_y[layer_idx],
                    width=sec,
                    height=prim,
                    dummy=node_id in dummies,
                )
            )
    return nodes


def _align_layer(layer, gaps, xs, neighbours) -> None:
    """Move a layer toward its neighbours' barycenters without breaking spacing.

    Each vertex is placed at its desired position or pushed right of its left
    neighbour by ``gaps[i]``; the whole layer is then shifted by the mean
    displacement, which keeps every gap intact.
    """
    if not layer:
        return
    drift_total = 0.0
    anchored = 0
    placed: list[float] = []
    for i, node_id in enumerate(layer):
        nbs = neighbours[node_id]
        want = sum(xs[nb] for nb in nbs) / len(nbs) if nbs else xs[node_id]
        x = want if i == 0 else max(want, placed[i - 1] + gaps[i])
        placed.append(x)
        if nbs:
            drift_total += want - x
            anchored += 1
    if not anchored:
        return

    shift = drift_total / anchored
    for node_id, x in zip(layer, placed):
        xs[node_id] = x + shift


# ─── Edge Routing ────────────────────────────────────────────────────────────


def anchor_point(node: LayoutNode, side: HandleSide) -> Point:
    """Midpoint of the given side of a node's box."""
    if side is HandleSide.Top:
        return Point(x=node.x, y=node.y - node.height / 2)
    if side is HandleSide.Bottom:
        return Point(x=node.x, y=node.y + node.height / 2)
    if side is HandleSide.Left:
        return Point(x=node.x - node.width / 2, y=node.y)
    return Point(x=node.x + node.width / 2, y=node.y)


def route_edges(
    gir: GraphIR,
    layered: LayeredLayout,
    edges: list[Edge],
    sides: dict[int, tuple[HandleSide, HandleSide]],
) -> list[RoutedEdge]:
    """Build a polyline for every usable input edge, in input order.

    Routes are built per graph edge and fanned out to every input edge merged
    into it, so dangling edges and self-loops never get one. The route leaves
    the source through its outgoing handle, follows the dummy chain of long
    edges, and enters the target through its incoming handle. Feedback edges
    follow their chain backwards so each route keeps the edge's own
    direction.
    """
    routes: list[RoutedEdge] = []

    for src, tgt, attrs in gir.digraph.edges(data=True):
        if (src, tgt) in layered.reversed_edges:
            chain = list(reversed(layered.chains.get((tgt, src), [])))
        else:
            chain = list(layered.chains.get((src, tgt), []))

        for k in attrs["data"].edge_indices:
            edge = edges[k]
            points = [anchor_point(layered.nodes[src], sides[src][0])]
            points.extend(Point(x=layered.nodes[d].x, y=layered.nodes[d].y) for d in chain)
            points.append(anchor_point(layered.nodes[tgt], sides[tgt][1]))
            routes.append(
                RoutedEdge(edge_index=k, source=edge.source, target=edge.target, points=points, edge_id=edge.id)
            )

    routes.sort(key=lambda r: r.edge_index)
    return routes


# ─── SugiyamaLayout Engine ───────────────────────────────────────────────────


class SugiyamaLayout:
    """Sugiyama layered layout engine.

    Each weakly connected component is ranked, ordered and placed on its
    own; components are then packed side by side along the secondary axis
    in first-seen order, isolated nodes last.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def layout(self, gir: GraphIR) -> LayeredLayout:
        config = self.config
        direction = gir.direction
        horizontal = direction.is_horizontal

        flow_nodes: dict[int, LayoutNode] = {}
        chains: dict[tuple[int, int], list[int]] = {}
        reversed_edges: set[tuple[int, int]] = set()
        crossings = 0
        layer_count = 0
        primary_extent = 0.0
        offset = 0.0
        next_dummy = gir.node_count()

        for members in gir.components():
            subgraph = gir.digraph.subgraph(members)
            la = LayerAssignment.assign(subgraph)
            aug = insert_dummy_nodes(la, next_dummy)
            next_dummy += sum(len(d.dummy_ids) for d in aug.dummy_edges)

            size = aug.graph.number_of_nodes()
            sweeps = bounded_passes(config.max_passes, size, config.sweep_budget)
            aligns = bounded_passes(config.align_passes, size, config.sweep_budget)
            if sweeps < config.max_passes or aligns < config.align_passes:
                logger.debug(
                    "Component of %d vertices (with dummies): %d ordering pass(es), %d alignment pass(es)",
                    size,
                    sweeps,
                    aligns,
                )
            ordering, component_crossings = _barycenter_sweeps(aug, sweeps)
            placed = assign_coordinates(ordering, aug, config, horizontal, aligns)

            reversed_edges |= la.reversed_edges
            for dummy_edge in aug.dummy_edges:
                chains[(dummy_edge.original_src, dummy_edge.original_tgt)] = dummy_edge.dummy_ids
            crossings += component_crossings
            layer_count = max(layer_count, aug.layer_count)

            secondary_extent = max(n.x + n.width / 2 for n in placed)
            for n in placed:
                n.x += offset
                flow_nodes[n.id] = n
                primary_extent = max(primary_extent, n.y + n.height / 2)
            offset += secondary_extent + config.component_sep

        logger.debug(
            "Layered %d node(s) into %d layer(s): %d reversed edge(s), %d crossing(s)",
            gir.node_count(),
            layer_count,
            len(reversed_edges),
            crossings,
        )

        nodes = {nid: self._to_screen(n, gir, direction, primary_extent) for nid, n in flow_nodes.items()}
        return LayeredLayout(
            nodes=nodes,
            chains=chains,
            reversed_edges=reversed_edges,
            crossings=crossings,
            layer_count=layer_count,
        )

    def _to_screen(self, n: LayoutNode, gir: GraphIR, direction: LayoutDirection, primary_extent: float) -> LayoutNode:
        u = n.x
        v = primary_extent - n.y if direction.is_reversed else n.y
        if direction.is_horizontal:
            cx, cy = v, u
        else:
            cx, cy = u, v
        if n.dummy:
            width = height = 0.0
        else:
            data = gir.node_data(n.id)
            width, height = data.width, data.height
        return LayoutNode(
            id=n.id,
            layer=n.layer,
            order=n.order,
            x=cx + self.config.margin_x,
            y=cy + self.config.margin_y,
            width=width,
            height=height,
            dummy=n.dummy,
        )
