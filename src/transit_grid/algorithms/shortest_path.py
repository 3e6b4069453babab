# transit_grid/algorithms/shortest_path.py
import heapq
import math
from collections.abc import Callable, Sequence

from transit_grid.domain.accessability import Accessability, ReachableNodes, UnreachableNodes
from transit_grid.domain.entities.transit import TransitEdge
from transit_grid.domain.errors import NotFound
from transit_grid.domain.ids import NodeId

EdgeCost = Callable[[TransitEdge], float]

# search state: a node plus the half-node the traveller stands on (None = unconstrained)
State = tuple[NodeId, int | None]


def _blocks(accessability: Accessability | None, node_id: NodeId) -> bool:
    if accessability is None:
        return False
    if isinstance(accessability, UnreachableNodes):
        return node_id in accessability.nodes
    return node_id not in accessability.nodes


def calc_edge_cost(
    network,
    from_id: NodeId,
    to_id: NodeId,
    accessability: Accessability | None = None,
    edge_cost: EdgeCost | None = None,
    edge: TransitEdge | None = None,
) -> float:
    """
    Cost of stepping from `from_id` to `to_id`: infinite when the accessability
    filter excludes `to_id` or no edge joins them, else the edge cost (metric
    length unless `edge_cost` is given).
    """
    if _blocks(accessability, to_id):
        return math.inf
    if edge is None:
        try:
            edge = network.physical_graph.get_transit_edge(from_id, to_id)
        except NotFound:
            return math.inf
    cost = float(edge_cost(edge)) if edge_cost else network.edge_length(edge)
    if cost < 0:
        raise ValueError(f"edge {edge.id} has negative cost {cost}")
    return cost


def _require_nodes(network, *node_ids: NodeId) -> None:
    # raises UnknownNode
    for node_id in node_ids:
        network.physical_graph.id_to_index(node_id)


def _walk_back(prev: dict, goal):
    out = [goal]
    while prev.get(out[-1]) is not None:
        out.append(prev[out[-1]])
    return out[::-1]


# ------------------ Physical graph ------------------------


def find_shortest_path_with_cost(
    network, start: NodeId, end: NodeId, edge_cost: EdgeCost | None = None
) -> tuple[float, list[NodeId]] | None:
    """Dijkstra over the physical graph. Equal-cost frontier entries pop in push order."""
    with network.lock:
        phys = network.physical_graph
        _require_nodes(network, start, end)

        dist: dict[NodeId, float] = {start: 0.0}
        prev: dict[NodeId, NodeId | None] = {start: None}
        done: set[NodeId] = set()
        seq = 0
        q = [(0.0, seq, start)]
        while q:
            d, _, n = heapq.heappop(q)
            if n in done:
                continue
            if n == end:
                return d, _walk_back(prev, end)
            done.add(n)
            for m, edge in phys.neighbors(n):
                if m in done:
                    continue
                nd = d + calc_edge_cost(network, n, m, None, edge_cost, edge)
                if nd < dist.get(m, math.inf):
                    dist[m], prev[m] = nd, n
                    seq += 1
                    heapq.heappush(q, (nd, seq, m))
        return None


def find_shortest_path(
    network, start: NodeId, end: NodeId, edge_cost: EdgeCost | None = None
) -> list[NodeId] | None:
    found = find_shortest_path_with_cost(network, start, end, edge_cost)
    return None if found is None else found[1]


def path_length(network, path: Sequence[NodeId]) -> float:
    """Sum of the shortest edge between each consecutive pair of nodes."""
    total = 0.0
    for u, v in zip(path, path[1:]):
        edges = network.physical_graph.edges_between(u, v)
        if not edges:
            raise NotFound(f"no edge between {u!r} and {v!r}")
        total += min(network.edge_length(e) for e in edges)
    return total


# ------------------ Switch-aware search -------------------


def _moves(network, state: State):
    """(next state, edge) pairs leaving a state, switched edges first, by index."""
    node_id, half = state
    phys, topo = network.physical_graph, network.topology_graph
    if topo.has_node(node_id):
        halves = topo.id_to_index(node_id) if half is None else (half,)
        for h in halves:
            for t_half, topo_edge in topo.out_edges(h):
                yield (topo.index_to_id(t_half), t_half), phys.edge(topo_edge.edge_id)
    for m, edge in phys.neighbors(node_id):
        if not topo.has_edge_id(edge.id):
            yield (m, None), edge


def _switched_search(network, start, end, accessability, edge_cost):
    _require_nodes(network, start, end)

    first: State = (start, None)
    dist: dict[State, float] = {first: 0.0}
    prev: dict[State, State | None] = {first: None}
    done: set[State] = set()
    settled: set[NodeId] = set()
    seq = 0
    q = [(0.0, seq, first)]
    while q:
        d, _, s = heapq.heappop(q)
        if s in done:
            continue
        done.add(s)
        settled.add(s[0])
        if s[0] == end:
            return d, [n for n, _ in _walk_back(prev, s)], settled
        for nxt, edge in _moves(network, s):
            if nxt in done:
                continue
            c = calc_edge_cost(network, s[0], nxt[0], accessability, edge_cost, edge)
            if math.isinf(c):
                continue
            if d + c < dist.get(nxt, math.inf):
                dist[nxt], prev[nxt] = d + c, s
                seq += 1
                heapq.heappush(q, (d + c, seq, nxt))
    return None, None, settled


def find_switched_path_with_cost(
    network,
    start: NodeId,
    end: NodeId,
    accessability: Accessability | None = None,
    edge_cost: EdgeCost | None = None,
) -> tuple[float, list[NodeId]] | None:
    with network.lock:
        cost, path, _ = _switched_search(network, start, end, accessability, edge_cost)
    return None if path is None else (cost, path)


def find_shortest_path_with_accessability(
    network,
    start: NodeId,
    end: NodeId,
    accessability: Accessability | None = None,
    edge_cost: EdgeCost | None = None,
) -> Accessability:
    """
    Shortest path that obeys switch constraints and the accessability filter.

    Returns ReachableNodes(path) when `end` can be reached, otherwise
    UnreachableNodes listing every node the search never reached (in node
    insertion order), which always includes `end`.
    """
    with network.lock:
        _, path, settled = _switched_search(network, start, end, accessability, edge_cost)
        if path is not None:
            return ReachableNodes(path)
        return UnreachableNodes(
            n.id for n in network.physical_graph.iter_nodes() if n.id not in settled
        )
