# transit_grid/graphs/topology.py
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

import networkx as nx

from transit_grid.domain.accessability import Accessability, ReachableNodes
from transit_grid.domain.errors import DuplicateId, InconsistentTopology, NotFound, UnknownEdge, UnknownNode
from transit_grid.domain.ids import EdgeId, IndexAllocator, NodeId


class Direction(Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"

    def opposite(self) -> "Direction":
        return Direction.INCOMING if self is Direction.OUTGOING else Direction.OUTGOING


@dataclass(frozen=True)
class TopoNode:
    """One half of a physical node. Every node id owns exactly two of these."""

    index: int
    node_id: NodeId


@dataclass
class TopoEdge:
    index: int
    edge_id: EdgeId
    source: NodeId
    target: NodeId
    dual: int | None = None  # index of the mirrored edge (σ(target) -> σ(source))
    accessability: Accessability | None = None
    reversed: bool = False  # flipped by the repairer relative to insertion
    cross_linked: bool = False  # target side moved to the other half by the repairer


class TopologyGraph:
    """
    Directed skew-symmetric graph over half-nodes.

    Each node id v maps to a pair of half-nodes (v.0, v.1) and σ swaps them.
    Every physical edge with switch semantics is stored as two directed edges,
    x -> y and σ(y) -> σ(x), each recording the other as its dual. A traveller
    standing on a half-node may only leave over that half-node's outgoing
    edges, which is how switches restrict onward movement.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self._halves: dict[NodeId, tuple[int, int]] = {}
        self._owner: dict[int, NodeId] = {}
        self._ends: dict[int, tuple[int, int]] = {}
        self._by_edge_id: dict[EdgeId, list[int]] = {}
        self._node_slots = IndexAllocator()
        self._edge_slots = IndexAllocator()

    # --------------- Id / index mapping -----------------------

    def id_to_index(self, node_id: NodeId) -> tuple[int, int]:
        try:
            return self._halves[node_id]
        except KeyError:
            raise UnknownNode(f"node {node_id!r} not in topology graph") from None

    def index_to_id(self, index: int) -> NodeId:
        try:
            return self._owner[index]
        except KeyError:
            raise NotFound(f"half-node index {index} not in topology graph") from None

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self._halves

    def has_edge_id(self, edge_id: EdgeId) -> bool:
        return edge_id in self._by_edge_id

    def get_other_toponode(self, index: int) -> int | None:
        """σ: the sibling half-node, or None for an unknown index."""
        node_id = self._owner.get(index)
        if node_id is None:
            return None
        a, b = self._halves[node_id]
        return b if index == a else a

    def node_ids(self) -> Iterator[NodeId]:
        return iter(self._halves)

    # --------------- Nodes ------------------------------------

    def add_node(self, node_id: NodeId) -> tuple[int, int]:
        if node_id in self._halves:
            return self._halves[node_id]
        pair = (self._node_slots.allocate(), self._node_slots.allocate())
        for i in pair:
            self.graph.add_node(i, topo=TopoNode(i, node_id))
            self._owner[i] = node_id
        self._halves[node_id] = pair
        return pair

    def remove_node(self, node_id: NodeId) -> None:
        """Drop a node's halves. Only allowed once no edge touches them."""
        for i in self.id_to_index(node_id):
            if self.graph.degree(i):
                raise InconsistentTopology(f"node {node_id!r} still has topology edges")
        for i in self._halves.pop(node_id):
            self.graph.remove_node(i)
            del self._owner[i]

    # --------------- Edge queries -----------------------------

    def edge(self, index: int) -> TopoEdge:
        try:
            s, t = self._ends[index]
        except KeyError:
            raise UnknownEdge(f"topology edge index {index} not found") from None
        return self.graph.edges[s, t, index]["topo"]

    def edge_endpoints(self, index: int) -> tuple[int, int]:
        if index not in self._ends:
            raise UnknownEdge(f"topology edge index {index} not found")
        return self._ends[index]

    def edges_of(self, edge_id: EdgeId) -> tuple[int, ...]:
        try:
            return tuple(self._by_edge_id[edge_id])
        except KeyError:
            raise UnknownEdge(f"edge {edge_id!r} has no topology edges") from None

    def iter_edges(self) -> Iterator[TopoEdge]:
        for index in sorted(self._ends):
            yield self.edge(index)

    def out_edges(self, index: int) -> list[tuple[int, TopoEdge]]:
        """(target half, edge) for every edge leaving a half-node, by edge index."""
        out = [(t, k, e) for _, t, k, e in self.graph.out_edges(index, keys=True, data="topo")]
        return [(t, e) for t, _, e in sorted(out, key=lambda x: x[1])]

    def in_edges(self, index: int) -> list[tuple[int, TopoEdge]]:
        inc = [(s, k, e) for s, _, k, e in self.graph.in_edges(index, keys=True, data="topo")]
        return [(s, e) for s, _, e in sorted(inc, key=lambda x: x[1])]

    def has_incoming(self, index: int) -> bool:
        if index not in self._owner:
            raise NotFound(f"half-node index {index} not in topology graph")
        return self.graph.in_degree(index) > 0

    def no_edges_in_direction(
        self, index: int, neighbors: Iterable[NodeId], direction: Direction
    ) -> bool:
        """True when no edge in `direction` joins this half-node to any of `neighbors`."""
        wanted = set(neighbors)
        if direction is Direction.OUTGOING:
            others = (t for _, t in self.graph.out_edges(index))
        else:
            others = (s for s, _ in self.graph.in_edges(index))
        return not any(self._owner[o] in wanted for o in others)

    def find_node_index_with_edges(
        self, node_id: NodeId, neighbors: Iterable[NodeId], direction: Direction
    ) -> int | None:
        """
        First half of `node_id` with no edge in the opposite of `direction`
        towards `neighbors`, i.e. a half where such edges can be added in
        `direction` without contradicting existing ones.
        """
        wanted = list(neighbors)
        for half in self.id_to_index(node_id):
            if self.no_edges_in_direction(half, wanted, direction.opposite()):
                return half
        return None

    def find_edge_indices(self, u: NodeId, v: NodeId) -> list[int]:
        """Every topology edge between the halves of u and v, either direction."""
        hu, hv = set(self.id_to_index(u)), set(self.id_to_index(v))
        found = [
            i
            for i, (s, t) in self._ends.items()
            if (s in hu and t in hv) or (s in hv and t in hu)
        ]
        return sorted(found)

    def dual_pairs(self, u: NodeId, v: NodeId) -> list[tuple[int, int]]:
        groups: dict[EdgeId, list[int]] = {}
        for i in self.find_edge_indices(u, v):
            groups.setdefault(self.edge(i).edge_id, []).append(i)
        pairs = []
        for edge_id, idx in groups.items():
            if len(idx) != 2:
                raise InconsistentTopology(
                    f"edge {edge_id!r} has {len(idx)} topology edges between {u!r} and {v!r}"
                )
            pairs.append((idx[0], idx[1]))
        return pairs

    def edge_is_in_neighbors_direction(self, index: int, node: NodeId | None = None) -> bool:
        """
        True when the edge continues its neighbours' flow: something arrives at
        its source half and something leaves its target half. With `node`, only
        the end owned by that node is checked.
        """
        s, t = self.edge_endpoints(index)
        arrives = any(p != t for p in self.graph.predecessors(s))
        leaves = any(n != s for n in self.graph.successors(t))
        if node is None:
            return arrives and leaves
        if self._owner[s] == node:
            return arrives
        if self._owner[t] == node:
            return leaves
        raise ValueError(f"node {node!r} is not an endpoint of topology edge {index}")

    # --------------- Edge mutation ----------------------------

    def add_edge(
        self,
        edge_id: EdgeId,
        u: NodeId,
        v: NodeId,
        accessability: Accessability | None = None,
    ) -> tuple[int, int]:
        """
        Insert the dual pair for a u-v edge and return (forward, dual) indices.

        Without accessability the forward edge leaves the first half of u with
        no incoming edge and enters the first half of v with no incoming edge.
        With ReachableNodes(ns) the forward edge leaves the half of u that
        travellers from ns arrive on; with UnreachableNodes(ns) it leaves the
        other half, so travellers from ns cannot take it.
        """
        if edge_id in self._by_edge_id:
            raise DuplicateId(f"edge {edge_id!r} already in topology graph")
        src, dst = self._place(u, v, accessability)
        return self._add_pair(edge_id, src, dst, accessability)

    def _place(self, u, v, accessability) -> tuple[int, int]:
        u_halves, v_halves = self.id_to_index(u), self.id_to_index(v)
        if accessability is None:
            src = u_halves[1] if self.has_incoming(u_halves[0]) else u_halves[0]
            dst = v_halves[1] if self.has_incoming(v_halves[0]) else v_halves[0]
            return src, dst
        if isinstance(accessability, ReachableNodes):
            dirs = (Direction.INCOMING, Direction.OUTGOING)
        else:
            dirs = (Direction.OUTGOING, Direction.INCOMING)
        src = self.find_node_index_with_edges(u, accessability.nodes, dirs[0])
        dst = self.find_node_index_with_edges(v, accessability.nodes, dirs[1])
        if src is None or dst is None:
            raise InconsistentTopology(
                f"no half-node of {u if src is None else v!r} admits {accessability!r}"
            )
        return src, dst

    def _add_pair(self, edge_id, src, dst, accessability) -> tuple[int, int]:
        fwd = self._insert(edge_id, src, dst, accessability)
        dual = self._insert(
            edge_id, self.get_other_toponode(dst), self.get_other_toponode(src), accessability
        )
        self.edge(fwd).dual, self.edge(dual).dual = dual, fwd
        return fwd, dual

    def _insert(self, edge_id, s, t, accessability, index: int | None = None) -> int:
        if index is None:
            index = self._edge_slots.allocate()
        topo = TopoEdge(
            index=index,
            edge_id=edge_id,
            source=self._owner[s],
            target=self._owner[t],
            accessability=accessability,
        )
        self.graph.add_edge(s, t, key=index, topo=topo)
        self._ends[index] = (s, t)
        self._by_edge_id.setdefault(edge_id, []).append(index)
        return index

    def _move(self, index: int, s: int, t: int) -> TopoEdge:
        """Re-seat an edge on new endpoints, keeping its index and payload."""
        old_s, old_t = self._ends[index]
        topo = self.graph.edges[old_s, old_t, index]["topo"]
        self.graph.remove_edge(old_s, old_t, key=index)
        self.graph.add_edge(s, t, key=index, topo=topo)
        self._ends[index] = (s, t)
        topo.source, topo.target = self._owner[s], self._owner[t]
        return topo

    def add_directed_edge(self, edge_id: EdgeId, src: int, dst: int) -> int:
        """Insert one half-edge with no dual; pair it later with link_dual_edges."""
        for i in (src, dst):
            if i not in self._owner:
                raise NotFound(f"half-node index {i} not in topology graph")
        if len(self._by_edge_id.get(edge_id, ())) >= 2:
            raise DuplicateId(f"edge {edge_id!r} already has a dual pair")
        return self._insert(edge_id, src, dst, None)

    def link_dual_edges(self, a: int, b: int) -> None:
        """Record two independently built edges as each other's dual."""
        ea, eb = self.edge(a), self.edge(b)
        sa, ta = self._ends[a]
        if ea.edge_id != eb.edge_id:
            raise InconsistentTopology(f"edges {a} and {b} belong to different edge ids")
        if self._ends[b] != (self.get_other_toponode(ta), self.get_other_toponode(sa)):
            raise InconsistentTopology(f"edge {b} does not mirror edge {a}")
        ea.dual, eb.dual = b, a

    def reverse_edge(self, index: int) -> None:
        """Flip an edge and its dual together; skew-symmetry is preserved."""
        topo = self.edge(index)
        for i in (index,) if topo.dual is None else (index, topo.dual):
            s, t = self._ends[i]
            moved = self._move(i, t, s)
            moved.reversed = not moved.reversed

    def reverse_dual_edge(self, u: NodeId, v: NodeId, edge_id: EdgeId | None = None) -> list[EdgeId]:
        done = []
        for fwd, _ in self.dual_pairs(u, v):
            eid = self.edge(fwd).edge_id
            if edge_id is None or eid == edge_id:
                self.reverse_edge(fwd)
                done.append(eid)
        return done

    def cross_link(self, fwd: int, dual: int) -> None:
        """
        Re-pair x -> y / σy -> σx as x -> σy / y -> σx: the edge keeps its
        source half and moves its target to the sibling half-node.
        """
        s1, t1 = self._ends[fwd]
        s2, t2 = self._ends[dual]
        a, b = self._move(fwd, s1, s2), self._move(dual, t1, t2)
        a.cross_linked, b.cross_linked = not a.cross_linked, not b.cross_linked
        a.dual, b.dual = dual, fwd

    def cross_link_dual_edge(self, u: NodeId, v: NodeId, edge_id: EdgeId | None = None) -> list[EdgeId]:
        done = []
        for fwd, dual in self.dual_pairs(u, v):
            eid = self.edge(fwd).edge_id
            if edge_id is None or eid == edge_id:
                self.cross_link(fwd, dual)
                done.append(eid)
        return done

    def remove_edge_pair(self, edge_id: EdgeId) -> None:
        for index in self.edges_of(edge_id):
            s, t = self._ends.pop(index)
            self.graph.remove_edge(s, t, key=index)
        del self._by_edge_id[edge_id]

    # --------------- Invariants -------------------------------

    def skew_violations(self) -> list[int]:
        """Edges whose mirror σ(t) -> σ(s) is missing or not recorded as dual."""
        bad = []
        for index, (s, t) in self._ends.items():
            topo = self.edge(index)
            mirror = (self.get_other_toponode(t), self.get_other_toponode(s))
            if topo.dual is None or self._ends.get(topo.dual) != mirror:
                bad.append(index)
                continue
            if self.edge(topo.dual).dual != index:
                bad.append(index)
        return sorted(bad)

    def check_skew_symmetry(self) -> None:
        bad = self.skew_violations()
        if bad:
            raise InconsistentTopology(f"topology edges without a valid dual: {bad}")

    # --------------- Views ------------------------------------

    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def as_view(self) -> nx.MultiDiGraph:
        """Read-only copy keyed by half-node index."""
        g = nx.MultiDiGraph()
        for i, topo in self.graph.nodes(data="topo"):
            g.add_node(i, node_id=topo.node_id)
        for topo in self.iter_edges():
            s, t = self._ends[topo.index]
            g.add_edge(s, t, key=topo.index, edge_id=topo.edge_id, dual=topo.dual)
        return nx.freeze(g)
