# transit_grid/graphs/repair.py
import time
from dataclasses import dataclass, field
from enum import Enum

from transit_grid.domain.ids import EdgeId, NodeId


class RepairAction(Enum):
    UNCHANGED = "unchanged"
    REVERSED = "reversed"
    CROSS_LINKED = "cross_linked"
    REVERSED_CROSS_LINKED = "reversed_cross_linked"
    UNRECONCILED = "unreconciled"


@dataclass
class RepairReport:
    passes: int = 0
    reversed: list[EdgeId] = field(default_factory=list)
    cross_linked: list[EdgeId] = field(default_factory=list)
    geometry_flipped: list[EdgeId] = field(default_factory=list)
    unreconciled: list[EdgeId] = field(default_factory=list)
    actions: dict[EdgeId, RepairAction] = field(default_factory=dict)

    @property
    def changed(self) -> int:
        return len(self.reversed) + len(self.cross_linked)

    def record(self, edge_id: EdgeId, action: RepairAction) -> None:
        # a later visit that finds the pair already fixed keeps the earlier action
        if action is not RepairAction.UNCHANGED or edge_id not in self.actions:
            self.actions[edge_id] = action
        if action in (RepairAction.REVERSED, RepairAction.REVERSED_CROSS_LINKED):
            self.reversed.append(edge_id)
        if action in (RepairAction.CROSS_LINKED, RepairAction.REVERSED_CROSS_LINKED):
            self.cross_linked.append(edge_id)
        if action is RepairAction.UNRECONCILED and edge_id not in self.unreconciled:
            self.unreconciled.append(edge_id)


class TopologyRepairer:
    """
    Restores direction consistency after edges arrive in arbitrary order.

    A dual pair is consistent when at least one of its edges carries flow on
    from a neighbour to a neighbour. An inconsistent pair is tried reversed,
    cross-linked, then cross-linked and reversed, which between them visit the
    pair's other three placements. A candidate is kept only when it
    makes the pair consistent and strictly raises the number of consistent
    topology edges around its two nodes. That number only grows, so repair()
    cannot oscillate and a second run finds nothing to do.
    """

    _CANDIDATES = (
        (RepairAction.REVERSED, ("reverse",)),
        (RepairAction.CROSS_LINKED, ("cross",)),
        (RepairAction.REVERSED_CROSS_LINKED, ("cross", "reverse")),
    )

    def __init__(self, network):
        self.network = network

    @property
    def topology(self):
        return self.network.topology_graph

    # --------------- Single edge ------------------------------

    def repair_edge(self, u: NodeId, v: NodeId, report: RepairReport | None = None) -> RepairReport:
        report = report if report is not None else RepairReport()
        net = self.network
        for edge_id in net.physical_graph.repair_edge(u, v, net.metric):
            report.geometry_flipped.append(edge_id)
            net.hooks.geometry_flipped(edge_id=edge_id)

        topo = self.topology
        if not (topo.has_node(u) and topo.has_node(v)):
            return report
        for fwd, dual in topo.dual_pairs(u, v):
            edge_id = topo.edge(fwd).edge_id
            action = self._repair_pair(fwd, dual, u, v)
            report.record(edge_id, action)
            if action in (RepairAction.REVERSED, RepairAction.REVERSED_CROSS_LINKED):
                net.hooks.edge_reversed(edge_id=edge_id, dual=(fwd, dual))
            if action in (RepairAction.CROSS_LINKED, RepairAction.REVERSED_CROSS_LINKED):
                net.hooks.dual_cross_linked(edge_id=edge_id, dual=(fwd, dual))
        return report

    def _pair_consistent(self, fwd: int, dual: int) -> bool:
        topo = self.topology
        return topo.edge_is_in_neighbors_direction(fwd) or topo.edge_is_in_neighbors_direction(dual)

    def _local_score(self, halves: set[int]) -> int:
        # only edges touching these halves can change consistency when the pair moves
        topo = self.topology
        touching = set()
        for h in halves:
            touching.update(e.index for _, e in topo.out_edges(h))
            touching.update(e.index for _, e in topo.in_edges(h))
        return sum(topo.edge_is_in_neighbors_direction(i) for i in touching)

    def _apply(self, op: str, fwd: int, dual: int) -> None:
        if op == "reverse":
            self.topology.reverse_edge(fwd)
        else:
            self.topology.cross_link(fwd, dual)

    def _repair_pair(self, fwd: int, dual: int, u: NodeId, v: NodeId) -> RepairAction:
        if self._pair_consistent(fwd, dual):
            return RepairAction.UNCHANGED
        topo = self.topology
        halves = {*topo.id_to_index(u), *topo.id_to_index(v)}
        before = self._local_score(halves)
        for action, ops in self._CANDIDATES:
            for op in ops:
                self._apply(op, fwd, dual)
            if self._pair_consistent(fwd, dual) and self._local_score(halves) > before:
                return action
            # both operations are involutions; undo in reverse order
            for op in reversed(ops):
                self._apply(op, fwd, dual)
        return RepairAction.UNRECONCILED

    # --------------- Whole network ----------------------------

    def repair(self) -> RepairReport:
        net = self.network
        t0 = time.perf_counter()
        # one visit per unordered node pair; repair_edge covers every edge between them
        ends: dict[frozenset, tuple[NodeId, NodeId]] = {}
        for e in net.physical_graph.iter_edges():
            ends.setdefault(frozenset(e.endpoints()), e.endpoints())
        pairs = list(ends.values())
        net.hooks.repair_start(edges=len(pairs))

        report = RepairReport()
        # each change raises the consistent-edge count, which is bounded by edge_count
        limit = net.topology_graph.edge_count() + 2
        while report.passes < limit:
            report.passes += 1
            current = RepairReport()
            for u, v in pairs:
                self.repair_edge(u, v, current)
            report.reversed += current.reversed
            report.cross_linked += current.cross_linked
            report.geometry_flipped += current.geometry_flipped
            for edge_id, action in current.actions.items():
                if action is not RepairAction.UNCHANGED or edge_id not in report.actions:
                    report.actions[edge_id] = action
            report.unreconciled = current.unreconciled
            if current.changed == 0:
                break

        net.hooks.repair_end(
            passes=report.passes,
            changed=report.changed,
            unreconciled=len(report.unreconciled),
            wall_ms=(time.perf_counter() - t0) * 1000,
        )
        return report
