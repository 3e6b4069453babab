# transit_grid/graphs/network.py
import threading
from typing import Literal

import networkx as nx

from transit_grid.app.protocols import CoordinateMetric, TransitNetworkModifier
from transit_grid.domain.accessability import Accessability
from transit_grid.domain.entities.transit import TransitEdge, TransitNode
from transit_grid.domain.errors import InconsistentTopology, TransitGridError
from transit_grid.domain.ids import EdgeId, IdGenerator, NodeId
from transit_grid.domain.metrics import EuclideanMetric, edge_length
from transit_grid.graphs.hooks import NetworkHooks, NoopHooks
from transit_grid.graphs.physical import PhysicalGraph
from transit_grid.graphs.repair import RepairReport, TopologyRepairer
from transit_grid.graphs.topology import TopologyGraph

RepairMode = Literal["on_demand", "eager"]


class TransitNetwork(TransitNetworkModifier):
    """
    One network, two graphs: the undirected physical layout and the
    skew-symmetric topology. All mutation goes through this class so the two
    graphs and their id maps move together; a failed call leaves no trace.

    Mutations and queries take `lock`, so an embedding service can share one
    network between threads without seeing half-applied edges.
    """

    def __init__(
        self,
        metric: CoordinateMetric | None = None,
        *,
        track_topology: bool = True,
        repair: RepairMode = "on_demand",
        hooks: NetworkHooks | None = None,
        name: str = "network",
    ):
        if repair not in ("on_demand", "eager"):
            raise ValueError(f"Unknown repair mode {repair!r}")
        self.name = name
        self.metric = metric or EuclideanMetric()
        self.track_topology = track_topology
        self.repair_mode = repair
        self.hooks = hooks or NoopHooks()
        self.physical_graph = PhysicalGraph()
        self.topology_graph = TopologyGraph()
        self.repairer = TopologyRepairer(self)
        self.lock = threading.RLock()
        self._node_ids = IdGenerator()
        self._edge_ids = IdGenerator()
        self._lengths: dict[EdgeId, float] = {}

    # --------------- Ids --------------------------------------

    def next_node_id(self) -> NodeId:
        with self.lock:
            return self._node_ids.next_id()

    def next_edge_id(self) -> EdgeId:
        with self.lock:
            return self._edge_ids.next_id()

    # --------------- Mutation ---------------------------------

    def add_node(self, node: TransitNode) -> NodeId:
        with self.lock:
            try:
                index = self.physical_graph.add_node(node)
            except TransitGridError as e:
                self.hooks.error(op="add_node", exc=e, node_id=node.id)
                raise
            topo = self.topology_graph.add_node(node.id) if self.track_topology else None
            self._node_ids.reserve(node.id)
            self.hooks.node_added(node_id=node.id, index=index, topo=topo)
            return node.id

    def add_edge(self, edge: TransitEdge) -> int:
        """Insert a plain physical edge; it carries no switch constraints."""
        with self.lock:
            try:
                index = self.physical_graph.add_edge(edge)
            except TransitGridError as e:
                self.hooks.error(op="add_edge", exc=e, edge_id=edge.id)
                raise
            self._edge_added(edge, index, switched=False)
            return index

    def add_edge_with_accessibility(
        self, edge: TransitEdge, accessability: Accessability | None = None
    ) -> int:
        """
        Insert a physical edge together with its dual topology pair.

        `accessability` picks the half-nodes the pair attaches to; with None the
        pair leaves the source half that has no incoming edges and enters the
        target half that has none, leaving direction to repair().
        """
        with self.lock:
            topo = self.topology_graph
            fresh: list[NodeId] = []
            index = None
            try:
                self.physical_graph.check_edge(edge)
                for end in dict.fromkeys((edge.source, edge.target)):
                    if not topo.has_node(end):
                        topo.add_node(end)
                        fresh.append(end)
                index = self.physical_graph.add_edge(edge)
                topo.add_edge(edge.id, edge.source, edge.target, accessability)
            except TransitGridError as e:
                if index is not None:
                    self.physical_graph.remove_edge(edge.id)
                for end in fresh:
                    topo.remove_node(end)
                self.hooks.error(op="add_edge_with_accessibility", exc=e, edge_id=edge.id)
                raise
            self._edge_added(edge, index, switched=True)
            return index

    def _edge_added(self, edge: TransitEdge, index: int, *, switched: bool) -> None:
        self._edge_ids.reserve(edge.id)
        self._lengths[edge.id] = edge_length(edge, self.metric)
        self.hooks.edge_added(
            edge_id=edge.id, source=edge.source, target=edge.target, index=index, switched=switched
        )
        if self.repair_mode == "eager":
            self.repairer.repair_edge(edge.source, edge.target)

    # --------------- Repair -----------------------------------

    def repair_edge(self, node1: NodeId, node2: NodeId) -> RepairReport:
        with self.lock:
            return self.repairer.repair_edge(node1, node2)

    def repair(self) -> RepairReport:
        with self.lock:
            return self.repairer.repair()

    # --------------- Queries ----------------------------------

    def node(self, node_id: NodeId) -> TransitNode:
        with self.lock:
            return self.physical_graph.node(node_id)

    def edge(self, edge_id: EdgeId) -> TransitEdge:
        with self.lock:
            return self.physical_graph.edge(edge_id)

    def get_transit_edge(self, u: NodeId, v: NodeId) -> TransitEdge:
        with self.lock:
            return self.physical_graph.get_transit_edge(u, v)

    def edge_length(self, edge: TransitEdge) -> float:
        with self.lock:
            cached = self._lengths.get(edge.id)
        return cached if cached is not None else edge_length(edge, self.metric)

    def is_switched(self, edge_id: EdgeId) -> bool:
        with self.lock:
            return self.topology_graph.has_edge_id(edge_id)

    def node_count(self) -> int:
        with self.lock:
            return self.physical_graph.node_count()

    def edge_count(self) -> int:
        with self.lock:
            return self.physical_graph.edge_count()

    def physical_view(self) -> nx.MultiGraph:
        with self.lock:
            return self.physical_graph.as_view()

    def topology_view(self) -> nx.MultiDiGraph:
        with self.lock:
            return self.topology_graph.as_view()

    def check_consistency(self) -> None:
        """Raise InconsistentTopology if the two graphs or their id maps disagree."""
        with self.lock:
            phys, topo = self.physical_graph, self.topology_graph
            for node_id in topo.node_ids():
                if not phys.has_node(node_id):
                    raise InconsistentTopology(f"topology node {node_id!r} has no transit node")
            for edge in topo.iter_edges():
                if not phys.has_edge_id(edge.edge_id):
                    raise InconsistentTopology(f"topology edge {edge.index} has no transit edge")
            for edge in phys.iter_edges():
                if topo.has_edge_id(edge.id) and len(topo.edges_of(edge.id)) != 2:
                    raise InconsistentTopology(f"edge {edge.id!r} is not a single dual pair")
            for node_id, index in phys.nodes.items():
                if phys.index_to_id(index) != node_id:
                    raise InconsistentTopology(f"node map out of step at {node_id!r}")
            topo.check_skew_symmetry()
