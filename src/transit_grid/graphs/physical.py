# transit_grid/graphs/physical.py
from collections.abc import Iterator

import networkx as nx

from transit_grid.app.protocols import CoordinateMetric
from transit_grid.domain.entities.transit import TransitEdge, TransitNode
from transit_grid.domain.errors import DuplicateId, NotFound, UnknownEdge, UnknownNode
from transit_grid.domain.ids import EdgeId, IdIndexMap, IndexAllocator, NodeId


class PhysicalGraph:
    """
    Undirected layout of the network: transit nodes joined by transit edges.

    Storage is a networkx MultiGraph keyed by dense integer indices; the
    node and edge id maps translate stable ids to those indices.
    """

    def __init__(self):
        self.graph = nx.MultiGraph()
        self.nodes = IdIndexMap[NodeId]("node")
        self.edges = IdIndexMap[EdgeId]("edge")
        self._node_slots = IndexAllocator()
        self._edge_slots = IndexAllocator()
        self._edge_ends: dict[int, tuple[int, int]] = {}

    # --------------- Id / index mapping -----------------------

    def id_to_index(self, node_id: NodeId) -> int:
        try:
            return self.nodes.id_to_index(node_id)
        except NotFound:
            raise UnknownNode(f"node {node_id!r} not in physical graph") from None

    def index_to_id(self, index: int) -> NodeId:
        return self.nodes.index_to_id(index)

    def edge_id_to_index(self, edge_id: EdgeId) -> int:
        try:
            return self.edges.id_to_index(edge_id)
        except NotFound:
            raise UnknownEdge(f"edge {edge_id!r} not in physical graph") from None

    def edge_index_to_id(self, index: int) -> EdgeId:
        return self.edges.index_to_id(index)

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self.nodes

    def has_edge_id(self, edge_id: EdgeId) -> bool:
        return edge_id in self.edges

    # --------------- Mutation ---------------------------------

    def add_node(self, node: TransitNode) -> int:
        if node.id in self.nodes:
            raise DuplicateId(f"node {node.id!r} already in physical graph")
        index = self._node_slots.allocate()
        self.nodes.insert(node.id, index)
        self.graph.add_node(index, node=node)
        return index

    def add_edge(self, edge: TransitEdge) -> int:
        self.check_edge(edge)
        u, v = self.nodes.id_to_index(edge.source), self.nodes.id_to_index(edge.target)
        index = self._edge_slots.allocate()
        self.edges.insert(edge.id, index)
        self.graph.add_edge(u, v, key=index, edge=edge)
        self._edge_ends[index] = (u, v)
        return index

    def check_edge(self, edge: TransitEdge) -> None:
        """Raise the error add_edge would raise, without touching the graph."""
        if edge.id in self.edges:
            raise DuplicateId(f"edge {edge.id!r} already in physical graph")
        for end in (edge.source, edge.target):
            if end not in self.nodes:
                raise UnknownNode(f"edge {edge.id!r} references unknown node {end!r}")

    def remove_edge(self, edge_id: EdgeId) -> TransitEdge:
        index = self.edge_id_to_index(edge_id)
        u, v = self._edge_ends.pop(index)
        edge = self.graph.edges[u, v, index]["edge"]
        self.graph.remove_edge(u, v, key=index)
        self.edges.remove(edge_id)
        return edge

    def replace_edge(self, edge: TransitEdge) -> None:
        index = self.edge_id_to_index(edge.id)
        u, v = self._edge_ends[index]
        old = self.graph.edges[u, v, index]["edge"]
        if {old.source, old.target} != {edge.source, edge.target}:
            raise ValueError(f"edge {edge.id!r} endpoints cannot change on replace")
        self.graph.edges[u, v, index]["edge"] = edge

    # --------------- Queries ----------------------------------

    def node(self, node_id: NodeId) -> TransitNode:
        return self.graph.nodes[self.id_to_index(node_id)]["node"]

    def edge(self, edge_id: EdgeId) -> TransitEdge:
        index = self.edge_id_to_index(edge_id)
        u, v = self._edge_ends[index]
        return self.graph.edges[u, v, index]["edge"]

    def get_transit_edge(self, u: NodeId, v: NodeId) -> TransitEdge:
        """Edge joining u and v in either order; the first inserted one if parallel."""
        iu, iv = self.id_to_index(u), self.id_to_index(v)
        bundle = self.graph.get_edge_data(iu, iv)
        if not bundle:
            raise NotFound(f"no edge between {u!r} and {v!r}")
        return bundle[min(bundle)]["edge"]

    def edges_between(self, u: NodeId, v: NodeId) -> list[TransitEdge]:
        bundle = self.graph.get_edge_data(self.id_to_index(u), self.id_to_index(v)) or {}
        return [bundle[k]["edge"] for k in sorted(bundle)]

    def neighbors(self, node_id: NodeId) -> Iterator[tuple[NodeId, TransitEdge]]:
        """(neighbour id, edge) pairs in edge insertion order."""
        i = self.id_to_index(node_id)
        incident = sorted(self.graph.edges(i, keys=True, data="edge"), key=lambda e: e[2])
        for *_, edge in incident:
            yield edge.other(node_id), edge

    def iter_nodes(self) -> Iterator[TransitNode]:
        for _, node in self.graph.nodes(data="node"):
            yield node

    def iter_edges(self) -> Iterator[TransitEdge]:
        for index in sorted(self._edge_ends):
            u, v = self._edge_ends[index]
            yield self.graph.edges[u, v, index]["edge"]

    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    # --------------- Geometry repair --------------------------

    def path_is_reversed(self, edge: TransitEdge, metric: CoordinateMetric) -> bool:
        """True when the path starts nearer its target node than its source node."""
        if len(edge.path) < 2:
            return False
        src = self.node(edge.source).location
        dst = self.node(edge.target).location
        a, b = edge.source_coordinate(), edge.target_coordinate()
        as_is = metric.distance(src, a) + metric.distance(dst, b)
        flipped = metric.distance(src, b) + metric.distance(dst, a)
        return flipped < as_is

    def repair_edge(self, u: NodeId, v: NodeId, metric: CoordinateMetric) -> list[EdgeId]:
        """Reverse the path of every u-v edge whose geometry runs target to source."""
        flipped = []
        for edge in self.edges_between(u, v):
            if self.path_is_reversed(edge, metric):
                self.replace_edge(edge.with_reversed_path())
                flipped.append(edge.id)
        return flipped

    # --------------- Views ------------------------------------

    def as_view(self) -> nx.MultiGraph:
        """Read-only copy keyed by node id, edges keyed by edge id."""
        g = nx.MultiGraph()
        for node in self.iter_nodes():
            g.add_node(node.id, location=node.location)
        for edge in self.iter_edges():
            g.add_edge(edge.source, edge.target, key=edge.id, edge=edge)
        return nx.freeze(g)
