# transit_grid/domain/accessability.py
from collections.abc import Iterable
from dataclasses import dataclass

from transit_grid.domain.ids import NodeId


@dataclass(frozen=True)
class ReachableNodes:
    """
    Nodes that can be reached. As an edge tag: travellers arriving from these
    nodes may continue over the edge. As a query result: the path found, in order.
    """

    nodes: tuple[NodeId, ...] = ()

    def __init__(self, nodes: Iterable[NodeId] = ()):
        object.__setattr__(self, "nodes", tuple(nodes))

    def reachable_nodes(self) -> tuple[NodeId, ...] | None:
        return self.nodes

    def unreachable_nodes(self) -> tuple[NodeId, ...] | None:
        return None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes


@dataclass(frozen=True)
class UnreachableNodes:
    """
    Nodes that cannot be reached. As an edge tag: travellers arriving from these
    nodes may not continue over the edge. As a query filter: nodes never entered.
    As a query result: every node the search could not settle.
    """

    nodes: tuple[NodeId, ...] = ()

    def __init__(self, nodes: Iterable[NodeId] = ()):
        object.__setattr__(self, "nodes", tuple(nodes))

    def reachable_nodes(self) -> tuple[NodeId, ...] | None:
        return None

    def unreachable_nodes(self) -> tuple[NodeId, ...] | None:
        return self.nodes

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes


Accessability = ReachableNodes | UnreachableNodes
