from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from transit_grid.domain.accessability import Accessability
from transit_grid.domain.entities.geography import Coord, Point
from transit_grid.domain.ids import NodeId


# ------------- Geometry capabilities --------------------
@runtime_checkable
class CoordinateMetric(Protocol):
    """
    Responsibilities:
      • Distance between two coordinates.
      • Length of a polyline (sum of pairwise distances).
    Units are whatever the metric defines (metres for the built-in ones).
    """

    def distance(self, a: Coord, b: Coord) -> float: ...
    def path_length(self, coords: Sequence[Coord]) -> float: ...


@runtime_checkable
class PathCoordinates(Protocol):
    """First and last coordinate of an edge geometry; used to tell its direction."""

    def source_coordinate(self) -> Point: ...
    def target_coordinate(self) -> Point: ...


# ------------- Network capabilities --------------------
@runtime_checkable
class TransitNetworkModifier(Protocol):
    """
    Coupled mutation entry points. After a successful call the physical graph,
    the topology graph and the id maps agree; a failed call changes nothing.
    """

    def add_node(self, node) -> NodeId: ...
    def add_edge(self, edge) -> int: ...
    def add_edge_with_accessibility(self, edge, accessability: Accessability) -> int: ...


@runtime_checkable
class TransitNetworkRepairer(Protocol):
    def repair_edge(self, node1: NodeId, node2: NodeId): ...
    def repair(self): ...
