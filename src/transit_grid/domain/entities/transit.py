# transit_grid/domain/entities/transit.py
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from transit_grid.domain.entities.geography import Coord, Point, to_points
from transit_grid.domain.ids import EdgeId, NodeId


@dataclass(frozen=True)
class TransitNode:
    """A stop or location in the network. `location` is any coordinate payload."""

    id: NodeId
    location: Any


@dataclass(frozen=True)
class TransitEdge:
    """
    Undirected connection between two nodes. `source`/`target` are labels; the
    path runs from source to target. `length` overrides the metric length when set.
    """

    id: EdgeId
    source: NodeId
    target: NodeId
    path: Sequence[Coord] = ()
    length: float | None = None

    def __post_init__(self):
        object.__setattr__(self, "path", to_points(self.path))

    def source_coordinate(self) -> Point:
        if not self.path:
            raise ValueError(f"edge {self.id} has no geometry")
        return self.path[0]

    def target_coordinate(self) -> Point:
        if not self.path:
            raise ValueError(f"edge {self.id} has no geometry")
        return self.path[-1]

    def endpoints(self) -> tuple[NodeId, NodeId]:
        return self.source, self.target

    def other(self, node_id: NodeId) -> NodeId:
        if node_id == self.source:
            return self.target
        if node_id == self.target:
            return self.source
        raise ValueError(f"node {node_id} is not an endpoint of edge {self.id}")

    def with_reversed_path(self) -> "TransitEdge":
        return replace(self, path=self.path[::-1])
