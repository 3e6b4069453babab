# transit_grid/graphs/hooks.py
from typing import Protocol


class NetworkHooks(Protocol):
    def node_added(self, *, node_id, index, topo): ...
    def edge_added(self, *, edge_id, source, target, index, switched): ...
    def edge_reversed(self, *, edge_id, dual): ...
    def dual_cross_linked(self, *, edge_id, dual): ...
    def geometry_flipped(self, *, edge_id): ...
    def repair_start(self, *, edges: int): ...
    def repair_end(self, *, passes: int, changed: int, unreconciled: int, wall_ms: float): ...
    def error(self, *, op: str, exc: BaseException, **kw): ...


class NoopHooks:
    def node_added(self, **_):
        pass

    def edge_added(self, **_):
        pass

    def edge_reversed(self, **_):
        pass

    def dual_cross_linked(self, **_):
        pass

    def geometry_flipped(self, **_):
        pass

    def repair_start(self, **_):
        pass

    def repair_end(self, **_):
        pass

    def error(self, *_, **__):
        pass
