# transit_grid/domain/metrics.py
import math
from collections.abc import Sequence

import numpy as np

from transit_grid.app.protocols import CoordinateMetric
from transit_grid.domain.entities.geography import Coord, to_point

EARTH_RADIUS_M = 6_371_008.8  # mean Earth radius


def _as_array(coords: Sequence[Coord]) -> np.ndarray:
    pts = [to_point(c) for c in coords]
    return np.array([(p.x, p.y) for p in pts], dtype=float).reshape(-1, 2)


class EuclideanMetric(CoordinateMetric):
    kind = "euclidean"

    def distance(self, a, b):
        a, b = to_point(a), to_point(b)
        return math.hypot(b.x - a.x, b.y - a.y)

    def path_length(self, coords):
        xy = _as_array(coords)
        if len(xy) < 2:
            return 0.0
        d = np.diff(xy, axis=0)
        return float(np.hypot(d[:, 0], d[:, 1]).sum())


class ManhattanMetric(CoordinateMetric):
    kind = "manhattan"

    def distance(self, a, b):
        a, b = to_point(a), to_point(b)
        return abs(b.x - a.x) + abs(b.y - a.y)

    def path_length(self, coords):
        xy = _as_array(coords)
        if len(xy) < 2:
            return 0.0
        return float(np.abs(np.diff(xy, axis=0)).sum())


class HaversineMetric(CoordinateMetric):
    """Great-circle distance in metres; x is longitude, y is latitude (degrees)."""

    kind = "haversine"

    def __init__(self, radius_m: float = EARTH_RADIUS_M):
        self.radius_m = radius_m

    def distance(self, a, b):
        a, b = to_point(a), to_point(b)
        return self.path_length((a, b))

    def path_length(self, coords):
        xy = _as_array(coords)
        if len(xy) < 2:
            return 0.0
        lon, lat = np.radians(xy[:, 0]), np.radians(xy[:, 1])
        dlat, dlon = np.diff(lat), np.diff(lon)
        h = np.sin(dlat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlon / 2) ** 2
        c = 2 * np.arcsin(np.sqrt(np.clip(h, 0.0, 1.0)))
        return float(self.radius_m * c.sum())


def edge_length(edge, metric: CoordinateMetric) -> float:
    """Explicit edge length if the edge carries one, else the metric length of its path."""
    if edge.length is not None:
        return float(edge.length)
    return metric.path_length(edge.path)
