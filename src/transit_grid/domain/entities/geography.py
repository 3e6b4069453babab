from collections.abc import Sequence
from dataclasses import dataclass


# Core coordinate type consumed by the metrics
@dataclass(frozen=True)
class Point:
    x: float  # projected metres, or longitude for great-circle metrics
    y: float  # projected metres, or latitude for great-circle metrics


Coord = Point | tuple[float, float]


def to_point(p: Coord) -> Point:
    return p if isinstance(p, Point) else Point(float(p[0]), float(p[1]))


def to_points(coords: Sequence[Coord]) -> tuple[Point, ...]:
    return tuple(to_point(c) for c in coords)
