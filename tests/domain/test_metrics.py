# tests/domain/test_metrics.py
import math

import pytest

from transit_grid.domain.entities.geography import Point
from transit_grid.domain.entities.transit import TransitEdge
from transit_grid.domain.metrics import (
    EARTH_RADIUS_M,
    EuclideanMetric,
    HaversineMetric,
    ManhattanMetric,
    edge_length,
)


def test_euclidean():
    m = EuclideanMetric()
    assert m.distance((0, 0), (1, 1)) == pytest.approx(math.sqrt(2))
    assert m.path_length([(0, 0), (3, 4), (3, 5)]) == pytest.approx(6.0)
    assert m.path_length([(1, 1)]) == 0.0
    assert m.path_length([]) == 0.0


def test_manhattan():
    m = ManhattanMetric()
    assert m.distance(Point(0, 0), Point(2, -3)) == 5.0
    assert m.path_length([(0, 0), (1, 1), (1, 3)]) == pytest.approx(4.0)


def test_haversine_across_the_antimeridian():
    m = HaversineMetric()
    expected = 2 * math.pi * EARTH_RADIUS_M * 0.2 / 360
    assert m.distance((-179.9, 0.0), (179.9, 0.0)) == pytest.approx(expected, abs=1.0)


def test_haversine_quarter_meridian():
    m = HaversineMetric(radius_m=1.0)
    assert m.distance((0.0, 0.0), (0.0, 90.0)) == pytest.approx(math.pi / 2)


def test_edge_length_prefers_explicit_length():
    m = EuclideanMetric()
    geometric = TransitEdge(1, 1, 2, [(0, 0), (0, 2)])
    explicit = TransitEdge(2, 1, 2, [(0, 0), (0, 2)], length=10.0)
    assert edge_length(geometric, m) == pytest.approx(2.0)
    assert edge_length(explicit, m) == 10.0
