# runtime/registries.py
from collections.abc import Callable

from transit_grid.app.protocols import CoordinateMetric
from transit_grid.config.models import (
    MetricEuclideanModel,
    MetricHaversineModel,
    MetricManhattanModel,
    MetricUnion,
)
from transit_grid.domain.metrics import EuclideanMetric, HaversineMetric, ManhattanMetric

MetricFactory = Callable[[MetricUnion], CoordinateMetric]

_metric_registry: dict[str, MetricFactory] = {}


def register_metric(kind: str):
    def deco(fn: MetricFactory):
        _metric_registry[kind] = fn
        return fn

    return deco


def make_metric(cfg: MetricUnion) -> CoordinateMetric:
    try:
        factory = _metric_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown metric kind {cfg.kind!r}") from None
    return factory(cfg)


@register_metric("euclidean")
def _make_euclidean(cfg: MetricEuclideanModel):
    return EuclideanMetric()


@register_metric("manhattan")
def _make_manhattan(cfg: MetricManhattanModel):
    return ManhattanMetric()


@register_metric("haversine")
def _make_haversine(cfg: MetricHaversineModel):
    return HaversineMetric(radius_m=cfg.radius_m)
