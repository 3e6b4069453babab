# tests/app/test_build_network.py
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from transit_grid.app.build import build
from transit_grid.config.models import NetworkModel
from transit_grid.domain.entities.transit import TransitEdge, TransitNode
from transit_grid.domain.metrics import EuclideanMetric, HaversineMetric
from transit_grid.graphs.hooks import NoopHooks
from transit_grid.io.network_logging import NetworkLogging
from transit_grid.runtime.registries import make_metric


def test_build_defaults():
    net = build(use_logging=False)
    assert isinstance(net.metric, EuclideanMetric)
    assert isinstance(net.hooks, NoopHooks)
    assert net.repair_mode == "on_demand"
    assert net.track_topology


def test_build_from_mapping():
    cfg = {
        "name": "rail",
        "metric": {"kind": "haversine", "radius_m": 6_371_000.0},
        "topology": {"track": False, "repair": "eager"},
        "log": {"level": "WARNING", "debug": True},
    }
    net = build(cfg)
    assert net.name == "rail"
    assert isinstance(net.metric, HaversineMetric)
    assert net.metric.radius_m == 6_371_000.0
    assert net.repair_mode == "eager"
    assert not net.track_topology
    assert isinstance(net.hooks, NetworkLogging)
    assert net.hooks.debug

    net.add_node(TransitNode(1, (0.0, 0.0)))
    net.add_node(TransitNode(2, (1.0, 0.0)))
    net.add_edge(TransitEdge(1, 1, 2, [(0.0, 0.0), (1.0, 0.0)]))
    assert net.edge_length(net.edge(1)) == pytest.approx(111_195, rel=1e-3)


def test_build_accepts_a_model():
    net = build(NetworkModel(name="bus"), use_logging=False)
    assert net.name == "bus"


@pytest.mark.parametrize(
    "cfg",
    [
        {"metric": {"kind": "teleport"}},
        {"metric": {"kind": "haversine", "radius_m": 0}},
        {"topology": {"repair": "sometimes"}},
        {"colour": "red"},
    ],
)
def test_invalid_config_is_rejected(cfg):
    with pytest.raises(ValidationError):
        build(cfg, use_logging=False)


def test_unknown_metric_kind():
    with pytest.raises(ValueError):
        make_metric(SimpleNamespace(kind="teleport"))
