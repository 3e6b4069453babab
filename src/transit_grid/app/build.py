# transit_grid/app/build.py
from collections.abc import Mapping

from transit_grid.config.models import NetworkModel
from transit_grid.graphs.hooks import NoopHooks
from transit_grid.graphs.network import TransitNetwork
from transit_grid.io.network_logging import NetworkLogging
from transit_grid.runtime.registries import make_metric


def build(cfg: NetworkModel | Mapping | None = None, *, use_logging: bool = True) -> TransitNetwork:
    # 0) Validate config
    if cfg is None:
        model = NetworkModel()
    else:
        model = cfg if isinstance(cfg, NetworkModel) else NetworkModel.model_validate(cfg)

    # 1) Hooks
    hooks = (
        NetworkLogging(network=model.name, level=model.log.level, debug=model.log.debug)
        if use_logging
        else NoopHooks()
    )

    # 2) Empty network over the configured metric
    return TransitNetwork(
        make_metric(model.metric),
        track_topology=model.topology.track,
        repair=model.topology.repair,
        hooks=hooks,
        name=model.name,
    )
