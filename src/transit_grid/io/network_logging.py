# io/network_logging.py
import json
import logging
import sys

from transit_grid.graphs.hooks import NoopHooks


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, default=str)


def _default_json_logger(name="transit_grid", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class NetworkLogging(NoopHooks):
    """
    Structured logs for network mutation and repair. Per-element records go
    out at DEBUG (only when `debug`), repair summaries at INFO, failures at ERROR.
    """

    def __init__(
        self,
        network: str = "network",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.network, self.debug = network, debug
        self.log = logger or _default_json_logger(level=level)

    def _emit(self, level: str, msg: str, **extra):
        payload = {"network": self.network, **extra}
        self.log.log(getattr(logging, level), msg, extra={"extra": payload})

    def _trace(self, msg: str, **extra):
        if self.debug:
            self._emit("DEBUG", msg, **extra)

    # --------------- Mutation -----------------------------

    def node_added(self, *, node_id, index, topo):
        self._trace("node_added", node_id=node_id, index=index, topo=topo)

    def edge_added(self, *, edge_id, source, target, index, switched):
        self._trace(
            "edge_added", edge_id=edge_id, source=source, target=target, index=index, switched=switched
        )

    def edge_reversed(self, *, edge_id, dual):
        self._trace("edge_reversed", edge_id=edge_id, dual=dual)

    def dual_cross_linked(self, *, edge_id, dual):
        self._trace("dual_cross_linked", edge_id=edge_id, dual=dual)

    def geometry_flipped(self, *, edge_id):
        self._trace("geometry_flipped", edge_id=edge_id)

    # --------------- Repair -------------------------------

    def repair_start(self, *, edges: int):
        self._emit("INFO", "repair_start", edges=edges)

    def repair_end(self, *, passes: int, changed: int, unreconciled: int, wall_ms: float):
        level = "WARNING" if unreconciled else "INFO"
        self._emit(
            level, "repair_end", passes=passes, changed=changed, unreconciled=unreconciled, wall_ms=wall_ms
        )

    def error(self, *, op: str, exc: BaseException, **extra):
        self._emit("ERROR", "network_error", op=op, error=str(exc), kind=type(exc).__name__, **extra)
