# transit_grid/domain/errors.py


class TransitGridError(Exception):
    """Base exception for network operations."""


class DuplicateId(TransitGridError):
    """Raised when a node or edge id is already registered."""


class NotFound(TransitGridError, KeyError):
    """Raised when an id, index or edge lookup finds nothing."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable
        return str(self.args[0]) if self.args else ""


class UnknownNode(NotFound):
    """Raised when a referenced node id was never registered."""


class UnknownEdge(NotFound):
    """Raised when a referenced edge id was never registered."""


class InconsistentTopology(TransitGridError):
    """Raised when a dual-edge invariant cannot be established or is found broken."""
