# transit_grid/domain/ids.py
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from transit_grid.domain.errors import DuplicateId, NotFound

NodeId = int
EdgeId = int

K = TypeVar("K")


class IdIndexMap(Generic[K]):
    """
    Bidirectional map between stable external ids and dense graph indices.

    Both directions are updated together; iteration follows insertion order.
    Removal drops both entries, the freed index is never handed out again
    (see IndexAllocator).
    """

    def __init__(self, kind: str = "id"):
        self.kind = kind
        self._to_index: dict[K, int] = {}
        self._to_id: dict[int, K] = {}

    def insert(self, key: K, index: int) -> None:
        if key in self._to_index:
            raise DuplicateId(f"{self.kind} {key!r} already registered")
        if self.has_index(index):
            raise DuplicateId(f"index {index} already mapped to {self._to_id[index]!r}")
        self._to_index[key] = index
        self._to_id[index] = key

    def remove(self, key: K) -> int:
        index = self.id_to_index(key)
        del self._to_index[key]
        del self._to_id[index]
        return index

    def id_to_index(self, key: K) -> int:
        try:
            return self._to_index[key]
        except KeyError:
            raise NotFound(f"{self.kind} {key!r} not registered") from None

    def index_to_id(self, index: int) -> K:
        try:
            return self._to_id[index]
        except KeyError:
            raise NotFound(f"index {index} not mapped to any {self.kind}") from None

    def has_id(self, key: K) -> bool:
        return key in self._to_index

    def has_index(self, index: int) -> bool:
        return index in self._to_id

    def items(self) -> Iterator[tuple[K, int]]:
        return iter(self._to_index.items())

    def __contains__(self, key: object) -> bool:
        return key in self._to_index

    def __iter__(self) -> Iterator[K]:
        return iter(self._to_index)

    def __len__(self) -> int:
        return len(self._to_index)


@dataclass
class IndexAllocator:
    """Arena-style index source: monotonic, freed slots are tombstoned, not reused."""

    _next: int = 0

    def allocate(self) -> int:
        i = self._next
        self._next += 1
        return i


@dataclass
class IdGenerator:
    """Monotonic id source for callers that do not bring their own ids."""

    start: int = 0
    _issued: set[int] = field(default_factory=set, repr=False)

    def __post_init__(self):
        self._next = self.start

    def next_id(self) -> int:
        while self._next in self._issued:
            self._next += 1
        i = self._next
        self._issued.add(i)
        self._next += 1
        return i

    def reserve(self, i: int) -> None:
        # ids supplied by the caller must not be generated later
        self._issued.add(i)
