"""
Fixed-capacity hash tables using open addressing.
One table store, parameterized by a probe strategy (linear, quadratic,
double hashing). No resizing and no deletion.
"""

import abc
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from probing.probes import (
    STRATEGIES,
    DoubleHashing,
    LinearProbing,
    ProbeStrategy,
    QuadraticPrimaryProbing,
    QuadraticProbing,
    probe_attempts,
)

logger = logging.getLogger(__name__)


class ProbingError(RuntimeError):
    pass


class CapacityExceeded(ProbingError):
    def __init__(self, key, size: int):
        super().__init__(f"Table is full: no free slot for key {key!r} (size={size})")
        self.key = key
        self.size = size


class InvalidCapacity(ProbingError, ValueError):
    def __init__(self, size):
        super().__init__(f"Table size must be a positive integer, got {size!r}")
        self.size = size


class UnknownStrategy(ProbingError, KeyError):
    def __init__(self, name):
        super().__init__(f"Unknown probe strategy {name!r}, use one of {sorted(STRATEGIES)}")
        self.name = name

    def __str__(self):
        return self.args[0]


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass
class Record:
    key: Any
    value: Any


class HashInterface(abc.ABC):
    """Operations every table variant supports."""

    @abc.abstractmethod
    def get(self, key): ...

    @abc.abstractmethod
    def put(self, key, value) -> None: ...

    @abc.abstractmethod
    def collision_count(self) -> int: ...

    @abc.abstractmethod
    def dump(self) -> str: ...


class HashTable(HashInterface):
    def __init__(self, size: int, strategy: ProbeStrategy):
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise InvalidCapacity(size)
        self.size = size
        self.strategy = strategy
        self.table: List[Optional[Record]] = [None] * size
        self.collisions = 0
        logger.debug("Created %s table with %d slots", strategy.name, size)

    def __len__(self):
        return sum(1 for slot in self.table if slot is not None)

    def __repr__(self):
        return f"{type(self).__name__}(size={self.size}, strategy={self.strategy!r})"

    def lookup(self, key) -> Tuple[Optional[int], int]:
        """
        Walk the probe sequence for key.
        Returns (index, collisions) where index is the first empty or matching
        slot, or None once every distinct index on the sequence has been tried
        (at most size attempts, see probe_attempts).
        Every occupied, non-matching slot on the way counts as a collision;
        an index the sequence comes back to is not counted twice.
        """
        collisions = 0
        for _, idx in probe_attempts(self.strategy, key, self.size):
            slot = self.table[idx]
            if slot is None or slot.key == key:
                return idx, collisions
            collisions += 1
        return None, collisions

    def put(self, key, value) -> None:
        """Insert key or overwrite its value in place."""
        idx, collisions = self.lookup(key)
        if idx is None:
            # failed put leaves the table and its counter untouched
            logger.warning("%s table full (size=%d), cannot place key %r",
                           self.strategy.name, self.size, key)
            raise CapacityExceeded(key, self.size)
        self.collisions += collisions
        slot = self.table[idx]
        if slot is None:
            self.table[idx] = Record(key, value)
        else:
            slot.value = value

    def get(self, key):
        """Return the stored value, or NotFound() if key is absent."""
        idx, collisions = self.lookup(key)
        self.collisions += collisions
        if idx is None:
            return NotFound()
        slot = self.table[idx]
        if slot is None:
            return NotFound()
        return slot.value

    def collision_count(self) -> int:
        return self.collisions

    def dump(self) -> str:
        label = self.strategy.label
        lines = [f"*** {label} Start ***", "", f"print table.size()={self.size}"]
        for i, slot in enumerate(self.table):
            if slot is not None:
                lines.append(f"index={i} key={slot.key} value={slot.value}")
        lines += ["", f"{label} {self.collisions} collisions", "", f"*** {label} End ***", ""]
        return "\n".join(lines) + "\n"

    def as_list(self):
        """Return serializable list representation of table (indexes)"""
        out = []
        for i, slot in enumerate(self.table):
            if slot is None:
                out.append(None)
            else:
                out.append({"index": i, "key": slot.key, "value": slot.value})
        return out

    def flatten(self) -> List[Record]:
        """Return occupied records in index order"""
        return [slot for slot in self.table if slot is not None]


class LinearProbingHash(HashTable):
    def __init__(self, size: int):
        super().__init__(size, STRATEGIES[LinearProbing.name])


class QuadraticProbingHash(HashTable):
    def __init__(self, size: int):
        super().__init__(size, STRATEGIES[QuadraticProbing.name])


class QuadraticPrimaryProbingHash(HashTable):
    def __init__(self, size: int):
        super().__init__(size, STRATEGIES[QuadraticPrimaryProbing.name])


class DoubleHashingProbing(HashTable):
    def __init__(self, size: int):
        super().__init__(size, STRATEGIES[DoubleHashing.name])


def get_strategy(name: str) -> ProbeStrategy:
    try:
        return STRATEGIES[name.lower()]
    except KeyError:
        raise UnknownStrategy(name) from None


def new_table(name: str, size: int) -> HashTable:
    return HashTable(size, get_strategy(name))
