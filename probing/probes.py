"""
Hash functions and probe strategies for the open-addressing tables.
Each strategy maps (key, attempt, size) to a candidate slot index.
"""

import abc
from typing import Any, Dict, Iterator, List, Optional, Tuple

DEFAULT_TABLE_SIZE = 191  # prime, reduces clustering
DOUBLE_FACTOR = 181

_SIGN_MASK = 0x7fffffff
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def hash_string(data) -> int:
    """32-bit FNV-1a, stable across processes unlike hash(str)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    h = _FNV_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV_PRIME) & 0xffffffff
    return h


def key_hash(key: Any) -> int:
    if isinstance(key, int):
        return key
    if isinstance(key, (str, bytes)):
        return hash_string(key)
    return hash(key)


def non_negative(h: int) -> int:
    # mask, never negate: no minimum-integer overflow
    return h & _SIGN_MASK


def primary_hash(key: Any, size: int) -> int:
    return non_negative(key_hash(key)) % size


def secondary_hash(key: Any) -> int:
    """Step value in [1, DOUBLE_FACTOR], never zero."""
    return DOUBLE_FACTOR - non_negative(key_hash(key)) % DOUBLE_FACTOR


class ProbeStrategy(abc.ABC):
    name = ""
    label = ""

    @abc.abstractmethod
    def start(self, key: Any, size: int) -> int: ...

    @abc.abstractmethod
    def probe(self, key: Any, attempt: int, size: int) -> int: ...

    def __repr__(self):
        return f"{type(self).__name__}()"


class LinearProbing(ProbeStrategy):
    name = "linear"
    label = "Linear probing"

    def start(self, key, size):
        return primary_hash(key, size)

    def probe(self, key, attempt, size):
        return (self.start(key, size) + attempt) % size


class QuadraticProbing(ProbeStrategy):
    """
    Quadratic probing whose initial index comes from the secondary hash
    rather than a primary modulo-size hash. Kept as-is for compatibility
    with existing collision reports; see QuadraticPrimaryProbing.
    """
    name = "quadratic"
    label = "Quadratic probing"

    def start(self, key, size):
        return secondary_hash(key) % size

    def probe(self, key, attempt, size):
        return (self.start(key, size) + attempt * attempt) % size


class QuadraticPrimaryProbing(QuadraticProbing):
    """Quadratic probing starting from the primary hash."""
    name = "quadratic-primary"
    label = "Quadratic (primary) probing"

    def start(self, key, size):
        return primary_hash(key, size)


class DoubleHashing(ProbeStrategy):
    name = "double"
    label = "Double Hashing probing"

    def start(self, key, size):
        return primary_hash(key, size)

    def probe(self, key, attempt, size):
        return (self.start(key, size) + attempt * secondary_hash(key)) % size


STRATEGIES: Dict[str, ProbeStrategy] = {
    s.name: s
    for s in (LinearProbing(), QuadraticProbing(), QuadraticPrimaryProbing(), DoubleHashing())
}


def probe_attempts(strategy: ProbeStrategy, key: Any, size: int,
                   limit: Optional[int] = None) -> Iterator[Tuple[int, int]]:
    """
    Yield (attempt, index) for every distinct index the strategy visits for
    key, over attempts 0 .. size - 1. Repeated indices are skipped, not
    yielded again.

    Every strategy here is periodic in the attempt with a period dividing
    size ((i + size) ** 2 == i ** 2 mod size), so size attempts reach every
    index the sequence can ever produce. Quadratic probing on a composite
    size revisits indices before reaching new ones (size 24 from 0 goes
    0, 1, 4, 9, 16, 1, 12, ...), so a repeat does not end the walk.
    """
    seen = set()
    attempts = size if limit is None else min(size, limit)
    for attempt in range(attempts):
        idx = strategy.probe(key, attempt, size)
        if idx in seen:
            continue
        seen.add(idx)
        yield attempt, idx


def probe_indices(strategy: ProbeStrategy, key: Any, size: int, limit: Optional[int] = None) -> List[int]:
    """Candidate indices the strategy visits for key, in order, without repeats."""
    return [idx for _, idx in probe_attempts(strategy, key, size, limit)]
