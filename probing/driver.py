"""
Feeds integer keys into a table in three orders and records what happened.
Every key is stored with value 2 * key and read straight back.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Sequence, Tuple

from probing.hashing import HashInterface, HashTable, NotFound, ProbingError, get_strategy, new_table
from probing.sorting import phase_orders

logger = logging.getLogger(__name__)


class ValueMismatch(ProbingError):
    def __init__(self, key, expected, retrieved):
        super().__init__(
            f"Retrieved value {retrieved} does not match stored value {expected} for key {key}"
        )
        self.key = key
        self.expected = expected
        self.retrieved = retrieved


@dataclass
class KeyOutcome:
    key: int
    value: int
    retrieved: Any
    collisions: int

    @property
    def matched(self) -> bool:
        return not isinstance(self.retrieved, NotFound) and self.retrieved == self.value

    def retrieved_text(self) -> str:
        return "null" if isinstance(self.retrieved, NotFound) else str(self.retrieved)

    def to_dict(self):
        return {
            "key": self.key,
            "value": self.value,
            "retrieved": None if isinstance(self.retrieved, NotFound) else self.retrieved,
            "collisions": self.collisions,
            "matched": self.matched,
        }


@dataclass
class PhaseResult:
    phase: str
    outcomes: List[KeyOutcome] = field(default_factory=list)
    collisions: int = 0
    total_collisions: int = 0
    dump: str = ""

    @property
    def mismatches(self) -> List[KeyOutcome]:
        return [o for o in self.outcomes if not o.matched]


@dataclass
class RunResult:
    strategy: str
    label: str
    size: int
    phases: List[PhaseResult]
    dump: str
    slots: List[dict] = field(default_factory=list)

    @property
    def total_collisions(self) -> int:
        return self.phases[-1].total_collisions if self.phases else 0

    def summary(self):
        return {
            "strategy": self.strategy,
            "size": self.size,
            "total_collisions": self.total_collisions,
            "phases": [
                {
                    "phase": p.phase,
                    "keys": len(p.outcomes),
                    "collisions": p.collisions,
                    "total_collisions": p.total_collisions,
                    "mismatches": len(p.mismatches),
                }
                for p in self.phases
            ],
        }


def parse_keys(text: str) -> List[int]:
    """Whitespace separated integers; other tokens are skipped."""
    keys = []
    for token in text.split():
        try:
            keys.append(int(token))
        except ValueError:
            logger.warning("Error parsing integer: %r", token)
    return keys


def run_key(hash_table: HashInterface, key: int, strict: bool = True) -> KeyOutcome:
    before = hash_table.collision_count()
    value = key * 2
    hash_table.put(key, value)
    retrieved = hash_table.get(key)
    outcome = KeyOutcome(key, value, retrieved, hash_table.collision_count() - before)
    if not outcome.matched:
        logger.warning("Value mismatch for key %d: stored %d, got %s",
                       key, value, outcome.retrieved_text())
        if strict:
            raise ValueMismatch(key, value, outcome.retrieved_text())
    return outcome


def run_phase(hash_table: HashInterface, keys: Iterable[int], phase: str, strict: bool = True) -> PhaseResult:
    before = hash_table.collision_count()
    result = PhaseResult(phase)
    for key in keys:
        result.outcomes.append(run_key(hash_table, key, strict=strict))
    result.total_collisions = hash_table.collision_count()
    result.collisions = result.total_collisions - before
    result.dump = hash_table.dump()
    return result


def run_keys(hash_table: HashTable, keys: List[int], strict: bool = True) -> RunResult:
    """
    Run the random, ascending and descending phases against one table.
    Later phases see the placements of earlier ones.
    """
    phases = []
    for phase, ordered in phase_orders(keys):
        phases.append(run_phase(hash_table, ordered, phase, strict=strict))
        logger.info("%s %s phase: %d keys, %d collisions", hash_table.strategy.name,
                    phase, len(ordered), phases[-1].collisions)
    return RunResult(
        strategy=hash_table.strategy.name,
        label=hash_table.strategy.label,
        size=hash_table.size,
        phases=phases,
        dump=phases[-1].dump,
        slots=[slot for slot in hash_table.as_list() if slot is not None],
    )


@dataclass
class BatchResult:
    runs: List[Tuple[str, RunResult]] = field(default_factory=list)
    failures: List[Tuple[str, str, str]] = field(default_factory=list)


def run_batch(sources: Sequence[Tuple[str, List[int]]], strategies: Sequence[str],
              size: int, strict: bool = True) -> BatchResult:
    """
    Run every (source, keys) pair on a fresh table per strategy.
    A run that fails (full table, value mismatch) is recorded in failures
    and the batch carries on with the next one.
    """
    names = [get_strategy(s).name for s in strategies]
    batch = BatchResult()
    for source, keys in sources:
        for name in names:
            try:
                batch.runs.append((source, run_keys(new_table(name, size), keys, strict=strict)))
            except ProbingError as e:
                logger.warning("Batch run %s on %s failed: %s", name, source, e)
                batch.failures.append((source, name, str(e)))
    return batch
