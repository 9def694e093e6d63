"""
Searching utilities.
- search_by_key walks a table's probe sequence and returns (value, trace)
  without touching its collision counter
- probe_sequence lists the slots a strategy would visit for a key
"""

from typing import Any, List, Optional, Tuple

from probing.hashing import HashTable, get_strategy
from probing.probes import probe_attempts, probe_indices


def search_by_key(hash_table: HashTable, key: Any) -> Tuple[Optional[Any], List[dict]]:
    """
    Returns (value, steps_trace). value is None when key is absent.
    Each step records the attempt number, the slot index and its contents.
    """
    trace = []
    for attempt, idx in probe_attempts(hash_table.strategy, key, hash_table.size):
        slot = hash_table.table[idx]
        trace.append({
            "attempt": attempt,
            "index": idx,
            "slot": None if slot is None else {"key": slot.key, "value": slot.value},
        })
        if slot is None:
            return None, trace
        if slot.key == key:
            return slot.value, trace
    return None, trace


def probe_sequence(strategy_name: str, key: Any, size: int, limit: Optional[int] = None) -> List[int]:
    return probe_indices(get_strategy(strategy_name), key, size, limit)
