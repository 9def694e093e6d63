"""
Key ordering for the random / ascending / descending test phases.
"""

PHASES = ("random", "ascending", "descending")


def sort_keys(keys: list, order: str = "asc") -> list:
    """
    order : 'asc' or 'desc'
    Returns a new sorted list.
    """
    if order not in ("asc", "desc"):
        raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")
    return sorted(keys, reverse=(order == "desc"))


def phase_orders(keys: list):
    """Yield (phase, keys) in input order, then ascending, then descending."""
    yield "random", list(keys)
    yield "ascending", sort_keys(keys, "asc")
    yield "descending", sort_keys(keys, "desc")
