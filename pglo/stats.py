"""Very basic statistics collection.

Basic functions for global statistics collection from various modules.
A global statistics dict is used that is accesses using functions
in this module. Counters that have never been set start out at zero.
"""

from typing import Dict, Optional
from collections import defaultdict

statistics = defaultdict(lambda: defaultdict(int))  # type: defaultdict


def get_section(section: Optional[str]) -> Dict[str, float]:
    """Get a section (dict) from the global stats dict."""
    global statistics
    ret = statistics
    if section:
        ret = statistics[section]
    return ret


def set(var: str, value: float, section: Optional[str] = None):
    """Set a value."""
    stats = get_section(section)
    stats[var] = value


def inc(var: str, section: Optional[str] = None, amount: float = 1):
    """Increment a value."""
    stats = get_section(section)
    stats[var] += amount


def dec(var: str, section: Optional[str] = None, amount: float = 1):
    """Decrement a value"""
    stats = get_section(section)
    stats[var] -= amount


def get_stats() -> Dict[str, Dict[str, float]]:
    """Get a dict of all saved statistics."""
    global statistics
    ret = {}  # type: Dict[str, Dict[str, float]]
    for k, v in statistics.items():
        if isinstance(v, dict):
            v = dict(v)
        ret[k] = v
    return ret


def reset():
    """Forget all saved statistics."""
    global statistics
    statistics.clear()
