"""Collapse raw delta logs into day-sorted series."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from .models import RawDelta, Series


def build_series(deltas: Iterable[RawDelta]) -> Series:
    """Group deltas by day, summing additions and removals.

    The result depends only on the multiset of deltas, not on the order
    they were appended.
    """
    added: dict[int, int] = defaultdict(int)
    removed: dict[int, int] = defaultdict(int)
    for delta in deltas:
        added[delta.day] += delta.added
        removed[delta.day] += delta.removed

    days = sorted(added)
    return Series(
        days=tuple(days),
        additions=tuple(added[d] for d in days),
        removals=tuple(removed[d] for d in days),
    )
