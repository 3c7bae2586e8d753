"""
Outline numbering: the counter stack behind "1", "1.1", "1.2", "2", "2.1".

A pass over a document keeps one `NumberPath` (a tuple of positive integers, one per
depth). Each header advances it with `next_number()`:

- Same or shallower depth: truncate to that depth and increment the last component
- Deeper: extend with 1s until the path is as deep as the header

Usage:
    counter = OutlineCounter(start_number=1, separator=".")
    counter.advance(1)  # "1"
    counter.advance(2)  # "1.1"
    counter.advance(2)  # "1.2"
    counter.advance(1)  # "2"
"""

from __future__ import annotations

from collections.abc import Sequence

NumberPath = tuple[int, ...]


def initial_path(start_number: int) -> NumberPath:
    """The counter state before the first header, so the first top-level header gets `start_number`."""
    return (start_number - 1,)


def next_number(counters: Sequence[int], depth: int) -> NumberPath:
    """
    Compute the number path for the next header at `depth` (1-based).

    `depth <= 0` is a caller error: headers outside the numbering range must be
    filtered out before they reach the counter.
    """
    if depth <= 0:
        raise ValueError(f"Header depth must be positive: {depth}")

    if depth <= len(counters):
        path = list(counters[:depth])
        path[-1] += 1
    else:
        path = list(counters)
        path.extend([1] * (depth - len(counters)))
    return tuple(path)


def format_number(path: Sequence[int], separator: str) -> str:
    """Join a number path with the number separator, e.g. (1, 2, 1) -> "1.2.1"."""
    return separator.join(str(n) for n in path)


class OutlineCounter:
    """
    Counter state for one top-to-bottom numbering pass. Never shared across passes.
    """

    def __init__(self, start_number: int = 1, separator: str = ".") -> None:
        self.path: NumberPath = initial_path(start_number)
        self.separator: str = separator

    def advance(self, depth: int) -> str:
        """Advance to the next header at `depth` and return its formatted number."""
        self.path = next_number(self.path, depth)
        return format_number(self.path, self.separator)
