"""
Header level analysis for automatic level-range detection.

`analyze_header_levels()` scans a document once (skipping fenced code) and reports
which header levels are in use. When only one level is used, the detected range is
widened to `[level, min(level + 2, 6)]` so short documents still get multi-level
numbering instead of collapsing to flat numbering.

`HeaderAnalysisCache` keeps recent analyses per document for a few seconds so that
resolving config on every keystroke does not rescan the whole document. Entries expire
by age only, not by content.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from headmark.transforms.header_lines import CodeFenceTracker, header_level, is_header

MAX_HEADER_LEVEL = 6

DEFAULT_CACHE_TTL = 5.0


@dataclass(frozen=True)
class HeaderLevelAnalysis:
    """Snapshot of the header levels used by one document at one point in time."""

    min_level: int
    max_level: int
    used_levels: frozenset[int]
    header_count: int
    is_empty: bool


EMPTY_ANALYSIS = HeaderLevelAnalysis(
    min_level=0, max_level=0, used_levels=frozenset(), header_count=0, is_empty=True
)


def analyze_header_levels(text: str) -> HeaderLevelAnalysis:
    """
    Find the range of header levels used in `text`.

    Uses its own fence tracker, so it is safe to call while a numbering pass over the
    same document is in progress.
    """
    fence = CodeFenceTracker()
    used: set[int] = set()
    count = 0

    for line in text.split("\n"):
        if fence.update(line):
            continue
        if not is_header(line):
            continue
        level = header_level(line)
        if level == 0:
            continue
        used.add(level)
        count += 1

    if not used:
        return EMPTY_ANALYSIS

    if len(used) == 1:
        (level,) = used
        min_level, max_level = level, min(level + 2, MAX_HEADER_LEVEL)
    else:
        min_level, max_level = min(used), max(used)

    return HeaderLevelAnalysis(
        min_level=min_level,
        max_level=max_level,
        used_levels=frozenset(used),
        header_count=count,
        is_empty=False,
    )


@dataclass
class _CacheEntry:
    analysis: HeaderLevelAnalysis
    inserted_at: float


class HeaderAnalysisCache:
    """
    Time-limited cache of `HeaderLevelAnalysis` keyed by document identity.

    The clock is injectable so tests can control expiry. Safe for single-threaded use only.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl: float = ttl
        self._clock: Callable[[], float] = clock
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, key: str, text: str) -> HeaderLevelAnalysis:
        """
        Return the cached analysis for `key` if it is still fresh, otherwise analyze
        `text` and cache the result.
        """
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None and now - entry.inserted_at < self.ttl:
            return entry.analysis

        analysis = analyze_header_levels(text)
        self._entries[key] = _CacheEntry(analysis=analysis, inserted_at=now)
        return analysis

    def invalidate_expired(self) -> int:
        """Drop expired entries. Returns how many were dropped."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.inserted_at >= self.ttl]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
