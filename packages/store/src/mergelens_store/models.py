"""Cache entry model.

Decoupled from mergelens_core's coordinator so the cache backends can be
tested on their own; the core types are only referenced for annotations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mergelens_core.analysis import RepoAnalysis


@dataclass(frozen=True)
class CacheEntry:
    """One analysis result and when it was computed.

    Entries are replaced whole, never updated in place, so a reader always
    sees either the old or the new analysis.
    """

    analysis: RepoAnalysis
    computed_at: float  # time.monotonic() seconds

    def age(self, now: float) -> float:
        return now - self.computed_at

    def is_fresh(self, now: float, timeout: float) -> bool:
        return self.age(now) < timeout
