"""No-op cache — used when the cache timeout is ``0s``.

Every request refreshes the mirror and re-runs the analysis. Using a
NoOpCache rather than None lets the coordinator always call cache.get()
without conditional checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mergelens_store.base import BaseCache
from mergelens_store.models import CacheEntry

if TYPE_CHECKING:
    from mergelens_core.analysis import RepoAnalysis
    from mergelens_core.models import RepoId


class NoOpCache(BaseCache):
    """Silently discards all entries."""

    def get(self, repo_id: RepoId) -> CacheEntry | None:
        return None

    def put(self, repo_id: RepoId, analysis: RepoAnalysis, computed_at: float) -> CacheEntry:
        return CacheEntry(analysis=analysis, computed_at=computed_at)  # never stored
