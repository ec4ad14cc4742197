"""MemoryCache — the default in-process cache.

Entries live until they are overwritten by a later refresh. There is no
eviction: only allow-listed repositories are ever cached, so the table stays
small.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mergelens_store.base import BaseCache
from mergelens_store.models import CacheEntry

if TYPE_CHECKING:
    from mergelens_core.analysis import RepoAnalysis
    from mergelens_core.models import RepoId


class MemoryCache(BaseCache):
    def __init__(self):
        self._entries: dict[RepoId, CacheEntry] = {}

    def get(self, repo_id: RepoId) -> CacheEntry | None:
        return self._entries.get(repo_id)

    def put(self, repo_id: RepoId, analysis: RepoAnalysis, computed_at: float) -> CacheEntry:
        entry = CacheEntry(analysis=analysis, computed_at=computed_at)
        self._entries[repo_id] = entry
        return entry

    def close(self) -> None:
        self._entries.clear()
