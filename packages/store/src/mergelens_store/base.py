"""Abstract cache interface.

The coordinator depends on BaseCache, not on a concrete backend, so caching
can be switched off without touching coordinator code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mergelens_core.analysis import RepoAnalysis
    from mergelens_core.models import RepoId
    from mergelens_store.models import CacheEntry


class BaseCache(ABC):
    """Table of analysis results keyed by repository.

    Implementations are not thread-safe: the coordinator's worker is the only
    writer and the only reader.
    """

    @abstractmethod
    def get(self, repo_id: RepoId) -> CacheEntry | None:
        """Return the entry for ``repo_id``, or None if nothing is cached."""

    @abstractmethod
    def put(self, repo_id: RepoId, analysis: RepoAnalysis, computed_at: float) -> CacheEntry:
        """Store a new entry for ``repo_id``, replacing any previous one, and return it."""

    def close(self) -> None:
        """Release anything held by the cache.

        Default is a no-op so callers can always call close() safely.
        """
