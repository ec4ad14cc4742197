"""Tests for mergelens-store cache backends."""

from __future__ import annotations

import pytest

from mergelens_core.analysis import RepoAnalysis
from mergelens_core.models import RepoId
from mergelens_store.base import BaseCache
from mergelens_store.memory import MemoryCache
from mergelens_store.models import CacheEntry
from mergelens_store.noop import NoOpCache

RUST = RepoId(owner="rust-lang", name="rust")
CARGO = RepoId(owner="rust-lang", name="cargo")


# ---------------------------------------------------------------------------
# CacheEntry
# ---------------------------------------------------------------------------


class TestCacheEntry:
    def test_age(self):
        entry = CacheEntry(analysis=RepoAnalysis(), computed_at=100.0)
        assert entry.age(130.0) == 30.0

    def test_fresh_strictly_inside_window(self):
        entry = CacheEntry(analysis=RepoAnalysis(), computed_at=100.0)
        assert entry.is_fresh(399.9, timeout=300)
        assert not entry.is_fresh(400.0, timeout=300)

    def test_zero_timeout_is_never_fresh(self):
        entry = CacheEntry(analysis=RepoAnalysis(), computed_at=100.0)
        assert not entry.is_fresh(100.0, timeout=0)

    def test_entries_are_immutable(self):
        entry = CacheEntry(analysis=RepoAnalysis(), computed_at=100.0)
        with pytest.raises(AttributeError):
            entry.computed_at = 0.0


# ---------------------------------------------------------------------------
# MemoryCache
# ---------------------------------------------------------------------------


class TestMemoryCache:
    def test_get_missing_returns_none(self):
        assert MemoryCache().get(RUST) is None

    def test_put_and_get(self):
        cache = MemoryCache()
        analysis = RepoAnalysis()
        entry = cache.put(RUST, analysis, computed_at=5.0)
        assert cache.get(RUST) is entry
        assert entry.analysis is analysis
        assert entry.computed_at == 5.0

    def test_put_replaces_whole_entry(self):
        cache = MemoryCache()
        first = cache.put(RUST, RepoAnalysis(), computed_at=1.0)
        second = cache.put(RUST, RepoAnalysis(), computed_at=2.0)
        assert cache.get(RUST) is second
        assert first.computed_at == 1.0

    def test_keys_are_independent(self):
        cache = MemoryCache()
        cache.put(RUST, RepoAnalysis(), computed_at=1.0)
        assert cache.get(CARGO) is None
        assert cache.get(RepoId(owner="rust-lang", name="rust")) is not None

    def test_keys_are_case_sensitive(self):
        cache = MemoryCache()
        cache.put(RUST, RepoAnalysis(), computed_at=1.0)
        assert cache.get(RepoId(owner="Rust-Lang", name="rust")) is None

    def test_close_drops_entries(self):
        cache = MemoryCache()
        cache.put(RUST, RepoAnalysis(), computed_at=1.0)
        cache.close()
        assert cache.get(RUST) is None


# ---------------------------------------------------------------------------
# NoOpCache
# ---------------------------------------------------------------------------


class TestNoOpCache:
    def test_put_returns_entry_but_does_not_store(self):
        cache = NoOpCache()
        entry = cache.put(RUST, RepoAnalysis(), computed_at=1.0)
        assert entry.computed_at == 1.0
        assert cache.get(RUST) is None

    def test_close_does_not_raise(self):
        NoOpCache().close()


def test_backends_implement_base():
    assert isinstance(MemoryCache(), BaseCache)
    assert isinstance(NoOpCache(), BaseCache)
