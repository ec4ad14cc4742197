"""Single-worker coordinator for mirror updates, analyses and the result cache.

All requests funnel through one asyncio task reading a bounded queue, so at
most one mirror update / analysis pass runs at any time and the cache has a
single writer. Callers only ever await a one-shot future:

    request_analysis() ──put──▶ queue ──▶ worker ──▶ cache hit?  ─yes─▶ future
                                                  └─no─▶ executor thread:
                                                        ensure_updated → raw_log → analyze
                                                        ──▶ cache.put ──▶ future

The blocking git work runs on a dedicated single-thread executor. The worker
awaits it before taking the next request, so passes never overlap, while the
event loop stays free to accept (and allow-list check) new HTTP requests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mergelens_core.analysis import RepoAnalysis, analyze
from mergelens_core.parse import DEFAULT_BOT_NAME

if TYPE_CHECKING:
    from mergelens_core.git.mirror import GitMirror
    from mergelens_core.models import RepoId
    from mergelens_store.base import BaseCache
    from mergelens_store.models import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TIMEOUT = 5 * 60.0
DEFAULT_QUEUE_SIZE = 42


class AnalysisError(RuntimeError):
    """Updating or analyzing a repository failed; the cache was left as it was."""

    def __init__(self, repo_id: RepoId, cause: Exception):
        self.repo_id = repo_id
        super().__init__(f"Failed to analyze {repo_id}: {cause}")


class CoordinatorClosedError(RuntimeError):
    """The worker is not running, so the request can never be answered."""


@dataclass
class CoordinatorStats:
    """Counters updated by the worker only."""

    hits: int = 0
    misses: int = 0
    failures: int = 0


@dataclass
class _Request:
    repo_id: RepoId
    future: asyncio.Future


class RepoCoordinator:
    """Owns the mirror workspace and the cache; answers requests one at a time.

    Call start() from inside a running event loop before the first request
    and close() when done.
    """

    def __init__(
        self,
        mirror: GitMirror,
        cache: BaseCache,
        cache_timeout: float = DEFAULT_CACHE_TIMEOUT,
        bot_name: str = DEFAULT_BOT_NAME,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._mirror = mirror
        self._cache = cache
        self._cache_timeout = cache_timeout
        self._bot_name = bot_name
        self._queue_size = queue_size
        self._clock = clock
        self._queue: asyncio.Queue[_Request] | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._worker: asyncio.Task | None = None
        self._closed = False
        self.stats = CoordinatorStats()

    @property
    def cache_timeout(self) -> float:
        return self._cache_timeout

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.running:
            return
        self._closed = False
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mergelens-worker")
        self._worker = asyncio.get_running_loop().create_task(self._run(), name="mergelens-coordinator")
        logger.debug("Coordinator started (cache timeout %.0fs)", self._cache_timeout)

    async def close(self) -> None:
        """Stop the worker and fail every request that has not been answered.

        A pass already running in the executor thread is not interrupted; it
        finishes in the background and its result is discarded.
        """
        if self._worker is None:
            return
        self._closed = True
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

        while not self._queue.empty():
            request = self._queue.get_nowait()
            if not request.future.done():
                request.future.set_exception(CoordinatorClosedError("The coordinator was shut down"))

        self._executor.shutdown(wait=False)
        self._cache.close()

    async def request_analysis(self, repo_id: RepoId) -> RepoAnalysis:
        """Return a fresh-enough analysis of ``repo_id``.

        Suspends while the queue is full and until the worker answers.
        Raises AnalysisError when the mirror could not be updated or its
        history could not be read and analyzed.
        """
        if not self.running:
            raise CoordinatorClosedError("The coordinator is not running")

        future = asyncio.get_running_loop().create_future()
        await self._queue.put(_Request(repo_id=repo_id, future=future))
        # The slot may have been freed by close() draining the queue.
        if self._closed and not future.done():
            future.set_exception(CoordinatorClosedError("The coordinator was shut down"))
        return await future

    def cache_entry(self, repo_id: RepoId) -> CacheEntry | None:
        """Read-only view of the cached entry for ``repo_id``."""
        return self._cache.get(repo_id)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            request = await self._queue.get()
            try:
                if request.future.cancelled():
                    logger.debug("Dropping cancelled request for %s", request.repo_id)
                    continue
                try:
                    analysis = await self._serve(request.repo_id, loop)
                except asyncio.CancelledError:
                    if not request.future.done():
                        request.future.set_exception(CoordinatorClosedError("The coordinator was shut down"))
                    raise
                except Exception as e:
                    # Delivered to the caller; the worker keeps serving.
                    if not request.future.done():
                        request.future.set_exception(e)
                else:
                    if not request.future.done():
                        request.future.set_result(analysis)
            finally:
                self._queue.task_done()

    async def _serve(self, repo_id: RepoId, loop: asyncio.AbstractEventLoop) -> RepoAnalysis:
        entry = self._cache.get(repo_id)
        now = self._clock()
        if entry is not None and entry.is_fresh(now, self._cache_timeout):
            self.stats.hits += 1
            logger.debug("Cache hit for %s (age %.1fs)", repo_id, entry.age(now))
            return entry.analysis

        self.stats.misses += 1
        try:
            analysis = await loop.run_in_executor(self._executor, self._refresh, repo_id)
        except Exception as e:
            self.stats.failures += 1
            logger.warning("Could not refresh %s: %s", repo_id, e)
            raise AnalysisError(repo_id, e) from e

        self._cache.put(repo_id, analysis, computed_at=self._clock())
        return analysis

    def _refresh(self, repo_id: RepoId) -> RepoAnalysis:
        """Runs on the executor thread."""
        started = time.monotonic()
        self._mirror.ensure_updated(repo_id)
        analysis = analyze(self._mirror.raw_log(repo_id), bot_name=self._bot_name)
        logger.info(
            "Analyzed %s: %d merge(s) in %.1fs",
            repo_id,
            analysis.merge_count,
            time.monotonic() - started,
        )
        return analysis
