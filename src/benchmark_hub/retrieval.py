"""Retrieval session state machine with simulated progress and cancellation.

States: idle → running → {done, cancelled, failed}. At most one session runs
at a time; starting a new search cancels the running one. A response that
arrives for a session that is no longer current and running is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Literal

from benchmark_hub.errors import RetrievalError, ValidationError
from benchmark_hub.models import BenchmarkRecord, GroundingSource
from benchmark_hub.services.retrieval_service import RetrievalResponse
from benchmark_hub.store import CollectionStore

logger = logging.getLogger(__name__)

RetrievalPhase = Literal["idle", "running", "done", "cancelled", "failed"]

SEARCH_STATUSES = (
    "Initializing search parameters...",
    "Querying academic databases (arXiv, Scholar)...",
    "Checking Hugging Face datasets...",
    "Identifying benchmark datasets in papers...",
    "Cross-referencing GitHub repositories...",
    "Extracting specifications and metrics...",
    "Analyzing data formats and sizes...",
    "Synthesizing results...",
)
COMPLETE_STATUS = "Search complete"

INITIAL_PROGRESS = 5.0
PROGRESS_CEILING = 95.0
TICK_INTERVAL_SECONDS = 0.8


def next_progress(progress: float) -> float:
    """Advance simulated progress: fast early, slowing, then creeping toward the ceiling."""
    if progress < 40:
        increment = 5.0
    elif progress < 70:
        increment = 2.0
    elif progress < 90:
        increment = 0.5
    else:
        increment = (PROGRESS_CEILING - progress) * 0.1
    return min(progress + increment, PROGRESS_CEILING)


def status_for_progress(progress: float) -> str:
    """Map progress to a status phrase by proportional bucket."""
    index = int((progress / 100) * len(SEARCH_STATUSES))
    return SEARCH_STATUSES[max(0, min(index, len(SEARCH_STATUSES) - 1))]


@dataclass(slots=True)
class RetrievalSession:
    """Observable state of one search submission."""

    query: str = ""
    phase: RetrievalPhase = "idle"
    progress: float = 0.0
    status: str = ""
    results: list[BenchmarkRecord] = field(default_factory=list)
    grounding: tuple[GroundingSource, ...] = ()
    error_message: str | None = None

    @property
    def is_running(self) -> bool:
        return self.phase == "running"


class ProgressTicker:
    """Repeating background task that calls ``on_tick`` every ``interval`` seconds."""

    __slots__ = ("_interval", "_on_tick", "_sleep", "_task")

    def __init__(
        self,
        on_tick: Callable[[], None],
        interval: float = TICK_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._on_tick = on_tick
        self._interval = interval
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def tick(self) -> None:
        self._on_tick()

    async def _run(self) -> None:
        while True:
            await self._sleep(self._interval)
            self.tick()


class RetrievalController:
    """Drives search sessions against a retrieval callable and the collection store."""

    def __init__(
        self,
        store: CollectionStore,
        retrieve: Callable[[str], Awaitable[RetrievalResponse]],
        *,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        on_change: Callable[[RetrievalSession], None] | None = None,
    ) -> None:
        self._store = store
        self._retrieve = retrieve
        self._tick_interval = tick_interval
        self._on_change = on_change
        self._ticker: ProgressTicker | None = None
        self._task: asyncio.Task[None] | None = None
        self.session = RetrievalSession()

    def _notify(self, session: RetrievalSession) -> None:
        if self._on_change is not None and session is self.session:
            self._on_change(session)

    def _is_live(self, session: RetrievalSession) -> bool:
        return session is self.session and session.phase == "running"

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    # ── Transitions ──────────────────────────────────────────────────────

    def start(self, query: str) -> RetrievalSession:
        """Submit a search. Cancels any running session first."""
        query = query.strip()
        if not query:
            raise ValidationError("Search query cannot be empty")
        if self.session.is_running:
            self.cancel()

        self._store.record_query(query)
        session = RetrievalSession(
            query=query,
            phase="running",
            progress=INITIAL_PROGRESS,
            status=SEARCH_STATUSES[0],
        )
        self.session = session
        self._ticker = ProgressTicker(lambda: self._advance(session), self._tick_interval)
        self._ticker.start()
        self._task = asyncio.get_running_loop().create_task(self._run(session))
        logger.debug("Started search for %r", query)
        self._notify(session)
        return session

    def _advance(self, session: RetrievalSession) -> None:
        if not self._is_live(session):
            return
        session.progress = next_progress(session.progress)
        session.status = status_for_progress(session.progress)
        self._notify(session)

    async def _run(self, session: RetrievalSession) -> None:
        try:
            response = await self._retrieve(session.query)
        except RetrievalError as e:
            self._fail(session, str(e))
        except Exception as e:
            logger.warning("Search for %r failed unexpectedly: %s", session.query, e, exc_info=True)
            self._fail(session, "An unexpected error occurred")
        else:
            self._complete(session, response)

    def _complete(self, session: RetrievalSession, response: RetrievalResponse) -> None:
        if not self._is_live(session):
            logger.debug("Discarding stale response for %r", session.query)
            return
        self._stop_ticker()
        records = self._store.ingest_search_results(response.records, response.grounding)
        session.results = list(records)
        session.grounding = tuple(response.grounding)
        session.progress = 100.0
        session.status = COMPLETE_STATUS
        session.phase = "done"
        self._notify(session)

    def _fail(self, session: RetrievalSession, message: str) -> None:
        if not self._is_live(session):
            logger.debug("Discarding stale error for %r: %s", session.query, message)
            return
        self._stop_ticker()
        session.results = []
        session.error_message = message
        session.progress = 0.0
        session.status = ""
        session.phase = "failed"
        self._notify(session)

    def cancel(self) -> bool:
        """Cancel the running session. Returns False if nothing was running."""
        session = self.session
        if not session.is_running:
            return False
        self._stop_ticker()
        session.phase = "cancelled"
        session.progress = 0.0
        session.status = ""
        session.results = []
        if self._task is not None:
            self._task.cancel()
            self._task = None
        logger.debug("Cancelled search for %r", session.query)
        self._notify(session)
        return True

    async def wait(self) -> RetrievalSession:
        """Wait for the current session's retrieval task to settle."""
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self.session

    async def search(self, query: str) -> RetrievalSession:
        """Start a search and wait for it to settle."""
        session = self.start(query)
        await self.wait()
        return session


__all__ = [
    "COMPLETE_STATUS",
    "INITIAL_PROGRESS",
    "PROGRESS_CEILING",
    "SEARCH_STATUSES",
    "TICK_INTERVAL_SECONDS",
    "ProgressTicker",
    "RetrievalController",
    "RetrievalPhase",
    "RetrievalSession",
    "next_progress",
    "status_for_progress",
]
