"""Search-as-you-type driver.

Each submission gets a number from :class:`SearchSequencer`. A submission
waits out the debounce window, runs the search in a worker thread, and only
returns its result if no newer submission arrived in the meantime. A newer
submission cancels the previous task; a stale one that already started
resolves to ``None``. Neither ever yields a partial ranking.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from typing import Callable, Iterable, Optional

from .config import Settings, settings as default_settings
from .messages import DEFAULT_MESSAGES, MessageCatalog
from .models import Product, SearchFilters, SmartSearchResult
from .search import search_async

logger = logging.getLogger(__name__)


class SearchSequencer:
    """Monotonic request numbers; only the latest one is current."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    def issue(self) -> int:
        with self._lock:
            self._latest = next(self._counter)
            return self._latest

    def is_current(self, sequence: int) -> bool:
        with self._lock:
            return sequence == self._latest

    @property
    def latest(self) -> int:
        with self._lock:
            return self._latest


class LiveSearch:
    """Debounced, cancel-previous search over a catalog snapshot provider."""

    def __init__(
        self,
        catalog: Callable[[], Iterable[Product]] | Iterable[Product],
        *,
        debounce_seconds: float | None = None,
        settings: Settings = default_settings,
        messages: MessageCatalog = DEFAULT_MESSAGES,
    ) -> None:
        self._catalog = catalog
        self._settings = settings
        self._messages = messages
        self._debounce = (
            debounce_seconds if debounce_seconds is not None else settings.debounce_ms / 1000
        )
        self._sequencer = SearchSequencer()
        self._pending: Optional[asyncio.Task] = None

    def _snapshot(self) -> tuple[Product, ...]:
        source = self._catalog() if callable(self._catalog) else self._catalog
        return tuple(source)

    def submit(self, query: str, filters: Optional[SearchFilters] = None) -> asyncio.Task:
        """Schedule a search and cancel the one still waiting, if any.

        Must be called from a running event loop.
        """

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        sequence = self._sequencer.issue()
        task = asyncio.get_running_loop().create_task(self._run(sequence, query, filters))
        self._pending = task
        return task

    async def _run(
        self, sequence: int, query: str, filters: Optional[SearchFilters]
    ) -> Optional[SmartSearchResult]:
        # Clearing the query refreshes the listing right away.
        delay = self._debounce if (query or "").strip() else 0.0
        if delay:
            await asyncio.sleep(delay)
        if not self._sequencer.is_current(sequence):
            logger.debug("live search #%s superseded before running q=%r", sequence, query)
            return None
        result = await search_async(
            query,
            self._snapshot(),
            filters,
            settings=self._settings,
            messages=self._messages,
        )
        if not self._sequencer.is_current(sequence):
            logger.debug("live search #%s stale, latest is #%s", sequence, self._sequencer.latest)
            return None
        return result
