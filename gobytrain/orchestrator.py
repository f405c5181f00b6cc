# gobytrain/orchestrator.py
from __future__ import annotations

import asyncio
import logging
import os
from collections import OrderedDict
from typing import List, Optional

from gobytrain.generator import generate
from gobytrain.ranking import SortState, summarize
from gobytrain.schemas import Itinerary, SearchQuery, SearchResult

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("GOBYTRAIN_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


# ---------- stateless search (no latency, no session) ----------
def run_search(query: SearchQuery) -> SearchResult:
    itineraries = generate(query.origin, query.destination, query.date)
    result = summarize(itineraries, query)
    logger.info(
        "Search %s -> %s (%s): %d of %d itineraries after filters",
        query.origin,
        query.destination,
        query.date or "any date",
        result.count,
        result.total,
    )
    return result


# ---------- per-client session ----------
class SearchSession:
    """Holds one client's latest raw results and sort state.

    Searches are last-request-wins: a search that finishes its simulated
    latency after a newer search was issued returns ``None`` and leaves the
    stored results alone.
    """

    def __init__(self, latency_seconds: float = 0.0):
        self.latency_seconds = max(0.0, latency_seconds)
        self._ticket = 0
        self._raw: List[Itinerary] = []
        self._query: Optional[SearchQuery] = None
        self._sort = SortState()

    @property
    def has_results(self) -> bool:
        return self._query is not None

    @property
    def sort(self) -> SortState:
        return self._sort

    async def search(self, query: SearchQuery) -> SearchResult | None:
        self._ticket += 1
        ticket = self._ticket
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        if ticket != self._ticket:
            logger.debug(
                "Discarding superseded search #%d (%s -> %s); latest is #%d",
                ticket,
                query.origin,
                query.destination,
                self._ticket,
            )
            return None

        self._raw = generate(query.origin, query.destination, query.date)
        self._sort = SortState.from_query(query)
        self._query = query
        return self._rank()

    def refine(self, query: SearchQuery) -> SearchResult:
        """Re-rank the stored results with new filters and sort; no regeneration."""
        base = self._query or query
        update = {
            "max_price": query.max_price,
            "max_duration_hours": query.max_duration_hours,
            "nonstop_only": query.nonstop_only,
        }
        # Sort state only moves when the caller asked for it explicitly.
        for name in ("sort_key", "sort_direction"):
            if name in query.model_fields_set:
                update[name] = getattr(query, name)
        if "sort_key" not in update:
            update["sort_key"] = self._sort.key
        if "sort_direction" not in update:
            update["sort_direction"] = self._sort.direction
        self._query = base.model_copy(update=update)
        self._sort = SortState.from_query(self._query)
        return self._rank()

    def select_sort(self, key: str) -> SearchResult:
        self._sort = self._sort.select(key)
        if self._query is None:
            self._query = self._sort.apply_to(SearchQuery())
        return self._rank()

    def _rank(self) -> SearchResult:
        query = self._sort.apply_to(self._query or SearchQuery())
        self._query = query
        return summarize(self._raw, query)


class SessionRegistry:
    """Bounded map of session id -> SearchSession, least recently used evicted first."""

    def __init__(self, max_sessions: int = 256, latency_seconds: float = 0.0):
        self.max_sessions = max(1, max_sessions)
        self.latency_seconds = latency_seconds
        self._sessions: "OrderedDict[str, SearchSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> SearchSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def get_or_create(self, session_id: str) -> SearchSession:
        session = self.get(session_id)
        if session is None:
            session = SearchSession(self.latency_seconds)
            self._sessions[session_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug("Evicted search session %s", evicted)
        return session
