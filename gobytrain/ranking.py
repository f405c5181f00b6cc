"""Filtering and ordering of a generated result set.

The pipeline is re-run on every filter or sort change against the same raw
itineraries; it never regenerates and never mutates the records it is given.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List

from gobytrain.normalizer import parse_price, time_to_minutes
from gobytrain.schemas import Itinerary, SearchQuery, SearchResult, SortDirection, SortKey

SORT_KEYS: tuple[str, ...] = ("price", "duration", "departure")


@dataclass(frozen=True)
class SortState:
    key: SortKey = "departure"
    direction: SortDirection = "asc"

    def select(self, key: str) -> "SortState":
        """Same key flips the direction; a new key starts ascending."""
        if key not in SORT_KEYS:
            return self
        if key == self.key:
            return replace(self, direction=flip(self.direction))
        return SortState(key=key, direction="asc")  # type: ignore[arg-type]

    def apply_to(self, query: SearchQuery) -> SearchQuery:
        return query.model_copy(update={"sort_key": self.key, "sort_direction": self.direction})

    @classmethod
    def from_query(cls, query: SearchQuery) -> "SortState":
        return cls(key=query.sort_key, direction=query.sort_direction)


def flip(direction: str) -> SortDirection:
    return "desc" if direction == "asc" else "asc"


_SORT_VALUES: Dict[str, Callable[[Itinerary], float]] = {
    "price": lambda it: parse_price(it.price),
    "duration": lambda it: float(it.duration_minutes),
    "departure": lambda it: float(time_to_minutes(it.departure_time)),
}


def apply(itineraries: Iterable[Any], query: SearchQuery) -> List[Itinerary]:
    """Filter then stably sort ``itineraries`` according to ``query``.

    Items may be Itinerary models or loose result rows; rows are coerced
    through ``Itinerary.from_record``. Equal sort keys keep their incoming
    relative order in both directions.
    """
    records = [Itinerary.from_record(item) for item in itineraries]

    if query.nonstop_only:
        records = [it for it in records if it.transfer_count == 0]
    if query.max_price is not None:
        records = [it for it in records if parse_price(it.price) <= query.max_price]
    if query.max_duration_hours is not None:
        limit = query.max_duration_hours * 60
        records = [it for it in records if it.duration_minutes <= limit]

    value_of = _SORT_VALUES.get(query.sort_key, _SORT_VALUES["departure"])
    if query.sort_direction == "desc":
        return sorted(records, key=lambda it: -value_of(it))
    return sorted(records, key=value_of)


def summarize(itineraries: Iterable[Any], query: SearchQuery) -> SearchResult:
    raw = list(itineraries)
    ranked = apply(raw, query)
    return SearchResult(query=query, total=len(raw), count=len(ranked), itineraries=ranked)
