# gobytrain/generator.py
from __future__ import annotations

import logging
import math
import os
import uuid
from dataclasses import dataclass
from typing import List, Tuple

from gobytrain.normalizer import format_duration, format_price, format_time
from gobytrain.schemas import Itinerary
from gobytrain.stations import display_name

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("GOBYTRAIN_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

OPERATORS: Tuple[str, ...] = (
    "DB", "SJ", "DSB", "NS", "SNCF", "ÖBB", "SBB", "Trenitalia", "Renfe", "Eurostar",
)
TRAIN_FAMILIES: Tuple[str, ...] = ("ICE", "IC", "X2000", "Railjet", "TGV", "EC", "NightJet", "FlixTrain")

# These constants are shared with every other client that has to reproduce
# the same schedule for the same search; changing any of them changes output.
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
_UINT32_MASK = 0xFFFFFFFF
_UINT32_RANGE = 2**32

MIN_RESULTS = 12
RESULT_SPREAD = 9
PRICE_FLOOR = 19
PRICE_CEILING = 260
LONG_HAUL_CHANCE = 0.12
LONG_HAUL_EXTRA_HOURS = 6


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a over the UTF-16 code units of ``text``.

    Code units rather than UTF-8 bytes, so seeds for names like "göteborg"
    agree with the browser build of the search page.
    """
    h = FNV_OFFSET_BASIS
    data = text.encode("utf-16-le", "surrogatepass")
    for idx in range(0, len(data), 2):
        h ^= data[idx] | (data[idx + 1] << 8)
        h = (h * FNV_PRIME) & _UINT32_MASK
    return h


@dataclass(frozen=True)
class Lcg:
    """Immutable linear congruential stream; each draw returns the next stream."""

    state: int

    @classmethod
    def seeded(cls, seed_text: str) -> "Lcg":
        return cls(fnv1a_32(seed_text) or 1)

    def next(self) -> Tuple[float, "Lcg"]:
        state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) & _UINT32_MASK
        return state / _UINT32_RANGE, Lcg(state)


def seed_for(origin: str, destination: str, date: str) -> str:
    return "|".join(part.strip().lower() for part in (origin, destination, date))


# ---------- generation ----------
def generate(origin: str, destination: str, date: str = "") -> List[Itinerary]:
    """Synthesize the schedule for one search, sorted by departure time.

    Same (origin, destination, date), ignoring case and surrounding
    whitespace, always yields the same itineraries; only the ``id`` values
    differ between calls.
    """
    f = (origin or "").strip()
    t = (destination or "").strip()
    d = (date or "").strip()
    if not f or not t:
        logger.debug("Skipping generation; origin=%r destination=%r", origin, destination)
        return []

    from_name = display_name(f)
    to_name = display_name(t)
    seed_text = seed_for(f, t, d)
    rng = Lcg.seeded(seed_text)
    logger.debug("Seeded generator for %r with state %d", seed_text, rng.state)

    count, rng = _draw_int(rng, MIN_RESULTS, RESULT_SPREAD)
    batch = uuid.uuid4().hex[:12]

    itineraries: List[Itinerary] = []
    for idx in range(count):
        itinerary, rng = _draw_itinerary(rng, f"{batch}-{idx}", from_name, to_name, d)
        itineraries.append(itinerary)

    itineraries.sort(key=lambda it: it.departure_time)
    logger.info(
        "Generated %d itineraries %s -> %s on %s",
        len(itineraries),
        from_name,
        to_name,
        d or "any date",
    )
    return itineraries


def _draw_itinerary(
    rng: Lcg,
    itinerary_id: str,
    origin: str,
    destination: str,
    date: str,
) -> Tuple[Itinerary, Lcg]:
    # Draw order is part of the reproducibility contract.
    morning, rng = rng.next()
    if morning < 0.5:
        hour, rng = _draw_int(rng, 5, 6)
    else:
        hour, rng = _draw_int(rng, 12, 10)
    minute, rng = _draw_int(rng, 0, 60)

    hours, rng = _draw_int(rng, 2, 13)
    long_haul, rng = rng.next()
    if long_haul < LONG_HAUL_CHANCE:
        hours += LONG_HAUL_EXTRA_HOURS
    extra_minutes, rng = _draw_int(rng, 0, 60)

    base_price, rng = _draw_int(rng, 29, 212)
    scaled = _round_half_up(base_price * (1 + (hours - 6) * 0.05))
    price = max(PRICE_FLOOR, min(PRICE_CEILING, scaled))

    roll, rng = rng.next()
    if roll < 0.55:
        transfers = 0
    elif roll < 0.85:
        transfers = 1
    else:
        bump, rng = rng.next()
        transfers = 2 + (1 if bump < 0.3 else 0)

    operator_idx, rng = _draw_int(rng, 0, len(OPERATORS))
    family_idx, rng = _draw_int(rng, 0, len(TRAIN_FAMILIES))
    train_number, rng = _draw_int(rng, 50, 950)

    total_minutes = hours * 60 + extra_minutes
    departure = hour * 60 + minute

    itinerary = Itinerary(
        id=itinerary_id,
        origin=origin,
        destination=destination,
        date=date,
        departure_time=format_time(departure),
        arrival_time=format_time(departure + total_minutes),
        duration_minutes=total_minutes,
        duration_label=format_duration(total_minutes),
        price=price,
        price_label=format_price(price),
        transfer_count=transfers,
        operator_name=OPERATORS[operator_idx],
        train_label=f"{TRAIN_FAMILIES[family_idx]} {train_number}",
    )
    return itinerary, rng


def _draw_int(rng: Lcg, low: int, span: int) -> Tuple[int, Lcg]:
    value, rng = rng.next()
    return low + math.floor(value * span), rng


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
