"""Static station list used for display casing and search suggestions."""
from __future__ import annotations

from typing import List, Optional

from gobytrain.normalizer import parse_number

# Lower-cased canonical names. Free text is still accepted everywhere; the
# list only decides display casing (and membership in strict mode).
STATIONS: tuple[str, ...] = (
    "stockholm",
    "göteborg",
    "malmö",
    "uppsala",
    "umeå",
    "kiruna",
    "berlin",
    "hamburg",
    "köpenhamn",
    "amsterdam",
    "prag",
    "münchen",
    "paris",
    "london",
    "oslo",
    "helsinki",
    "warszawa",
    "zurich",
    "wien",
    "rom",
)

KNOWN_STATIONS = frozenset(STATIONS)

MAX_SUGGESTIONS = 20


def capitalize(name: str) -> str:
    # Only the first letter changes, so "münchen" becomes "München".
    return name[:1].upper() + name[1:]


def is_known(name: str) -> bool:
    return (name or "").strip().lower() in KNOWN_STATIONS


def display_name(name: str) -> str:
    """Capitalised canonical name for known stations, trimmed input otherwise."""
    trimmed = (name or "").strip()
    lowered = trimmed.lower()
    if lowered in KNOWN_STATIONS:
        return capitalize(lowered)
    return trimmed


def suggest(query: str = "", limit: int = MAX_SUGGESTIONS) -> List[str]:
    needle = (query or "").strip().lower()
    if not needle:
        matches = list(STATIONS)
    else:
        matches = [name for name in STATIONS if needle in name]
    return [capitalize(name) for name in matches[: max(0, limit)]]


def validate_form(
    origin: str,
    destination: str,
    max_price: Optional[str] = None,
    max_duration: Optional[str] = None,
    *,
    strict: bool = True,
) -> Optional[str]:
    """Return the first problem with a search form submission, or ``None``.

    Station membership is only enforced when ``strict`` is set; the default
    search path accepts free text.
    """
    f = (origin or "").strip()
    t = (destination or "").strip()
    if not f or not t:
        return "Please enter both 'From' and 'To'."
    if f.lower() == t.lower():
        return "'From' and 'To' must be different."
    if strict and (not is_known(f) or not is_known(t)):
        return "Select stations from the suggestions list."
    if _present(max_price) and parse_number(max_price) is None:
        return "'Max price' must be a number."
    if _present(max_duration) and parse_number(max_duration) is None:
        return "'Max duration' must be a number."
    return None


def _present(value: Optional[str]) -> bool:
    return value is not None and str(value).strip() != ""
