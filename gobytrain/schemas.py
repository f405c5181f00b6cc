from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from gobytrain.normalizer import (
    UNKNOWN_DURATION_MINUTES,
    duration_minutes as wall_clock_minutes,
    format_duration,
    format_price,
    is_clock_time,
    parse_duration_label,
    parse_number,
    parse_price,
)

SortKey = Literal["price", "duration", "departure"]
SortDirection = Literal["asc", "desc"]

# ------- Result models -------
class Itinerary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str
    origin: str
    destination: str
    date: str = ""
    departure_time: str
    arrival_time: str
    duration_minutes: int = Field(..., ge=0)
    duration_label: str
    price: Union[int, float]
    price_label: str
    transfer_count: int = Field(0, ge=0, le=3)
    operator_name: str = ""
    train_label: str = ""

    @property
    def nonstop(self) -> bool:
        return self.transfer_count == 0

    @classmethod
    def from_record(cls, record: Any) -> "Itinerary":
        """Coerce a loosely typed result row into an Itinerary.

        Accepts camelCase or snake_case keys as well as the legacy front-end
        row (``from``/``to``/``departure``/``arrival``/``duration``/``changes``
        with prices like ``"€123"``).
        """
        if isinstance(record, Itinerary):
            return record
        if not isinstance(record, Mapping):
            raise TypeError("Unsupported record type for itinerary coercion")
        raw = dict(record)

        departure = str(_pick(raw, "departureTime", "departure_time", "departure") or "")
        arrival = str(_pick(raw, "arrivalTime", "arrival_time", "arrival") or "")
        label = _pick(raw, "durationLabel", "duration_label", "duration")

        minutes = parse_number(_pick(raw, "durationMinutes", "duration_minutes"))
        if minutes is None or minutes < 0:
            minutes = parse_duration_label(label)
        if minutes is None and is_clock_time(departure) and is_clock_time(arrival):
            minutes = wall_clock_minutes(departure, arrival)
        if minutes is None:
            minutes = UNKNOWN_DURATION_MINUTES
        minutes = int(minutes)

        raw_price = _pick(raw, "price")
        price = parse_price(raw_price)
        if price.is_integer():
            price = int(price)
        price_label = _pick(raw, "priceLabel", "price_label") or format_price(
            raw_price if isinstance(raw_price, str) and raw_price.strip() else price
        )

        transfers = parse_number(_pick(raw, "transferCount", "transfer_count", "changes")) or 0
        transfers = int(max(0, min(3, transfers)))

        return cls(
            id=str(_pick(raw, "id") or ""),
            origin=str(_pick(raw, "origin", "from") or ""),
            destination=str(_pick(raw, "destination", "to") or ""),
            date=str(_pick(raw, "date") or ""),
            departure_time=departure,
            arrival_time=arrival,
            duration_minutes=minutes,
            duration_label=str(label) if isinstance(label, str) and label else format_duration(minutes),
            price=price,
            price_label=format_price(price_label),
            transfer_count=transfers,
            operator_name=str(_pick(raw, "operatorName", "operator_name", "operator") or ""),
            train_label=str(_pick(raw, "trainLabel", "train_label", "train") or ""),
        )


# ------- Request models -------
class SearchQuery(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    origin: str = Field("", validation_alias=AliasChoices("origin", "from"))
    destination: str = Field("", validation_alias=AliasChoices("destination", "to"))
    date: str = ""
    max_price: Optional[float] = Field(None, validation_alias=AliasChoices("maxPrice", "max_price"))
    max_duration_hours: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("maxDurationHours", "max_duration_hours", "maxDuration"),
    )
    nonstop_only: bool = False
    sort_key: SortKey = "departure"
    sort_direction: SortDirection = "asc"

    @field_validator("origin", "destination", "date", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("max_price", "max_duration_hours", mode="before")
    @classmethod
    def _lenient_number(cls, value: Any) -> Optional[float]:
        # Malformed filter inputs are treated as "not set", never rejected.
        return parse_number(value)


class PartnerLinkRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    partner_id: str = Field("", validation_alias=AliasChoices("partnerId", "partner_id", "partner"))
    origin: str = Field("", validation_alias=AliasChoices("origin", "from"))
    destination: str = Field("", validation_alias=AliasChoices("destination", "to"))
    date: Optional[str] = None
    price: Optional[Union[str, float]] = None
    route_id: Optional[str] = Field(None, validation_alias=AliasChoices("routeId", "route_id", "rid"))
    departure: Optional[str] = None
    duration: Optional[str] = None
    transfers: Optional[Union[int, str]] = None
    adults: int = 1
    currency: str = "EUR"

    @field_validator("partner_id", "origin", "destination", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("date", "route_id", "departure", "duration", mode="before")
    @classmethod
    def _scalar_as_text(cls, value: Any) -> Optional[str]:
        # Links degrade instead of failing; a bad date is dropped later.
        return None if value is None else str(value)

    @field_validator("transfers", mode="before")
    @classmethod
    def _count_or_text(cls, value: Any) -> Optional[Union[int, str]]:
        if value is None or (isinstance(value, int) and not isinstance(value, bool)):
            return value
        return str(value)

    @field_validator("adults", mode="before")
    @classmethod
    def _lenient_adults(cls, value: Any) -> int:
        number = parse_number(value)
        return int(number) if number is not None and number >= 1 else 1

    @field_validator("currency", mode="before")
    @classmethod
    def _currency_or_default(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        return text.upper() or "EUR"

    @classmethod
    def from_itinerary(cls, partner_id: str, itinerary: Itinerary) -> "PartnerLinkRequest":
        return cls(
            partner_id=partner_id,
            origin=itinerary.origin,
            destination=itinerary.destination,
            date=itinerary.date or None,
            price=itinerary.price_label,
            route_id=itinerary.id,
            departure=itinerary.departure_time,
            duration=itinerary.duration_label,
            transfers=itinerary.transfer_count,
        )


# ------- Response models -------
class SearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    query: SearchQuery
    total: int
    count: int
    itineraries: List[Itinerary] = Field(default_factory=list)


class CheckoutSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    partner_id: str
    partner_label: str
    url: str
    available: bool
    display_price: Optional[str] = None


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None
