import pytest
from pydantic import ValidationError

from gobytrain.schemas import Itinerary, PartnerLinkRequest, SearchQuery

SAMPLE_PAYLOAD = {
    "origin": " stockholm ",
    "destination": "Berlin",
    "date": "2025-06-01",
    "maxPrice": "120",
    "maxDurationHours": 6,
    "nonstopOnly": "true",
    "sortKey": "price",
    "sortDirection": "desc",
    "session": "ignored",
}


def test_search_query_camel_case_round_trip():
    query = SearchQuery.model_validate(SAMPLE_PAYLOAD)

    assert query.origin == "stockholm"
    assert query.max_price == 120.0
    assert query.max_duration_hours == 6.0
    assert query.nonstop_only is True
    assert (query.sort_key, query.sort_direction) == ("price", "desc")

    dumped = query.model_dump(by_alias=True)
    assert dumped["maxPrice"] == 120.0
    assert SearchQuery.model_validate(dumped) == query


def test_search_query_accepts_legacy_form_fields():
    legacy = {"from": "Oslo", "to": "Helsinki", "maxPrice": "", "maxDuration": "n/a"}
    query = SearchQuery.model_validate(legacy)

    assert query.origin == "Oslo"
    assert query.destination == "Helsinki"
    assert query.max_price is None
    assert query.max_duration_hours is None
    assert query.sort_key == "departure"
    assert query.date == ""


def test_itinerary_is_immutable():
    itinerary = Itinerary.from_record({"departure": "08:00", "arrival": "10:00", "price": 30})
    with pytest.raises(ValidationError):
        itinerary.price = 10
    assert itinerary.price == 30


def test_partner_request_from_itinerary():
    itinerary = Itinerary.from_record(
        {"id": "b-2", "from": "Wien", "to": "Prag", "date": "2025-05-05", "departure": "07:00",
         "arrival": "11:10", "price": 64, "changes": 2}
    )
    request = PartnerLinkRequest.from_itinerary("trainline", itinerary)

    assert request.route_id == "b-2"
    assert request.price == "€64"
    assert request.duration == "4h 10m"
    assert request.transfers == 2
    assert request.date == "2025-05-05"
