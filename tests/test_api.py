import pytest
from fastapi.testclient import TestClient

from gobytrain.config import Settings
from gobytrain.main import app
from gobytrain.orchestrator import SessionRegistry


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr("gobytrain.main.sessions", SessionRegistry(max_sessions=8))
    return TestClient(app)


def _sample_payload() -> dict:
    return {
        "origin": "stockholm",
        "destination": "Berlin",
        "date": "2025-06-01",
        "maxPrice": "100",
        "sortKey": "departure",
        "sortDirection": "asc",
    }


def test_search_endpoint_filters_and_sorts(client):
    response = client.post("/api/search", json=_sample_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert 12 <= body["total"] <= 20
    assert body["count"] == len(body["itineraries"])
    assert all(item["price"] <= 100 for item in body["itineraries"])
    departures = [item["departureTime"] for item in body["itineraries"]]
    assert departures == sorted(departures)
    assert body["query"]["maxPrice"] == 100.0


def test_search_accepts_legacy_form_keys(client):
    response = client.post(
        "/api/search",
        json={"from": "Paris", "to": "London", "date": "", "maxDuration": "abc"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["query"]["origin"] == "Paris"
    assert body["query"]["maxDurationHours"] is None
    assert body["count"] == body["total"]


def test_search_with_empty_origin_returns_no_results(client):
    response = client.post("/api/search", json={"origin": " ", "destination": "Berlin"})

    assert response.status_code == 200
    assert response.json()["itineraries"] == []


def test_invalid_sort_key_is_rejected(client):
    response = client.post("/api/search", json={**_sample_payload(), "sortKey": "operator"})
    assert response.status_code == 422


def test_strict_station_mode_rejects_free_text(client, monkeypatch):
    monkeypatch.setattr("gobytrain.main.get_settings", lambda: Settings(strict_stations=True))

    response = client.post("/api/search", json={"origin": "Atlantis", "destination": "Berlin"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Select stations from the suggestions list."

    same = client.post("/api/search", json={"origin": "Berlin", "destination": "berlin"})
    assert same.status_code == 422

    ok = client.post("/api/search", json={"origin": "Oslo", "destination": "Berlin"})
    assert ok.status_code == 200


def test_session_flow_refine_and_sort(client):
    search = client.post("/api/search", json={**_sample_payload(), "maxPrice": None, "session": "s1"})
    assert search.status_code == 200
    total = search.json()["total"]

    refined = client.post("/api/refine", json={"session": "s1", "nonstopOnly": True})
    assert refined.status_code == 200
    assert refined.json()["total"] == total
    assert all(item["transferCount"] == 0 for item in refined.json()["itineraries"])

    first = client.post("/api/sort", json={"session": "s1", "key": "price"})
    second = client.post("/api/sort", json={"session": "s1", "key": "price"})
    assert first.json()["query"]["sortDirection"] == "asc"
    assert second.json()["query"]["sortDirection"] == "desc"
    prices = [item["price"] for item in second.json()["itineraries"]]
    assert prices == sorted(prices, reverse=True)


def test_refine_unknown_session_is_404(client):
    response = client.post("/api/refine", json={"session": "missing"})
    assert response.status_code == 404


def test_sort_rejects_unknown_key(client):
    response = client.post("/api/sort", json={"session": "s1", "key": "colour"})
    assert response.status_code == 422


def test_station_suggestions(client):
    response = client.get("/api/stations", params={"q": "ö"})

    assert response.status_code == 200
    assert response.json()["stations"] == ["Göteborg", "Malmö", "Köpenhamn"]
    assert len(client.get("/api/stations").json()["stations"]) == 20


def test_checkout_endpoint_builds_partner_link(client):
    response = client.post(
        "/api/checkout",
        json={"partner": "omio", "from": "Stockholm", "to": "Berlin", "date": "2025-06-01", "price": "123"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["available"] is True
    assert body["partnerLabel"] == "Omio"
    assert body["displayPrice"] == "€123"
    assert body["url"].startswith("https://www.omio.com/search?departure=Stockholm&arrival=Berlin")


def test_checkout_endpoint_reports_unavailable_link(client):
    response = client.post("/api/checkout", json={"partner": "sj", "to": "Berlin"})

    assert response.status_code == 200
    assert response.json()["available"] is False
    assert response.json()["url"] == ""


def test_checkout_endpoint_accepts_numeric_route_id(client):
    response = client.post("/api/checkout", json={"partner": "acme", "from": "A", "to": "B", "rid": 7})

    assert response.status_code == 200
    assert response.json()["available"] is True
    assert "rid=7" in response.json()["url"]
