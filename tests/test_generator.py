"""Determinism and value-range checks for the synthetic schedule."""

from gobytrain.generator import (
    LCG_INCREMENT,
    LCG_MULTIPLIER,
    OPERATORS,
    TRAIN_FAMILIES,
    Lcg,
    fnv1a_32,
    generate,
    seed_for,
)
from gobytrain.normalizer import time_to_minutes


def _comparable(itineraries):
    return [it.model_dump(exclude={"id"}) for it in itineraries]


def test_fnv1a_reference_vectors():
    assert fnv1a_32("") == 2166136261
    assert fnv1a_32("a") == 0xE40C292C
    assert fnv1a_32("foobar") == 0xBF9CF968


def test_lcg_advances_without_shared_state():
    rng = Lcg(1)
    value, advanced = rng.next()

    assert advanced.state == (LCG_MULTIPLIER + LCG_INCREMENT) % 2**32
    assert value == advanced.state / 2**32
    # The source stream is untouched and replays the same draw.
    assert rng.next() == (value, advanced)


def test_zero_hash_seeds_with_one(monkeypatch):
    monkeypatch.setattr("gobytrain.generator.fnv1a_32", lambda text: 0)
    assert Lcg.seeded("anything").state == 1


def test_seed_ignores_case_and_whitespace():
    assert seed_for(" Stockholm", "BERLIN ", "2025-06-01") == "stockholm|berlin|2025-06-01"


def test_generate_is_deterministic_across_casing_and_whitespace():
    first = generate("stockholm", "Berlin", "2025-06-01")
    second = generate("  STOCKHOLM ", "berlin", " 2025-06-01")

    assert _comparable(first) == _comparable(second)


def test_ids_are_unique_within_a_batch():
    itineraries = generate("Paris", "Wien", "2025-07-14")
    ids = [it.id for it in itineraries]
    assert len(ids) == len(set(ids))


def test_count_is_between_12_and_20():
    for origin, destination, date in [
        ("stockholm", "berlin", "2025-06-01"),
        ("Göteborg", "München", ""),
        ("Somewhere", "Elsewhere", "2030-01-01"),
        ("a", "b", "c"),
    ]:
        assert 12 <= len(generate(origin, destination, date)) <= 20


def test_empty_station_returns_empty_list():
    assert generate("", "Berlin", "2025-06-01") == []
    assert generate("Stockholm", "   ", "2025-06-01") == []


def test_arrival_matches_departure_plus_duration():
    for it in generate("Hamburg", "Amsterdam", "2025-09-09"):
        assert (time_to_minutes(it.departure_time) + it.duration_minutes) % 1440 == time_to_minutes(
            it.arrival_time
        )


def test_generated_field_ranges():
    for it in generate("Oslo", "Helsinki", "2025-12-24"):
        assert 19 <= it.price <= 260
        assert it.price_label == f"€{it.price}"
        assert 0 <= it.transfer_count <= 3
        hour = int(it.departure_time[:2])
        assert 5 <= hour <= 10 or 12 <= hour <= 21
        assert 120 <= it.duration_minutes <= 20 * 60 + 59
        assert it.operator_name in OPERATORS
        family, number = it.train_label.split(" ")
        assert family in TRAIN_FAMILIES
        assert 50 <= int(number) <= 999


def test_results_sorted_by_departure():
    departures = [it.departure_time for it in generate("Prag", "Rom", "2025-03-03")]
    assert departures == sorted(departures)


def test_known_stations_are_capitalised_and_free_text_kept():
    itineraries = generate("münchen", "my village", "2025-06-01")
    assert itineraries[0].origin == "München"
    assert itineraries[0].destination == "my village"
    assert itineraries[0].date == "2025-06-01"
