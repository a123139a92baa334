"""Tests for upcoming-departure extraction."""

import copy
import itertools
from datetime import timedelta

from conftest import NOW, NOW_TS, decoded_feed, stop_time_update

from departure_board.extractor import collect_departures, departure_instant, extract


def test_orders_departures_across_entities() -> None:
    """Given two trips serving the stop, when extracting, then the sooner one comes first."""
    feed = decoded_feed(
        [stop_time_update("51", NOW_TS + 300)],
        [stop_time_update("51", NOW_TS + 120)],
    )

    assert extract(feed, "51", NOW) == ["in about 2 minutes", "in about 5 minutes"]


def test_drops_departures_already_in_the_past() -> None:
    feed = decoded_feed([stop_time_update("51", NOW_TS - 60), stop_time_update("51", NOW_TS + 60)])

    assert extract(feed, "51", NOW) == ["in about 1 minute"]


def test_all_departures_in_the_past_yield_empty_result() -> None:
    feed = decoded_feed(
        [stop_time_update("51", NOW_TS - 600)],
        [stop_time_update("51", NOW_TS - 1)],
    )

    assert extract(feed, "51", NOW) == []


def test_departure_at_now_is_kept() -> None:
    feed = decoded_feed([stop_time_update("51", NOW_TS)])

    assert extract(feed, "51", NOW) == ["in less than a minute"]


def test_empty_feed_yields_empty_result() -> None:
    assert extract({}, "51", NOW) == []
    assert extract({"entity": []}, "51", NOW) == []
    assert extract(decoded_feed(), "51", NOW) == []


def test_unknown_stop_yields_empty_result() -> None:
    feed = decoded_feed([stop_time_update("52", NOW_TS + 300)])

    assert extract(feed, "51", NOW) == []


def test_stop_id_must_match_exactly() -> None:
    feed = decoded_feed(
        [
            stop_time_update("510", NOW_TS + 60),
            stop_time_update(" 51", NOW_TS + 120),
            stop_time_update("5", NOW_TS + 180),
            stop_time_update("51", NOW_TS + 240),
        ]
    )

    assert extract(feed, "51", NOW) == ["in about 4 minutes"]


def test_entities_without_trip_update_are_skipped() -> None:
    feed = decoded_feed([stop_time_update("51", NOW_TS + 600)])
    feed["entity"].insert(0, {"id": "vehicle-1", "vehicle": {"trip": {"tripId": "T9"}}})
    feed["entity"].append({"id": "alert-1", "alert": {"headerText": {}}})

    assert extract(feed, "51", NOW) == ["in about 10 minutes"]


def test_updates_without_departure_time_are_skipped() -> None:
    feed = decoded_feed(
        [
            stop_time_update("51", None, arrival={"time": str(NOW_TS + 60)}),
            stop_time_update("51", None, departure={"delay": 30}),
            stop_time_update("51", NOW_TS + 900),
        ]
    )

    assert extract(feed, "51", NOW) == ["in about 15 minutes"]


def test_trip_update_without_stop_time_updates_is_skipped() -> None:
    feed = decoded_feed([stop_time_update("51", NOW_TS + 300)])
    feed["entity"].append({"id": "bare", "tripUpdate": {"trip": {"tripId": "T7"}}})

    assert extract(feed, "51", NOW) == ["in about 5 minutes"]


def test_repeated_stop_in_one_trip_is_not_deduplicated() -> None:
    feed = decoded_feed(
        [
            stop_time_update("51", NOW_TS + 180),
            stop_time_update("60", NOW_TS + 600),
            stop_time_update("51", NOW_TS + 1200),
        ]
    )

    assert extract(feed, "51", NOW) == ["in about 3 minutes", "in about 20 minutes"]


def test_output_is_independent_of_input_order() -> None:
    updates = [
        stop_time_update("51", NOW_TS + 3000),
        stop_time_update("51", NOW_TS + 120),
        stop_time_update("51", NOW_TS + 7200),
        stop_time_update("51", NOW_TS + 600),
    ]
    expected = extract(decoded_feed(updates), "51", NOW)

    assert expected == [
        "in about 2 minutes",
        "in about 10 minutes",
        "in about 1 hour",
        "in about 2 hours",
    ]
    for permutation in itertools.permutations(updates):
        assert extract(decoded_feed(*[[update] for update in permutation]), "51", NOW) == expected


def test_extract_is_idempotent_and_does_not_mutate_feed() -> None:
    feed = decoded_feed(
        [stop_time_update("51", NOW_TS + 400), stop_time_update("51", NOW_TS - 400)],
        [stop_time_update("51", NOW_TS + 200)],
    )
    snapshot = copy.deepcopy(feed)

    first = extract(feed, "51", NOW)
    second = extract(feed, "51", NOW)

    assert first == second
    assert feed == snapshot


def test_output_never_exceeds_matching_updates() -> None:
    updates = [
        stop_time_update("51", NOW_TS + 60),
        stop_time_update("51", None),
        stop_time_update("51", NOW_TS - 60),
        stop_time_update("99", NOW_TS + 60),
    ]
    matching = [update for update in updates if update["stopId"] == "51"]

    assert len(extract(decoded_feed(updates), "51", NOW)) < len(matching)


def test_equal_departure_times_keep_feed_order() -> None:
    feed = decoded_feed(
        [stop_time_update("51", NOW_TS + 300, stopSequence=1)],
        [stop_time_update("51", NOW_TS + 300, stopSequence=2)],
        [stop_time_update("51", NOW_TS + 60, stopSequence=3)],
    )

    entries = collect_departures(feed, "51")

    assert [entry.update["stopSequence"] for entry in entries] == [3, 1, 2]


def test_naive_now_is_treated_as_utc() -> None:
    feed = decoded_feed([stop_time_update("51", NOW_TS + 300)])
    naive_now = NOW.replace(tzinfo=None)

    assert extract(feed, "51", naive_now) == ["in about 5 minutes"]


def test_departure_instant_accepts_strings_and_integers() -> None:
    assert departure_instant({"departure": {"time": str(NOW_TS)}}) == NOW
    assert departure_instant({"departure": {"time": NOW_TS + 60}}) == NOW + timedelta(seconds=60)


def test_departure_instant_rejects_unusable_values() -> None:
    assert departure_instant({}) is None
    assert departure_instant({"departure": None}) is None
    assert departure_instant({"departure": {"time": "soon"}}) is None
    assert departure_instant({"departure": {"time": True}}) is None
    assert departure_instant({"departure": {"time": str(10**30)}}) is None


def test_single_now_is_used_for_every_entry() -> None:
    feed = decoded_feed(
        [stop_time_update("51", NOW_TS + 29)],
        [stop_time_update("51", NOW_TS + 31)],
    )

    assert extract(feed, "51", NOW) == ["in less than a minute", "in about 1 minute"]
    later = NOW + timedelta(seconds=2)
    assert extract(feed, "51", later) == ["in less than a minute", "in less than a minute"]
