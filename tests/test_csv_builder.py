import pytest

from sleep_charter.data_processing.csv_builder import (
    check_chronological,
    fold_events,
    fold_rows,
    write_sleep_csv,
)
from sleep_charter.data_processing.schemas import EmptyEventStreamError, EventType, SleepRow, TimeEvent

from conftest import utc

S, W = EventType.SLEEP, EventType.WAKE


def ev(event_type, s):
    return TimeEvent(event_type=event_type, time=utc(s))


def test_fold_events_pairs_sleep_with_next_wake():
    events = [
        ev(S, "2024-03-05 23:10"),
        ev(W, "2024-03-06 07:15"),
        ev(S, "2024-03-06 22:30"),
        ev(W, "2024-03-07 06:45"),
    ]
    assert fold_events(events, "UTC") == (
        "Sleep,Wake\n"
        "05/03/2024 23:10:00,06/03/2024 07:15:00\n"
        "06/03/2024 22:30:00,07/03/2024 06:45:00"
    )


def test_leading_wake_starts_at_midnight():
    events = [
        ev(W, "2024-03-05 07:15"),
        ev(S, "2024-03-05 23:00"),
        ev(W, "2024-03-06 07:00"),
    ]
    assert fold_rows(events, "UTC") == [
        SleepRow("05/03/2024 00:00:00", "05/03/2024 07:15:00"),
        SleepRow("05/03/2024 23:00:00", "06/03/2024 07:00:00"),
    ]


def test_leading_wake_midnight_is_local():
    # 07:15 EST; the sleep field is local midnight written as 00:00:00
    events = [ev(W, "2024-03-05 12:15")]
    assert fold_rows(events, "America/New_York") == [SleepRow("05/03/2024 00:00:00", "05/03/2024 12:15:00")]

    # 07:15 BST; midnight is 23:00 UTC the day before but is written on the London clock
    events = [ev(W, "2024-07-05 06:15")]
    assert fold_events(events, "Europe/London") == "Sleep,Wake\n05/07/2024 00:00:00,05/07/2024 06:15:00"


def test_boundary_rule_only_applies_to_first_event():
    events = [ev(S, "2024-03-05 23:00"), ev(W, "2024-03-06 07:00"), ev(W, "2024-03-06 09:00")]
    rows = fold_rows(events, "UTC")
    # Second wake reuses the last sleep rather than a fresh midnight
    assert [r.sleep for r in rows] == ["05/03/2024 23:00:00", "05/03/2024 23:00:00"]


def test_trailing_sleep_is_dropped():
    events = [ev(S, "2024-03-05 23:00"), ev(W, "2024-03-06 07:00"), ev(S, "2024-03-06 23:30")]
    text = fold_events(events, "UTC")
    assert text == "Sleep,Wake\n05/03/2024 23:00:00,06/03/2024 07:00:00"
    assert not text.endswith("\n")


def test_only_sleeps_gives_header_line():
    assert fold_events([ev(S, "2024-03-05 23:00")], "UTC") == "Sleep,Wake\n"


def test_empty_stream_raises():
    with pytest.raises(EmptyEventStreamError):
        fold_events([], "UTC")


def test_fold_trusts_input_order():
    events = [
        ev(S, "2024-03-06 22:30"),
        ev(W, "2024-03-07 06:45"),
        ev(S, "2024-03-05 23:10"),
        ev(W, "2024-03-06 07:15"),
    ]
    rows = fold_rows(events, "UTC")
    assert [r.sleep for r in rows] == ["06/03/2024 22:30:00", "05/03/2024 23:10:00"]
    assert check_chronological(events) == [2]


def test_check_chronological_in_order():
    events = [ev(S, "2024-03-05 23:10"), ev(W, "2024-03-06 07:15")]
    assert check_chronological(events) == []
    assert check_chronological([]) == []


def test_write_sleep_csv(tmp_path):
    out = tmp_path / "nested" / "sleepData.csv"
    text = "Sleep,Wake\n05/03/2024 23:10:00,06/03/2024 07:15:00"
    assert write_sleep_csv(text, out) == out
    assert out.read_bytes() == text.encode("utf-8")
