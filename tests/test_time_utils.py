from datetime import datetime, timedelta, timezone

import pytest

from utils.time_utils import elapsed_seconds, ensure_utc, format_duration, is_within_window

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_window_contains_recent_send():
    assert is_within_window(NOW - timedelta(days=4), timedelta(days=5), NOW)
    assert is_within_window(NOW, timedelta(days=1), NOW)


def test_window_boundary_is_expired():
    assert not is_within_window(NOW - timedelta(days=5), timedelta(days=5), NOW)
    assert not is_within_window(NOW - timedelta(days=6), timedelta(days=5), NOW)


@pytest.mark.parametrize("sent_at", [NOW, NOW - timedelta(seconds=1), NOW + timedelta(seconds=5)])
def test_zero_window_is_always_expired(sent_at):
    assert not is_within_window(sent_at, timedelta(0), NOW)
    assert not is_within_window(sent_at, 0, NOW)


def test_missing_sent_at_is_never_within_window():
    assert not is_within_window(None, timedelta(days=365), NOW)


def test_window_accepts_seconds():
    assert is_within_window(NOW - timedelta(seconds=59), 60, NOW)
    assert not is_within_window(NOW - timedelta(seconds=60), 60, NOW)


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2026, 3, 1, 9, 0)
    assert ensure_utc(naive) == datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    assert is_within_window(naive, timedelta(hours=1), NOW)


def test_elapsed_seconds_rounds_to_tenths():
    assert elapsed_seconds(NOW - timedelta(seconds=30, milliseconds=449), NOW) == 30.4
    assert elapsed_seconds(NOW - timedelta(seconds=30), NOW) == 30.0
    assert elapsed_seconds(None, NOW) is None


def test_format_duration():
    assert format_duration(1) == "1 second"
    assert format_duration(30.0) == "30 seconds"
    assert format_duration(540) == "9 minutes"
    assert format_duration(3599.5) == "1 hour"
