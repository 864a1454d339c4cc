#!/usr/bin/env python3
"""Tests for Interval and the overlap predicate."""
from datetime import datetime, timedelta, timezone

import pytest

from fleet import Interval, InvalidInterval, overlaps
from fleet.interval import parse_instant, to_naive


def iv(start_day, end_day):
    return Interval(datetime(2026, 11, start_day), datetime(2026, 11, end_day))


class TestIntervalConstruction:
    """Tests for Interval validation and parsing."""

    def test_start_must_precede_end(self):
        with pytest.raises(InvalidInterval):
            Interval(datetime(2026, 11, 5), datetime(2026, 11, 5))
        with pytest.raises(InvalidInterval):
            Interval(datetime(2026, 11, 6), datetime(2026, 11, 5))

    def test_invalid_interval_is_a_value_error(self):
        with pytest.raises(ValueError):
            iv(3, 1)

    def test_parse_iso_strings(self):
        interval = Interval.parse("2026-11-01T10:00", "2026-11-04T10:00")
        assert interval.start == datetime(2026, 11, 1, 10)
        assert interval.end == datetime(2026, 11, 4, 10)
        assert interval.duration_hours == 72

    def test_parse_rejects_garbage(self):
        with pytest.raises(InvalidInterval):
            Interval.parse("next tuesday", "2026-11-04")

    def test_offsets_normalized_to_local_time(self):
        """Zulu and offset timestamps compare against naive local ones."""
        interval = Interval.parse("2026-11-01T07:00:00Z", "2026-11-04T10:00:00+03:00")
        assert interval.start.tzinfo is None
        assert interval.end.tzinfo is None
        expected = datetime(2026, 11, 1, 7, tzinfo=timezone.utc).astimezone()
        assert interval.start == expected.replace(tzinfo=None)
        assert overlaps(interval, iv(2, 3))

    def test_aware_datetimes_normalized(self):
        aware = datetime(2026, 11, 1, tzinfo=timezone(timedelta(hours=3)))
        interval = Interval(aware, datetime(2030, 1, 1))
        assert interval.start == to_naive(aware)
        assert interval.start.tzinfo is None

    def test_to_naive_leaves_naive_alone(self):
        naive = datetime(2026, 11, 1, 10)
        assert to_naive(naive) is naive

    def test_parse_instant(self):
        assert parse_instant("2026-11-01T10:00") == datetime(2026, 11, 1, 10)
        with pytest.raises(InvalidInterval):
            parse_instant("soon")


class TestOverlaps:
    """Tests for the half-open overlap rule."""

    def test_symmetric(self):
        pairs = [(iv(1, 5), iv(3, 8)), (iv(1, 3), iv(3, 5)), (iv(1, 2), iv(6, 9)), (iv(1, 9), iv(2, 3))]
        for a, b in pairs:
            assert overlaps(a, b) == overlaps(b, a)

    def test_interval_overlaps_itself(self):
        a = iv(1, 5)
        assert overlaps(a, a)

    def test_adjacent_intervals_do_not_overlap(self):
        """Checkout and return can share a timestamp."""
        assert not overlaps(iv(1, 3), iv(3, 5))
        assert not overlaps(iv(3, 5), iv(1, 3))

    def test_partial_and_contained_overlap(self):
        assert overlaps(iv(1, 5), iv(4, 8))
        assert overlaps(iv(1, 9), iv(4, 5))

    def test_disjoint(self):
        assert not overlaps(iv(1, 2), iv(5, 6))

    def test_method_form_matches_function(self):
        assert iv(1, 5).overlaps(iv(4, 8)) is True

    def test_degenerate_rejected_before_comparison(self):
        """Objects that bypassed the constructor are still rejected."""
        broken = object.__new__(Interval)
        object.__setattr__(broken, "start", datetime(2026, 11, 5))
        object.__setattr__(broken, "end", datetime(2026, 11, 1))
        with pytest.raises(InvalidInterval):
            overlaps(broken, iv(1, 9))
        with pytest.raises(InvalidInterval):
            overlaps(iv(1, 9), broken)
