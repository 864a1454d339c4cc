#!/usr/bin/env python3
"""Tests for availability resolution."""
from datetime import datetime, timedelta

import pytest

from fleet import (
    Interval,
    InvalidInterval,
    LifecycleState,
    Reservation,
    ReservationStatus,
    find_available,
)
from fleet.availability import find_conflicts

from conftest import at


def booking(rid, vehicle_id, start, end, status=ReservationStatus.CONFIRMED, **kwargs):
    return Reservation(
        id=rid,
        vehicle_id=vehicle_id,
        interval=Interval(start, end),
        status=status,
        customer_ref="cust-1",
        created_at=datetime(2026, 10, 1),
        **kwargs,
    )


class TestFindAvailable:
    """Tests for find_available."""

    def test_no_reservations_everything_available(self, make_vehicle):
        vehicles = [make_vehicle("u1"), make_vehicle("u2")]
        assert find_available(vehicles, Interval(at(1), at(3)), []) == {"u1", "u2"}

    @pytest.mark.parametrize(
        "state", [LifecycleState.MAINTENANCE, LifecycleState.CLEANING]
    )
    def test_blocked_states_never_offered(self, make_vehicle, state):
        vehicles = [make_vehicle("u1", lifecycle_state=state), make_vehicle("u2")]
        assert find_available(vehicles, Interval(at(20), at(22)), []) == {"u2"}

    def test_rented_vehicle_offered_for_later_dates(self, make_vehicle):
        vehicle = make_vehicle("u1", lifecycle_state=LifecycleState.RENTED)
        current = booking("R1", "u1", at(1), at(5))
        assert find_available([vehicle], Interval(at(10), at(12)), [current]) == {"u1"}
        assert find_available([vehicle], Interval(at(4), at(6)), [current]) == set()

    def test_gap_between_bookings(self, make_vehicle):
        """Nov 1-3 and Nov 5-7 booked; Nov 3-5 is free."""
        vehicle = make_vehicle("u1")
        reservations = [
            booking("R1", "u1", at(1), at(3)),
            booking("R2", "u1", at(5), at(7)),
        ]
        assert find_available([vehicle], Interval(at(3), at(5)), reservations) == {"u1"}
        assert find_available([vehicle], Interval(at(2), at(4)), reservations) == set()

    def test_other_vehicles_bookings_ignored(self, make_vehicle):
        vehicles = [make_vehicle("u1"), make_vehicle("u2")]
        reservations = [booking("R1", "u2", at(1), at(9))]
        assert find_available(vehicles, Interval(at(2), at(3)), reservations) == {"u1"}

    def test_pending_hold_blocks(self, make_vehicle):
        hold = booking(
            "R1",
            "u1",
            at(1),
            at(3),
            status=ReservationStatus.PENDING,
            expires_at=datetime(2026, 10, 18, 9, 15),
        )
        requested = Interval(at(2), at(4))
        now = datetime(2026, 10, 18, 9, 10)
        assert find_available([make_vehicle()], requested, [hold], now) == set()

    def test_expired_hold_does_not_block(self, make_vehicle):
        hold = booking(
            "R1",
            "u1",
            at(1),
            at(3),
            status=ReservationStatus.PENDING,
            expires_at=datetime(2026, 10, 18, 9, 15),
        )
        requested = Interval(at(2), at(4))
        later = datetime(2026, 10, 18, 9, 15)
        assert find_available([make_vehicle()], requested, [hold], later) == {"u1"}

    @pytest.mark.parametrize(
        "status", [ReservationStatus.CANCELLED, ReservationStatus.COMPLETED]
    )
    def test_inactive_reservations_do_not_block(self, make_vehicle, status):
        reservations = [booking("R1", "u1", at(1), at(9), status=status)]
        assert find_available([make_vehicle()], Interval(at(2), at(3)), reservations) == {
            "u1"
        }

    def test_empty_candidates(self):
        assert find_available([], Interval(at(1), at(2)), []) == set()

    def test_invalid_interval_rejected(self, make_vehicle):
        broken = object.__new__(Interval)
        object.__setattr__(broken, "start", at(5))
        object.__setattr__(broken, "end", at(1))
        with pytest.raises(InvalidInterval):
            find_available([], broken, [])

    def test_pure(self, make_vehicle):
        """Same inputs, same answer; nothing is changed."""
        vehicles = [make_vehicle("u1"), make_vehicle("u2")]
        reservations = [booking("R1", "u1", at(1), at(3))]
        requested = Interval(at(2), at(3) + timedelta(hours=1))
        first = find_available(vehicles, requested, reservations)
        assert find_available(vehicles, requested, reservations) == first == {"u2"}
        assert reservations[0].status == ReservationStatus.CONFIRMED


class TestFindConflicts:
    """Tests for find_conflicts."""

    def test_returns_overlapping_only(self):
        reservations = [
            booking("R1", "u1", at(1), at(3)),
            booking("R2", "u1", at(4), at(6)),
            booking("R3", "u1", at(5), at(8)),
        ]
        conflicts = find_conflicts(Interval(at(5), at(7)), reservations)
        assert [r.id for r in conflicts] == ["R2", "R3"]
