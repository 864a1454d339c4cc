"""Availability resolution over a ledger snapshot."""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from .interval import Interval, overlaps
from .reservation import Reservation
from .status import LifecycleState
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

# Never offered, whatever the requested dates
BLOCKED_STATES = (LifecycleState.MAINTENANCE, LifecycleState.CLEANING)


def group_by_vehicle(reservations: Iterable[Reservation]) -> Dict[str, List[Reservation]]:
    grouped: Dict[str, List[Reservation]] = {}
    for reservation in reservations:
        grouped.setdefault(reservation.vehicle_id, []).append(reservation)
    return grouped


def find_conflicts(
    requested: Interval,
    reservations: Iterable[Reservation],
    now: Optional[datetime] = None,
) -> List[Reservation]:
    """Pending/confirmed reservations overlapping ``requested``."""
    return [
        r for r in reservations if r.blocks(now) and overlaps(r.interval, requested)
    ]


def find_available(
    candidate_vehicles: Iterable[Vehicle],
    requested_interval: Interval,
    reservations: Iterable[Reservation],
    now: Optional[datetime] = None,
) -> Set[str]:
    """
    Ids of candidate vehicles free for ``requested_interval``.

    A vehicle is excluded when:
    - it is in MAINTENANCE or CLEANING (no attempt to predict clearance)
    - any pending/confirmed reservation for it overlaps the request

    A RENTED vehicle stays offerable for a later, non-overlapping interval.
    Pending holds already expired at ``now`` no longer block.
    """
    # Validate up front so a bad request fails even with no candidates
    overlaps(requested_interval, requested_interval)

    by_vehicle = group_by_vehicle(reservations)
    available = set()
    for vehicle in candidate_vehicles:
        if vehicle.lifecycle_state in BLOCKED_STATES:
            continue
        if find_conflicts(requested_interval, by_vehicle.get(vehicle.id, []), now):
            continue
        available.add(vehicle.id)

    logger.debug("Availability for %s: %d vehicles", requested_interval, len(available))
    return available
