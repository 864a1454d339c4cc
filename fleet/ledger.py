"""Reservation ledger - the only writer of reservation status."""

import logging
import re
from datetime import datetime, timedelta
from threading import RLock
from typing import Callable, List, Optional, Tuple

from .availability import find_conflicts
from .errors import ConflictError, ExpiredHold, InvalidTransition, NotFound
from .interval import Interval, to_naive
from .reservation import Reservation
from .status import ReservationStatus

logger = logging.getLogger(__name__)

DEFAULT_HOLD_MINUTES = 15

_ID_PATTERN = re.compile(r"^R(\d+)$")


class ReservationLedger:
    """
    Committed and pending reservations for the whole fleet.

    Reads return snapshots and never lock. Every write runs under one lock,
    so the overlap check and the insert are a single atomic step: among
    concurrent overlapping requests for a vehicle exactly one wins and the
    rest get ConflictError.
    """

    def __init__(
        self,
        reservations: Optional[List[Reservation]] = None,
        clock: Callable[[], datetime] = datetime.now,
        hold_minutes: float = DEFAULT_HOLD_MINUTES,
    ):
        self._reservations: List[Reservation] = list(reservations or [])
        self._clock = clock
        self.hold_window = timedelta(minutes=hold_minutes)
        self._lock = RLock()
        self._next_seq = 1 + max(
            (self._seq_of(r.id) for r in self._reservations), default=0
        )

    @staticmethod
    def _seq_of(reservation_id: str) -> int:
        match = _ID_PATTERN.match(reservation_id)
        return int(match.group(1)) if match else 0

    def _new_id(self) -> str:
        reservation_id = f"R{self._next_seq:05d}"
        self._next_seq += 1
        return reservation_id

    @property
    def lock(self) -> RLock:
        return self._lock

    def now(self) -> datetime:
        return self._clock()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def all(self) -> List[Reservation]:
        """Snapshot of every reservation, oldest first."""
        return list(self._reservations)

    def get(self, reservation_id: str) -> Reservation:
        for reservation in self._reservations:
            if reservation.id == reservation_id:
                return reservation
        raise NotFound(f"Unknown reservation '{reservation_id}'")

    def for_vehicle(self, vehicle_id: str) -> List[Reservation]:
        return [r for r in self._reservations if r.vehicle_id == vehicle_id]

    def active(self, now: Optional[datetime] = None) -> List[Reservation]:
        """Reservations still holding their interval at ``now``."""
        now = now or self.now()
        return [r for r in self._reservations if r.blocks(now)]

    def in_progress(self, vehicle_id: str, now: Optional[datetime] = None) -> Optional[Reservation]:
        """The confirmed booking for a vehicle that has already started, if any."""
        now = now or self.now()
        started = [
            r
            for r in self.for_vehicle(vehicle_id)
            if r.status == ReservationStatus.CONFIRMED and r.interval.start <= now
        ]
        if not started:
            return None
        return min(started, key=lambda r: r.interval.start)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def place_hold(
        self,
        vehicle_id: str,
        interval: Interval,
        customer_ref: str,
        delivery_distance_km: float = 0,
        total_cost: Optional[float] = None,
    ) -> Reservation:
        """Optimistically reserve an interval while the customer pays."""
        return self._insert(
            vehicle_id,
            interval,
            customer_ref,
            ReservationStatus.PENDING,
            delivery_distance_km=delivery_distance_km,
            total_cost=total_cost,
        )

    def confirm(
        self,
        vehicle_id: str,
        interval: Interval,
        customer_ref: str,
        payment_ref: Optional[str] = None,
        delivery_distance_km: float = 0,
        total_cost: Optional[float] = None,
    ) -> Reservation:
        """Atomically check for overlap and insert a confirmed reservation."""
        return self._insert(
            vehicle_id,
            interval,
            customer_ref,
            ReservationStatus.CONFIRMED,
            payment_ref=payment_ref,
            delivery_distance_km=delivery_distance_km,
            total_cost=total_cost,
        )

    def _insert(
        self,
        vehicle_id: str,
        interval: Interval,
        customer_ref: str,
        status: ReservationStatus,
        payment_ref: Optional[str] = None,
        delivery_distance_km: float = 0,
        total_cost: Optional[float] = None,
    ) -> Reservation:
        with self._lock:
            now = self.now()
            self._expire_locked(now)
            conflicts = find_conflicts(interval, self.for_vehicle(vehicle_id), now)
            if conflicts:
                logger.warning(
                    "Conflict booking %s for %s: overlaps %s",
                    vehicle_id,
                    interval,
                    ", ".join(r.id for r in conflicts),
                )
                raise ConflictError(
                    f"Vehicle {vehicle_id} is already reserved during {interval}"
                )

            reservation = Reservation(
                id=self._new_id(),
                vehicle_id=vehicle_id,
                interval=interval,
                status=status,
                customer_ref=customer_ref,
                created_at=now,
                expires_at=now + self.hold_window
                if status == ReservationStatus.PENDING
                else None,
                payment_ref=payment_ref,
                delivery_distance_km=delivery_distance_km,
                total_cost=total_cost,
            )
            self._reservations.append(reservation)
            logger.info(
                "Reservation %s %s: %s %s",
                reservation.id,
                status.value,
                vehicle_id,
                interval,
            )
            return reservation

    def confirm_payment(self, reservation_id: str, payment_ref: str) -> Reservation:
        """Promote a pending hold to confirmed once payment clears."""
        with self._lock:
            reservation = self.get(reservation_id)
            if reservation.status != ReservationStatus.PENDING:
                raise InvalidTransition(
                    f"Reservation {reservation_id} is {reservation.status.value}, "
                    "not pending"
                )
            now = self.now()
            if reservation.is_expired(now):
                self._set_status(reservation, ReservationStatus.CANCELLED)
                logger.warning("Hold %s expired before payment", reservation_id)
                raise ExpiredHold(f"Hold {reservation_id} expired at {reservation.expires_at}")

            reservation.payment_ref = payment_ref
            reservation.expires_at = None
            self._set_status(reservation, ReservationStatus.CONFIRMED)
            return reservation

    def cancel(self, reservation_id: str) -> Reservation:
        with self._lock:
            reservation = self.get(reservation_id)
            if not reservation.is_active:
                raise InvalidTransition(
                    f"Reservation {reservation_id} is already {reservation.status.value}"
                )
            self._set_status(reservation, ReservationStatus.CANCELLED)
            return reservation

    def complete(self, reservation_id: str) -> Reservation:
        with self._lock:
            reservation = self.get(reservation_id)
            if reservation.status != ReservationStatus.CONFIRMED:
                raise InvalidTransition(
                    f"Reservation {reservation_id} is {reservation.status.value}, "
                    "not confirmed"
                )
            self._set_status(reservation, ReservationStatus.COMPLETED)
            return reservation

    def extend(self, reservation_id: str, new_end: datetime) -> Reservation:
        """Push a reservation's end out, if nothing else is booked in the gap."""
        new_end = to_naive(new_end)
        with self._lock:
            reservation = self.get(reservation_id)
            now = self.now()
            self._expire_locked(now)
            if not reservation.blocks(now):
                raise InvalidTransition(
                    f"Reservation {reservation_id} is not active and cannot be extended"
                )
            if new_end <= reservation.interval.end:
                raise InvalidTransition(
                    f"New end {new_end} is not after current end {reservation.interval.end}"
                )

            extended = Interval(reservation.interval.start, new_end)
            others = [r for r in self.for_vehicle(reservation.vehicle_id) if r is not reservation]
            if find_conflicts(extended, others, now):
                logger.warning("Extension of %s to %s conflicts", reservation_id, new_end)
                raise ConflictError(
                    f"Vehicle {reservation.vehicle_id} is booked before {new_end}"
                )
            reservation.interval = extended
            logger.info("Reservation %s extended to %s", reservation_id, new_end.isoformat())
            return reservation

    def expire_holds(self, now: Optional[datetime] = None) -> List[Reservation]:
        """Cancel every pending hold past its window. Returns the released holds."""
        with self._lock:
            return self._expire_locked(now or self.now())

    def _expire_locked(self, now: datetime) -> List[Reservation]:
        expired = [r for r in self._reservations if r.is_expired(now)]
        for reservation in expired:
            self._set_status(reservation, ReservationStatus.CANCELLED)
            logger.info("Hold %s expired, interval released", reservation.id)
        return expired

    def _set_status(self, reservation: Reservation, status: ReservationStatus) -> None:
        logger.info(
            "Reservation %s: %s -> %s", reservation.id, reservation.status.value, status.value
        )
        reservation.status = status

    # -------------------------------------------------------------------------
    # Rollback
    # -------------------------------------------------------------------------

    def snapshot(self) -> Tuple[List[Tuple[Reservation, dict]], int]:
        """Current field values of every reservation, for ``restore``."""
        with self._lock:
            rows = [(r, dict(vars(r))) for r in self._reservations]
            return rows, self._next_seq

    def restore(self, snapshot: Tuple[List[Tuple[Reservation, dict]], int]) -> None:
        """Put the ledger back as it was at ``snapshot``; rows added since are dropped."""
        rows, next_seq = snapshot
        with self._lock:
            for reservation, state in rows:
                vars(reservation).update(state)
            self._reservations = [r for r, _ in rows]
            self._next_seq = next_seq
