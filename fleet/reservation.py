"""Reservation class binding a vehicle to an interval."""

from datetime import datetime
from typing import Optional

from .interval import Interval
from .status import ReservationStatus


class Reservation:
    """A booking of one vehicle for one interval. Never deleted."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        interval: Interval,
        status: ReservationStatus,
        customer_ref: str,
        created_at: datetime,
        expires_at: Optional[datetime] = None,
        payment_ref: Optional[str] = None,
        delivery_distance_km: float = 0,
        total_cost: Optional[float] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.interval = interval
        self.status = status
        self.customer_ref = customer_ref
        self.created_at = created_at
        self.expires_at = expires_at
        self.payment_ref = payment_ref
        self.delivery_distance_km = delivery_distance_km
        self.total_cost = total_cost

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def is_expired(self, now: datetime) -> bool:
        """A pending hold past its window."""
        return (
            self.status == ReservationStatus.PENDING
            and self.expires_at is not None
            and now >= self.expires_at
        )

    def blocks(self, now: Optional[datetime] = None) -> bool:
        """Does this reservation still hold its interval?"""
        if not self.is_active:
            return False
        return now is None or not self.is_expired(now)

    def __repr__(self) -> str:
        return (
            f"Reservation({self.id!r}, vehicle={self.vehicle_id!r}, "
            f"{self.interval}, {self.status.value})"
        )
