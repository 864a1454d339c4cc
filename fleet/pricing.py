"""Booking cost calculation."""

import math
from dataclasses import dataclass
from datetime import datetime

from .interval import Interval

PER_KM_DELIVERY_RATE = 100.0


@dataclass(frozen=True)
class Quote:
    """Price breakdown shown to the customer before payment."""

    days: int
    daily_rate: float
    subtotal: float
    delivery_fee: float

    @property
    def total(self) -> float:
        return self.subtotal + self.delivery_fee


def billable_days(interval: Interval) -> int:
    """Whole days started, with a one-day minimum."""
    return max(1, math.ceil(interval.duration_hours / 24))


def quote(
    interval: Interval,
    daily_rate: float,
    delivery_distance_km: float = 0,
    per_km_rate: float = PER_KM_DELIVERY_RATE,
) -> Quote:
    """Break a booking down into days, subtotal and delivery fee."""
    if daily_rate < 0:
        raise ValueError(f"Daily rate must not be negative: {daily_rate}")
    if delivery_distance_km < 0:
        raise ValueError(f"Delivery distance must not be negative: {delivery_distance_km}")

    days = billable_days(interval)
    delivery_fee = delivery_distance_km * per_km_rate if delivery_distance_km else 0.0
    return Quote(
        days=days,
        daily_rate=daily_rate,
        subtotal=days * daily_rate,
        delivery_fee=delivery_fee,
    )


def price(
    interval: Interval,
    daily_rate: float,
    delivery_distance_km: float = 0,
    per_km_rate: float = PER_KM_DELIVERY_RATE,
) -> float:
    """Total charge for a booking. Deterministic: quote == charge."""
    return quote(interval, daily_rate, delivery_distance_km, per_km_rate).total


def extension_cost(old_end: datetime, new_end: datetime, daily_rate: float) -> float:
    """Charge for pushing a trip's end out, by whole extra days."""
    extra_days = math.ceil((new_end - old_end).total_seconds() / 86400)
    if extra_days <= 0:
        return 0.0
    return extra_days * daily_rate
