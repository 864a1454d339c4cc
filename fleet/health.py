"""Maintenance health report for a vehicle."""

from dataclasses import dataclass
from datetime import date
from typing import Optional, TYPE_CHECKING

from .calculations import (
    budget_percent,
    calc_days_remaining,
    calc_km_remaining,
    check_health,
)
from .status import HealthStatus

if TYPE_CHECKING:
    from .vehicle import Vehicle

HEALTH_WINDOW_DAYS = 182
SERVICE_SOON_PERCENT = 25
DEFAULT_SERVICE_INTERVAL_KM = 5000


@dataclass
class HealthReport:
    """Calculated maintenance urgency for one vehicle."""

    vehicle_id: str
    status: HealthStatus
    km_remaining: float
    days_remaining: Optional[int] = None
    mileage_percent: float = 100.0
    date_percent: float = 100.0

    @property
    def health_percent(self) -> float:
        """The more urgent of the two normalized budgets."""
        return min(self.mileage_percent, self.date_percent)

    @property
    def needs_service(self) -> bool:
        return self.status in (HealthStatus.OVERDUE, HealthStatus.SERVICE_SOON)


def health(
    vehicle: "Vehicle",
    today: Optional[date] = None,
    window_days: int = HEALTH_WINDOW_DAYS,
    soon_percent: float = SERVICE_SOON_PERCENT,
    default_interval_km: float = DEFAULT_SERVICE_INTERVAL_KM,
) -> HealthReport:
    """
    Calculate maintenance health from two competing budgets.

    Logic:
    - Mileage budget: interval km minus km driven since last service
    - Calendar budget: days until next service date (may be negative)
    - Each is normalized to a percentage (calendar against ``window_days``)
    - Overall percentage is the minimum; whichever budget is more urgent governs
    - Either raw budget <= 0 is OVERDUE; <= ``soon_percent`` is SERVICE_SOON

    Pure: reads the vehicle, never mutates it. The result is advisory and
    does not affect availability.
    """
    today = today or date.today()
    interval_km = vehicle.service_interval_km or default_interval_km

    km_remaining = calc_km_remaining(
        vehicle.current_mileage, vehicle.last_service_mileage, interval_km
    )
    days_remaining = calc_days_remaining(vehicle.next_service_day, today)

    mileage_percent = budget_percent(km_remaining, interval_km)
    date_percent = budget_percent(days_remaining, window_days)

    status = check_health(
        km_remaining,
        days_remaining,
        min(mileage_percent, date_percent),
        soon_percent,
    )

    return HealthReport(
        vehicle_id=vehicle.id,
        status=status,
        km_remaining=km_remaining,
        days_remaining=days_remaining,
        mileage_percent=mileage_percent,
        date_percent=date_percent,
    )
