"""Helper functions for maintenance budget calculations."""

from datetime import date
from dateutil.relativedelta import relativedelta
from typing import Optional

from .status import HealthStatus


def calc_km_remaining(
    current_mileage: float, last_service_mileage: float, interval_km: float
) -> float:
    """Distance budget left before service. Negative when overdue."""
    return interval_km - (current_mileage - last_service_mileage)


def calc_days_remaining(next_service: Optional[date], today: date) -> Optional[int]:
    """Calendar budget left before service. None when no date is set."""
    if next_service is None:
        return None
    return (next_service - today).days


def calc_next_service_date(service_date: date, interval_months: float = 6) -> date:
    """Calculate next due date: service date + interval months."""
    months = int(interval_months)
    days = int((interval_months - months) * 30)
    return service_date + relativedelta(months=months, days=days)


def budget_percent(remaining: Optional[float], total: float) -> float:
    """
    Normalize a remaining budget against its full window, clamped at 0.

    A missing budget counts as a full one (100%).
    """
    if remaining is None:
        return 100.0
    return max(0.0, remaining) / total * 100


def check_health(
    km_remaining: float,
    days_remaining: Optional[int],
    combined_percent: float,
    soon_percent: float,
) -> HealthStatus:
    """Either raw budget exhausted wins; otherwise grade the combined percent."""
    if km_remaining <= 0 or (days_remaining is not None and days_remaining <= 0):
        return HealthStatus.OVERDUE
    if combined_percent <= soon_percent:
        return HealthStatus.SERVICE_SOON
    return HealthStatus.HEALTHY
