"""Closed enumerations for vehicle, reservation and health states."""

from enum import Enum


class LifecycleState(Enum):
    """Operational state of a physical vehicle."""

    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class ReservationStatus(Enum):
    """Commitment strength of a reservation."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_active(self) -> bool:
        """Active reservations block their interval for the vehicle."""
        return self in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class HealthStatus(Enum):
    """Maintenance urgency categories. Lower value = more urgent."""

    OVERDUE = 1
    SERVICE_SOON = 2
    HEALTHY = 3

    @property
    def label(self) -> str:
        return {
            HealthStatus.OVERDUE: "Overdue",
            HealthStatus.SERVICE_SOON: "Service Soon",
            HealthStatus.HEALTHY: "Healthy",
        }[self]
