"""Vehicle class - identity, operational state and maintenance markers."""

from datetime import date
from typing import List, Optional

from .fleet_model import FleetModel
from .service_record import ServiceRecord
from .status import LifecycleState


class Vehicle:
    """A physical unit in the fleet."""

    def __init__(
        self,
        id: str,
        plate: str,
        public_id: str,
        model: FleetModel,
        hub_location: str,
        current_mileage: float = 0,
        last_service_mileage: float = 0,
        service_interval_km: Optional[float] = None,
        next_service_date: Optional[str] = None,
        lifecycle_state: LifecycleState = LifecycleState.AVAILABLE,
        current_fuel_percent: Optional[float] = None,
        checkout_notes: Optional[str] = None,
        service_log: Optional[List[ServiceRecord]] = None,
    ):
        if current_mileage < last_service_mileage:
            raise ValueError(
                f"Vehicle {id}: current mileage {current_mileage} is below "
                f"last service mileage {last_service_mileage}"
            )
        self.id = id
        self.plate = plate
        self.public_id = public_id
        self.model = model
        self.hub_location = hub_location
        self.current_mileage = current_mileage
        self.last_service_mileage = last_service_mileage
        self.service_interval_km = service_interval_km
        self.next_service_date = next_service_date
        self.lifecycle_state = lifecycle_state
        self.current_fuel_percent = current_fuel_percent
        self.checkout_notes = checkout_notes
        self.service_log = service_log or []

    @property
    def name(self) -> str:
        return f"{self.model.name} ({self.public_id})"

    @property
    def daily_rate(self) -> float:
        return self.model.daily_rate

    @property
    def km_since_service(self) -> float:
        return self.current_mileage - self.last_service_mileage

    @property
    def next_service_day(self) -> Optional[date]:
        """next_service_date parsed, or None when unset."""
        if not self.next_service_date:
            return None
        return date.fromisoformat(self.next_service_date)

    @property
    def last_service(self) -> Optional[ServiceRecord]:
        """Get the most recent service entry."""
        if not self.service_log:
            return None
        return max(
            self.service_log, key=lambda s: (s.service_date, s.mileage_at_service)
        )

    def get_service_log_sorted(
        self, sort_by: str = "date", reverse: bool = True
    ) -> List[ServiceRecord]:
        """
        Get service records sorted by specified field.

        Args:
            sort_by: "date", "mileage", or "type"
            reverse: If True, newest/highest first (default)
        """
        if sort_by == "date":
            return sorted(
                self.service_log, key=lambda s: s.service_date, reverse=reverse
            )
        elif sort_by == "mileage":
            return sorted(
                self.service_log, key=lambda s: s.mileage_at_service, reverse=reverse
            )
        elif sort_by == "type":
            return sorted(
                self.service_log,
                key=lambda s: (s.service_type, s.service_date),
                reverse=reverse,
            )
        return self.service_log

    @property
    def total_service_cost(self) -> float:
        return sum(s.cost for s in self.service_log if s.cost is not None)

    def __repr__(self) -> str:
        return f"Vehicle({self.id!r}, {self.lifecycle_state.value})"
