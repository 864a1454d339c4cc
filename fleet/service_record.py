"""ServiceRecord class for maintenance log entries."""
from typing import Optional


class ServiceRecord:
    """A record of maintenance performed on a vehicle."""

    def __init__(
            self,
            service_date: str,
            mileage_at_service: float,
            service_type: str = "Routine Service",
            cost: Optional[float] = None,
            notes: Optional[str] = None,
    ):
        self.service_date = service_date
        self.mileage_at_service = mileage_at_service
        self.service_type = service_type
        self.cost = cost
        self.notes = notes
