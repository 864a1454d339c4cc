"""FleetModel class for the make and model shared by many vehicles."""

from typing import Optional


class FleetModel:
    """Make, model, seating and daily rate."""

    def __init__(
        self,
        id: str,
        make: str,
        model: str,
        year: int,
        seats: int,
        daily_rate: float,
        category: Optional[str] = None,
    ):
        self.id = id
        self.make = make
        self.model = model
        self.year = year
        self.seats = seats
        self.daily_rate = daily_rate
        self.category = category

    @property
    def name(self) -> str:
        """Human-readable model name."""
        return f"{self.year} {self.make} {self.model}"
