"""Error taxonomy for the fleet engine.

Every error except ServiceUnavailable is recoverable by the caller: re-query
availability on ConflictError, reload vehicle state on InvalidTransition, and
so on. Each carries a ``user_message`` that is safe to show to a customer or
an operator.
"""

from typing import Optional


class FleetError(Exception):
    """Base class for all engine errors."""

    user_message = "The request could not be completed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class InvalidInterval(FleetError, ValueError):
    """Interval start is not strictly before its end."""

    user_message = "The rental period must end after it starts."


class ConflictError(FleetError):
    """Overlapping reservation lost the race, or the vehicle is no longer offered."""

    user_message = "This vehicle was just booked - please choose another."


class InvalidTransition(FleetError):
    """Lifecycle event not permitted from the vehicle's current state."""

    user_message = "The vehicle is not in a state that allows this action."


class NotFound(FleetError, KeyError):
    """Unknown vehicle or reservation id."""

    user_message = "No such vehicle or reservation."

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else self.user_message


class ExpiredHold(FleetError):
    """Pending reservation is past its hold window."""

    user_message = "Your hold on this vehicle expired - please search again."


class InvalidMileage(FleetError, ValueError):
    """Odometer reading would break current_mileage >= last_service_mileage."""

    user_message = "The mileage reading is not valid for this vehicle."


class ServiceUnavailable(FleetError):
    """Storage could not be read or written."""

    user_message = "The booking service is temporarily unavailable."
