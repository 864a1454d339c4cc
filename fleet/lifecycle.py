"""Vehicle lifecycle state machine - the only writer of lifecycle_state."""

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING, Union

from .errors import InvalidTransition
from .status import LifecycleState

if TYPE_CHECKING:
    from .registry import VehicleRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Checkout:
    """Hand the vehicle to a customer."""

    fuel_level: float
    notes: Optional[str] = None


@dataclass(frozen=True)
class Return:
    """Take the vehicle back and inspect it."""

    fuel_level: float
    is_clean: bool = True
    has_new_damage: bool = False


@dataclass(frozen=True)
class CompleteMaintenance:
    pass


@dataclass(frozen=True)
class CompleteCleaning:
    pass


LifecycleEvent = Union[Checkout, Return, CompleteMaintenance, CompleteCleaning]

# Event type -> the only state it may be applied in
SOURCE_STATES = {
    Checkout: LifecycleState.AVAILABLE,
    Return: LifecycleState.RENTED,
    CompleteMaintenance: LifecycleState.MAINTENANCE,
    CompleteCleaning: LifecycleState.CLEANING,
}

EVENT_NAMES = {
    "checkout": Checkout,
    "return": Return,
    "complete-maintenance": CompleteMaintenance,
    "complete-cleaning": CompleteCleaning,
}


@dataclass(frozen=True)
class Transition:
    """Record of an applied lifecycle event."""

    vehicle_id: str
    event: LifecycleEvent
    from_state: LifecycleState
    to_state: LifecycleState
    summary: str


def next_state(state: LifecycleState, event: LifecycleEvent) -> LifecycleState:
    """
    Target state for ``event`` applied in ``state``.

    Raises InvalidTransition when the event is not allowed from ``state`` and
    TypeError for anything that is not a lifecycle event.
    """
    event_type = type(event)
    if event_type not in SOURCE_STATES:
        raise TypeError(f"Not a lifecycle event: {event!r}")
    if state != SOURCE_STATES[event_type]:
        raise InvalidTransition(
            f"{event_type.__name__} is not allowed while the vehicle is {state.value}"
        )

    if isinstance(event, Checkout):
        return LifecycleState.RENTED
    if isinstance(event, Return):
        # Damage outranks dirt
        if event.has_new_damage:
            return LifecycleState.MAINTENANCE
        if not event.is_clean:
            return LifecycleState.CLEANING
        return LifecycleState.AVAILABLE
    return LifecycleState.AVAILABLE


def _check_fuel(fuel_level: float) -> None:
    if not 0 <= fuel_level <= 100:
        raise ValueError(f"Fuel level must be between 0 and 100, got {fuel_level}")


def _summarize(event: LifecycleEvent, to_state: LifecycleState) -> str:
    if isinstance(event, Checkout):
        return f"Vehicle checked out | Fuel: {event.fuel_level:.0f}%"
    if isinstance(event, Return):
        if to_state == LifecycleState.MAINTENANCE:
            return "Flagged for maintenance: damage reported during return"
        if to_state == LifecycleState.CLEANING:
            return "Sent to cleaning: marked as dirty on return"
        return "Return complete: vehicle back in the fleet pool"
    if isinstance(event, CompleteMaintenance):
        return "Maintenance complete"
    return "Cleaning complete"


class LifecycleController:
    """Applies lifecycle events to vehicles held by a registry."""

    def __init__(self, registry: "VehicleRegistry"):
        self.registry = registry

    def apply(self, vehicle_id: str, event: LifecycleEvent) -> Transition:
        """
        Guard, transition and record side effects for one event.

        Side effects:
        - Checkout: store fuel level and checkout notes
        - Return: store returned fuel level; clear checkout notes only when
          the vehicle goes straight back to AVAILABLE
        """
        with self.registry.lock:
            vehicle = self.registry.get(vehicle_id)
            from_state = vehicle.lifecycle_state
            try:
                to_state = next_state(from_state, event)
            except InvalidTransition:
                logger.warning(
                    "Rejected %s for %s in state %s",
                    type(event).__name__,
                    vehicle_id,
                    from_state.value,
                )
                raise

            if isinstance(event, Checkout):
                _check_fuel(event.fuel_level)
                vehicle.current_fuel_percent = event.fuel_level
                vehicle.checkout_notes = event.notes
            elif isinstance(event, Return):
                _check_fuel(event.fuel_level)
                vehicle.current_fuel_percent = event.fuel_level
                if to_state == LifecycleState.AVAILABLE:
                    vehicle.checkout_notes = None

            vehicle.lifecycle_state = to_state
            transition = Transition(
                vehicle_id=vehicle_id,
                event=event,
                from_state=from_state,
                to_state=to_state,
                summary=_summarize(event, to_state),
            )
            logger.info(
                "%s: %s -> %s (%s)",
                vehicle_id,
                from_state.value,
                to_state.value,
                transition.summary,
            )
            return transition
