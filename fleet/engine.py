"""FleetEngine - the boundary operations used by the CLI and web app."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from threading import RLock
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

import yaml

from .availability import find_available
from .config import Settings
from .errors import ConflictError, ExpiredHold, ServiceUnavailable
from .health import HealthReport, health
from .interval import Interval, to_naive
from .ledger import ReservationLedger
from .lifecycle import LifecycleController, LifecycleEvent, Return, Transition
from .loader import load_fleet, save_fleet
from .pricing import Quote, extension_cost, quote
from .registry import VehicleRegistry
from .reservation import Reservation
from .service_record import ServiceRecord
from .status import HealthStatus, LifecycleState, ReservationStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VehicleSummary:
    """What a booking screen shows for an offerable vehicle."""

    vehicle_id: str
    public_id: str
    model_name: str
    seats: int
    daily_rate: float
    hub_location: str
    lifecycle_state: LifecycleState
    health_status: HealthStatus


class FleetEngine:
    """
    Registry, ledger and lifecycle controller behind one interface.

    When ``path`` is set every successful write is persisted to that YAML
    file while the engine write lock is held; a write that cannot be saved is
    rolled back in memory. Storage failures surface as
    ServiceUnavailable; the engine does not retry.
    """

    def __init__(
        self,
        registry: VehicleRegistry,
        ledger: ReservationLedger,
        settings: Optional[Settings] = None,
        path: Optional[Union[str, Path]] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.settings = settings or Settings()
        self.path = Path(path) if path is not None else None
        self.controller = LifecycleController(registry)
        self._today = today or (lambda: ledger.now().date())
        self._lock = RLock()

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "FleetEngine":
        """Open a persisted fleet file."""
        settings = settings or Settings()
        try:
            data = load_fleet(path)
        except (OSError, yaml.YAMLError) as e:
            raise ServiceUnavailable(f"Could not read fleet file {path}: {e}") from e
        registry = VehicleRegistry(data.models, data.vehicles, hubs=settings.hubs)
        ledger = ReservationLedger(
            data.reservations, clock=clock, hold_minutes=settings.hold_minutes
        )
        return cls(registry, ledger, settings=settings, path=path)

    def save(self) -> None:
        if self.path is None:
            return
        with self._lock:
            try:
                save_fleet(
                    self.path,
                    self.registry.models(),
                    self.registry.all(),
                    self.ledger.all(),
                )
            except (OSError, yaml.YAMLError) as e:
                logger.error("Could not write fleet file %s: %s", self.path, e)
                raise ServiceUnavailable(f"Could not write fleet file {self.path}: {e}") from e

    @contextmanager
    def _committing(self) -> Iterator[None]:
        """
        Run one write under the engine lock and persist it.

        If the write or the save raises, registry and ledger are put back as
        they were, so memory never holds a change the file does not.
        """
        with self._lock:
            ledger_state = self.ledger.snapshot()
            registry_state = self.registry.snapshot()
            try:
                yield
                self.save()
            except Exception:
                self.ledger.restore(ledger_state)
                self.registry.restore(registry_state)
                raise

    # -------------------------------------------------------------------------
    # Availability and pricing
    # -------------------------------------------------------------------------

    def health_of(self, vehicle_id: str) -> HealthReport:
        return health(
            self.registry.get(vehicle_id),
            today=self._today(),
            window_days=self.settings.health_window_days,
            soon_percent=self.settings.service_soon_percent,
            default_interval_km=self.settings.default_service_interval_km,
        )

    # GetHealth
    get_health = health_of

    def vehicle_summary(self, vehicle_id: str) -> VehicleSummary:
        vehicle = self.registry.get(vehicle_id)
        return VehicleSummary(
            vehicle_id=vehicle.id,
            public_id=vehicle.public_id,
            model_name=vehicle.model.name,
            seats=vehicle.model.seats,
            daily_rate=vehicle.daily_rate,
            hub_location=vehicle.hub_location,
            lifecycle_state=vehicle.lifecycle_state,
            health_status=self.health_of(vehicle_id).status,
        )

    def query_availability(
        self, interval: Interval, hub: Optional[str] = None
    ) -> List[VehicleSummary]:
        """Vehicles free for ``interval``, cheapest first, health attached as advice."""
        candidates = self.registry.at_hub(hub) if hub else self.registry.all()
        free = find_available(
            candidates, interval, self.ledger.all(), now=self.ledger.now()
        )
        summaries = [self.vehicle_summary(vehicle_id) for vehicle_id in free]
        return sorted(summaries, key=lambda s: (s.daily_rate, s.vehicle_id))

    def quote(
        self, vehicle_id: str, interval: Interval, delivery_distance_km: float = 0
    ) -> Quote:
        vehicle = self.registry.get(vehicle_id)
        return quote(
            interval,
            vehicle.daily_rate,
            delivery_distance_km,
            per_km_rate=self.settings.per_km_delivery_rate,
        )

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def _check_bookable(self, vehicle_id: str) -> None:
        vehicle = self.registry.get(vehicle_id)
        if vehicle.lifecycle_state in (LifecycleState.MAINTENANCE, LifecycleState.CLEANING):
            logger.warning(
                "Refused booking of %s while %s", vehicle_id, vehicle.lifecycle_state.value
            )
            raise ConflictError(
                f"Vehicle {vehicle_id} is in {vehicle.lifecycle_state.value} "
                "and not offered for booking"
            )

    def confirm_reservation(
        self,
        vehicle_id: str,
        interval: Interval,
        customer_ref: str,
        payment_ref: Optional[str] = None,
        delivery_distance_km: float = 0,
    ) -> Reservation:
        """Atomically commit a confirmed reservation or raise ConflictError."""
        with self._committing():
            self._check_bookable(vehicle_id)
            total = self.quote(vehicle_id, interval, delivery_distance_km).total
            return self.ledger.confirm(
                vehicle_id,
                interval,
                customer_ref,
                payment_ref=payment_ref,
                delivery_distance_km=delivery_distance_km,
                total_cost=total,
            )

    def place_hold(
        self,
        vehicle_id: str,
        interval: Interval,
        customer_ref: str,
        delivery_distance_km: float = 0,
    ) -> Reservation:
        """Reserve the interval as PENDING until payment or hold expiry."""
        with self._committing():
            self._check_bookable(vehicle_id)
            total = self.quote(vehicle_id, interval, delivery_distance_km).total
            return self.ledger.place_hold(
                vehicle_id,
                interval,
                customer_ref,
                delivery_distance_km=delivery_distance_km,
                total_cost=total,
            )

    def confirm_payment(self, reservation_id: str, payment_ref: str) -> Reservation:
        expired = None
        with self._committing():
            try:
                return self.ledger.confirm_payment(reservation_id, payment_ref)
            except ExpiredHold as e:
                # The hold is cancelled even though the payment fails
                expired = e
        raise expired

    def cancel_reservation(self, reservation_id: str) -> Reservation:
        with self._committing():
            return self.ledger.cancel(reservation_id)

    def complete_reservation(self, reservation_id: str) -> Reservation:
        with self._committing():
            return self.ledger.complete(reservation_id)

    def extend_reservation(
        self, reservation_id: str, new_end: datetime
    ) -> Tuple[Reservation, float]:
        """Extend a trip. Returns the reservation and the extra charge."""
        new_end = to_naive(new_end)
        with self._committing():
            old_end = self.ledger.get(reservation_id).interval.end
            reservation = self.ledger.extend(reservation_id, new_end)
            daily_rate = self.registry.get(reservation.vehicle_id).daily_rate
            extra = extension_cost(old_end, new_end, daily_rate)
            if reservation.total_cost is not None:
                reservation.total_cost += extra
            return reservation, extra

    def expire_holds(self) -> List[Reservation]:
        with self._committing():
            return self.ledger.expire_holds()

    def reservations(
        self,
        vehicle_id: Optional[str] = None,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        rows = self.ledger.for_vehicle(vehicle_id) if vehicle_id else self.ledger.all()
        if status is not None:
            rows = [r for r in rows if r.status == status]
        return rows

    # -------------------------------------------------------------------------
    # Vehicle operations
    # -------------------------------------------------------------------------

    def record_lifecycle_event(self, vehicle_id: str, event: LifecycleEvent) -> Transition:
        """
        Apply a lifecycle event. A Return also completes the confirmed
        reservation currently in progress for the vehicle, if there is one.
        """
        with self._committing():
            transition = self.controller.apply(vehicle_id, event)
            if isinstance(event, Return):
                in_progress = self.ledger.in_progress(vehicle_id)
                if in_progress is not None:
                    self.ledger.complete(in_progress.id)
            return transition

    def record_maintenance_service(
        self,
        vehicle_id: str,
        service_date: date,
        mileage_at_service: float,
        next_interval_km: float,
        next_service_date: Optional[date] = None,
        service_type: str = "Routine Service",
        cost: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> ServiceRecord:
        with self._committing():
            return self.registry.record_service(
                vehicle_id,
                service_date,
                mileage_at_service,
                next_interval_km,
                next_service_date=next_service_date,
                service_type=service_type,
                cost=cost,
                notes=notes,
            )

    def update_mileage(self, vehicle_id: str, mileage: float):
        with self._committing():
            return self.registry.update_mileage(vehicle_id, mileage)

    def relocate(self, vehicle_id: str, hub: str):
        with self._committing():
            return self.registry.relocate(vehicle_id, hub)

    def fleet_summary(self) -> Dict[str, Dict[str, int]]:
        """Vehicle counts per lifecycle state and per health status."""
        health_counts = {status.name: 0 for status in HealthStatus}
        for vehicle in self.registry.all():
            health_counts[self.health_of(vehicle.id).status.name] += 1
        return {
            "lifecycle": {
                state.value: count for state, count in self.registry.state_counts().items()
            },
            "health": health_counts,
        }
