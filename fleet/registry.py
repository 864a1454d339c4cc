"""Vehicle registry - owner of vehicle and model records."""

import logging
from collections import Counter
from datetime import date
from threading import RLock
from typing import Dict, Iterable, List, Optional, Tuple

from .calculations import calc_next_service_date
from .errors import InvalidMileage, NotFound
from .fleet_model import FleetModel
from .service_record import ServiceRecord
from .status import LifecycleState
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


class VehicleRegistry:
    """
    Vehicles and the shared model records they reference.

    Writes hold ``lock``; the lifecycle controller takes the same lock when it
    changes ``lifecycle_state``, which nothing in here touches.
    """

    def __init__(
        self,
        models: Optional[Iterable[FleetModel]] = None,
        vehicles: Optional[Iterable[Vehicle]] = None,
        hubs: Optional[Iterable[str]] = None,
    ):
        self.hubs: List[str] = list(hubs or [])
        self._models: Dict[str, FleetModel] = {}
        self._vehicles: Dict[str, Vehicle] = {}
        self.lock = RLock()
        for model in models or []:
            self.add_model(model)
        for vehicle in vehicles or []:
            self.add_vehicle(vehicle)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, vehicle_id: str) -> Vehicle:
        try:
            return self._vehicles[vehicle_id]
        except KeyError:
            raise NotFound(f"Unknown vehicle '{vehicle_id}'") from None

    def get_model(self, model_id: str) -> FleetModel:
        try:
            return self._models[model_id]
        except KeyError:
            raise NotFound(f"Unknown model '{model_id}'") from None

    def all(self) -> List[Vehicle]:
        return list(self._vehicles.values())

    def models(self) -> List[FleetModel]:
        return list(self._models.values())

    def find(self, query: str) -> List[Vehicle]:
        """Vehicles whose model name or plate contains ``query`` (case-insensitive)."""
        lower = query.lower()
        return [
            v
            for v in self._vehicles.values()
            if lower in v.model.name.lower() or lower in v.plate.lower()
        ]

    def at_hub(self, hub: str) -> List[Vehicle]:
        return [v for v in self._vehicles.values() if v.hub_location == hub]

    def state_counts(self) -> Dict[LifecycleState, int]:
        """Number of vehicles in each lifecycle state (zero-filled)."""
        counts = Counter(v.lifecycle_state for v in self._vehicles.values())
        return {state: counts.get(state, 0) for state in LifecycleState}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _check_hub(self, hub: str) -> None:
        if self.hubs and hub not in self.hubs:
            raise ValueError(f"Unknown hub '{hub}' (expected one of {', '.join(self.hubs)})")

    def add_model(self, model: FleetModel) -> FleetModel:
        with self.lock:
            if model.id in self._models:
                raise ValueError(f"Duplicate model id '{model.id}'")
            self._models[model.id] = model
            return model

    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        with self.lock:
            if vehicle.id in self._vehicles:
                raise ValueError(f"Duplicate vehicle id '{vehicle.id}'")
            self._check_hub(vehicle.hub_location)
            self._models.setdefault(vehicle.model.id, vehicle.model)
            self._vehicles[vehicle.id] = vehicle
            return vehicle

    def update_mileage(self, vehicle_id: str, mileage: float) -> Vehicle:
        """Record a new odometer reading. Odometers only go forward."""
        with self.lock:
            vehicle = self.get(vehicle_id)
            if mileage < vehicle.current_mileage:
                raise InvalidMileage(
                    f"{vehicle_id}: mileage {mileage:,.0f} is below the current "
                    f"reading {vehicle.current_mileage:,.0f}"
                )
            vehicle.current_mileage = mileage
            logger.info("%s: mileage updated to %.0f", vehicle_id, mileage)
            return vehicle

    def relocate(self, vehicle_id: str, hub: str) -> Vehicle:
        with self.lock:
            vehicle = self.get(vehicle_id)
            self._check_hub(hub)
            logger.info("%s: moved from %s to %s", vehicle_id, vehicle.hub_location, hub)
            vehicle.hub_location = hub
            return vehicle

    def record_service(
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
        """
        Log a service event and reset the maintenance markers.

        - Appends a ServiceRecord to the vehicle's service log
        - last_service_mileage = mileage_at_service
        - service_interval_km = next_interval_km
        - next_service_date defaults to six months after the service
        - current_mileage never moves backwards
        """
        if next_interval_km <= 0:
            raise ValueError(f"Service interval must be positive, got {next_interval_km}")
        with self.lock:
            vehicle = self.get(vehicle_id)
            if mileage_at_service < vehicle.last_service_mileage:
                raise InvalidMileage(
                    f"{vehicle_id}: service mileage {mileage_at_service:,.0f} is below "
                    f"the previous service at {vehicle.last_service_mileage:,.0f}"
                )
            next_date = next_service_date or calc_next_service_date(service_date)

            record = ServiceRecord(
                service_date=service_date.isoformat(),
                mileage_at_service=mileage_at_service,
                service_type=service_type,
                cost=cost,
                notes=notes,
            )
            vehicle.service_log.append(record)
            vehicle.current_mileage = max(vehicle.current_mileage, mileage_at_service)
            vehicle.last_service_mileage = mileage_at_service
            vehicle.service_interval_km = next_interval_km
            vehicle.next_service_date = next_date.isoformat()
            logger.info(
                "%s: %s logged at %.0f km, next due %s or +%.0f km",
                vehicle_id,
                service_type,
                mileage_at_service,
                vehicle.next_service_date,
                next_interval_km,
            )
            return record

    # -------------------------------------------------------------------------
    # Rollback
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Tuple[Vehicle, dict]]:
        """Current field values of every vehicle, for ``restore``."""
        with self.lock:
            return {
                vehicle_id: (v, dict(vars(v), service_log=list(v.service_log)))
                for vehicle_id, v in self._vehicles.items()
            }

    def restore(self, snapshot: Dict[str, Tuple[Vehicle, dict]]) -> None:
        """Put every vehicle back as it was at ``snapshot``."""
        with self.lock:
            for vehicle, state in snapshot.values():
                vars(vehicle).update(state)
            self._vehicles = {vehicle_id: v for vehicle_id, (v, _) in snapshot.items()}
