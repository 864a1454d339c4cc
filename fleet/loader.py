"""YAML loading and saving utilities for fleet data."""

import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Union

import yaml

from .availability import group_by_vehicle
from .errors import ConflictError
from .fleet_model import FleetModel
from .interval import Interval, overlaps, parse_instant
from .reservation import Reservation
from .service_record import ServiceRecord
from .status import LifecycleState, ReservationStatus
from .vehicle import Vehicle


class FleetData(NamedTuple):
    models: List[FleetModel]
    vehicles: List[Vehicle]
    reservations: List[Reservation]


def _as_date_str(value: Any) -> Optional[str]:
    """YAML turns unquoted dates into date objects; keep ISO strings."""
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value)


def _as_datetime(value: Any) -> Optional[datetime]:
    """Stored timestamps as naive local time, whatever offset they carry."""
    if value is None:
        return None
    return parse_instant(value if isinstance(value, datetime) else str(value))


def _parse_model(dct: Dict[str, Any]) -> FleetModel:
    return FleetModel(
        dct["id"],
        dct["make"],
        dct["model"],
        dct["year"],
        dct.get("seats", 5),
        dct["dailyRate"],
        dct.get("category"),
    )


def _parse_service_record(dct: Dict[str, Any]) -> ServiceRecord:
    return ServiceRecord(
        _as_date_str(dct["serviceDate"]),
        dct["mileageAtService"],
        dct.get("serviceType", "Routine Service"),
        dct.get("cost"),
        dct.get("notes"),
    )


def _parse_vehicle(dct: Dict[str, Any], models: Dict[str, FleetModel]) -> Vehicle:
    model_id = dct["modelId"]
    if model_id not in models:
        raise ValueError(f"Vehicle {dct['id']} references unknown model '{model_id}'")
    return Vehicle(
        id=dct["id"],
        plate=dct["plate"],
        public_id=dct["publicId"],
        model=models[model_id],
        hub_location=dct["hubLocation"],
        current_mileage=dct.get("currentMileage", 0),
        last_service_mileage=dct.get("lastServiceMileage", 0),
        service_interval_km=dct.get("serviceIntervalKm"),
        next_service_date=_as_date_str(dct.get("nextServiceDate")),
        lifecycle_state=LifecycleState(dct.get("lifecycleState", "available")),
        current_fuel_percent=dct.get("currentFuelPercent"),
        checkout_notes=dct.get("checkoutNotes"),
        service_log=[_parse_service_record(s) for s in dct.get("serviceLog") or []],
    )


def _parse_reservation(dct: Dict[str, Any]) -> Reservation:
    return Reservation(
        id=dct["id"],
        vehicle_id=dct["vehicleId"],
        interval=Interval(_as_datetime(dct["start"]), _as_datetime(dct["end"])),
        status=ReservationStatus(dct["status"]),
        customer_ref=dct["customerRef"],
        created_at=_as_datetime(dct["createdAt"]),
        expires_at=_as_datetime(dct.get("expiresAt")),
        payment_ref=dct.get("paymentRef"),
        delivery_distance_km=dct.get("deliveryDistanceKm", 0),
        total_cost=dct.get("totalCost"),
    )


def parse_fleet(data: Dict[str, Any]) -> FleetData:
    """Parse a raw fleet document into objects."""
    models = [_parse_model(m) for m in data.get("models") or []]
    by_id = {m.id: m for m in models}
    vehicles = [_parse_vehicle(v, by_id) for v in data.get("vehicles") or []]
    reservations = [_parse_reservation(r) for r in data.get("reservations") or []]
    return FleetData(models, vehicles, reservations)


def load_fleet(filename: Union[str, Path]) -> FleetData:
    """Load models, vehicles and reservations from a YAML file."""
    with open(filename, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    return parse_fleet(data)


# =============================================================================
# Serialization
# =============================================================================


def _model_to_dict(model: FleetModel) -> Dict[str, Any]:
    """Serialize a FleetModel to the YAML dict format (camelCase keys)."""
    d: Dict[str, Any] = {
        "id": model.id,
        "make": model.make,
        "model": model.model,
        "year": model.year,
        "seats": model.seats,
        "dailyRate": model.daily_rate,
    }
    if model.category is not None:
        d["category"] = model.category
    return d


def _service_record_to_dict(record: ServiceRecord) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "serviceDate": record.service_date,
        "mileageAtService": record.mileage_at_service,
        "serviceType": record.service_type,
    }
    if record.cost is not None:
        d["cost"] = record.cost
    if record.notes is not None:
        d["notes"] = record.notes
    return d


def _vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": vehicle.id,
        "publicId": vehicle.public_id,
        "plate": vehicle.plate,
        "modelId": vehicle.model.id,
        "hubLocation": vehicle.hub_location,
        "lifecycleState": vehicle.lifecycle_state.value,
        "currentMileage": vehicle.current_mileage,
        "lastServiceMileage": vehicle.last_service_mileage,
    }
    if vehicle.service_interval_km is not None:
        d["serviceIntervalKm"] = vehicle.service_interval_km
    if vehicle.next_service_date is not None:
        d["nextServiceDate"] = vehicle.next_service_date
    if vehicle.current_fuel_percent is not None:
        d["currentFuelPercent"] = vehicle.current_fuel_percent
    if vehicle.checkout_notes is not None:
        d["checkoutNotes"] = vehicle.checkout_notes
    if vehicle.service_log:
        d["serviceLog"] = [_service_record_to_dict(s) for s in vehicle.service_log]
    return d


def _reservation_to_dict(reservation: Reservation) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": reservation.id,
        "vehicleId": reservation.vehicle_id,
        "start": reservation.interval.start.isoformat(),
        "end": reservation.interval.end.isoformat(),
        "status": reservation.status.value,
        "customerRef": reservation.customer_ref,
        "createdAt": reservation.created_at.isoformat(),
    }
    if reservation.expires_at is not None:
        d["expiresAt"] = reservation.expires_at.isoformat()
    if reservation.payment_ref is not None:
        d["paymentRef"] = reservation.payment_ref
    if reservation.delivery_distance_km:
        d["deliveryDistanceKm"] = reservation.delivery_distance_km
    if reservation.total_cost is not None:
        d["totalCost"] = reservation.total_cost
    return d


def check_no_overlaps(reservations: Iterable[Reservation]) -> None:
    """
    Storage-level exclusion constraint: no two pending/confirmed rows for
    one vehicle may overlap. Raises ConflictError naming the first pair found.
    """
    for vehicle_id, rows in group_by_vehicle(reservations).items():
        active = sorted((r for r in rows if r.is_active), key=lambda r: r.interval.start)
        for earlier, later in zip(active, active[1:]):
            if overlaps(earlier.interval, later.interval):
                raise ConflictError(
                    f"Reservations {earlier.id} and {later.id} overlap on {vehicle_id}"
                )


def dump_fleet(
    models: Iterable[FleetModel],
    vehicles: Iterable[Vehicle],
    reservations: Iterable[Reservation],
) -> Dict[str, Any]:
    """Build the raw fleet document."""
    reservations = list(reservations)
    check_no_overlaps(reservations)
    return {
        "models": [_model_to_dict(m) for m in models],
        "vehicles": [_vehicle_to_dict(v) for v in vehicles],
        "reservations": [_reservation_to_dict(r) for r in reservations],
    }


def save_fleet(
    filename: Union[str, Path],
    models: Iterable[FleetModel],
    vehicles: Iterable[Vehicle],
    reservations: Iterable[Reservation],
) -> None:
    """
    Write the whole fleet to a YAML file.

    Writes to a sibling temp file first and renames it over the target, so a
    failed write never leaves a half-written fleet behind.
    """
    data = dump_fleet(models, vehicles, reservations)
    path = Path(filename)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )
    os.replace(tmp_path, path)
