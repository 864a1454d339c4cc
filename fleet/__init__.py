"""
Fleet availability and lifecycle engine.

This package provides the core of a vehicle-rental platform:
- Interval: half-open rental periods and the overlap predicate
- Vehicle / FleetModel / ServiceRecord: fleet records
- VehicleRegistry: owner of vehicle records
- ReservationLedger: atomic reservation holds and confirmations
- find_available: availability over a ledger snapshot
- LifecycleController: available -> rented -> cleaning/maintenance -> available
- health: dual-threshold maintenance urgency
- price / quote: booking cost
- FleetEngine: the operations above behind one interface
"""

from .status import HealthStatus, LifecycleState, ReservationStatus
from .errors import (
    FleetError,
    InvalidInterval,
    ConflictError,
    InvalidTransition,
    NotFound,
    ExpiredHold,
    InvalidMileage,
    ServiceUnavailable,
)
from .interval import Interval, overlaps
from .fleet_model import FleetModel
from .service_record import ServiceRecord
from .vehicle import Vehicle
from .reservation import Reservation
from .calculations import calc_km_remaining, calc_days_remaining, check_health
from .health import HealthReport, health
from .pricing import Quote, price, quote
from .availability import find_available
from .lifecycle import (
    Checkout,
    Return,
    CompleteMaintenance,
    CompleteCleaning,
    LifecycleController,
    Transition,
)
from .registry import VehicleRegistry
from .ledger import ReservationLedger
from .config import Settings, load_settings
from .loader import load_fleet, save_fleet
from .engine import FleetEngine, VehicleSummary

__all__ = [
    "HealthStatus",
    "LifecycleState",
    "ReservationStatus",
    "FleetError",
    "InvalidInterval",
    "ConflictError",
    "InvalidTransition",
    "NotFound",
    "ExpiredHold",
    "InvalidMileage",
    "ServiceUnavailable",
    "Interval",
    "overlaps",
    "FleetModel",
    "ServiceRecord",
    "Vehicle",
    "Reservation",
    "calc_km_remaining",
    "calc_days_remaining",
    "check_health",
    "HealthReport",
    "health",
    "Quote",
    "price",
    "quote",
    "find_available",
    "Checkout",
    "Return",
    "CompleteMaintenance",
    "CompleteCleaning",
    "LifecycleController",
    "Transition",
    "VehicleRegistry",
    "ReservationLedger",
    "Settings",
    "load_settings",
    "load_fleet",
    "save_fleet",
    "FleetEngine",
    "VehicleSummary",
]
