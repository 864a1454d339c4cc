"""Shared fixtures: a fixed clock and small fleets to test against."""

import shutil
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from fleet import FleetEngine, FleetModel, ReservationLedger, Vehicle, VehicleRegistry

HUBS = ["Nairobi CBD", "JKIA", "Westlands"]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def at(day: int, hour: int = 10) -> datetime:
    """A timestamp in November 2026."""
    return datetime(2026, 11, day, hour, 0)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 18, 9, 0))


@pytest.fixture
def prado():
    return FleetModel("m1", "Toyota", "Land Cruiser Prado", 2021, 7, 15000, "SUV")


@pytest.fixture
def make_vehicle(prado):
    def _make(vehicle_id="u1", **kwargs):
        kwargs.setdefault("plate", f"KCD {vehicle_id.upper()}")
        kwargs.setdefault("public_id", f"PRD-{vehicle_id.upper()}")
        kwargs.setdefault("model", prado)
        kwargs.setdefault("hub_location", "Nairobi CBD")
        return Vehicle(id=vehicle_id, **kwargs)

    return _make


@pytest.fixture
def registry(prado, make_vehicle):
    return VehicleRegistry(
        models=[prado],
        vehicles=[make_vehicle("u1"), make_vehicle("u2", hub_location="JKIA")],
        hubs=HUBS,
    )


@pytest.fixture
def ledger(clock):
    return ReservationLedger(clock=clock, hold_minutes=15)


SAMPLE_FLEET = Path(__file__).parent.parent / "fleet.yaml"


@pytest.fixture
def fleet_file(tmp_path):
    """A writable copy of the sample fleet."""
    path = tmp_path / "fleet.yaml"
    shutil.copy(SAMPLE_FLEET, path)
    return path


@pytest.fixture
def engine(fleet_file, clock):
    return FleetEngine.load(fleet_file, clock=clock)
