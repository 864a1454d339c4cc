#!/usr/bin/env python3
"""Tests for the vehicle registry."""
from datetime import date

import pytest

from fleet import FleetModel, InvalidMileage, LifecycleState, NotFound, VehicleRegistry


class TestRegistryReads:
    """Tests for lookups."""

    def test_get(self, registry):
        assert registry.get("u2").hub_location == "JKIA"

    def test_get_unknown(self, registry):
        with pytest.raises(NotFound):
            registry.get("u9")

    def test_not_found_is_a_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.get_model("m9")

    def test_models_registered_from_vehicles(self, make_vehicle):
        registry = VehicleRegistry(vehicles=[make_vehicle("u1")])
        assert registry.get_model("m1").make == "Toyota"

    def test_find(self, registry):
        assert {v.id for v in registry.find("prado")} == {"u1", "u2"}
        assert [v.id for v in registry.find("KCD U2")] == ["u2"]
        assert registry.find("subaru") == []

    def test_at_hub(self, registry):
        assert [v.id for v in registry.at_hub("Nairobi CBD")] == ["u1"]

    def test_state_counts_zero_filled(self, registry):
        counts = registry.state_counts()
        assert counts[LifecycleState.AVAILABLE] == 2
        assert counts[LifecycleState.CLEANING] == 0
        assert set(counts) == set(LifecycleState)


class TestRegistryWrites:
    """Tests for registry updates."""

    def test_duplicate_vehicle(self, registry, make_vehicle):
        with pytest.raises(ValueError):
            registry.add_vehicle(make_vehicle("u1"))

    def test_duplicate_model(self, registry):
        with pytest.raises(ValueError):
            registry.add_model(FleetModel("m1", "Mercedes", "C-Class", 2022, 5, 12000))

    def test_unknown_hub(self, registry, make_vehicle):
        with pytest.raises(ValueError):
            registry.add_vehicle(make_vehicle("u3", hub_location="Mombasa"))

    def test_relocate(self, registry):
        assert registry.relocate("u1", "Westlands").hub_location == "Westlands"
        with pytest.raises(ValueError):
            registry.relocate("u1", "Kisumu")

    def test_update_mileage(self, registry):
        registry.update_mileage("u1", 1200)
        assert registry.get("u1").current_mileage == 1200

    def test_mileage_never_goes_back(self, registry):
        registry.update_mileage("u1", 1200)
        with pytest.raises(InvalidMileage):
            registry.update_mileage("u1", 1100)
        assert registry.get("u1").current_mileage == 1200


class TestRecordService:
    """Tests for logging a service event."""

    def test_resets_markers(self, registry):
        registry.update_mileage("u1", 5400)
        record = registry.record_service(
            "u1",
            date(2026, 10, 18),
            5400,
            next_interval_km=10000,
            next_service_date=date(2027, 2, 1),
            service_type="Oil Change",
            cost=9500,
            notes="Replaced filter",
        )
        vehicle = registry.get("u1")
        assert vehicle.last_service_mileage == 5400
        assert vehicle.service_interval_km == 10000
        assert vehicle.next_service_date == "2027-02-01"
        assert vehicle.service_log == [record]
        assert record.service_date == "2026-10-18"
        assert record.cost == 9500

    def test_default_next_date_six_months_out(self, registry):
        registry.record_service("u1", date(2026, 10, 18), 0, next_interval_km=5000)
        assert registry.get("u1").next_service_date == "2027-04-18"

    def test_service_mileage_ahead_of_odometer_advances_it(self, registry):
        registry.record_service("u1", date(2026, 10, 18), 800, next_interval_km=5000)
        vehicle = registry.get("u1")
        assert vehicle.current_mileage == 800
        assert vehicle.km_since_service == 0

    def test_mileage_before_last_service_rejected(self, registry):
        registry.record_service("u1", date(2026, 6, 1), 3000, next_interval_km=5000)
        with pytest.raises(InvalidMileage):
            registry.record_service("u1", date(2026, 10, 1), 2000, next_interval_km=5000)

    @pytest.mark.parametrize("interval", [0, -100])
    def test_interval_must_be_positive(self, registry, interval):
        with pytest.raises(ValueError):
            registry.record_service("u1", date(2026, 10, 18), 0, next_interval_km=interval)
        assert registry.get("u1").service_log == []
