#!/usr/bin/env python3
"""
Tests for the maintenance health calculator.

Covers the two competing budgets:
1. Mileage budget - interval km minus km driven since last service
2. Calendar budget - days until the next service date, against 182 days
3. Whichever is more urgent governs the status
"""
from datetime import date

import pytest

from fleet import HealthReport, HealthStatus, health

TODAY = date(2026, 10, 18)


class TestHealth:
    """Tests for health()."""

    def test_mileage_budget_dominates(self, make_vehicle):
        """200 km left flags SERVICE_SOON even with 40 calendar days left."""
        vehicle = make_vehicle(
            current_mileage=14800,
            last_service_mileage=10000,
            service_interval_km=5000,
            next_service_date="2026-11-27",
        )
        report = health(vehicle, today=TODAY)
        assert report.km_remaining == 200
        assert report.days_remaining == 40
        assert report.status == HealthStatus.SERVICE_SOON
        assert report.health_percent == pytest.approx(4.0)

    def test_calendar_budget_dominates(self, make_vehicle):
        """Plenty of km but only 20 days left."""
        vehicle = make_vehicle(
            current_mileage=10500,
            last_service_mileage=10000,
            service_interval_km=5000,
            next_service_date="2026-11-07",
        )
        report = health(vehicle, today=TODAY)
        assert report.mileage_percent == 90.0
        assert report.status == HealthStatus.SERVICE_SOON

    def test_healthy(self, make_vehicle):
        vehicle = make_vehicle(
            current_mileage=11000,
            last_service_mileage=10000,
            service_interval_km=5000,
            next_service_date="2027-03-01",
        )
        assert health(vehicle, today=TODAY).status == HealthStatus.HEALTHY

    def test_overdue_by_mileage(self, make_vehicle):
        vehicle = make_vehicle(
            current_mileage=15200,
            last_service_mileage=10000,
            service_interval_km=5000,
            next_service_date="2027-03-01",
        )
        report = health(vehicle, today=TODAY)
        assert report.km_remaining == -200
        assert report.mileage_percent == 0.0
        assert report.status == HealthStatus.OVERDUE

    def test_overdue_by_date(self, make_vehicle):
        vehicle = make_vehicle(
            current_mileage=10100,
            last_service_mileage=10000,
            service_interval_km=5000,
            next_service_date="2026-10-18",
        )
        report = health(vehicle, today=TODAY)
        assert report.days_remaining == 0
        assert report.status == HealthStatus.OVERDUE

    def test_no_service_date_uses_mileage_only(self, make_vehicle):
        vehicle = make_vehicle(
            current_mileage=1000, last_service_mileage=0, service_interval_km=5000
        )
        report = health(vehicle, today=TODAY)
        assert report.days_remaining is None
        assert report.date_percent == 100.0
        assert report.status == HealthStatus.HEALTHY

    def test_missing_interval_defaults_to_5000(self, make_vehicle):
        vehicle = make_vehicle(current_mileage=4000, last_service_mileage=0)
        assert health(vehicle, today=TODAY).km_remaining == 1000

    def test_custom_thresholds(self, make_vehicle):
        vehicle = make_vehicle(
            current_mileage=3000, last_service_mileage=0, service_interval_km=5000
        )
        assert health(vehicle, today=TODAY).status == HealthStatus.HEALTHY
        assert (
            health(vehicle, today=TODAY, soon_percent=50).status
            == HealthStatus.SERVICE_SOON
        )

    def test_pure(self, make_vehicle):
        """Reading health never changes the vehicle."""
        vehicle = make_vehicle(
            current_mileage=14800,
            last_service_mileage=10000,
            service_interval_km=5000,
            next_service_date="2026-11-27",
        )
        before = dict(vars(vehicle))
        assert health(vehicle, today=TODAY) == health(vehicle, today=TODAY)
        assert vars(vehicle) == before


class TestHealthReport:
    """Tests for HealthReport properties."""

    def test_needs_service(self):
        assert HealthReport("u1", HealthStatus.OVERDUE, -5).needs_service
        assert HealthReport("u1", HealthStatus.SERVICE_SOON, 100).needs_service
        assert not HealthReport("u1", HealthStatus.HEALTHY, 4000).needs_service

    def test_health_percent_is_minimum(self):
        report = HealthReport(
            "u1", HealthStatus.HEALTHY, 4000, 150, mileage_percent=80, date_percent=60
        )
        assert report.health_percent == 60
