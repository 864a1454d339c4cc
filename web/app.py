"""Flask JSON API over the fleet engine."""

import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional, Union

from flask import Flask, jsonify, request

# Add parent directory to path for package imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet import (
    Checkout,
    ConflictError,
    ExpiredHold,
    FleetEngine,
    FleetError,
    HealthReport,
    Interval,
    InvalidInterval,
    InvalidMileage,
    InvalidTransition,
    NotFound,
    Reservation,
    Return,
    ServiceUnavailable,
    Settings,
    VehicleSummary,
    load_settings,
)
from fleet.interval import parse_instant
from fleet.lifecycle import EVENT_NAMES

logger = logging.getLogger(__name__)

# Path to the fleet file (relative to project root)
DEFAULT_FLEET_FILE = Path(__file__).parent.parent / "fleet.yaml"

ERROR_STATUS = {
    InvalidInterval: 400,
    InvalidMileage: 400,
    InvalidTransition: 409,
    ConflictError: 409,
    NotFound: 404,
    ExpiredHold: 410,
    ServiceUnavailable: 503,
}


def reservation_json(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "vehicleId": reservation.vehicle_id,
        "start": reservation.interval.start.isoformat(),
        "end": reservation.interval.end.isoformat(),
        "status": reservation.status.value,
        "customerRef": reservation.customer_ref,
        "paymentRef": reservation.payment_ref,
        "totalCost": reservation.total_cost,
        "expiresAt": reservation.expires_at.isoformat() if reservation.expires_at else None,
    }


def summary_json(summary: VehicleSummary) -> dict:
    return {
        "id": summary.vehicle_id,
        "publicId": summary.public_id,
        "model": summary.model_name,
        "seats": summary.seats,
        "dailyRate": summary.daily_rate,
        "hub": summary.hub_location,
        "state": summary.lifecycle_state.value,
        "health": summary.health_status.label,
    }


def health_json(report: HealthReport) -> dict:
    return {
        "vehicleId": report.vehicle_id,
        "status": report.status.label,
        "kmRemaining": report.km_remaining,
        "daysRemaining": report.days_remaining,
        "healthPercent": round(report.health_percent, 1),
        "needsService": report.needs_service,
    }


def _interval_from(source) -> Interval:
    start = source.get("start")
    end = source.get("end")
    if not start or not end:
        raise InvalidInterval("Both start and end are required")
    return Interval.parse(start, end)


def _event_from(payload: dict):
    """Build a lifecycle event from a JSON body like {"type": "return", ...}."""
    event_type = payload.get("type")
    event_cls = EVENT_NAMES.get(event_type)
    if event_cls is None:
        raise ValueError(f"Unknown lifecycle event type '{event_type}'")
    if event_cls is Checkout:
        return Checkout(fuel_level=float(payload["fuelLevel"]), notes=payload.get("notes"))
    if event_cls is Return:
        return Return(
            fuel_level=float(payload["fuelLevel"]),
            is_clean=_flag(payload, "isClean", True),
            has_new_damage=_flag(payload, "hasNewDamage", False),
        )
    return event_cls()


def _flag(payload: dict, key: str, default: bool) -> bool:
    """A JSON boolean field; strings like "false" are refused, not coerced."""
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"Field '{key}' must be true or false, got {value!r}")
    return value


def create_app(
    fleet_file: Optional[Union[str, Path]] = None,
    settings: Optional[Settings] = None,
    engine: Optional[FleetEngine] = None,
) -> Flask:
    """Build the app around one engine instance."""
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

    if engine is None:
        settings = settings or load_settings(os.environ.get("FLEET_CONFIG"))
        fleet_file = fleet_file or os.environ.get("FLEET_FILE", DEFAULT_FLEET_FILE)
        engine = FleetEngine.load(fleet_file, settings=settings)
    app.config["ENGINE"] = engine

    @app.errorhandler(FleetError)
    def handle_fleet_error(error: FleetError):
        status = ERROR_STATUS.get(type(error), 400)
        logger.warning("%s %s -> %d: %s", request.method, request.path, status, error)
        return jsonify({"error": type(error).__name__, "message": error.user_message}), status

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        return jsonify({"error": "BadRequest", "message": str(error)}), 400

    @app.errorhandler(KeyError)
    def handle_missing_field(error: KeyError):
        return jsonify({"error": "BadRequest", "message": f"Missing field {error}"}), 400

    @app.route("/vehicles")
    def list_vehicles():
        """Every vehicle with state and advisory health; ``?q=`` filters by model or plate."""
        query = request.args.get("q")
        vehicles = engine.registry.find(query) if query else engine.registry.all()
        return jsonify([summary_json(engine.vehicle_summary(v.id)) for v in vehicles])

    @app.route("/availability")
    def availability():
        interval = _interval_from(request.args)
        hub = request.args.get("hub") or None
        return jsonify([summary_json(s) for s in engine.query_availability(interval, hub)])

    @app.route("/quote")
    def get_quote():
        interval = _interval_from(request.args)
        vehicle_id = request.args["vehicleId"]
        distance = float(request.args.get("deliveryKm", 0))
        q = engine.quote(vehicle_id, interval, distance)
        return jsonify(
            {
                "days": q.days,
                "dailyRate": q.daily_rate,
                "subtotal": q.subtotal,
                "deliveryFee": q.delivery_fee,
                "total": q.total,
                "currency": engine.settings.currency,
            }
        )

    @app.route("/reservations", methods=["POST"])
    def create_reservation():
        """
        Hold or confirm a booking.

        Identity verification and payment are opaque: a request without
        ``verified: true`` is refused; with a ``paymentRef`` the booking is
        confirmed at once, otherwise it is held pending payment.
        """
        payload = request.get_json(force=True) or {}
        if not payload.get("verified"):
            return jsonify(
                {"error": "Unverified", "message": "Customer identity is not verified."}
            ), 403

        interval = _interval_from(payload)
        vehicle_id = payload["vehicleId"]
        customer_ref = payload["customerRef"]
        distance = float(payload.get("deliveryKm", 0))
        payment_ref = payload.get("paymentRef")

        if payment_ref:
            reservation = engine.confirm_reservation(
                vehicle_id, interval, customer_ref, payment_ref, distance
            )
        else:
            reservation = engine.place_hold(vehicle_id, interval, customer_ref, distance)
        return jsonify(reservation_json(reservation)), 201

    @app.route("/reservations/<reservation_id>")
    def get_reservation(reservation_id: str):
        return jsonify(reservation_json(engine.ledger.get(reservation_id)))

    @app.route("/reservations/<reservation_id>/payment", methods=["POST"])
    def confirm_payment(reservation_id: str):
        payload = request.get_json(force=True) or {}
        reservation = engine.confirm_payment(reservation_id, payload["paymentRef"])
        return jsonify(reservation_json(reservation))

    @app.route("/reservations/<reservation_id>/cancel", methods=["POST"])
    def cancel_reservation(reservation_id: str):
        return jsonify(reservation_json(engine.cancel_reservation(reservation_id)))

    @app.route("/reservations/<reservation_id>/extend", methods=["POST"])
    def extend_reservation(reservation_id: str):
        payload = request.get_json(force=True) or {}
        reservation, extra = engine.extend_reservation(
            reservation_id, parse_instant(payload["end"])
        )
        body = reservation_json(reservation)
        body["additionalCost"] = extra
        return jsonify(body)

    @app.route("/vehicles/<vehicle_id>/events", methods=["POST"])
    def record_event(vehicle_id: str):
        event = _event_from(request.get_json(force=True) or {})
        transition = engine.record_lifecycle_event(vehicle_id, event)
        return jsonify(
            {
                "vehicleId": vehicle_id,
                "from": transition.from_state.value,
                "state": transition.to_state.value,
                "summary": transition.summary,
            }
        )

    @app.route("/vehicles/<vehicle_id>/service", methods=["POST"])
    def record_service(vehicle_id: str):
        payload = request.get_json(force=True) or {}
        service_date = (
            date.fromisoformat(payload["serviceDate"])
            if payload.get("serviceDate")
            else date.today()
        )
        next_date = (
            date.fromisoformat(payload["nextServiceDate"])
            if payload.get("nextServiceDate")
            else None
        )
        engine.record_maintenance_service(
            vehicle_id,
            service_date,
            float(payload["mileage"]),
            float(payload["nextIntervalKm"]),
            next_service_date=next_date,
            service_type=payload.get("serviceType", "Routine Service"),
            cost=payload.get("cost"),
            notes=payload.get("notes"),
        )
        return jsonify(health_json(engine.get_health(vehicle_id))), 201

    @app.route("/vehicles/<vehicle_id>/health")
    def vehicle_health(vehicle_id: str):
        return jsonify(health_json(engine.get_health(vehicle_id)))

    @app.route("/summary")
    def fleet_summary():
        return jsonify(engine.fleet_summary())

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
