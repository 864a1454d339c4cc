#!/usr/bin/env python3
"""
Unified CLI for the rental fleet.

Commands:
  fleet         - Show every vehicle with its state and maintenance health
  available     - List vehicles free for a date range
  quote         - Price a booking
  book / hold   - Confirm a reservation, or hold one pending payment
  pay           - Confirm payment on a hold
  cancel        - Cancel a reservation
  complete      - Mark a reservation completed
  extend        - Extend a reservation's end
  reservations  - List reservations
  checkout      - Hand a vehicle to a customer
  return        - Take a vehicle back (clean / dirty / damaged)
  clear         - Finish cleaning or maintenance
  service       - Log a maintenance service and reset the schedule
  update-miles  - Update a vehicle's odometer
  relocate      - Move a vehicle to another hub
  health        - Show maintenance health
  expire-holds  - Release pending holds past their window
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional


from fleet import (
    Checkout,
    CompleteCleaning,
    CompleteMaintenance,
    FleetEngine,
    FleetError,
    HealthReport,
    Interval,
    LifecycleState,
    Reservation,
    ReservationStatus,
    Return,
    ServiceRecord,
    Vehicle,
    load_settings,
)
from fleet.interval import parse_instant

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format distance for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_money(amount: Optional[float], currency: str = "KES") -> str:
    """Format an amount for display."""
    return f"{currency} {amount:,.2f}" if amount is not None else "-"


def format_days_remaining(days: Optional[int]) -> str:
    """Format remaining time for display (e.g., '3mo 15d' or '-2mo 5d')."""
    if days is None:
        return "-"
    sign = "-" if days < 0 else ""
    days = abs(days)
    months = days // 30
    remaining_days = days % 30
    if months > 0:
        return f"{sign}{months}mo {remaining_days}d"
    return f"{sign}{days}d"


def format_percent(percent: float) -> str:
    return f"{percent:.0f}%"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_when(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value is not None else "-"


# =============================================================================
# Table builders
# =============================================================================


def make_fleet_table(engine: FleetEngine, vehicles: List[Vehicle]) -> List[List[str]]:
    rows = []
    for vehicle in sorted(vehicles, key=lambda v: v.id):
        report = engine.health_of(vehicle.id)
        rows.append(
            [
                vehicle.id,
                vehicle.public_id,
                vehicle.model.name,
                vehicle.hub_location,
                vehicle.lifecycle_state.value,
                format_km(vehicle.current_mileage),
                format_percent(vehicle.current_fuel_percent)
                if vehicle.current_fuel_percent is not None
                else "-",
                report.status.label,
            ]
        )
    return rows


def make_health_table(reports: List[HealthReport]) -> List[List[str]]:
    rows = []
    for report in reports:
        rows.append(
            [
                report.vehicle_id,
                report.status.label,
                format_km(report.km_remaining),
                format_days_remaining(report.days_remaining),
                format_percent(report.health_percent),
            ]
        )
    return rows


def make_reservation_table(
    reservations: List[Reservation], currency: str = "KES"
) -> List[List[str]]:
    rows = []
    for reservation in reservations:
        rows.append(
            [
                reservation.id,
                reservation.vehicle_id,
                format_when(reservation.interval.start),
                format_when(reservation.interval.end),
                reservation.status.value,
                truncate(reservation.customer_ref, 20),
                format_money(reservation.total_cost, currency),
                format_when(reservation.expires_at),
            ]
        )
    return rows


def make_service_table(records: List[ServiceRecord], currency: str = "KES") -> List[List[str]]:
    return [
        [
            r.service_date,
            format_km(r.mileage_at_service),
            r.service_type,
            format_money(r.cost, currency),
            truncate(r.notes),
        ]
        for r in records
    ]


# =============================================================================
# Query commands
# =============================================================================


def cmd_fleet(engine: FleetEngine, args) -> int:
    """Show every vehicle with its state and health."""
    summary = engine.fleet_summary()
    counts = ", ".join(f"{k}: {v}" for k, v in summary["lifecycle"].items())
    print(f"Vehicles: {len(engine.registry.all())} ({counts})")
    print()
    if args.search:
        vehicles = engine.registry.find(args.search)
        if not vehicles:
            print(f"No vehicles match '{args.search}'.")
            return 0
    else:
        vehicles = engine.registry.all()
    headers = ["Id", "Public Id", "Model", "Hub", "State", "Km", "Fuel", "Health"]
    print(tabulate(make_fleet_table(engine, vehicles), headers=headers, tablefmt="simple"))
    return 0


def cmd_available(engine: FleetEngine, args) -> int:
    """List vehicles free for a date range."""
    interval = Interval.parse(args.start, args.end)
    summaries = engine.query_availability(interval, hub=args.hub)

    print(f"Requested: {interval}")
    if args.hub:
        print(f"Hub: {args.hub}")
    print()

    if not summaries:
        print("No vehicles available for these dates.")
        return 0

    currency = engine.settings.currency
    rows = [
        [
            s.vehicle_id,
            s.public_id,
            s.model_name,
            s.seats,
            format_money(s.daily_rate, currency),
            s.hub_location,
            s.health_status.label,
        ]
        for s in summaries
    ]
    headers = ["Id", "Public Id", "Model", "Seats", "Daily Rate", "Hub", "Health"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_quote(engine: FleetEngine, args) -> int:
    """Price a booking."""
    interval = Interval.parse(args.start, args.end)
    q = engine.quote(args.vehicle_id, interval, args.delivery_km)
    currency = engine.settings.currency

    print(f"Vehicle:  {engine.registry.get(args.vehicle_id).name}")
    print(f"Duration: {q.days} {'Days' if q.days > 1 else 'Day'}")
    print(f"Car rate: {format_money(q.subtotal, currency)}")
    print(f"Delivery: {format_money(q.delivery_fee, currency) if q.delivery_fee else 'Free'}")
    print(f"Total:    {format_money(q.total, currency)}")
    return 0


def cmd_reservations(engine: FleetEngine, args) -> int:
    """List reservations."""
    status = ReservationStatus(args.status) if args.status else None
    reservations = engine.reservations(vehicle_id=args.vehicle, status=status)
    if not reservations:
        print("No reservations found.")
        return 0
    headers = ["Id", "Vehicle", "Start", "End", "Status", "Customer", "Total", "Hold Expires"]
    print(
        tabulate(
            make_reservation_table(reservations, engine.settings.currency),
            headers=headers,
            tablefmt="simple",
        )
    )
    return 0


def cmd_health(engine: FleetEngine, args) -> int:
    """Show maintenance health."""
    if args.vehicle_id:
        vehicle = engine.registry.get(args.vehicle_id)
        report = engine.health_of(vehicle.id)
        print(f"Vehicle: {vehicle.name}")
        print(f"Current mileage: {vehicle.current_mileage:,.0f} km")
        print(f"Last service: {vehicle.last_service_mileage:,.0f} km")
        print(f"Next service date: {vehicle.next_service_date or '-'}")
        print(f"Status: {report.status.label} ({format_percent(report.health_percent)})")
        print(f"Remaining: {format_km(report.km_remaining)} km / "
              f"{format_days_remaining(report.days_remaining)}")
        last = vehicle.last_service
        if last is not None:
            print(f"Last logged service: {last.service_type} on {last.service_date}")
        print(f"Total service cost: "
              f"{format_money(vehicle.total_service_cost, engine.settings.currency)}")
        if vehicle.service_log:
            print()
            headers = ["Date", "Mileage", "Type", "Cost", "Notes"]
            print(
                tabulate(
                    make_service_table(
                        vehicle.get_service_log_sorted(), engine.settings.currency
                    ),
                    headers=headers,
                    tablefmt="simple",
                )
            )
        return 0

    reports = sorted(
        (engine.health_of(v.id) for v in engine.registry.all()),
        key=lambda r: (r.status.value, r.health_percent),
    )
    headers = ["Vehicle", "Health", "Km Left", "Time Left", "Budget"]
    print(tabulate(make_health_table(reports), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Reservation commands
# =============================================================================


def _print_reservation(reservation: Reservation, currency: str) -> None:
    print(f"Reservation {reservation.id}: {reservation.status.value}")
    print(f"  Vehicle:  {reservation.vehicle_id}")
    print(f"  Period:   {reservation.interval}")
    print(f"  Customer: {reservation.customer_ref}")
    print(f"  Total:    {format_money(reservation.total_cost, currency)}")
    if reservation.expires_at:
        print(f"  Hold expires: {format_when(reservation.expires_at)}")


def cmd_book(engine: FleetEngine, args) -> int:
    """Confirm a reservation, or hold it pending payment."""
    if args.unverified:
        print("Error: Customer identity is not verified; cannot book.")
        return 1
    interval = Interval.parse(args.start, args.end)

    if args.dry_run:
        q = engine.quote(args.vehicle_id, interval, args.delivery_km)
        print(f"Would book {args.vehicle_id} for {interval}: "
              f"{format_money(q.total, engine.settings.currency)}")
        print("(dry run - no changes made)")
        return 0

    if args.command == "hold":
        reservation = engine.place_hold(
            args.vehicle_id, interval, args.customer, args.delivery_km
        )
    else:
        reservation = engine.confirm_reservation(
            args.vehicle_id,
            interval,
            args.customer,
            payment_ref=args.payment_ref,
            delivery_distance_km=args.delivery_km,
        )
    _print_reservation(reservation, engine.settings.currency)
    return 0


def cmd_pay(engine: FleetEngine, args) -> int:
    reservation = engine.confirm_payment(args.reservation_id, args.payment_ref)
    _print_reservation(reservation, engine.settings.currency)
    return 0


def cmd_cancel(engine: FleetEngine, args) -> int:
    reservation = engine.cancel_reservation(args.reservation_id)
    print(f"Reservation {reservation.id} cancelled.")
    return 0


def cmd_complete(engine: FleetEngine, args) -> int:
    reservation = engine.complete_reservation(args.reservation_id)
    print(f"Reservation {reservation.id} completed.")
    return 0


def cmd_extend(engine: FleetEngine, args) -> int:
    reservation, extra = engine.extend_reservation(
        args.reservation_id, parse_instant(args.new_end)
    )
    print(f"Reservation {reservation.id} now ends {format_when(reservation.interval.end)}")
    print(f"Additional cost: {format_money(extra, engine.settings.currency)}")
    return 0


def cmd_expire_holds(engine: FleetEngine, args) -> int:
    expired = engine.expire_holds()
    print(f"Released {len(expired)} expired hold(s).")
    for reservation in expired:
        print(f"  {reservation.id} ({reservation.vehicle_id})")
    return 0


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_checkout(engine: FleetEngine, args) -> int:
    transition = engine.record_lifecycle_event(
        args.vehicle_id, Checkout(fuel_level=args.fuel, notes=args.notes)
    )
    print(transition.summary)
    return 0


def cmd_return(engine: FleetEngine, args) -> int:
    transition = engine.record_lifecycle_event(
        args.vehicle_id,
        Return(fuel_level=args.fuel, is_clean=not args.dirty, has_new_damage=args.damage),
    )
    print(transition.summary)
    print(f"State: {transition.to_state.value}")
    return 0


def cmd_clear(engine: FleetEngine, args) -> int:
    """Finish whichever of cleaning or maintenance the vehicle is in."""
    state = engine.registry.get(args.vehicle_id).lifecycle_state
    event = (
        CompleteMaintenance()
        if state == LifecycleState.MAINTENANCE
        else CompleteCleaning()
    )
    transition = engine.record_lifecycle_event(args.vehicle_id, event)
    print(transition.summary)
    return 0


def cmd_service(engine: FleetEngine, args) -> int:
    """Log a maintenance service and reset the schedule."""
    vehicle = engine.registry.get(args.vehicle_id)
    service_date = date.fromisoformat(args.date) if args.date else date.today()
    next_date = date.fromisoformat(args.next_date) if args.next_date else None

    print(f"Logging service for {vehicle.name}:")
    print(f"  Type:     {args.type}")
    print(f"  Date:     {service_date.isoformat()}")
    print(f"  Mileage:  {args.mileage:,.0f}")
    print(f"  Next in:  {args.interval_km:,.0f} km")
    if args.cost is not None:
        print(f"  Cost:     {format_money(args.cost, engine.settings.currency)}")
    if args.notes:
        print(f"  Notes:    {args.notes}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    engine.record_maintenance_service(
        args.vehicle_id,
        service_date,
        args.mileage,
        args.interval_km,
        next_service_date=next_date,
        service_type=args.type,
        cost=args.cost,
        notes=args.notes,
    )
    print(f"Service logged. Next due {vehicle.next_service_date}.")
    return 0


def cmd_update_miles(engine: FleetEngine, args) -> int:
    """Update a vehicle's odometer."""
    vehicle = engine.registry.get(args.vehicle_id)
    print(f"Vehicle: {vehicle.name}")
    print(f"Current mileage: {vehicle.current_mileage:,.0f}")
    print(f"New mileage:     {args.mileage:,.0f}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    engine.update_mileage(args.vehicle_id, args.mileage)
    print("Mileage updated.")
    return 0


def cmd_relocate(engine: FleetEngine, args) -> int:
    vehicle = engine.relocate(args.vehicle_id, args.hub)
    print(f"{vehicle.id} is now at {vehicle.hub_location}.")
    return 0


COMMANDS = {
    "fleet": cmd_fleet,
    "available": cmd_available,
    "quote": cmd_quote,
    "book": cmd_book,
    "hold": cmd_book,
    "pay": cmd_pay,
    "cancel": cmd_cancel,
    "complete": cmd_complete,
    "extend": cmd_extend,
    "reservations": cmd_reservations,
    "checkout": cmd_checkout,
    "return": cmd_return,
    "clear": cmd_clear,
    "service": cmd_service,
    "update-miles": cmd_update_miles,
    "relocate": cmd_relocate,
    "health": cmd_health,
    "expire-holds": cmd_expire_holds,
}


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rental fleet availability and lifecycle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fleet.yaml fleet
  %(prog)s fleet.yaml available 2026-11-01T10:00 2026-11-04T10:00 --hub JKIA
  %(prog)s fleet.yaml quote u1 2026-11-01T10:00 2026-11-04T10:00 --delivery-km 12
  %(prog)s fleet.yaml hold u1 2026-11-01T10:00 2026-11-04T10:00 --customer C-118
  %(prog)s fleet.yaml pay R00001 QWE12RTY34
  %(prog)s fleet.yaml checkout u1 --fuel 80 --notes "scratch on rear bumper"
  %(prog)s fleet.yaml return u1 --fuel 40 --dirty
  %(prog)s fleet.yaml service u1 --mileage 50000 --interval-km 5000 --cost 12000
""",
    )
    parser.add_argument("fleet_file", type=Path, help="Path to fleet YAML file")
    parser.add_argument("--config", type=Path, help="Settings YAML file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    fleet_parser = subparsers.add_parser("fleet", help="Show every vehicle")
    fleet_parser.add_argument("--search", type=str, help="Only models or plates containing this")

    available_parser = subparsers.add_parser("available", help="List free vehicles")
    available_parser.add_argument("start", help="Start (ISO date/time)")
    available_parser.add_argument("end", help="End (ISO date/time, exclusive)")
    available_parser.add_argument("--hub", type=str, help="Only vehicles at this hub")

    quote_parser = subparsers.add_parser("quote", help="Price a booking")
    quote_parser.add_argument("vehicle_id")
    quote_parser.add_argument("start")
    quote_parser.add_argument("end")
    quote_parser.add_argument(
        "--delivery-km", type=float, default=0, help="Delivery distance (default: hub pickup)"
    )

    for name, help_text in (
        ("book", "Confirm a reservation"),
        ("hold", "Hold a reservation pending payment"),
    ):
        book_parser = subparsers.add_parser(name, help=help_text)
        book_parser.add_argument("vehicle_id")
        book_parser.add_argument("start")
        book_parser.add_argument("end")
        book_parser.add_argument("--customer", required=True, help="Customer reference")
        book_parser.add_argument("--delivery-km", type=float, default=0)
        book_parser.add_argument(
            "--unverified",
            action="store_true",
            help="Customer documents not verified (booking is refused)",
        )
        book_parser.add_argument("--dry-run", action="store_true")
        if name == "book":
            book_parser.add_argument("--payment-ref", type=str, help="Payment reference code")

    pay_parser = subparsers.add_parser("pay", help="Confirm payment on a hold")
    pay_parser.add_argument("reservation_id")
    pay_parser.add_argument("payment_ref")

    for name, help_text in (
        ("cancel", "Cancel a reservation"),
        ("complete", "Mark a reservation completed"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("reservation_id")

    extend_parser = subparsers.add_parser("extend", help="Extend a reservation")
    extend_parser.add_argument("reservation_id")
    extend_parser.add_argument("new_end", help="New end (ISO date/time)")

    reservations_parser = subparsers.add_parser("reservations", help="List reservations")
    reservations_parser.add_argument("--vehicle", type=str)
    reservations_parser.add_argument(
        "--status", choices=[s.value for s in ReservationStatus]
    )

    checkout_parser = subparsers.add_parser("checkout", help="Hand a vehicle to a customer")
    checkout_parser.add_argument("vehicle_id")
    checkout_parser.add_argument("--fuel", type=float, required=True, help="Fuel level (%%)")
    checkout_parser.add_argument("--notes", type=str, help="Condition notes")

    return_parser = subparsers.add_parser("return", help="Take a vehicle back")
    return_parser.add_argument("vehicle_id")
    return_parser.add_argument("--fuel", type=float, required=True, help="Fuel level (%%)")
    return_parser.add_argument("--dirty", action="store_true", help="Needs cleaning")
    return_parser.add_argument("--damage", action="store_true", help="New damage found")

    clear_parser = subparsers.add_parser("clear", help="Finish cleaning or maintenance")
    clear_parser.add_argument("vehicle_id")

    service_parser = subparsers.add_parser("service", help="Log a maintenance service")
    service_parser.add_argument("vehicle_id")
    service_parser.add_argument("--mileage", type=float, required=True)
    service_parser.add_argument(
        "--interval-km", type=float, required=True, help="Km until the next service"
    )
    service_parser.add_argument("--date", type=str, help="Service date (default: today)")
    service_parser.add_argument(
        "--next-date", type=str, help="Next service date (default: six months out)"
    )
    service_parser.add_argument("--type", type=str, default="Routine Service")
    service_parser.add_argument("--cost", type=float)
    service_parser.add_argument("--notes", type=str)
    service_parser.add_argument("--dry-run", action="store_true")

    update_miles_parser = subparsers.add_parser("update-miles", help="Update odometer")
    update_miles_parser.add_argument("vehicle_id")
    update_miles_parser.add_argument("mileage", type=float)
    update_miles_parser.add_argument("--dry-run", action="store_true")

    relocate_parser = subparsers.add_parser("relocate", help="Move a vehicle to another hub")
    relocate_parser.add_argument("vehicle_id")
    relocate_parser.add_argument("hub")

    health_parser = subparsers.add_parser("health", help="Show maintenance health")
    health_parser.add_argument("vehicle_id", nargs="?")

    subparsers.add_parser("expire-holds", help="Release expired holds")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Validate fleet file exists
    if not args.fleet_file.exists():
        print(f"Error: File not found: {args.fleet_file}")
        return 1

    settings = load_settings(args.config)
    logging.basicConfig(
        level=settings.log_level, format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        engine = FleetEngine.load(args.fleet_file, settings=settings)
        return COMMANDS[args.command](engine, args)
    except FleetError as e:
        logging.getLogger(__name__).warning("%s failed: %s", args.command, e)
        print(f"Error: {e.user_message}")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
