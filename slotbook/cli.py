"""CLI tools for slotbook administration."""

import json
import uuid
from datetime import date

import click

from slotbook.core.config import settings
from slotbook.db.models import Service
from slotbook.services import booking_service, slot_service
from slotbook.services.errors import BookingError
from slotbook.services.service_config import DAY_NAMES, load_service_config
from slotbook.stores import build_store


def _parse_days(ctx, param, value: str) -> set[int]:
    """Parse a comma-separated list of weekday indexes, Monday=0."""
    days = set()
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit() or int(part) > 6:
            raise click.BadParameter(f"\"{part}\" is not a weekday index between 0 and 6")
        days.add(int(part))
    return days


def _weekly_hours(working: set[int], start: str, end: str) -> list[dict]:
    """Working-hours entries open on the given weekday indexes."""
    return [
        {
            "day_of_week": day,
            "is_working": day in working,
            "start_time": start,
            "end_time": end,
        }
        for day in range(7)
    ]


@click.group()
def cli():
    """Slotbook CLI tools."""
    pass


@cli.command()
@click.option("--tenant-id", type=click.UUID, required=True, help="Owning tenant")
@click.option("--name", required=True, help="Service name")
@click.option("--duration", "duration_minutes", type=int, required=True, help="Minutes per appointment")
@click.option("--days", default="0,1,2,3,4", show_default=True, callback=_parse_days, help="Working weekdays, Monday=0")
@click.option("--start", "start_time", default="09:00", show_default=True, help="Opening time HH:MM")
@click.option("--end", "end_time", default="17:00", show_default=True, help="Closing time HH:MM")
@click.option("--buffer", "buffer_minutes", type=int, default=0, show_default=True)
@click.option("--advance-days", type=int, default=30, show_default=True)
@click.option("--same-day/--no-same-day", default=False, show_default=True)
@click.option("--timezone", "tz_name", default=None, help="IANA timezone, e.g. America/Los_Angeles")
@click.option("--max-per-slot", type=int, default=1, show_default=True)
@click.option("--require-confirmation", is_flag=True, default=False)
def create_service(
    tenant_id: uuid.UUID,
    name: str,
    duration_minutes: int,
    days: set[int],
    start_time: str,
    end_time: str,
    buffer_minutes: int,
    advance_days: int,
    same_day: bool,
    tz_name: str | None,
    max_per_slot: int,
    require_confirmation: bool,
):
    """
    Create a bookable service in the configured store.

    Example:
        slotbook create-service --tenant-id <uuid> --name "Lawn Mowing" --duration 60
    """
    availability = {
        "working_hours": _weekly_hours(days, start_time, end_time),
        "buffer_minutes": buffer_minutes,
        "advance_booking_days": advance_days,
        "same_day_booking": same_day,
    }
    if tz_name:
        availability["timezone"] = tz_name

    service = Service(
        tenant_id=tenant_id,
        name=name,
        duration_minutes=duration_minutes,
        availability=availability,
        booking_settings={
            "max_bookings_per_slot": max_per_slot,
            "require_confirmation": require_confirmation,
        },
        is_active=True,
    )

    try:
        load_service_config(service)
    except BookingError as e:
        raise click.ClickException(e.message)

    if settings.STORE_BACKEND == "memory":
        raise click.ClickException(
            "STORE_BACKEND=memory does not outlive this command; use the database backend"
        )

    store = build_store(settings.STORE_BACKEND)
    with store.begin() as uow:
        service = uow.add_service(service)

    link = booking_service.build_booking_link(service)
    click.echo(f"✓ Created service: {name}")
    click.echo(f"  ID: {service.id}")
    working = [DAY_NAMES[e["day_of_week"]] for e in availability["working_hours"] if e["is_working"]]
    click.echo(f"  Working days: {', '.join(working)}")
    click.echo(f"  Booking link: {link.public_link}")


@cli.command()
@click.argument("service_id", type=click.UUID)
@click.option("--from", "range_start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--to", "range_end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--as-json", is_flag=True, default=False, help="Print machine-readable output")
def availability(service_id: uuid.UUID, range_start, range_end, as_json: bool):
    """Print open slots for a service."""
    store = build_store(settings.STORE_BACKEND)
    start: date | None = range_start.date() if range_start else None
    end: date | None = range_end.date() if range_end else None

    try:
        result = slot_service.get_availability(store, service_id, range_start=start, range_end=end)
    except BookingError as e:
        raise click.ClickException(e.message)

    if as_json:
        click.echo(json.dumps({
            "service_id": str(result.service_id),
            "days": [
                {
                    "date": day.date.isoformat(),
                    "slots": [
                        {"start": s.start.isoformat(), "end": s.end.isoformat()}
                        for s in day.slots
                    ],
                }
                for day in result.days
            ],
        }, indent=2))
        return

    if not result.days:
        click.echo("No open slots in range")
        return
    for day in result.days:
        click.echo(f"{day.date.isoformat()} ({DAY_NAMES[day.date.weekday()]})")
        for s in day.slots:
            click.echo(f"  {s.start.isoformat()} - {s.end.isoformat()}")


if __name__ == "__main__":
    cli()
