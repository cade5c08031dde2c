"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters import SAMPLE_DATA_FILE, InMemoryStore, RedisProfileCache
from ..config import AppConfig, load_config
from ..domain.exceptions import (
    BookingValidationError,
    EntityNotFoundError,
    InfrastructureError,
    TimeslotConflictError,
    TimeslotEngineError,
)
from ..domain.intervals import parse_local_date, parse_local_datetime
from ..domain.models import Booking
from ..domain.requests import BookingRequest
from ..domain.slot_generator import SlotGenerator
from ..logging_context import RequestIdFilter
from ..services import AvailabilityChecker, BookingCoordinator, EntityResolver, TimeslotService

app = typer.Typer(
    name="timeslotengine",
    help="Browse free timeslots and book providers without double-booking",
    add_completion=False,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", help="JSON data file. Overrides data_file from the config."),
]

EXIT_CODES = (
    (BookingValidationError, 2),
    (EntityNotFoundError, 2),
    (TimeslotConflictError, 3),
    (InfrastructureError, 4),
)


def _configure_logging(level: str) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(request_id)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
        force=True,
    )


def _load(config_file: Optional[Path], data_file: Optional[Path]) -> Tuple[AppConfig, InMemoryStore, Optional[Path]]:
    """
    Load configuration and the store.

    Returns the writable data path, or ``None`` when the bundled sample
    data is in use and changes must not be saved.
    """
    config = load_config(config_file)
    _configure_logging(config.log_level)

    data_path = data_file or config.data_file
    if data_path is None:
        console.print("[yellow]⚠  Using bundled sample data; changes are not saved[/yellow]\n")
        return config, InMemoryStore.from_json(SAMPLE_DATA_FILE), None

    return config, InMemoryStore.from_json(data_path), data_path


def _build_coordinator(config: AppConfig, store: InMemoryStore) -> Tuple[BookingCoordinator, Optional[RedisProfileCache]]:
    cache = None
    if config.cache.enabled:
        cache = RedisProfileCache.from_url(
            config.cache.redis_url,
            ttl_seconds=config.cache.ttl_seconds,
            key_prefix=config.cache.key_prefix,
        )

    resolver = EntityResolver(store, cache=cache, timeout=config.lookup_timeout_seconds)
    coordinator = BookingCoordinator(
        store,
        resolver,
        AvailabilityChecker(store),
        timezone=config.timezone,
    )
    return coordinator, cache


def _fail(exc: Exception) -> typer.Exit:
    """Print an error and return the matching exit."""
    console.print(f"[bold red]Error:[/bold red] {exc}")
    if isinstance(exc, InfrastructureError):
        console.print("[dim]The store could not be reached; retrying may help.[/dim]")
    for error_type, code in EXIT_CODES:
        if isinstance(exc, error_type):
            return typer.Exit(code)
    return typer.Exit(1)


def _print_booking(booking: Booking, timezone: str, title: str) -> None:
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("ID", str(booking.id))
    table.add_row("Provider", booking.provider_name)
    table.add_row("Customer", booking.customer_name)
    table.add_row("Service", booking.service_name)
    table.add_row("Start", booking.start_time.in_timezone(timezone).format("YYYY-MM-DD HH:mm"))
    table.add_row("End", booking.end_time.in_timezone(timezone).format("YYYY-MM-DD HH:mm"))
    table.add_row("Buffer", f"{booking.buffer_time} min")
    table.add_row("Cost", str(booking.cost) if booking.cost is not None else "-")
    if booking.comment:
        table.add_row("Comment", booking.comment)
    console.print()
    console.print(table)
    console.print()


def _booking_request(
    config: AppConfig,
    *,
    provider: int,
    customer: int,
    service: str,
    brand: int,
    start: str,
    end: str,
    comment: str,
) -> BookingRequest:
    try:
        start_time = parse_local_datetime(start, config.timezone)
        end_time = parse_local_datetime(end, config.timezone)
    except ValueError as exc:
        raise BookingValidationError("start/end", f"Times must look like YYYY-MM-DD HH:mm ({exc})") from exc

    return BookingRequest.from_payload(
        {
            "providerId": provider,
            "customerId": customer,
            "serviceId": service,
            "brandId": brand,
            "startTime": start_time,
            "endTime": end_time,
            "comment": comment,
        }
    )


@app.command()
def timeslots(
    date: Annotated[str, typer.Argument(help="Day to browse (YYYY-MM-DD)")],
    provider: Annotated[int, typer.Option("--provider", "-p", help="Provider (staff member) ID")],
    service: Annotated[str, typer.Option("--service", "-s", help="Service ID (UUID)")],
    brand: Annotated[int, typer.Option("--brand", "-b", help="Brand ID")] = 1,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List the free slot start times of a provider for one day.

    Examples:

        timeslotengine timeslots 2026-11-02 -p 1 -s 6f1c2a9e-3b7d-4c1e-9a52-1f0d3e8b7a10
    """
    try:
        config, store, _ = _load(config_file, data_file)
        timeslot_service = TimeslotService(store, SlotGenerator(timezone=config.timezone))

        slots = asyncio.run(
            timeslot_service.get_available_timeslots_payload(
                {"date": date, "serviceId": service, "providerId": provider, "brandId": brand}
            )
        )
    except (TimeslotEngineError, FileNotFoundError, ValueError) as exc:
        raise _fail(exc)

    if not slots:
        console.print(f"[yellow]⚠ No free timeslots on {date}.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(slots)} free timeslot(s) on {date}:[/bold green]\n")
    for row_start in range(0, len(slots), 8):
        console.print("  " + "  ".join(slots[row_start:row_start + 8]))
    console.print()


@app.command()
def book(
    provider: Annotated[int, typer.Option("--provider", "-p", help="Provider (staff member) ID")],
    customer: Annotated[int, typer.Option("--customer", help="Customer ID")],
    service: Annotated[str, typer.Option("--service", "-s", help="Service ID (UUID)")],
    start: Annotated[str, typer.Option("--start", help="Start, local time (YYYY-MM-DD HH:mm)")],
    end: Annotated[str, typer.Option("--end", help="End, local time (YYYY-MM-DD HH:mm)")],
    brand: Annotated[int, typer.Option("--brand", "-b", help="Brand ID")] = 1,
    comment: Annotated[str, typer.Option("--comment", help="Free-text note")] = "",
    self_service: Annotated[bool, typer.Option("--self-service", help="Customer-initiated booking; the start must be in the future")] = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Create a booking after checking the provider's calendar.
    """
    _write_booking(
        booking_id=None,
        provider=provider,
        customer=customer,
        service=service,
        start=start,
        end=end,
        brand=brand,
        comment=comment,
        self_service=self_service,
        config_file=config_file,
        data_file=data_file,
    )


@app.command()
def reschedule(
    booking_id: Annotated[int, typer.Argument(help="Booking ID")],
    provider: Annotated[int, typer.Option("--provider", "-p", help="Provider (staff member) ID")],
    customer: Annotated[int, typer.Option("--customer", help="Customer ID")],
    service: Annotated[str, typer.Option("--service", "-s", help="Service ID (UUID)")],
    start: Annotated[str, typer.Option("--start", help="Start, local time (YYYY-MM-DD HH:mm)")],
    end: Annotated[str, typer.Option("--end", help="End, local time (YYYY-MM-DD HH:mm)")],
    brand: Annotated[int, typer.Option("--brand", "-b", help="Brand ID")] = 1,
    comment: Annotated[str, typer.Option("--comment", help="Free-text note")] = "",
    self_service: Annotated[bool, typer.Option("--self-service", help="Customer-initiated booking; the start must be in the future")] = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Update an existing booking, re-checking availability without its own slot.
    """
    _write_booking(
        booking_id=booking_id,
        provider=provider,
        customer=customer,
        service=service,
        start=start,
        end=end,
        brand=brand,
        comment=comment,
        self_service=self_service,
        config_file=config_file,
        data_file=data_file,
    )


def _write_booking(
    *,
    booking_id: Optional[int],
    provider: int,
    customer: int,
    service: str,
    start: str,
    end: str,
    brand: int,
    comment: str,
    self_service: bool,
    config_file: Optional[Path],
    data_file: Optional[Path],
) -> None:
    try:
        config, store, data_path = _load(config_file, data_file)
        request = _booking_request(
            config,
            provider=provider,
            customer=customer,
            service=service,
            brand=brand,
            start=start,
            end=end,
            comment=comment,
        )
        require_future = config.self_service or self_service

        async def run() -> Booking:
            coordinator, cache = _build_coordinator(config, store)
            try:
                if booking_id is None:
                    return await coordinator.create_booking(request, self_service=require_future)
                return await coordinator.update_booking(booking_id, request, self_service=require_future)
            finally:
                if cache is not None:
                    await cache.close()

        booking = asyncio.run(run())
    except (TimeslotEngineError, FileNotFoundError, ValueError) as exc:
        raise _fail(exc)

    if data_path is not None:
        store.save_json(data_path)

    _print_booking(
        booking,
        config.timezone,
        title="✓ Booking created" if booking_id is None else "✓ Booking updated",
    )


@app.command()
def bookings(
    start: Annotated[str, typer.Option("--start", help="First day (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="Last day, inclusive (YYYY-MM-DD)")],
    brand: Annotated[int, typer.Option("--brand", "-b", help="Brand ID")] = 1,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List a brand's bookings between two days.
    """
    try:
        config, store, _ = _load(config_file, data_file)
        start_date = parse_local_date(start, config.timezone)
        end_date = parse_local_date(end, config.timezone)
        coordinator = BookingCoordinator(
            store,
            EntityResolver(store),
            AvailabilityChecker(store),
            timezone=config.timezone,
        )
        found = asyncio.run(coordinator.list_bookings(brand, start_date, end_date))
    except (TimeslotEngineError, FileNotFoundError, ValueError) as exc:
        raise _fail(exc)

    if not found:
        console.print("[yellow]No bookings in this period.[/yellow]")
        return

    table = Table(title=f"Bookings {start} – {end}", show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("When", style="bold yellow")
    table.add_column("Provider")
    table.add_column("Customer")
    table.add_column("Service")
    table.add_column("Status", style="dim")

    for booking in found:
        local_start = booking.start_time.in_timezone(config.timezone)
        local_end = booking.end_time.in_timezone(config.timezone)
        table.add_row(
            str(booking.id),
            f"{local_start.format('ddd DD.MM. HH:mm')}–{local_end.format('HH:mm')}",
            booking.provider_name,
            booking.customer_name,
            booking.service_name,
            booking.status.value,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]timeslotengine[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
