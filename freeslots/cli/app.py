"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Dict, List, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters.google_calendar import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import (
    AuthenticationError,
    CalendarForbiddenError,
    CalendarNotFoundError,
    FreeSlotsError,
    TimeConflictError,
)
from ..domain.models import DayBucket
from ..services.availability import AvailabilityService, availability_payload, current_date_time
from ..validation import DEFAULT_TIMEZONE, AvailabilityRequest, BookingRequest, validate_email

app = typer.Typer(
    name="freeslots",
    help="Find open meeting intervals in a Google Calendar and book them",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    return AppConfig.load_from_yaml(config_file or get_default_config_path())


def _build_client(config: AppConfig, mock: bool):
    """Create the calendar client; mock mode needs no credentials."""
    if mock:
        err_console.print("[yellow]⚠  MOCK MODE: using test data[/yellow]\n")
        return MockCalendarClient(config=config)
    return GoogleCalendarClient(credentials=config.load_credentials())


def _describe_error(error: Exception) -> str:
    """Short user-facing explanation for a domain error."""
    if isinstance(error, CalendarNotFoundError):
        return f"Calendar not found: the calendar could not be found or accessed ({error})"
    if isinstance(error, CalendarForbiddenError):
        return f"Access denied: the service account has no permission for this calendar ({error})"
    if isinstance(error, TimeConflictError):
        return f"Time conflict: {error}"
    if isinstance(error, AuthenticationError):
        return f"Authentication failed: {error}"
    return str(error)


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(1)


def _print_buckets(buckets: Dict[str, DayBucket], timezone: str) -> None:
    if not buckets:
        console.print(
            "[yellow]⚠ No available intervals found.[/yellow]\n"
            "Try more days or a wider working-hours window."
        )
        return

    table = Table(
        title=f"Available intervals ({timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Day")
    table.add_column("Intervals", style="green")

    for iso_date, bucket in buckets.items():
        table.add_row(
            iso_date,
            f"{bucket.weekday_name.capitalize()}, {bucket.day_number} {bucket.month_name}",
            "\n".join(bucket.intervals)
        )

    console.print(table)


@app.command()
def availability(
    calendar: Annotated[Optional[str], typer.Argument(help="Calendar alias or email. Defaults to default_calendar.")] = None,
    config_file: ConfigOption = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-t", help="IANA timezone, e.g. Europe/Riga")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-n", help="Number of days to search from now")] = None,
    start_hour: Annotated[Optional[int], typer.Option("--start-hour", help="First working hour (0-23)")] = None,
    end_hour: Annotated[Optional[int], typer.Option("--end-hour", help="End of working hours (0-23, exclusive)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Slot length in minutes")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use mock data and skip Google authentication.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the JSON response instead of a table.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Show available intervals grouped by day.

    Examples:

        freeslots availability sales
        freeslots availability hello@example.com --days 14 --timezone Europe/Berlin
        freeslots availability --mock --json
    """
    _setup_logging(verbose)

    try:
        config = _load_config(config_file)
        request = AvailabilityRequest(
            calendar_email=config.resolve_calendar(calendar),
            timezone=timezone or config.timezone,
            days=config.defaults.days if days is None else days,
            work_start_hour=config.defaults.start_hour if start_hour is None else start_hour,
            work_end_hour=config.defaults.end_hour if end_hour is None else end_hour,
            slot_duration_minutes=(
                config.defaults.slot_duration_minutes if duration is None else duration
            ),
        )

        if not as_json:
            console.print("\n[bold cyan]🗓️  freeslots - available intervals[/bold cyan]\n")
            console.print(f"   Calendar: {request.calendar_email}")
            console.print(f"   Days: {request.days}")
            console.print(
                f"   Working hours: {request.work_start_hour}:00 - {request.work_end_hour}:00 "
                f"({request.slot_duration_minutes} min slots)\n"
            )

        service = AvailabilityService(calendar_client=_build_client(config, mock))
        buckets = service.compute_availability(
            calendar_id=request.calendar_email,
            timezone=request.timezone,
            days=request.days,
            work_start_hour=request.work_start_hour,
            work_end_hour=request.work_end_hour,
            slot_duration_minutes=request.slot_duration_minutes,
            exclude_weekdays=config.exclude_days,
        )

    except ValidationError as e:
        _fail(f"Invalid request: {e}")
    except (FileNotFoundError, ValueError, FreeSlotsError) as e:
        _fail(_describe_error(e))

    if as_json:
        console.print_json(data=availability_payload(buckets, request))
    else:
        _print_buckets(buckets, request.timezone)
        console.print()


@app.command()
def book(
    calendar: Annotated[Optional[str], typer.Argument(help="Calendar alias or email. Defaults to default_calendar.")] = None,
    title: Annotated[str, typer.Option("--title", help="Event title")] = "",
    start: Annotated[str, typer.Option("--start", help="Start, e.g. 2026-10-20T10:00 (local) or with offset")] = "",
    end: Annotated[str, typer.Option("--end", help="End, e.g. 2026-10-20T11:00 (local) or with offset")] = "",
    attendees: Annotated[Optional[List[str]], typer.Option("--attendee", "-a", help="Attendee alias or email (repeatable)")] = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-t", help="Timezone for times without an offset")] = None,
    location: Annotated[str, typer.Option("--location", help="Event location")] = "",
    description: Annotated[str, typer.Option("--description", help="Event description")] = "",
    notify: Annotated[bool, typer.Option("--notify/--no-notify", help="Send invitations to attendees")] = True,
    config_file: ConfigOption = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use mock data and skip Google authentication.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the JSON response.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Book an event with a Google Meet link.
    """
    _setup_logging(verbose)

    try:
        config = _load_config(config_file)
        calendar_email = validate_email(config.resolve_calendar(calendar))
        booking = BookingRequest(
            title=title,
            start_time=start,
            end_time=end,
            description=description,
            timezone=timezone or config.timezone,
            attendees=config.resolve_calendars(attendees or []),
            location=location,
            send_notifications=notify,
        )

        service = AvailabilityService(calendar_client=_build_client(config, mock))
        result = service.book_event(calendar_id=calendar_email, booking=booking)

    except ValidationError as e:
        _fail(f"Invalid booking: {e}")
    except (FileNotFoundError, ValueError, FreeSlotsError) as e:
        _fail(_describe_error(e))

    if as_json:
        console.print_json(data={"success": True, "data": result.to_dict()})
        return

    details = result.to_dict()
    console.print(Panel.fit(
        f"[bold green]✓ Event booked![/bold green]\n\n"
        f"[bold]Title:[/bold] {booking.title}\n"
        f"[bold]When:[/bold] {booking.start.in_timezone(booking.timezone).format('YYYY-MM-DD HH:mm')}"
        f" - {booking.end.in_timezone(booking.timezone).format('HH:mm')} {booking.timezone}\n"
        f"[bold]Event:[/bold] {details['event_link'] or 'N/A'}\n"
        f"[bold]Meet:[/bold] {details['meet_link']}",
        title="✓ Booking"
    ))


@app.command()
def now(
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-t", help="IANA timezone")] = None,
    config_file: ConfigOption = None,
):
    """
    Show the current date and time, today and tomorrow, in a timezone.
    """
    if timezone is None:
        try:
            timezone = _load_config(config_file).timezone
        except FileNotFoundError:
            timezone = DEFAULT_TIMEZONE
        except ValueError as e:
            _fail(str(e))

    try:
        console.print_json(data=current_date_time(timezone))
    except FreeSlotsError as e:
        _fail(str(e))


@app.command()
def list_calendars(config_file: ConfigOption = None):
    """
    List all configured calendar aliases.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    if not config.calendars:
        console.print("[yellow]No calendars defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured calendars",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (alias)", style="bold yellow")
    table.add_column("Email", style="dim")
    table.add_column("Default")

    default = (config.default_calendar or "").lower()
    for entry in config.calendars:
        is_default = default in (entry.name.lower(), entry.email.lower())
        table.add_row(entry.name, entry.email, "✓" if is_default else "")

    console.print()
    console.print(table)
    console.print()


@app.command()
def check_auth(
    config_file: ConfigOption = None,
    mock: Annotated[bool, typer.Option("--mock", help="Skip Google and use the mock client.")] = False,
):
    """
    Test the Google service account credentials.
    """
    try:
        config = _load_config(config_file)
        client = _build_client(config, mock)
        info = client.test_connection()
    except (FileNotFoundError, ValueError, FreeSlotsError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {escape(_describe_error(e))}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Authentication successful![/bold green]\n\n"
        f"[bold]Service account:[/bold] {info.get('client_email', 'N/A')}\n"
        f"[bold]Project:[/bold] {info.get('project_id', 'N/A')}",
        title="✓ Connection test"
    ))
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]freeslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
