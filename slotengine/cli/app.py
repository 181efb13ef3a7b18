"""
Main CLI application using Typer.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.marketplace_client import MarketplaceClient
from ..adapters.mock_store import MockMarketplaceStore
from ..adapters.token_store import TokenStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SlotEngineError
from ..domain.models import WEEKDAY_NAMES, DaySchedule, Slot
from ..domain.timeutils import format_calendar_date, format_time_of_day, parse_calendar_date
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="slotengine",
    help="Show bookable time slots of marketplace providers",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled mock data instead of the marketplace API."),
]
NowOption = Annotated[
    Optional[str],
    typer.Option("--now", help="Reference time 'YYYY-MM-DD HH:MM' instead of the current clock."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log debug output."),
]


def _configure_logging(config: AppConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.getLevelName(config.log_level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], verbose: bool = False) -> AppConfig:
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    _configure_logging(config, verbose)
    return config


def _build_service(config: AppConfig, mock: bool) -> AvailabilityService:
    """Wire the availability service to the mock store or the marketplace API."""
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using bundled test data[/yellow]\n")
        store = MockMarketplaceStore(day_first=config.day_first)
    else:
        token_store = TokenStore(api_base_url=config.api_base_url)
        store = MarketplaceClient(
            base_url=config.api_base_url,
            access_token=token_store.load(),
            timeout=config.request_timeout_seconds,
            day_first=config.day_first,
            bookings_query=config.bookings_query,
        )

    return AvailabilityService(store, day_first=config.day_first)


def _resolve_now(config: AppConfig, now_option: Optional[str]) -> datetime:
    if not now_option:
        return pendulum.now(config.timezone)

    try:
        return pendulum.from_format(now_option.strip(), "YYYY-MM-DD HH:mm", tz=config.timezone)
    except ValueError as e:
        console.print(f"[red]Could not parse --now '{now_option}': {e}[/red]")
        raise typer.Exit(1)


def _resolve_date(config: AppConfig, date_option: Optional[str], now: datetime) -> date:
    if not date_option:
        return date(now.year, now.month, now.day)
    return parse_calendar_date(date_option, day_first=config.day_first)


def _print_slots(config: AppConfig, slots: List[Slot]) -> None:
    for slot in slots:
        console.print(f"  {slot.format_display(config.time_style, config.date_style)}")


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    provider: Annotated[str, typer.Argument(help="Provider alias from the config, or a provider id.")],
    on: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD or DD/MM/YYYY). Defaults to today.")] = None,
    now: NowOption = None,
    mock: MockOption = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the bookable slots of a provider on one date.

    Examples:

        slotengine slots salon
        slotengine slots salon --date 18/11/2025
        slotengine slots p-salon --mock --now "2025-11-16 08:00"
    """
    try:
        config = _load_config(config_file, verbose)
        provider_id = config.resolve_provider(provider)
        reference = _resolve_now(config, now)
        target = _resolve_date(config, on, reference)
        service = _build_service(config, mock)

        available = service.get_available_slots(provider_id, target, reference)
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    date_str = format_calendar_date(target, config.date_style)
    if not available:
        console.print(f"[yellow]⚠ No bookable slots for {provider_id} on {date_str}.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(available)} bookable slot(s) for {provider_id} on {date_str}:[/bold green]\n")
    _print_slots(config, available)
    console.print()


@app.command()
def upcoming(
    provider: Annotated[str, typer.Argument(help="Provider alias from the config, or a provider id.")],
    days: Annotated[Optional[int], typer.Option("--days", help="Days ahead to look at. Defaults to upcoming_days from the config.")] = None,
    now: NowOption = None,
    mock: MockOption = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show bookable slots of a provider for the coming days.
    """
    try:
        config = _load_config(config_file, verbose)
        provider_id = config.resolve_provider(provider)
        reference = _resolve_now(config, now)
        service = _build_service(config, mock)

        by_day = service.list_upcoming_slots(
            provider_id,
            reference,
            days=days if days is not None else config.upcoming_days,
        )
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    if not by_day:
        console.print(f"[yellow]⚠ No bookable slots for {provider_id} in the coming days.[/yellow]")
        return

    total = sum(len(day_slots) for day_slots in by_day.values())
    console.print(f"[bold green]✓ {total} bookable slot(s) on {len(by_day)} day(s):[/bold green]\n")
    for day_slots in by_day.values():
        _print_slots(config, day_slots)
    console.print()


@app.command()
def check(
    provider: Annotated[str, typer.Argument(help="Provider alias from the config, or a provider id.")],
    on: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD or DD/MM/YYYY).")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM or h:mm AM/PM).")],
    now: NowOption = None,
    mock: MockOption = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Check whether one slot can still be booked. Exits with 1 when it cannot.
    """
    try:
        config = _load_config(config_file, verbose)
        provider_id = config.resolve_provider(provider)
        reference = _resolve_now(config, now)
        service = _build_service(config, mock)

        is_free = service.is_slot_still_available(provider_id, on, start, reference)
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    if is_free:
        console.print(f"[green]✓ {on} {start} is available for {provider_id}.[/green]")
        return

    console.print(f"[red]✗ {on} {start} is not available for {provider_id}.[/red]")
    raise typer.Exit(1)


def _describe_day(day: DaySchedule | None, time_style: str) -> List[str]:
    if day is None or not day.is_enabled:
        return ["closed", "", "", ""]

    hours = f"{format_time_of_day(day.start_time, time_style)} - {format_time_of_day(day.end_time, time_style)}"
    breaks = ", ".join(
        f"{format_time_of_day(brk.start, time_style)} - {format_time_of_day(brk.end, time_style)}"
        for brk in day.break_times
    )
    return [hours, f"{day.slot_duration} min", f"{day.buffer_time} min", breaks]


@app.command()
def schedule(
    provider: Annotated[str, typer.Argument(help="Provider alias from the config, or a provider id.")],
    mock: MockOption = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the weekly schedule and date exceptions of a provider.
    """
    try:
        config = _load_config(config_file, verbose)
        provider_id = config.resolve_provider(provider)
        service = _build_service(config, mock)

        availability = service.fetch_availability(provider_id)
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    table = Table(
        title=f"Weekly schedule of {provider_id} ({availability.settings.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Hours")
    table.add_column("Slot")
    table.add_column("Buffer")
    table.add_column("Breaks", style="dim")

    for index, name in enumerate(WEEKDAY_NAMES):
        day = availability.weekly_schedule.days.get(index)
        table.add_row(name, *_describe_day(day, config.time_style))

    console.print()
    console.print(table)
    console.print(f"Bookable up to {availability.settings.advance_booking_days} day(s) ahead.")

    if availability.exceptions:
        console.print("\n[bold]Exceptions:[/bold]")
        for exception in sorted(availability.exceptions, key=lambda e: e.date):
            date_str = format_calendar_date(exception.date, config.date_style)
            if exception.is_closed:
                description = "closed"
            else:
                description = _describe_day(exception.day_schedule, config.time_style)[0]
            reason = f" ({exception.reason})" if exception.reason else ""
            console.print(f"  {date_str}: {description}{reason}")
    console.print()


@app.command()
def list_providers(
    config_file: ConfigOption = None,
):
    """
    List all configured provider aliases.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    if not config.providers:
        console.print("[yellow]No providers defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured providers",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (alias)", style="bold yellow")
    table.add_column("Provider id", style="dim")

    for provider in config.providers:
        table.add_row(provider.display_name(), provider.provider_id)

    console.print()
    console.print(table)
    console.print()


@app.command()
def login(
    token: Annotated[str, typer.Option("--token", prompt=True, hide_input=True, help="API token issued by the marketplace.")],
    config_file: ConfigOption = None,
):
    """
    Store the marketplace API token for later requests.
    """
    try:
        config = _load_config(config_file)
        token_store = TokenStore(api_base_url=config.api_base_url)
        token_store.save(token)
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    if token_store.insecure_storage_warning:
        console.print(f"[yellow]⚠ {token_store.insecure_storage_warning}[/yellow]")
    console.print(f"\n[green]✓ Token stored ({token_store.backend}).[/green]\n")


@app.command()
def logout(
    config_file: ConfigOption = None,
):
    """
    Remove the stored marketplace API token.
    """
    try:
        config = _load_config(config_file)
        TokenStore(api_base_url=config.api_base_url).clear()
    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        _fail(e)

    console.print("\n[green]✓ Token removed.[/green]\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotengine[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
