"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig
from ..domain.exceptions import SchedulingError
from ..domain.timezones import reference_timezone
from ..services.factory import build_availability_service

app = typer.Typer(
    name="spritz-scheduling",
    help="Compute bookable call slots for Spritz users",
    add_completion=False
)

console = Console()

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use bundled mock data instead of Supabase and Google.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _load_config(config_file: Optional[Path], verbose: bool) -> AppConfig:
    try:
        config = AppConfig.load(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _setup_logging("DEBUG" if verbose else config.log_level)
    return config


def _parse_bound(value: Optional[str], name: str, end_of_day: bool = False):
    """Parse a YYYY-MM-DD option as a UTC day boundary, or an ISO timestamp as-is."""
    if value is None or not value.strip():
        return None
    try:
        parsed = pendulum.parse(value.strip(), exact=True, tz="UTC")
    except ValueError:
        parsed = None

    if isinstance(parsed, pendulum.DateTime):
        return parsed.in_timezone("UTC")
    if isinstance(parsed, pendulum.Date):
        day = pendulum.datetime(parsed.year, parsed.month, parsed.day, tz="UTC")
        return day.end_of("day") if end_of_day else day

    console.print(f"[bold red]Error:[/bold red] Invalid {name}: {value}")
    raise typer.Exit(1)


@app.command()
def availability(
    user_address: Annotated[str, typer.Argument(help="Wallet address of the user to book")],
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD or ISO timestamp)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD or ISO timestamp)")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw API payload.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List bookable slots for a user.

    Examples:

        spritz-scheduling availability 0xabc... --start 2027-01-04 --end 2027-01-08

        spritz-scheduling availability 0x1111111111111111111111111111111111111111 --mock --json
    """
    config = _load_config(config_file, verbose)

    try:
        service = build_availability_service(config, mock=mock)
        start_date = _parse_bound(start, "--start")
        end_date = _parse_bound(end, "--end", end_of_day=True)
        result = asyncio.run(service.get_availability(user_address, start_date, end_date))
    except (SchedulingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.message:
        console.print(f"[yellow]⚠ {result.message}[/yellow]")
        return

    if not result.available_slots:
        console.print(
            "[yellow]⚠ No available slots found.[/yellow]\n"
            "Try a longer range or check the user's calendar."
        )
        return

    table = Table(
        title=f"Available slots ({result.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Local time", style="bold yellow")
    table.add_column("Start (UTC)", style="dim")
    table.add_column("End (UTC)", style="dim")

    for slot in result.available_slots:
        payload = slot.to_dict()
        table.add_row(slot.format_display(result.timezone), payload["start"], payload["end"])

    console.print()
    console.print(table)
    console.print(f"\n[bold green]✓ {len(result.available_slots)} slot(s)[/bold green]\n")


@app.command()
def windows(
    user_address: Annotated[str, typer.Argument(help="Wallet address of the user")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show a user's active availability windows.
    """
    config = _load_config(config_file, verbose)

    try:
        service = build_availability_service(config, mock=mock)
        active_windows = service.list_windows(user_address)
    except (SchedulingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not active_windows:
        console.print("[yellow]No availability windows configured.[/yellow]")
        return

    table = Table(
        title=f"Availability windows ({reference_timezone(active_windows)})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Timezone", style="dim")

    for window in active_windows:
        table.add_row(
            DAY_NAMES[window.day_of_week],
            window.start_time,
            window.end_time,
            window.timezone
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Port to listen on")] = 8000,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Run the HTTP API.
    """
    import uvicorn

    from ..api import create_app

    config = _load_config(config_file, verbose)

    try:
        api = create_app(config, mock=mock)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    uvicorn.run(api, host=host, port=port, log_level=config.log_level.lower())


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]spritz-scheduling[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
