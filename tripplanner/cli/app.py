"""
Main CLI application for tripplanner
Provides commands for selecting activities, computing durations and scheduling trips
"""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from tripplanner.cache.factory import create_duration_cache
from tripplanner.catalog.client import MySwitzerlandCatalog
from tripplanner.config.models import CacheBackend, PlannerConfig
from tripplanner.config.parser import ConfigParser, ConfigParserError
from tripplanner.core.models import (
    Coordinate,
    Itinerary,
    Location,
    TransportMode,
)
from tripplanner.planner.scheduler import schedule_trip
from tripplanner.planner.select_activities import SelectActivities
from tripplanner.routing.client import MatrixClient
from tripplanner.routing.service import DurationService

app = typer.Typer(
    name="tripplanner",
    help="tripplanner - Multi-day itinerary planning",
    add_completion=False,
)

console = Console()

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Configuration file (YAML/JSON)")


def load_config(config_file: Optional[Path]) -> PlannerConfig:
    try:
        return ConfigParser.load_or_default(config_file)
    except ConfigParserError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def parse_coordinate(value: str) -> Coordinate:
    """Parse a 'lat,lng' argument"""
    try:
        lat, lng = (float(part) for part in value.split(","))
    except ValueError:
        raise typer.BadParameter(f"Expected 'lat,lng', got {value!r}")
    return Coordinate(latitude=lat, longitude=lng)


@app.command()
def select(
    trip_file: Path = typer.Argument(..., help="Trip file with destinations and preferences"),
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Select candidate activities for a trip

    Examples:
        tripplanner select trip.yaml
        tripplanner select trip.json --config planner.yaml
    """
    config = load_config(config_file)
    try:
        trip = ConfigParser.parse_trip_settings(trip_file)
    except ConfigParserError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    async def run_selection():
        catalog = MySwitzerlandCatalog(language=config.selection.language)
        selector = SelectActivities(
            trip,
            catalog,
            api_call_delay=config.selection.api_call_delay,
            near_radius_meters=config.selection.near_radius_meters,
            near_limit=config.selection.near_limit,
            preference_limit=config.selection.preference_limit,
        )

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Selecting activities...", total=1.0)
            result = await selector.add_activities(
                lambda fraction: progress.update(task, completed=fraction)
            )

        table = Table(title=f"\nActivities for {trip.name or 'trip'}")
        table.add_column("Name", style="cyan")
        table.add_column("Latitude", justify="right")
        table.add_column("Longitude", justify="right")
        table.add_column("Description", width=50)

        for activity in result.activities:
            coordinate = activity.location.coordinate
            table.add_row(
                activity.name,
                f"{coordinate.latitude:.4f}",
                f"{coordinate.longitude:.4f}",
                activity.description[:50],
            )

        console.print(table)
        console.print(
            f"[green]✓ {len(result.activities)} activities, "
            f"{len(result.destinations)} locations to visit[/green]"
        )

    try:
        asyncio.run(run_selection())
    except KeyboardInterrupt:
        console.print("\n[yellow]Selection cancelled by user[/yellow]")
        raise typer.Exit(0)
    except Exception as e:
        console.print(f"[red]Error during activity selection: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def matrix(
    coordinates: List[str] = typer.Argument(..., help="Coordinates as 'lat,lng'"),
    mode: Optional[TransportMode] = typer.Option(
        None, "--mode", help="Transport mode (default: routing.transport_mode from config)"
    ),
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Print the travel duration matrix between coordinates

    Examples:
        tripplanner matrix 46.5197,6.6323 46.2044,6.1432 --mode WALKING
    """
    config = load_config(config_file)
    mode = mode or config.routing.transport_mode
    locations = [
        Location(coordinate=parse_coordinate(value), name=value) for value in coordinates
    ]

    async def compute():
        cache = create_duration_cache(config.cache)
        try:
            client = MatrixClient(
                timeout=config.routing.timeout, max_coordinates=config.routing.max_coordinates
            )
            service = DurationService(cache, client)
            durations = await service.get_duration_matrix(locations, mode)
        finally:
            await cache.close()

        if durations is None:
            console.print("[red]Could not compute the duration matrix[/red]")
            raise typer.Exit(1)

        table = Table(title=f"\nTravel durations ({mode.value.lower()}, minutes)")
        table.add_column("From \\ To", style="cyan")
        for location in locations:
            table.add_column(location.name, justify="right")

        for location, row in zip(locations, durations):
            table.add_row(
                location.name,
                *[f"{value / 60:.0f}" if value is not None else "-" for value in row],
            )

        console.print(table)

    try:
        asyncio.run(compute())
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error computing durations: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def schedule(
    plan_file: Path = typer.Argument(..., help="Plan file with an ordered route and activities"),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the itinerary as JSON"),
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Lay out an ordered route and its activities day by day

    Examples:
        tripplanner schedule plan.yaml
        tripplanner schedule plan.json --output itinerary.json
    """
    config = load_config(config_file)
    try:
        plan = ConfigParser.parse_schedule_plan(plan_file)
    except ConfigParserError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    elements = schedule_trip(
        plan.start_date,
        plan.route,
        plan.activities,
        params=config.schedule,
        preferences=plan.preferences,
    )

    table = Table(title=f"\nItinerary starting {plan.start_date.isoformat()}")
    table.add_column("Start", style="cyan")
    table.add_column("End")
    table.add_column("Type")
    table.add_column("Details", width=50)

    for element in elements:
        if element.kind == "activity":
            kind, details = "Activity", element.activity.name
        else:
            segment = element.segment
            kind = segment.transport_mode.value.title()
            details = (
                f"{segment.from_location.name} → {segment.to_location.name} "
                f"({segment.duration_minutes}min, {segment.distance_km()}km)"
            )
        table.add_row(
            element.start_date.strftime("%a %d %b %H:%M"),
            element.end_date.strftime("%H:%M"),
            kind,
            details,
        )

    console.print(table)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(Itinerary(elements=elements).model_dump(mode="json"), indent=2),
            encoding="utf-8",
        )
        console.print(f"[green]✓ Itinerary written to {output}[/green]")


@app.command(name="cache-info")
def cache_info(config_file: Optional[Path] = CONFIG_OPTION):
    """Show the duration cache backend and how many entries it holds"""
    config = load_config(config_file)

    async def show():
        cache = create_duration_cache(config.cache)
        try:
            size = await cache.size()
        finally:
            await cache.close()
        console.print("\n[bold cyan]Duration cache[/bold cyan]")
        console.print(f"Backend: {config.cache.backend.value}")
        if config.cache.backend == CacheBackend.LOCAL:
            console.print(f"File: {config.cache.path}")
        else:
            console.print(f"Database: {config.cache.database_url}")
        console.print(f"Entries: {size} / {cache.capacity}")

    try:
        asyncio.run(show())
    except Exception as e:
        console.print(f"[red]Error reading cache: {e}[/red]")
        raise typer.Exit(1)


@app.command(name="init-config")
def init_config(
    path: Path = typer.Argument(Path("tripplanner.yaml"), help="Where to write the config"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing file"),
):
    """Write a configuration file with default settings"""
    if path.exists() and not overwrite:
        console.print(f"[yellow]{path} already exists. Use --overwrite to replace it.[/yellow]")
        raise typer.Exit(1)

    try:
        ConfigParser.save_file(PlannerConfig(), path)
    except ConfigParserError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Configuration written to {path}[/green]")


@app.callback()
def callback():
    """
    tripplanner - Multi-day itinerary planning

    Select activities near your destinations, compute travel durations and
    lay everything out day by day.
    """
    pass


def main():
    """Main entry point for CLI"""
    from dotenv import load_dotenv
    load_dotenv()

    app()


if __name__ == "__main__":
    main()
