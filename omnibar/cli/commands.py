"""CLI commands for omnibar."""

from __future__ import annotations

import asyncio
from datetime import datetime

import typer
from rich.table import Table

from omnibar import __logo__
from omnibar.skills.evaluator import format_number
from omnibar.utils.helpers import truncate_string

from .core import app, configure_logging, console, make_runtime

history_app = typer.Typer(help="Manage action history")
app.add_typer(history_app, name="history")

rates_app = typer.Typer(help="Manage exchange rates")
app.add_typer(rates_app, name="rates")


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard() -> None:
    """Write a default omnibar configuration."""
    from omnibar.config.loader import get_config_path, save_config
    from omnibar.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]✓[/green] Created config at {config_path}")
    console.print(f"\n{__logo__} omnibar is ready!")
    console.print("\nTry: [cyan]omnibar query \"100 usd to eur\"[/cyan]")


# ============================================================================
# Query / Run
# ============================================================================


async def _settle(runtime, wait_ms: int) -> None:
    """Wait for background sub-searches and any pending rate fetch."""
    controller = runtime.controller
    try:
        await asyncio.wait_for(controller.settle(), timeout=wait_ms / 1000)
    except TimeoutError:
        console.print(f"[dim]Background work still pending after {wait_ms} ms[/dim]")
        return

    candidate = controller.matched_candidate
    if candidate is not None and candidate.skill is runtime.currency and candidate.data.result is None:
        try:
            await asyncio.wait_for(runtime.currency.get_rates(), timeout=wait_ms / 1000)
        except TimeoutError:
            console.print("[dim]Exchange rates still loading[/dim]")
            return
        controller.refresh()


def _print_state(controller) -> None:
    console.print(f"Mode: [cyan]{controller.mode}[/cyan]  Selected: [cyan]{controller.selected_index}[/cyan]")

    candidate = controller.matched_candidate
    if candidate is None:
        console.print("[dim]No matched candidate[/dim]")
    else:
        icon = f"{candidate.icon} " if candidate.icon else ""
        console.print(f"{icon}[bold]{candidate.name}[/bold] ({candidate.kind}): {candidate.description}")

    if controller.filtered_windows:
        table = Table(title="Windows")
        table.add_column("Title", style="yellow")
        table.add_column("Class", style="cyan")
        table.add_column("Address", style="dim")
        for window in controller.filtered_windows:
            table.add_row(truncate_string(window.title, 60), window.class_name, window.address)
        console.print(table)

    if controller.filtered_apps:
        table = Table(title="Applications")
        table.add_column("Name", style="green")
        table.add_column("Exec", style="dim")
        for app_entry in controller.filtered_apps:
            table.add_row(app_entry.name, truncate_string(app_entry.exec, 60))
        console.print(table)

    if controller.filtered_scripts and controller.query:
        table = Table(title="Scripts")
        table.add_column("Alias", style="magenta")
        table.add_column("Path", style="dim")
        for script in controller.filtered_scripts:
            table.add_row(script.alias, script.path)
        console.print(table)

    if controller.file_search_results:
        table = Table(title=f"Files ({len(controller.file_search_results)})")
        table.add_column("Path", style="blue")
        for path in controller.file_search_results:
            table.add_row(path)
        console.print(table)


@app.command()
def query(
    text: str = typer.Argument(..., help="Query text as typed into the palette"),
    wait_ms: int = typer.Option(2000, "--wait-ms", "-w", help="Maximum time to wait for background work"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Interpret a query and show the resulting palette state."""
    configure_logging(verbose)
    runtime = make_runtime()
    controller = runtime.controller

    async def run_query() -> None:
        try:
            await controller.load()
            controller.set_query(text)
            await _settle(runtime, wait_ms)
            _print_state(controller)
        finally:
            await controller.aclose()

    asyncio.run(run_query())


@app.command()
def run(
    text: str = typer.Argument(..., help="Query whose matched candidate should run"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Execute the matched candidate and print its result."""
    from omnibar.core.errors import OmnibarError

    configure_logging(verbose)
    runtime = make_runtime()
    controller = runtime.controller

    async def execute() -> int:
        try:
            await controller.load()
            controller.set_query(text)
            candidate = controller.matched_candidate
            if candidate is None:
                console.print(f"[yellow]Nothing matched {text!r}[/yellow]")
                return 1
            try:
                result = await controller.execute_match(candidate)
            except OmnibarError as e:
                console.print(f"[red]{candidate.name}:[/red] {e}")
                return 1

            if controller.mode == "chatting":
                console.print(f"{__logo__} Opened chat with [cyan]{candidate.name}[/cyan]")
            elif controller.mode == "executing":
                console.print(f"{__logo__} Running script [cyan]{candidate.name}[/cyan]")
            else:
                if isinstance(result, float):
                    result = format_number(result)
                console.print(f"{__logo__} {result}")
            await controller.record_selection(candidate)
            return 0
        finally:
            await controller.aclose()

    code = asyncio.run(execute())
    if code:
        raise typer.Exit(code)


# ============================================================================
# History
# ============================================================================


def _history_store():
    from omnibar.adapters.history_file import FileHistoryStore
    from omnibar.config.loader import load_config
    from omnibar.utils.helpers import get_history_path

    config = load_config()
    return FileHistoryStore(get_history_path(), max_entries=config.history.max_entries)


@history_app.command("list")
def history_list(
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum number of entries"),
) -> None:
    """List recent actions, most recent first."""
    store = _history_store()
    entries = asyncio.run(store.get_recent(limit))

    if not entries:
        console.print("No history.")
        return

    table = Table(title=f"Recent Actions ({len(entries)})")
    table.add_column("Kind", style="magenta")
    table.add_column("Name", style="green")
    table.add_column("Content", style="dim")
    table.add_column("Uses", justify="right")
    table.add_column("Last Used", style="cyan")

    for entry in entries:
        last_used = datetime.fromtimestamp(entry.last_accessed / 1000).strftime("%Y-%m-%d %H:%M")
        table.add_row(
            entry.kind,
            entry.name,
            truncate_string(entry.content, 50),
            str(entry.frequency),
            last_used,
        )

    console.print(table)


@history_app.command("clear")
def history_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Drop all recorded actions."""
    if not yes and not typer.confirm("Clear all history?"):
        raise typer.Exit()
    store = _history_store()
    asyncio.run(store.clear())
    console.print("[green]✓[/green] History cleared")


# ============================================================================
# Rates
# ============================================================================


@rates_app.command("refresh")
def rates_refresh(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Fetch exchange rates now and persist them."""
    configure_logging(verbose)
    runtime = make_runtime()
    table = asyncio.run(runtime.currency.refresh())
    if table is None:
        console.print("[red]Could not fetch exchange rates[/red]")
        raise typer.Exit(1)

    fetched = datetime.fromtimestamp(table.fetched_at).strftime("%Y-%m-%d %H:%M:%S")
    console.print(f"[green]✓[/green] {len(table.rates)} rates against {table.base} (fetched {fetched})")
