"""Symbol cache management CLI commands."""

import json
import logging
from datetime import datetime
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from crashsync.cli.app import AppContext
from crashsync.cli.decorators import handle_errors
from crashsync.symbols.cache import (
    CleanupReport,
    SymbolCacheStore,
    clean_label_name,
    create_symbol_cache_store,
)


logger = logging.getLogger(__name__)
console = Console()

cache_app = typer.Typer(help="Symbol cache management commands", no_args_is_help=True)


def _format_age(last_access_time: datetime) -> str:
    """Format the time since an entry was last used."""
    seconds = max(0, int((datetime.now() - last_access_time).total_seconds()))
    days, remainder = divmod(seconds, 86400)
    if days:
        return f"{days}d {remainder // 3600}h"
    hours, remainder = divmod(remainder, 3600)
    if hours:
        return f"{hours}h {remainder // 60}m"
    return f"{remainder // 60}m"


def _load_cache_store(ctx: typer.Context) -> SymbolCacheStore | None:
    """Load the cache entries from disk without evicting anything."""
    app_ctx: AppContext = ctx.obj
    store = create_symbol_cache_store(app_ctx.user_config.symbol_cache)
    if not store.initialize(enforce_limits=False):
        console.print(
            "[yellow]Symbol cache is disabled (see symbol_cache.enabled and "
            "symbol_cache.cache_root_path)[/yellow]"
        )
        return None
    return store


def _print_cleanup_report(report: CleanupReport) -> None:
    if not report.removed_labels:
        console.print("[green]Nothing to remove[/green]")
        return

    for label in report.age_removed:
        console.print(f"  [red]-[/red] {label} [dim](expired)[/dim]")
    for label in report.space_removed:
        console.print(f"  [red]-[/red] {label} [dim](space)[/dim]")
    console.print(
        f"[green]Removed {len(report.removed_labels)} entries, "
        f"reclaimed {report.reclaimed_gb} GB[/green]"
    )


@cache_app.command("list")
@handle_errors
def cache_list(
    ctx: typer.Context,
    json_output: Annotated[
        bool, typer.Option("--json", help="Output entries as JSON")
    ] = False,
) -> None:
    """List cached labels, least recently used first."""
    store = _load_cache_store(ctx)
    if store is None:
        return

    entries = store.entries
    if json_output:
        print(
            json.dumps(
                {
                    "cache_root": str(store.cache_root),
                    "total_size_gb": store.cache_size_gb,
                    "entries": [entry.to_dict_full() for entry in entries],
                },
                indent=2,
            )
        )
        return

    if not entries:
        console.print(f"[yellow]No cached labels in {store.cache_root}[/yellow]")
        return

    table = Table(title=f"Symbol Cache ({store.cache_root})")
    table.add_column("Label", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Last Access", style="dim")
    table.add_column("Age", justify="right")

    for entry in entries:
        table.add_row(
            entry.label,
            f"{entry.size_gb} GB",
            str(entry.file_count),
            entry.last_access_time.strftime("%Y-%m-%d %H:%M:%S"),
            _format_age(entry.last_access_time),
        )

    console.print(table)
    console.print(
        f"[bold]{len(entries)} entries, {store.cache_size_gb} GB total[/bold]"
    )


@cache_app.command("show")
@handle_errors
def cache_show(
    ctx: typer.Context,
    label: Annotated[str, typer.Argument(help="Label or cleaned label to show")],
    limit: Annotated[
        int, typer.Option("--limit", help="Maximum number of files to list")
    ] = 20,
) -> None:
    """Show the details of one cache entry."""
    store = _load_cache_store(ctx)
    if store is None:
        raise typer.Exit(1)

    entry = store.lookup(label)
    if entry is None:
        console.print(f"[red]No cache entry for {clean_label_name(label)}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold cyan]{entry.label}[/bold cyan]")
    console.print(f"  Directory:   {entry.directory}")
    console.print(f"  Size:        {entry.size_gb} GB")
    console.print(f"  Files:       {entry.file_count}")
    console.print(
        f"  Last access: {entry.last_access_time:%Y-%m-%d %H:%M:%S} "
        f"({_format_age(entry.last_access_time)} ago)"
    )

    for path in entry.files[:limit]:
        console.print(f"    {path.relative_to(entry.directory)}")
    if entry.file_count > limit:
        console.print(f"    [dim]... and {entry.file_count - limit} more[/dim]")


@cache_app.command("clean")
@handle_errors
def cache_clean(
    ctx: typer.Context,
    max_age: Annotated[
        int | None,
        typer.Option(
            "--max-age", min=0, help="Remove entries unused for more than DAYS days"
        ),
    ] = None,
    reclaim_gb: Annotated[
        int,
        typer.Option(
            "--reclaim-gb", min=0, help="Also remove old entries until N GB are reclaimed"
        ),
    ] = 0,
) -> None:
    """Remove expired entries, and old entries until enough space is reclaimed."""
    store = _load_cache_store(ctx)
    if store is None:
        raise typer.Exit(1)

    max_age_days = max_age if max_age is not None else store.config.max_age_days
    report = store.cleanup(max_age_days, reclaim_gb)
    _print_cleanup_report(report)


@cache_app.command("remove")
@handle_errors
def cache_remove(
    ctx: typer.Context,
    label: Annotated[str, typer.Argument(help="Label or cleaned label to remove")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Remove without confirmation")
    ] = False,
) -> None:
    """Remove one cache entry."""
    store = _load_cache_store(ctx)
    if store is None:
        raise typer.Exit(1)

    entry = store.lookup(label)
    if entry is None:
        console.print(f"[red]No cache entry for {clean_label_name(label)}[/red]")
        raise typer.Exit(1)

    if not force:
        confirm = typer.confirm(f"Remove {entry.label} ({entry.size_gb} GB)?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            return

    store.remove(entry.label)
    console.print(f"[green]Removed {entry.label}, reclaimed {entry.size_gb} GB[/green]")


def register_cache_commands(app: typer.Typer) -> None:
    """Register cache commands with the main app."""
    app.add_typer(cache_app, name="cache")
