"""Sync and label resolution CLI commands."""

import logging
from typing import Annotated

import typer
from rich.console import Console

from crashsync.adapters import create_source_control_provider
from crashsync.cli.app import AppContext
from crashsync.cli.decorators import handle_errors
from crashsync.models.crash import CrashInfo
from crashsync.models.results import CrashSyncResult
from crashsync.symbols.crash_sync_service import (
    CrashSyncService,
    create_crash_sync_service,
)
from crashsync.symbols.label_resolver import create_label_resolver


logger = logging.getLogger(__name__)
console = Console()

sync_app = typer.Typer(
    help="Sync binaries and symbols of a build into the symbol cache",
    no_args_is_help=True,
)

PlatformOption = Annotated[
    str, typer.Option("-p", "--platform", help="Target platform (e.g. Win64)")
]


def _create_service(ctx: typer.Context) -> CrashSyncService:
    app_ctx: AppContext = ctx.obj
    service = create_crash_sync_service(app_ctx.user_config)
    service.initialize()
    if not service.init_source_control():
        console.print(
            "[yellow]Source control is not reachable; only cached labels can be served[/yellow]"
        )
    return service


def _print_result(result: CrashSyncResult) -> None:
    if not result.success:
        console.print(f"[red]✗ {result.status}[/red] {result.error_message or ''}")
        raise typer.Exit(1)

    console.print(f"[green]✓ {result.status}[/green] {result.label}")
    if result.entry is not None:
        console.print(f"  Cache entry: {result.entry.directory}")
        console.print(f"  Size: {result.entry.size_gb} GB")
    console.print(f"  Files: {len(result.staged_files)}")
    if result.error_message:
        console.print(f"[yellow]  {result.error_message}[/yellow]")


@sync_app.command("label")
@handle_errors
def sync_label(
    ctx: typer.Context,
    label: Annotated[str, typer.Argument(help="Label to sync")],
    platform: PlatformOption = "Win64",
) -> None:
    """Sync every binary and symbol of a platform at LABEL."""
    service = _create_service(ctx)
    _print_result(service.sync_required_files_from_label(label, platform))


@sync_app.command("changelist")
@handle_errors
def sync_changelist(
    ctx: typer.Context,
    changelist: Annotated[int, typer.Argument(help="Changelist the build was made from")],
    platform: PlatformOption = "Win64",
) -> None:
    """Resolve CHANGELIST to its label and sync that label."""
    service = _create_service(ctx)
    _print_result(service.sync_required_files_from_changelist(changelist, platform))


@sync_app.command("modules")
@handle_errors
def sync_modules(
    ctx: typer.Context,
    modules: Annotated[
        list[str],
        typer.Option("-m", "--module", help="Branch-relative module path, repeatable"),
    ],
    label: Annotated[
        str | None, typer.Option("--label", "-l", help="Label the build came from")
    ] = None,
    changelist: Annotated[
        int, typer.Option("--changelist", help="Changelist the build was made from")
    ] = -1,
    engine_version: Annotated[
        int, typer.Option("--engine-version", help="Engine version of the build")
    ] = -1,
) -> None:
    """Sync the binaries and symbols of the modules loaded by a crash."""
    crash_info = CrashInfo(
        label_name=label or "",
        changelist=changelist,
        engine_version=engine_version,
        module_names=modules,
    )
    service = _create_service(ctx)
    _print_result(service.sync_modules(crash_info))


@sync_app.command("source")
@handle_errors
def sync_source(
    ctx: typer.Context,
    source_file: Annotated[str, typer.Argument(help="Branch-relative source file")],
    label: Annotated[
        str | None, typer.Option("--label", "-l", help="Label the build came from")
    ] = None,
    changelist: Annotated[
        int, typer.Option("--changelist", help="Changelist the build was made from")
    ] = -1,
) -> None:
    """Sync the source file of a crash site into the workspace."""
    crash_info = CrashInfo(
        label_name=label or "", changelist=changelist, source_file=source_file
    )
    service = _create_service(ctx)
    if not service.sync_source_file(crash_info):
        console.print(f"[red]✗ Failed to sync {source_file}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Synced {source_file}[/green]")


@handle_errors
def resolve(
    ctx: typer.Context,
    changelist: Annotated[
        int, typer.Option("--changelist", help="Changelist the build was made from")
    ] = -1,
    engine_version: Annotated[
        int, typer.Option("--engine-version", help="Engine version of the build")
    ] = -1,
) -> None:
    """Resolve a changelist or engine version to its build label."""
    app_ctx: AppContext = ctx.obj
    source_control = app_ctx.user_config.source_control
    resolver = create_label_resolver(
        create_source_control_provider(source_control), source_control
    )
    label = resolver.resolve_label(engine_version, changelist)
    if not label:
        console.print("[red]✗ No label found[/red]")
        raise typer.Exit(1)
    print(label)


def register_commands(app: typer.Typer) -> None:
    """Register sync commands with the main app."""
    app.add_typer(sync_app, name="sync")
    app.command(name="resolve")(resolve)
