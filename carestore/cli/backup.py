"""Backup commands: carestore backup create/list/restore/delete/prune/schedule."""

from __future__ import annotations

import asyncio

import typer
from rich.table import Table

from carestore.backup.schedule import BackupScheduler
from carestore.bootstrap import bootstrap
from carestore.cli.context import console, fail, get_runtime, run_async
from carestore.config import settings
from carestore.exceptions import CarestoreError

app = typer.Typer(help="Database backups", no_args_is_help=True)


@app.command("create")
def create(
    label: str = typer.Option("manual", "--label", "-l", help="Free-form tag stored with the backup"),
):
    """Dump the whole store into a new backup file."""
    try:
        runtime = get_runtime()
        artifact = run_async(runtime.coordinator.export_snapshot(label))
    except CarestoreError as e:
        fail(e)
    console.print(
        f"[green]Backup written:[/green] {artifact.filename} "
        f"({artifact.size_mb:.2f} MB) in {runtime.coordinator.retention_dir}"
    )


@app.command("list")
def list_backups():
    """List backups in the retention directory, newest first."""
    try:
        artifacts = get_runtime().coordinator.list_artifacts()
    except CarestoreError as e:
        fail(e)

    if not artifacts:
        console.print("[dim]No backups yet.[/dim]")
        return

    table = Table(title="Backups")
    table.add_column("File", style="cyan")
    table.add_column("Label")
    table.add_column("Created")
    table.add_column("Size (MB)", justify="right")
    for a in artifacts:
        table.add_row(a.filename, a.label or "-", a.created_at.strftime("%Y-%m-%d %H:%M:%S"), f"{a.size_mb:.2f}")
    console.print(table)


@app.command("restore")
def restore(
    name: str = typer.Argument(help="Backup file name, as shown by `carestore backup list`"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Replace the store's contents with a backup."""
    console.print(
        "[yellow]Restore replaces ALL current data and is not transactional: if it "
        "fails part-way the database is left half-restored. Stop the application "
        "and take a fresh backup first.[/yellow]"
    )
    if not yes and not typer.confirm(f"Restore from {name}?"):
        raise typer.Exit(code=1)
    try:
        run_async(get_runtime().coordinator.restore_snapshot(name))
    except CarestoreError as e:
        fail(e)
    console.print(f"[green]Database restored successfully from {name}[/green]")


@app.command("delete")
def delete(name: str = typer.Argument(help="Backup file name")):
    """Delete one backup file."""
    try:
        get_runtime().coordinator.delete_artifact(name)
    except CarestoreError as e:
        fail(e)
    console.print(f"Backup file {name} deleted")


@app.command("prune")
def prune(
    keep: int = typer.Option(settings.backup_keep_last, "--keep", "-k", help="How many recent backups to keep"),
):
    """Delete all but the newest backups."""
    if keep <= 0:
        console.print("[dim]Nothing to prune (keep <= 0 keeps everything).[/dim]")
        return
    try:
        removed = run_async(get_runtime().coordinator.prune(keep))
    except CarestoreError as e:
        fail(e)
    console.print(f"Removed {len(removed)} backup(s)")
    for name in removed:
        console.print(f"  [dim]{name}[/dim]")


@app.command("schedule")
def schedule(
    interval_hours: float = typer.Option(
        settings.backup_interval_hours, "--interval-hours", help="Hours between backups"
    ),
    keep: int = typer.Option(settings.backup_keep_last, "--keep", "-k", help="Backups to retain (0 = all)"),
):
    """Run scheduled backups in the foreground until interrupted."""
    if interval_hours <= 0:
        console.print("[red]Set --interval-hours (or CARESTORE_BACKUP_INTERVAL_HOURS) above 0.[/red]")
        raise typer.Exit(code=1)

    async def _run():
        runtime = await bootstrap(settings, migrate=False)
        scheduler = BackupScheduler(
            runtime.coordinator,
            interval_seconds=interval_hours * 3600,
            keep_last=keep,
        )
        await scheduler.start()
        try:
            await scheduler.wait()
        finally:
            await scheduler.stop()

    console.print(f"Backing up every {interval_hours:g}h to {settings.backup_dir} (Ctrl+C to stop)")
    try:
        run_async(_run())
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("Stopped.")
    except CarestoreError as e:
        fail(e)
