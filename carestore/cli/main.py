"""carestore CLI.

`carestore migrate` brings the schema up to date, `carestore status` shows
where the ledger stands, and `carestore backup ...` manages dumps.
Configuration comes from CARESTORE_* environment variables.
"""

from __future__ import annotations

import typer
from rich.panel import Panel
from rich.table import Table

from carestore.cli import backup
from carestore.cli.context import console, fail, get_runtime, run_async
from carestore.config import settings
from carestore.exceptions import CarestoreError
from carestore.log import configure_logging

app = typer.Typer(
    name="carestore",
    help="carestore -- schema migrations and backups for the clinical records store.",
    no_args_is_help=True,
)

app.add_typer(backup.app, name="backup", help="Create, list, restore and prune backups")


@app.callback()
def _setup(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


@app.command("migrate")
def migrate():
    """Apply pending schema migrations."""
    try:
        runtime = get_runtime(migrate=True)
    except CarestoreError as e:
        fail(e)

    if runtime.applied:
        versions = ", ".join(f"v{v}" for v in runtime.applied)
        console.print(f"[green]Applied {len(runtime.applied)} migration(s): {versions}[/green]")
    else:
        console.print(f"Schema already at v{runtime.ledger.target_version}, nothing to do.")


@app.command("status")
def status():
    """Show applied and pending migrations."""
    try:
        runtime = get_runtime(migrate=False)
        ledger_status = run_async(runtime.ledger.status())
    except CarestoreError as e:
        fail(e)

    from carestore import __version__

    state = "[green]up to date[/green]" if ledger_status.up_to_date else (
        f"[yellow]{len(ledger_status.pending)} pending[/yellow]"
    )
    console.print(Panel(
        f"[bold]carestore v{__version__}[/bold]\n\n"
        f"Store:     {runtime.location.redacted()}\n"
        f"Schema:    v{ledger_status.current_version} of v{runtime.ledger.target_version} ({state})\n"
        f"Backups:   {len(runtime.coordinator.list_artifacts())} in {runtime.coordinator.retention_dir}",
        title="Store Status",
        border_style="cyan",
    ))

    table = Table(show_header=True)
    table.add_column("Version", justify="right")
    table.add_column("Description")
    table.add_column("Applied at")
    for row in ledger_status.applied:
        applied_at = row.applied_at.strftime("%Y-%m-%d %H:%M:%S") if row.applied_at else "-"
        table.add_row(str(row.version), row.description, applied_at)
    for record in ledger_status.pending:
        table.add_row(str(record.version), record.description, "[yellow]pending[/yellow]")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
