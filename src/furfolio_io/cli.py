"""Command-line interface for the Furfolio import/export pipeline."""

from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import FurfolioIOConfig, load_config
from .constants import IMPORT_FILENAMES
from .models.bundle import DataBundle
from .models.entities import EntityKind
from .models.results import ImportResult
from .observability import configure_logging
from .persistence.sink import InMemorySink, SQLiteSink
from .services import FurfolioIO
from .utils.exceptions import FurfolioIOError

app = typer.Typer(
    name="furfolio-io",
    help="Furfolio IO - audited bulk CSV import/export for grooming business data",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)


def _load(
    config_file: Path | None,
    db: Path | None = None,
    output_dir: Path | None = None,
    log_level: str | None = None,
) -> FurfolioIOConfig:
    """Load configuration, apply command-line overrides and configure logging."""
    config = load_config(config_file)
    if db is not None:
        config.storage.db_path = db
    if output_dir is not None:
        config.export.directory = output_dir
    if log_level is not None:
        config.logging.level = log_level

    configure_logging(
        level=config.logging.level,
        json_logs=config.logging.format == "json",
        log_file=config.logging.file,
    )
    logger.debug(
        "Configuration loaded",
        config_file=str(config_file) if config_file else None,
        db_path=str(config.storage.db_path),
        export_dir=str(config.export.directory),
    )
    return config


def _result_table(title: str, results: dict[EntityKind, ImportResult]) -> Table:
    table = Table(title=title)
    table.add_column("Entity", style="cyan")
    table.add_column("File")
    table.add_column("Imported", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Status")

    for kind, result in results.items():
        status = "[green]success[/green]" if result.committed else "[red]error[/red]"
        table.add_row(
            kind.type_name,
            result.event.source_filename or "-",
            str(result.imported_count),
            str(result.skipped_count),
            status,
        )
    return table


def _print_diagnostics(result: ImportResult) -> None:
    if not result.diagnostics:
        return

    table = Table(title=f"{result.kind.type_name} row diagnostics")
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Outcome")
    table.add_column("Message")
    for diagnostic in result.diagnostics:
        outcome = "[red]skipped[/red]" if diagnostic.skipped else "[yellow]warning[/yellow]"
        table.add_row(str(diagnostic.line_number), outcome, diagnostic.message)
    console.print(table)


@app.command()
def validate(
    kind: EntityKind = typer.Argument(..., help="Entity kind of the CSV file"),
    csv_file: Path = typer.Argument(..., help="CSV file to validate", exists=True),
    owners: Path | None = typer.Option(
        None, "--owners", help="Owners CSV used to resolve owner names", exists=True
    ),
    pets: Path | None = typer.Option(
        None, "--pets", help="Pets CSV used to resolve pet names", exists=True
    ),
    organizations: Path | None = typer.Option(
        None, "--organizations", help="Organizations CSV used to resolve names", exists=True
    ),
    strict: bool = typer.Option(False, "--strict", help="Fail if any row would be skipped"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """
    Dry-run an import and report rows that would be skipped.

    Nothing is persisted; records go to an in-memory sink.

    Examples:
        furfolio-io validate owner data/owners.csv
        furfolio-io validate pet data/pets.csv --owners data/owners.csv
        furfolio-io validate appointment data/appointments.csv --owners o.csv --pets p.csv
    """
    config = _load(config_file)
    pipeline = FurfolioIO.from_config(config, sink=InMemorySink())

    console.print(f"\n[bold blue]Validating {kind.type_name} CSV:[/bold blue] {csv_file}\n")

    try:
        refs = DataBundle()
        for ref_kind, ref_path in (
            (EntityKind.OWNER, owners),
            (EntityKind.PET, pets),
            (EntityKind.ORGANIZATION, organizations),
        ):
            if ref_path is None:
                continue
            ref_result = pipeline.importer.import_batch(
                ref_kind,
                ref_path.read_text(encoding="utf-8-sig"),
                owners=refs.owners,
                source_filename=ref_path.name,
            )
            refs.collection(ref_kind).extend(ref_result.records)

        result = pipeline.importer.import_batch(
            kind,
            csv_file.read_text(encoding="utf-8-sig"),
            owners=refs.owners,
            pets=refs.pets,
            organizations=refs.organizations,
            source_filename=csv_file.name,
        )
    except (FurfolioIOError, OSError) as e:
        console.print(f"[bold red]ERROR:[/bold red] Validation failed: {e}")
        raise typer.Exit(code=1) from e

    _print_diagnostics(result)

    console.print(
        f"\n[green]OK:[/green] {len(result.records)} rows valid, "
        f"[yellow]{result.skipped_count} skipped[/yellow]"
    )

    if strict and result.skipped_count:
        console.print("[red]ERROR: Strict mode - skipped rows present[/red]")
        raise typer.Exit(code=1)


@app.command(name="import")
def import_(
    directory: Path = typer.Argument(
        ..., help="Directory holding owners.csv, pets.csv, ...", exists=True, file_okay=False
    ),
    db: Path | None = typer.Option(None, "--db", help="SQLite database path"),
    show_audit: bool = typer.Option(True, "--audit/--no-audit", help="Print the audit JSON"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """
    Import the canonical CSV files of a directory into the database.

    Files are imported in dependency order so names resolve against the
    records committed just before:
    owners, pets, organizations, appointments, charges, expenses.

    Examples:
        furfolio-io import exports/2025-06/
        furfolio-io import exports/2025-06/ --db shop.db --no-audit
    """
    config = _load(config_file, db=db, log_level=log_level)

    console.print(
        Panel.fit(
            f"[bold blue]Furfolio Import[/bold blue]\n\n"
            f"Directory: {directory}\n"
            f"Database: [cyan]{config.storage.db_path}[/cyan]\n"
            f"Files: {', '.join(IMPORT_FILENAMES.values())}",
            border_style="blue",
        )
    )

    try:
        with SQLiteSink(config.storage.db_path) as sink:
            pipeline = FurfolioIO.from_config(config, sink=sink)
            results = pipeline.import_directory(directory)
    except (FurfolioIOError, OSError) as e:
        console.print(f"[bold red]ERROR:[/bold red] Import failed: {e}")
        raise typer.Exit(code=1) from e

    if not results:
        console.print("[yellow]WARNING: No importable files found[/yellow]")
        return

    for result in results.values():
        _print_diagnostics(result)

    console.print(_result_table("Import summary", results))

    if show_audit:
        audit_json = pipeline.import_ledger.fetch_all_as_json()
        if audit_json is not None:
            console.print("\n[bold]Audit trail[/bold]")
            console.print_json(audit_json)

    failed = [kind.type_name for kind, result in results.items() if not result.committed]
    if failed:
        console.print(f"\n[red]ERROR: Commit failed for {', '.join(failed)}[/red]")
        raise typer.Exit(code=1)

    console.print("\n[green]SUCCESS: Import complete[/green]")


@app.command()
def export(
    kind: EntityKind = typer.Argument(..., help="Entity kind to export"),
    db: Path | None = typer.Option(None, "--db", help="SQLite database path"),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Export directory"),
    filename: str | None = typer.Option(
        None, "--filename", "-f", help="File name (default: <Kind>Export-<timestamp>.csv)"
    ),
    sanitize_formulas: bool = typer.Option(
        False, "--sanitize-formulas", help="Prefix formula-like cells with an apostrophe"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """
    Export one entity kind from the database to CSV.

    Examples:
        furfolio-io export owner --db shop.db
        furfolio-io export charge -o ~/Desktop -f june-charges.csv
    """
    config = _load(config_file, db=db, output_dir=output_dir)
    if sanitize_formulas:
        config.export.sanitize_formulas = True

    try:
        with SQLiteSink(config.storage.db_path) as sink:
            pipeline = FurfolioIO.from_config(config, sink=sink)
            records = sink.fetch(kind)
            path = pipeline.exporter.export(kind, records, filename)
    except (FurfolioIOError, OSError) as e:
        console.print(f"[bold red]ERROR:[/bold red] Export failed: {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]OK:[/green] Exported {len(records)} {kind.type_name} records to {path}")


@app.command()
def backup(
    db: Path | None = typer.Option(None, "--db", help="SQLite database path"),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Export directory"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """
    Write every collection in the database to one JSON bundle.

    Examples:
        furfolio-io backup --db shop.db
    """
    config = _load(config_file, db=db, output_dir=output_dir)

    try:
        with SQLiteSink(config.storage.db_path) as sink:
            pipeline = FurfolioIO.from_config(config, sink=sink)
            bundle = DataBundle()
            for kind in EntityKind:
                bundle.collection(kind).extend(sink.fetch(kind))
            path = pipeline.bundles.export_bundle(bundle)
    except (FurfolioIOError, OSError) as e:
        console.print(f"[bold red]ERROR:[/bold red] Backup failed: {e}")
        raise typer.Exit(code=1) from e

    table = Table(title="Backup contents")
    table.add_column("Entity", style="cyan")
    table.add_column("Records", justify="right", style="green")
    for type_name, count in bundle.entity_counts.items():
        table.add_row(type_name, str(count))
    console.print(table)
    console.print(f"[green]OK:[/green] Bundle written to {path}")


@app.command()
def restore(
    bundle_file: Path = typer.Argument(..., help="JSON bundle to restore", exists=True),
    db: Path | None = typer.Option(None, "--db", help="SQLite database path"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """
    Load a JSON bundle into the database in one transaction.

    Examples:
        furfolio-io restore FurfolioExport-20250620-143000.json --db shop.db
    """
    config = _load(config_file, db=db)

    try:
        with SQLiteSink(config.storage.db_path) as sink:
            pipeline = FurfolioIO.from_config(config, sink=sink)
            bundle = pipeline.bundles.restore_bundle(bundle_file, sink)
    except (FurfolioIOError, OSError) as e:
        console.print(f"[bold red]ERROR:[/bold red] Restore failed: {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]OK:[/green] Restored {bundle.total_count} records from {bundle_file}")


if __name__ == "__main__":
    app()
