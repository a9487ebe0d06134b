"""Command Line Interface for FHIR-Bridge.

Runs the translation service against FHIR JSON files and the configured
lookup backend:

    fhir-bridge ingest bundle.json --save
    fhir-bridge export patient 9a8b7c6d
    fhir-bridge info

Log lines go to stderr; ``export`` writes nothing but FHIR JSON to stdout.
"""

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from fhir_bridge.domain.models import DomainEntity
from fhir_bridge.domain.ports import EntityStorePort, LookupPortError, Result, TranslationError
from fhir_bridge.domain.resources import RESOURCE_MODELS, to_fhir_json
from fhir_bridge.domain.services import TranslationService
from fhir_bridge.infrastructure.logging_config import (
    configure_logging,
    get_logger,
    translation_context,
)
from fhir_bridge.infrastructure.settings import APP_VERSION, settings
from fhir_bridge.registry import TranslatorRegistry, build_registry

app = typer.Typer(
    name="fhir-bridge",
    help="FHIR-Bridge: translate between clinical records and FHIR R4B resources",
    add_completion=False
)
console = Console()
logger = get_logger(__name__)

# Store attribute on LookupPorts for each exportable entity kind
EXPORT_STORES = {
    "patient": "patients",
    "encounter": "encounters",
    "visit": "visits",
    "diagnosis": "diagnoses",
    "observation": "observations",
    "allergy": "allergies",
    "medication": "medications",
}


def load_resources(input_file: Path) -> list[dict[str, Any]]:
    """Read FHIR JSON: a single resource, a list of resources, or a Bundle.

    Bundle entries without a ``resource`` are skipped.

    Raises:
        ValueError: If the file is not JSON or holds neither an object nor a list
    """
    try:
        data = json.loads(input_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{input_file} is not valid JSON: {str(e)}")

    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        raise ValueError(f"{input_file} must hold a FHIR resource, a list or a Bundle")
    if data.get("resourceType") == "Bundle":
        return [entry["resource"] for entry in data.get("entry") or [] if "resource" in entry]
    return [data]


def save_entity(registry: TranslatorRegistry, entity: DomainEntity) -> DomainEntity:
    """Create or update ``entity`` in the store for its kind."""
    _, store = registry.for_entity(entity)
    if store.get(entity.uuid) is None:
        return store.create(entity)
    return store.update(entity)


def _open_registry() -> TranslatorRegistry:
    try:
        return build_registry(settings.lookup_config)
    except (LookupPortError, ValueError) as e:
        console.print(f"[red]✗[/red] Failed to open lookup backend: {str(e)}")
        raise typer.Exit(code=1)


@app.command()
def ingest(
    input_file: Path = typer.Argument(..., help="FHIR JSON file (resource, list or Bundle)", exists=True),
    save: bool = typer.Option(False, "--save/--no-save", help="Persist translated entities to the lookup backend"),
) -> None:
    """Translate FHIR resources into domain entities.

    Each resource is merged onto the stored entity with the same id, if
    there is one. Exits with status 1 when any resource fails.
    """
    try:
        resources = load_resources(input_file)
    except ValueError as e:
        console.print(f"[red]✗[/red] {str(e)}")
        raise typer.Exit(code=1)

    registry = _open_registry()
    service = TranslationService(registry)
    failures = []
    saved = 0

    try:
        for index, result in enumerate(service.ingest_many(resources)):
            if result.is_failure():
                failures.append((index, result))
                continue
            if save:
                entity = result.value
                try:
                    save_entity(registry, entity)
                except TranslationError as e:
                    logger.error(
                        f"Failed to save {type(entity).__name__} {entity.uuid}: {str(e)}",
                        extra=translation_context(None, entity.uuid, index=index),
                    )
                    failures.append((index, Result.failure_result(e, error_details={"index": index})))
                    continue
                saved += 1
    finally:
        registry.ports.close()

    total = len(resources)
    console.print("\n[bold]Translation Summary:[/bold]")
    summary_table = Table(show_header=False, box=None, padding=(0, 2))
    summary_table.add_row("Total resources:", f"[bold]{total:,}[/bold]")
    summary_table.add_row("Translated:", f"[green]{total - len(failures):,}[/green]")
    summary_table.add_row("Failed:", f"[red]{len(failures):,}[/red]" if failures else "0")
    if save:
        summary_table.add_row("Saved:", f"{saved:,}")
    console.print(summary_table)

    if failures:
        failure_table = Table(title="Failures")
        failure_table.add_column("Index", justify="right")
        failure_table.add_column("Error type")
        failure_table.add_column("Message")
        for index, result in failures:
            failure_table.add_row(str(index), result.error_type, result.error)
        console.print(failure_table)
        console.print(f"\n[yellow]⚠[/yellow] Translation completed with {len(failures)} failures")
        raise typer.Exit(code=1)

    console.print("\n[green]✓[/green] Translation completed successfully")


@app.command()
def export(
    kind: str = typer.Argument(..., help=f"Entity kind: {', '.join(EXPORT_STORES)}"),
    uuid: str = typer.Argument(..., help="Entity uuid"),
) -> None:
    """Print the FHIR JSON for a stored entity."""
    attr = EXPORT_STORES.get(kind.lower())
    if attr is None:
        console.print(f"[red]✗[/red] Unknown entity kind: {kind}. Supported: {', '.join(EXPORT_STORES)}")
        raise typer.Exit(code=1)

    registry = _open_registry()
    try:
        store: EntityStorePort = getattr(registry.ports, attr)
        entity = store.get(uuid)
        if entity is None:
            console.print(f"[red]✗[/red] No {kind} with uuid {uuid}")
            raise typer.Exit(code=1)
        try:
            resource = TranslationService(registry).to_wire(entity)
        except TranslationError as e:
            console.print(f"[red]✗[/red] Failed to translate {kind} {uuid}: {str(e)}")
            raise typer.Exit(code=1)
    finally:
        registry.ports.close()

    typer.echo(json.dumps(to_fhir_json(resource), indent=2))


@app.command()
def info() -> None:
    """Display configuration and supported resource types."""
    console.print("[bold blue]FHIR-Bridge[/bold blue]\n")

    lookup_config = settings.lookup_config
    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    info_table.add_row("Version:", APP_VERSION)
    info_table.add_row("Lookup Backend:", lookup_config.backend)
    if lookup_config.backend == "duckdb":
        info_table.add_row("Database Path:", lookup_config.db_path)
    info_table.add_row("Log Level:", settings.log_level)
    info_table.add_row("JSON Logs:", "Enabled" if settings.log_json else "Disabled")
    info_table.add_row("Resource Types:", ", ".join(sorted(RESOURCE_MODELS)))

    console.print(info_table)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version information"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """FHIR-Bridge: translate between clinical records and FHIR R4B resources."""
    if version:
        console.print(f"FHIR-Bridge v{APP_VERSION}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()

    configure_logging(settings, verbose=verbose)


if __name__ == "__main__":
    app()
