"""CLI for labcert: render a single record or run the batch job."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from labcert.assembler import ReportGenerator
from labcert.core.config import AppSettings
from labcert.core.logging_config import setup_logging
from labcert.core.startup_checks import validate_settings
from labcert.exceptions import LabCertError
from labcert.models import ReportRecord
from labcert.services.batch_generation import BatchGenerationService
from labcert.storage.file_backend import (
    DirectoryRecordSource,
    FileAssetStore,
    FileReportStore,
    JsonlEventPublisher,
)

app = typer.Typer(name="labcert", help="Laboratory test-result certificate generation")
console = Console()


def _load_settings(verbose: bool) -> AppSettings:
    settings = AppSettings()
    if verbose:
        settings.observability.log_level = "DEBUG"
    validate_settings(settings)
    setup_logging(settings.observability)
    return settings


def _load_record(record_file: Path) -> ReportRecord:
    """Load one report record from a JSON file."""
    raw = json.loads(record_file.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise typer.BadParameter(f"Expected a JSON object in {record_file}")
    try:
        return ReportRecord.model_validate(raw)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid record in {record_file}: {exc}") from exc


@app.command()
def render(
    record_file: Path = typer.Argument(..., help="JSON file with one report record"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output path for the PDF"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Render a single certificate to PDF."""
    settings = _load_settings(verbose)
    record = _load_record(record_file)
    console.print(f"[bold]Rendering {record.sample.label_id} ({record.template_option.name})[/bold]")

    outcome = ReportGenerator.from_settings(settings).generate_report(record)
    if not outcome.ok or outcome.pdf is None:
        detail = f" in section {outcome.failed_section}" if outcome.failed_section else ""
        console.print(f"[red]Nothing generated: {outcome.status.value}{detail}[/red]")
        if outcome.error:
            console.print(outcome.error)
        raise typer.Exit(code=1)

    target = output or Path(f"{record.sample.label_id}.pdf")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(outcome.pdf)
    console.print(f"[green]Report saved to {target}[/green] ({len(outcome.pdf)} bytes)")


@app.command()
def batch(
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Render every pending record and publish completion events."""
    settings = _load_settings(verbose)
    config = settings.batch
    service = BatchGenerationService(
        generator=ReportGenerator.from_settings(settings),
        records=DirectoryRecordSource(config.record_inbox),
        assets=FileAssetStore(config.asset_root),
        reports=FileReportStore(config.report_outbox),
        events=JsonlEventPublisher(config.events_file),
        config=config,
    )

    try:
        summary = service.run()
    except LabCertError as exc:
        logging.getLogger(__name__).error(f"Batch generation aborted: {exc}")
        console.print(f"[red]Batch aborted: {exc}[/red]")
        raise typer.Exit(code=1) from exc

    table = Table(title="Batch Summary")
    table.add_column("Fetched", justify="right")
    table.add_column("Stored", justify="right")
    table.add_column("Failed", justify="right")
    table.add_row(str(summary.fetched), str(len(summary.stored)), str(len(summary.failed)))
    console.print(table)
    for label_id in summary.failed:
        console.print(f"[yellow]Not generated: {label_id}[/yellow]")


if __name__ == "__main__":
    app()
