"""CLI interface for the retrieval engine."""

import json
import logging
import mimetypes
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ....common.exception_handler import format_exception_json, get_error_code, log_exception
from ....composition.container import Container
from ....config.logging import setup_logging
from ....config.settings import Settings
from ....core.domain import SourceKind, Upload

app = typer.Typer(
    name="ragengine",
    help="Document ingestion and tenant-scoped retrieval",
    add_completion=False,
)

console = Console(force_terminal=True, legacy_windows=False)

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"

TEXT_SUFFIXES = {".txt", ".md", ".text"}

TenantOption = typer.Option(..., "--tenant", "-t", help="Tenant id owning the passages")


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.

    Args:
        exc: The exception to handle.
    """
    log_exception(exc, level=logging.DEBUG)
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, default=str),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
    else:
        error_type = error_data["error"]["type"]
        error_msg = error_data["error"]["message"]
        error_code = get_error_code(exc)
        location = error_data.get("location", {})

        console.print(f"\n[red]Error [{error_code}]:[/] {error_msg}")
        console.print(f"[dim]Type: {error_type}[/]")

        if location:
            loc_str = f"{location.get('file', '?')}:{location.get('line', '?')} in {location.get('method', '?')}"
            console.print(f"[dim]Location: {loc_str}[/]")

        console.print("[dim]Set DEBUG=true for full details[/]")


def get_container() -> Container:
    """Build the engine from environment settings."""
    settings = Settings()
    setup_logging(settings.log_level, settings.log_file, settings.log_json)
    return Container(settings)


def _load_upload(path: Path) -> Upload:
    if path.suffix.lower() in TEXT_SUFFIXES:
        content_type = "text/plain"
    else:
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return Upload(filename=path.name, content_type=content_type, data=path.read_bytes())


@app.command()
def ingest(
    paths: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Files to ingest"),
    tenant: str = TenantOption,
    semantic: bool = typer.Option(False, "--semantic", help="Use semantic chunking for text files"),
) -> None:
    """Ingest text and PDF files for a tenant."""
    try:
        with get_container() as container:
            uploads = [_load_upload(p) for p in paths]

            if semantic:
                for upload in uploads:
                    if upload.content_type != "text/plain":
                        console.print(f"[yellow]Skipping {upload.filename}: semantic mode is text only[/]")
                        continue
                    with console.status(f"[bold green]Ingesting {upload.filename}...[/]"):
                        result = container.ingestion.ingest_semantic(
                            tenant, upload.filename, upload.data.decode("utf-8", errors="replace")
                        )
                    console.print(f"✅ {result.source_id}: {result.chunk_count} semantic passages")
                return

            with console.status(f"[bold green]Ingesting {len(uploads)} file(s)...[/]"):
                report = container.ingestion.ingest_batch(tenant, uploads)

            table = Table(title=f"Ingestion for {tenant}")
            table.add_column("Source")
            table.add_column("Result")
            table.add_column("Detail")
            for item in report.succeeded:
                method = item.extraction_method.value if item.extraction_method else "text"
                table.add_row(item.source_id, "[green]ingested[/]", f"{item.chunk_count} passages ({method})")
            for skipped in report.skipped:
                table.add_row(skipped.source_id, "[yellow]skipped[/]", f"[{skipped.error_code}] {skipped.message}")
            for failed in report.failed:
                table.add_row(failed.source_id, "[red]failed[/]", f"[{failed.error_code}] {failed.message}")
            console.print(table)

            if report.failed:
                raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


@app.command()
def scrape(
    url: str = typer.Argument(..., help="Web page to scrape"),
    tenant: str = TenantOption,
) -> None:
    """Scrape a web page and ingest its text for a tenant."""
    try:
        with get_container() as container:
            with console.status(f"[bold green]Scraping {url}...[/]"):
                result = container.ingestion.ingest_url(tenant, url)
            console.print(f"✅ {result.source_id}: {result.chunk_count} passages")
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    tenant: str = TenantOption,
    limit: int | None = typer.Option(None, "--limit", "-n", help="Maximum results"),
    threshold: float | None = typer.Option(None, "--threshold", help="Minimum similarity"),
    rerank: bool | None = typer.Option(None, "--rerank/--no-rerank", help="Heuristic re-ranking"),
) -> None:
    """Search a tenant's passages."""
    try:
        with get_container() as container:
            with console.status("[bold green]Searching...[/]"):
                results = container.retrieval.retrieve(query, tenant, limit, threshold, rerank)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No relevant passages found.[/]")
        return

    for rank, result in enumerate(results, start=1):
        passage = result.passage
        console.print(
            Panel(
                passage.text[:500],
                title=f"{rank}. {passage.source_id} #{passage.sequence_index}",
                subtitle=f"score {result.score:.3f} | similarity {result.similarity:.3f}",
                border_style="blue",
            )
        )


@app.command()
def sources(tenant: str = TenantOption) -> None:
    """List the sources ingested for a tenant."""
    try:
        with get_container() as container:
            records = container.ingestion.list_sources(tenant)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not records:
        console.print(f"[dim]No sources for {tenant}[/]")
        return

    table = Table(title=f"Sources for {tenant}")
    table.add_column("Source")
    table.add_column("Kind")
    table.add_column("Passages", justify="right")
    table.add_column("Last ingested")
    for record in records:
        table.add_row(
            record.source_id,
            record.source_kind.value,
            str(record.chunk_count),
            record.last_ingested_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


@app.command()
def delete(
    source_ids: list[str] = typer.Argument(..., help="Source ids (filenames or URLs)"),
    tenant: str = TenantOption,
) -> None:
    """Delete sources and their passages."""
    try:
        with get_container() as container:
            removed = container.ingestion.delete_sources(tenant, source_ids)
        console.print(f"🗑️ Removed {removed} passages from {len(source_ids)} source(s)")
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


@app.command()
def clear(
    tenant: str = TenantOption,
    kind: SourceKind | None = typer.Option(None, "--kind", help="Only clear this source kind"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete all of a tenant's passages (optionally one source kind)."""
    scope = f"{kind.value} sources" if kind else "all sources"
    if not yes and not typer.confirm(f"Delete {scope} for tenant {tenant}?"):
        raise typer.Abort()

    try:
        with get_container() as container:
            if kind:
                removed = container.ingestion.delete_kind(tenant, kind)
            else:
                removed = container.ingestion.clear_tenant(tenant)
        console.print(f"🗑️ Removed {removed} passages ({scope})")
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


@app.command()
def status(tenant: str | None = typer.Option(None, "--tenant", "-t", help="Show counts for a tenant")) -> None:
    """Show configuration and index readiness."""
    settings = Settings()
    console.print("[bold]Retrieval engine status[/]\n")
    backend = settings.qdrant_url or f"local ({settings.qdrant_path})"
    console.print(f"Vector backend: {settings.vector_backend} {backend if settings.vector_backend == 'qdrant' else ''}")
    console.print(f"Embedding model: {settings.embedding_model} ({settings.embedding_dimension}-d)")
    console.print(f"OCR fallback: {'enabled' if settings.ocr_enabled else 'disabled'}")

    try:
        with get_container() as container:
            with console.status("[bold green]Checking index...[/]"):
                container.index.ensure_ready()
            console.print(f"✅ Index '{settings.index_name}' is ready")

            if tenant:
                stats = container.ingestion.stats(tenant)
                console.print(f"\n[bold]Tenant {tenant}:[/]")
                for key, value in stats.items():
                    console.print(f"  {key.replace('_', ' ')}: {value}")
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
