"""
CLI Main - Typer-based command-line interface.

Usage:
    tablescribe extract path/to/report.pdf
    tablescribe extract report.pdf --merge -o tables.xlsx
    tablescribe extract report.pdf --json
    tablescribe serve
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table

from tablescribe.config import Settings, TableScribeError, get_settings
from tablescribe.domains.orchestration import (
    DocumentPipeline,
    DocumentProcessor,
    PipelineResult,
    ProgressEvent,
    ProgressObserver,
)

app = typer.Typer(
    name="tablescribe",
    help="TableScribe - Extract tables from PDF documents into spreadsheets",
    add_completion=False,
)
console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def build_pipeline(
    settings: Settings,
    observer: ProgressObserver,
    max_pages: int | None = None,
) -> DocumentProcessor:
    """Wire the Gemini extractor, rasterizer and policies from settings."""
    from tablescribe.adapters.gemini import GeminiClient, GeminiConfig
    from tablescribe.adapters.pdf import PdfRasterizer
    from tablescribe.domains.extraction import GeminiTableExtractor
    from tablescribe.domains.orchestration import PipelineConfig

    client = GeminiClient(GeminiConfig.from_settings(settings))
    extractor = GeminiTableExtractor(client, malformed_policy=settings.malformed_response_policy)
    return DocumentPipeline(
        extractor,
        PipelineConfig.from_settings(settings),
        observer=observer,
        rasterizer=PdfRasterizer.from_settings(settings, max_pages=max_pages),
    )


@app.command()
def extract(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output .xlsx (or .json) path"),
    merge: bool = typer.Option(False, "--merge", "-m", help="Put all tables into one sheet"),
    pages: int | None = typer.Option(None, "--pages", "-n", min=1, help="Only process the first N pages"),
    as_json: bool = typer.Option(False, "--json", help="Write tables as JSON instead of a workbook"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Extract every table from a PDF into a workbook."""
    settings = get_settings()
    _configure_logging("DEBUG" if verbose else settings.log_level)

    if not pdf_path.exists():
        console.print(f"[red]Error:[/red] File not found: {pdf_path}")
        raise typer.Exit(1)

    if not settings.gemini_api_key:
        console.print("[red]Error:[/red] GEMINI_API_KEY is not set")
        raise typer.Exit(1)

    asyncio.run(_extract_async(settings, pdf_path, output, merge, pages, as_json))


async def _extract_async(
    settings: Settings,
    pdf_path: Path,
    output: Path | None,
    merge: bool,
    max_pages: int | None,
    as_json: bool,
) -> None:
    """Async extraction implementation."""
    from tablescribe.adapters.excel import write_workbook
    from tablescribe.domains.export import ExportOptions, WorkbookAssembler

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task("Initializing...", total=100)
        pipeline = build_pipeline(settings, _progress_observer(progress, task), max_pages)
        result = await pipeline.process_pdf(pdf_path.read_bytes(), document_name=pdf_path.name)

    if not result.success:
        console.print(f"[red]Error:[/red] {result.error.message}")
        raise typer.Exit(1)

    _print_summary(result)

    if as_json:
        payload = {
            "document_name": result.document_name,
            "model": result.model_used,
            "tables": [table.model_dump() for table in result.tables],
        }
        if output:
            output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            console.print(f"\n[green]Saved to:[/green] {output}")
        else:
            console.print_json(data=payload)
        return

    assembler = WorkbookAssembler(ExportOptions.from_settings(settings))
    try:
        plan = assembler.assemble(result.tables, merge_all=merge, source_name=pdf_path.name)
        target = output or pdf_path.with_name(plan.filename)
        write_workbook(plan, target)
    except TableScribeError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    console.print(f"\n[green]Saved to:[/green] {target}")


def _progress_observer(progress: Progress, task: TaskID):
    def observe(event: ProgressEvent) -> None:
        progress.update(task, completed=event.percent, description=event.message)

    return observe


def _print_summary(result: PipelineResult) -> None:
    console.print("\n[green]Extraction Complete[/green]\n")

    summary = Table(title="Extraction Summary")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Pages", str(result.total_pages))
    summary.add_row("Tables Found", str(result.table_count))
    summary.add_row("Failed Pages", ", ".join(str(i + 1) for i in result.failed_pages) or "-")
    summary.add_row("Model", result.model_used or "-")
    summary.add_row("Duration", f"{result.total_duration_ms / 1000:.1f}s")
    console.print(summary)

    tables = Table(title="Tables")
    tables.add_column("Page", justify="right")
    tables.add_column("Name")
    tables.add_column("Columns", justify="right")
    tables.add_column("Rows", justify="right")
    for table in result.tables:
        page = "-" if table.page_index is None else str(table.page_index + 1)
        tables.add_row(page, table.table_name, str(table.column_count), str(table.row_count))
    console.print(tables)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    _configure_logging(settings.log_level)

    console.print("\n[green]Starting TableScribe API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "tablescribe.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from tablescribe import __version__

    console.print(f"TableScribe v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
