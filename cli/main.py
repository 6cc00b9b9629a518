#!/usr/bin/env python3
"""
pulseboard CLI - Command Line Interface

Usage:
    pulseboard ingest FILE      Score a CSV and store its histogram
    pulseboard show ID          Print a stored histogram
    pulseboard init-db          Create the aggregate table
    pulseboard server           Start API server
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from core.errors import PulseboardError

console = Console()


def get_components():
    """Lazy load components"""
    from core.config import get_config
    from core.database import create_store

    config = get_config()
    store = create_store(config)
    return config, store


def _fail(exc: PulseboardError) -> None:
    console.print(f"[red]{exc.category}[/red]: {exc.message}")
    sys.exit(1)


@click.group()
@click.version_option(version="0.1.0", prog_name="pulseboard")
@click.option("--log-level", default=None, help="Override the configured log level")
def cli(log_level: Optional[str]):
    """pulseboard - sentiment histograms for CSV datasets"""
    from core.config import get_config

    level = (log_level or get_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--column", "text_column", default=None, help="Column holding the post text")
@click.option("--title", "project_title", default=None, help="Project title for the chart")
def ingest(csv_path: Path, text_column: Optional[str], project_title: Optional[str]):
    """Score CSV_PATH and store its 11-bin histogram"""
    from sentiment.pipeline import IngestionEngine, IngestionOptions
    from sentiment.scoring import VaderScorer

    config, store = get_components()
    options = IngestionOptions.from_params(
        {
            "text_column": text_column or config.ingest.default_text_column,
            "project_title": project_title or config.ingest.default_project_title,
        }
    )

    try:
        with store:
            engine = IngestionEngine(store, VaderScorer(), chunk_size=config.ingest.chunk_size)
            with console.status(f"[bold green]Scoring {csv_path.name}...[/bold green]"):
                result = engine.run(csv_path, options)
    except PulseboardError as exc:
        _fail(exc)
        return

    console.print(f"[green]Stored dataset {result.id}[/green] ({store.backend_name} store)")
    _print_histogram(result.project_title, result.histogram)
    if result.truncated_rows:
        console.print(f"[yellow]{result.truncated_rows} over-wide rows truncated to the header[/yellow]")


@cli.command()
@click.argument("dataset_id", type=int)
def show(dataset_id: int):
    """Print the stored histogram for DATASET_ID"""
    from sentiment.display import DatasetDisplay

    _, store = get_components()
    try:
        with store:
            chart = DatasetDisplay(store).get_chart(dataset_id)
    except PulseboardError as exc:
        _fail(exc)
        return

    _print_histogram(chart["project_title"], chart["counts"], labels=chart["labels"])


@cli.command("init-db")
def init_db():
    """Create the aggregate table in the configured store"""
    _, store = get_components()
    try:
        with store:
            pass
    except PulseboardError as exc:
        _fail(exc)
        return
    console.print(f"[green]Aggregate store ready[/green] ({store.backend_name})")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8420, help="Port to bind to")
def server(host: str, port: int):
    """Start the API server"""
    console.print(f"Starting pulseboard API server at http://{host}:{port}")

    from api import run_server
    run_server(host=host, port=port)


def _print_histogram(title: str, counts, labels=None):
    from sentiment.histogram import bucket_label

    labels = labels or [bucket_label(i) for i in range(len(counts))]
    total = sum(counts) or 1

    table = Table(title=title)
    table.add_column("Bucket", justify="right")
    table.add_column("Count", justify="right")
    table.add_column("", justify="left")
    for label, count in zip(labels, counts):
        table.add_row(label, str(count), "█" * round(30 * count / total))
    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
