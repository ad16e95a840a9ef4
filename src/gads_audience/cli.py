"""Command line interface for the audience uploader."""
from __future__ import annotations

import asyncio
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

import typer

from .config import DEFAULT_CONFIG_PATH, AudienceConfig, ConfigLoader
from .errors import StreamDecodeError
from .pipeline import UploadReport, run_upload
from .run_context import RunContext
from .schema import infer_schema
from .schema_preview import format_schema
from .sink_factory import create_batch_sink
from .stream import aiter_file, read_first_record

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="Google Ads Customer Match uploader")


@contextmanager
def _open_source(source: str) -> Iterator[BinaryIO]:
    if source == "-":
        yield sys.stdin.buffer
        return
    path = Path(source)
    if not path.exists():
        typer.echo(f"Input file not found: {path}", err=True)
        raise typer.Exit(code=1)
    with path.open("rb") as handle:
        yield handle


def _load_config(config_path: Optional[str]) -> AudienceConfig:
    default_path = os.getenv("GADS_AUDIENCE_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    if config_path is None and not Path(default_path).exists():
        logger.info("No configuration file found; using defaults")
        return AudienceConfig()
    return ConfigLoader(path=config_path).model


def _summarize(report: UploadReport) -> str:
    summary = (
        f"Upload {report.state.value} | run_id={report.run_id} "
        f"records={report.records_processed} fragments={report.fragments_submitted} "
        f"batches={report.batches_submitted} batch_size={report.batch_capacity}"
    )
    if report.decode_error:
        summary += f" decode_error={report.decode_error!r}"
    if report.submission_errors:
        summary += f" failed_batches={len(report.submission_errors)}"
    return summary


@app.command()
def upload(
    source: str = typer.Argument(..., help="JSON array file to upload, or '-' for stdin"),
    config_path: Optional[str] = typer.Option(None, "--config", help="YAML configuration path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Write batches to disk instead of Google Ads"),
    batch_capacity: Optional[int] = typer.Option(None, "--batch-capacity", min=2),
    hashing: Optional[bool] = typer.Option(None, "--hashing/--no-hashing"),
) -> None:
    """Stream a JSON array of rows into a Customer Match user list."""
    config = _load_config(config_path)
    if batch_capacity is not None:
        config.upload.batch_capacity = batch_capacity
    if hashing is not None:
        config.upload.hashing_enabled = hashing

    run_context = RunContext.create()
    logger.info(
        "Starting upload with run_id=%s dry_run=%s", run_context.run_id, dry_run
    )
    sink = create_batch_sink(config, run_context, dry_run=dry_run)
    with _open_source(source) as handle:
        report = asyncio.run(
            run_upload(sink, aiter_file(handle), config.upload, run_context)
        )
    typer.echo(_summarize(report))
    if not report.succeeded:
        raise typer.Exit(code=1)


@app.command()
def schema(
    source: str = typer.Argument(..., help="JSON array file, or '-' for stdin"),
    config_path: Optional[str] = typer.Option(None, "--config", help="YAML configuration path"),
    output_format: str = typer.Option("table", "--format", help="table or json"),
) -> None:
    """Show the column mapping that would be inferred from the first row."""
    config = _load_config(config_path)
    with _open_source(source) as handle:
        try:
            record = asyncio.run(read_first_record(aiter_file(handle)))
        except StreamDecodeError as exc:
            typer.echo(f"Could not read first row: {exc}", err=True)
            raise typer.Exit(code=1)
    if record is None:
        typer.echo("Input contains no rows.")
        raise typer.Exit(code=0)
    mapping = infer_schema(record, config.upload.compiled_rules())
    typer.echo(
        format_schema(
            record,
            mapping,
            hashing_enabled=config.upload.hashing_enabled,
            output_format=output_format,
        )
    )


if __name__ == "__main__":
    app()
