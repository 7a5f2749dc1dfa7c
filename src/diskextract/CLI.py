"""diskextract CLI entrypoint.

This module provides the `extract` click command which takes a local
archive path or an http(s) URL, optionally lists the archive contents, and
extracts it to a local output directory while displaying progress.

Usage example (from shell):
    diskextract release.tar.gz -o extracted/
    diskextract https://example.com/files/bundle.zip --password secret -o out/ --yes

Remote archives are downloaded into a private temporary directory first, so
every source goes through the same decode pipeline and the same path
safety checks.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from .Config import load_settings
from .DecodePipeline import detect_format, extract_file_to_disk, open_archive
from .Entries import ArchiveEntry, EntryResult, EntryStatus
from .Errors import DownloadError, UnsupportedFormatError
from .FileIO import archive_name_from_url, download_to_file
from .LogConfig import VALID_LEVELS, configure_logging

# Create a single console instance for the CLI UI (rich console handles colors/formatting)
console = Console()


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _fetch(url: str, destination_dir: str) -> Path:
    """Download `url` into `destination_dir` behind a rich progress bar."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Downloading archive...", total=None)

        def progress_callback(bytes_written: int) -> None:
            progress.update(task, advance=bytes_written)

        return download_to_file(url, destination_dir, progress_callback=progress_callback)


def _print_listing(source: Path, password: Optional[str]) -> None:
    table = Table(title="Archive Contents")
    table.add_column("Type", justify="left")
    table.add_column("Size", justify="right")
    table.add_column("Path", justify="left")
    with open_archive(source, password=password) as archive:
        for entry in archive:
            name = entry.name
            if entry.is_symlink:
                name = f"{name} -> {entry.symlink_target}"
            table.add_row(entry.entry_type.value, str(entry.size), name)
    console.print(table)


def _print_summary(results: List[EntryResult]) -> None:
    problems = [r for r in results if not r.ok]
    extracted = len(results) - len(problems)
    if problems:
        table = Table(title="Entries Not Extracted")
        table.add_column("Entry", justify="left")
        table.add_column("Status", justify="left")
        table.add_column("Reason", justify="left")
        for result in problems:
            reason = str(result.error) if result.error else "path escapes the output directory"
            table.add_row(result.name, result.status.value, reason)
        console.print(table)
    console.print(f"Extraction complete: {extracted} of {len(results)} entries written.")


def _run_extraction(source: Path, output: Path, password: Optional[str], buffer_size: Optional[int]) -> List[EntryResult]:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("{task.completed} entries"),
        console=console,
    ) as progress:
        decode_task = progress.add_task("Reading archive...", total=None)
        write_task = progress.add_task("Writing entries...", total=None)

        # Called from the decoder's worker thread; rich progress updates are thread safe
        def on_entry(entry: ArchiveEntry) -> None:
            progress.update(decode_task, advance=1)

        def on_result(result: EntryResult) -> None:
            if result.status == EntryStatus.EXTRACTED:
                progress.update(write_task, advance=1)

        return asyncio.run(
            extract_file_to_disk(
                source,
                output,
                password=password,
                buffer_size=buffer_size,
                callback=on_entry,
                on_result=on_result,
            )
        )


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("source", type=str)
@click.option("--password", "-p", type=str, default=None, help="Password for encrypted zip archives")
@click.option("--output", "-o",
              type=click.Path(file_okay=False, dir_okay=True, writable=True, path_type=Path),
              default=Path("extracted"),
              help="Output directory for extracted files")
@click.option("--buffer-size", type=click.IntRange(min=1), default=None,
              help="Output buffer size in bytes (default: DISKEXTRACT_BUFFER_SIZE or 1 MiB)")
@click.option("--list", "list_only", is_flag=True, help="List the archive contents and exit")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--log-level", type=click.Choice(VALID_LEVELS, case_sensitive=False), default=None,
              help="Logging level (default: DISKEXTRACT_LOG_LEVEL or INFO)")
def extract(source: str, password: Optional[str], output: Path, buffer_size: Optional[int],
            list_only: bool, yes: bool, log_level: Optional[str]):
    """Extract a local or remote archive (tar, tar.gz, tar.bz2, tar.xz, zip).

    Entries whose names or link targets would land outside the output
    directory are skipped and listed in the summary.

    Args:

        source: Path to a local archive, or an http(s) URL.

        password: Optional password for encrypted zip members.

        output: Directory to extract into. Created if it doesn't exist.
    """
    settings = load_settings()
    configure_logging(log_level or settings.log_level, console=console)

    # Reject unknown formats before downloading or touching the output directory
    try:
        detect_format(archive_name_from_url(source) if _is_url(source) else source)
    except (UnsupportedFormatError, DownloadError) as e:
        raise click.UsageError(str(e))

    temp_dir = None
    try:
        if _is_url(source):
            temp_dir = tempfile.mkdtemp(prefix=settings.temp_prefix)
            archive_path = _fetch(source, temp_dir)
        else:
            archive_path = Path(source)
            if not archive_path.is_file():
                raise click.BadParameter(f"{source!r} is not a file", param_hint="SOURCE")

        if list_only:
            _print_listing(archive_path, password)
            return

        if not yes and not click.confirm(f"Extract {archive_path.name} to '{output}'?"):
            console.print("Extraction cancelled.")
            return

        results = _run_extraction(archive_path, output, password, buffer_size)
        _print_summary(results)
    except click.ClickException:
        raise
    except DownloadError as e:
        raise click.ClickException(str(e))
    except Exception as e:
        # Surface the error to the user and re-raise for callers / tests to handle.
        console.print(f"[red]Error:[/red] {str(e)}")
        raise e
    finally:
        if temp_dir is not None:
            shutil.rmtree(temp_dir, ignore_errors=True)
