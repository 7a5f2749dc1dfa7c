"""Extract an already-decoded archive onto disk.

Two drivers share one validation and skip policy:

- `extract_archive_to_disk_sync` writes entries one after another on the
  calling thread.
- `extract_archive_to_disk` is the asyncio variant. Every file entry becomes
  a task on a bounded pool of worker threads, started in archive order and
  joined once at the end. Directories and links are created inline, in
  order, so later entries are validated against the links that already
  exist.

Entries whose path escapes the root, or links whose target would, are
dropped silently and reported as `SKIPPED_UNSAFE`. A write failure for one
entry is reported as `WRITE_FAILED` and never stops the rest.

When two entries resolve to the same path the later one in archive order
wins. The concurrent driver guarantees this by making a write wait for
any earlier write to the same path before it starts.
"""

from __future__ import annotations

import asyncio
import os
from typing import Callable, Dict, List, Optional, Union

from .Config import load_settings
from .Entries import ArchiveEntry, EntryResult, EntryStatus
from .Materializer import file_buffer_size, materialize, restore_permissions
from .PathSafety import resolve_entry_path
from .Protocols import ArchiveProtocol

ResultCallback = Callable[[EntryResult], None]


def prepare_output_dir(output_path: str | os.PathLike) -> str:
    """Create the extraction root (and missing parents) and return it as an absolute path."""
    root = os.path.abspath(os.fspath(output_path))
    os.makedirs(root, exist_ok=True)
    return root


def _skipped(entry: ArchiveEntry) -> EntryResult:
    return EntryResult(entry.name, EntryStatus.SKIPPED_UNSAFE)


def _write_entry(
    entry: ArchiveEntry,
    file_path: str,
    buffer_size: Optional[int],
    restore_modes: bool,
) -> EntryResult:
    result = materialize(entry, file_path, buffer_size=buffer_size)
    # Modes go on only after the output stream has been closed by materialize
    if restore_modes and entry.is_file and result.ok:
        restore_permissions(entry, file_path)
    return result


def extract_archive_to_disk_sync(
    archive: ArchiveProtocol,
    output_path: str | os.PathLike,
    buffer_size: Optional[int] = None,
    on_result: Optional[ResultCallback] = None,
    restore_modes: bool = False,
) -> List[EntryResult]:
    """Extract every safe entry of `archive` under `output_path`, one at a time.

    Args:
        archive: Decoded archive to extract.
        output_path (PathLike): Extraction root; created if missing.
        buffer_size (int | None): Output buffer size. When unset each file's
            buffer is capped by its own size.
        on_result (callable | None): Called with each entry's result as soon as it is known.
        restore_modes (bool): Apply stored POSIX permission bits to regular files.

    Returns:
        List[EntryResult]: One result per entry, in archive order.
    """
    root = prepare_output_dir(output_path)
    results: List[EntryResult] = []
    for entry in archive:
        file_path = resolve_entry_path(root, entry)
        if file_path is None:
            result = _skipped(entry)
        else:
            result = _write_entry(entry, file_path, buffer_size, restore_modes)
        results.append(result)
        if on_result:
            on_result(result)
    return results


async def _write_file_task(
    entry: ArchiveEntry,
    file_path: str,
    buffer_size: int,
    restore_modes: bool,
    slots: asyncio.Semaphore,
    previous: Optional[asyncio.Task],
    on_result: Optional[ResultCallback],
) -> EntryResult:
    try:
        if previous is not None:
            await asyncio.wait([previous])
        result = await asyncio.to_thread(_write_entry, entry, file_path, buffer_size, restore_modes)
    finally:
        slots.release()
    if on_result:
        on_result(result)
    return result


async def extract_archive_to_disk(
    archive: ArchiveProtocol,
    output_path: str | os.PathLike,
    buffer_size: Optional[int] = None,
    on_result: Optional[ResultCallback] = None,
    max_workers: Optional[int] = None,
    restore_modes: bool = False,
) -> List[EntryResult]:
    """Extract every safe entry of `archive` under `output_path` concurrently.

    File writes are started in archive order, at most `max_workers` at a
    time, and may finish in any order. The call returns once every started
    write has completed.

    Args:
        archive: Decoded archive to extract.
        output_path (PathLike): Extraction root; created before any write starts.
        buffer_size (int | None): Upper bound for each file's buffer; the
            actual buffer is `min(buffer_size, entry.size)`.
        on_result (callable | None): Called on the event loop with each result as it completes.
        max_workers (int | None): In-flight write limit. Defaults to `DISKEXTRACT_MAX_WORKERS`.
        restore_modes (bool): Apply stored POSIX permission bits to regular files.

    Returns:
        List[EntryResult]: One result per entry, in archive order.
    """
    settings = load_settings()
    configured_buffer = buffer_size or settings.buffer_size
    slots = asyncio.Semaphore(max_workers or settings.max_workers)
    root = await asyncio.to_thread(prepare_output_dir, output_path)

    # Last write task per output path; later duplicates wait on it
    writers: Dict[str, asyncio.Task] = {}
    tasks: List[asyncio.Task] = []
    ordered: List[Union[EntryResult, asyncio.Task]] = []

    try:
        for entry in archive:
            # realpath does filesystem I/O
            file_path = await asyncio.to_thread(resolve_entry_path, root, entry)
            if file_path is None:
                result = _skipped(entry)
                ordered.append(result)
                if on_result:
                    on_result(result)
                continue

            previous = writers.get(file_path)
            if not entry.is_file:
                if previous is not None:
                    await asyncio.wait([previous])
                result = await asyncio.to_thread(_write_entry, entry, file_path, None, restore_modes)
                writers.pop(file_path, None)
                ordered.append(result)
                if on_result:
                    on_result(result)
                continue

            await slots.acquire()
            task = asyncio.create_task(
                _write_file_task(
                    entry,
                    file_path,
                    file_buffer_size(entry, configured_buffer),
                    restore_modes,
                    slots,
                    previous,
                    on_result,
                )
            )
            writers[file_path] = task
            tasks.append(task)
            ordered.append(task)
    finally:
        # Every started write completes before returning, even on error
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    return [item.result() if isinstance(item, asyncio.Task) else item for item in ordered]
