"""Write a single validated archive entry to disk.

`materialize` never raises for a per-entry problem: a failed write is
reported as a `WRITE_FAILED` result and the caller moves on to the next
entry. Paths handed to this module must already have passed
`diskextract.PathSafety.resolve_entry_path`.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .Config import DEFAULT_BUFFER_SIZE
from .Entries import ArchiveEntry, EntryResult, EntryStatus
from .FileIO import OutputFileStream

logger = logging.getLogger(__name__)

POSIX_PERMISSIONS_SUPPORTED = os.name == "posix" and hasattr(os, "chmod")


def file_buffer_size(entry: ArchiveEntry, buffer_size: Optional[int] = None) -> int:
    """Buffer size for writing `entry`: the configured size capped by the entry's length."""
    return max(1, min(buffer_size or DEFAULT_BUFFER_SIZE, entry.size))


def _make_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def _write_symlink(entry: ArchiveEntry, output_path: str) -> None:
    _make_parent(output_path)
    # Replace a link or file left by an earlier run; never remove a real directory
    if os.path.islink(output_path) or (os.path.lexists(output_path) and not os.path.isdir(output_path)):
        os.unlink(output_path)
    os.symlink(os.path.normpath(entry.symlink_target or ""), output_path)


def _write_file(entry: ArchiveEntry, output_path: str, buffer_size: Optional[int]) -> None:
    _make_parent(output_path)
    if os.path.islink(output_path):
        # Writing through a stale link would land wherever it points
        os.unlink(output_path)
    output = OutputFileStream(output_path, buffer_size=buffer_size)
    try:
        entry.write_content(output)
    finally:
        output.close()


def materialize(entry: ArchiveEntry, output_path: str, buffer_size: Optional[int] = None) -> EntryResult:
    """Create `entry` at `output_path` as a link, directory or regular file.

    Args:
        entry (ArchiveEntry): The entry to write.
        output_path (str): Validated destination path.
        buffer_size (int | None): Output buffer size; capped by the entry's size when unset.

    Returns:
        EntryResult: EXTRACTED, or WRITE_FAILED carrying the suppressed exception.
    """
    try:
        if entry.is_symlink:
            _write_symlink(entry, output_path)
        elif entry.is_directory:
            os.makedirs(output_path, exist_ok=True)
        else:
            _write_file(entry, output_path, buffer_size or file_buffer_size(entry))
    except Exception as e:
        logger.debug("Failed to write %r to %s: %s", entry.name, output_path, e)
        return EntryResult(entry.name, EntryStatus.WRITE_FAILED, path=output_path, error=e)
    return EntryResult(entry.name, EntryStatus.EXTRACTED, path=output_path)


def restore_permissions(entry: ArchiveEntry, output_path: str) -> bool:
    """Apply the entry's stored rwx permission bits to a written file.

    Setuid, setgid and sticky bits from the archive are never applied.

    Must only be called after the file's output stream is closed. Does
    nothing on hosts without POSIX permissions or when the archive recorded
    no mode.

    Returns:
        bool: True if the mode was applied.
    """
    permissions = (entry.mode or 0) & 0o777
    if not POSIX_PERMISSIONS_SUPPORTED or not permissions:
        return False
    try:
        os.chmod(output_path, permissions)
    except OSError as e:
        logger.debug("Could not restore mode %o on %s: %s", entry.mode, output_path, e)
        return False
    return True
