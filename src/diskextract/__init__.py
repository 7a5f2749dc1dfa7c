"""diskextract package initializer.

This module provides the package-level public surface for the small
`diskextract` library. It exports:

- __version__: Package version string.
- extract_archive_to_disk / extract_archive_to_disk_sync: Write an
  already-decoded `Archive` to a directory.
- extract_file_to_disk / extract_file_to_disk_sync: Decode an archive file
  (tar, tar.gz, tar.bz2, tar.xz, zip) and write it to a directory.
- Archive, ArchiveEntry, EntryType, EntryResult, EntryStatus: The data model.
- is_contained, resolve_entry_path, validate_symlink: Path safety checks.
- cli: The click command behind the `diskextract` console script.

Example:
    import asyncio
    from diskextract import extract_file_to_disk
    results = asyncio.run(extract_file_to_disk("release.tar.gz", "out"))
"""

# Public version string
__version__ = "0.1.0"

from .DecodePipeline import ARCHIVE_FORMATS, ArchiveFormat, detect_format, extract_file_to_disk, extract_file_to_disk_sync
from .Entries import Archive, ArchiveEntry, EntryResult, EntryStatus, EntryType
from .Errors import ContentConsumedError, DiskExtractError, DownloadError, UnsupportedFormatError
from .ExtractEngine import extract_archive_to_disk, extract_archive_to_disk_sync
from .PathSafety import is_contained, resolve_entry_path, validate_symlink

# Expose the CLI command object so callers can reuse or register it in other tools.
from .CLI import extract as cli  # click CLI command

# Define the public API
__all__ = [
    "__version__",
    "cli",
    "ARCHIVE_FORMATS",
    "Archive",
    "ArchiveEntry",
    "ArchiveFormat",
    "ContentConsumedError",
    "DiskExtractError",
    "DownloadError",
    "EntryResult",
    "EntryStatus",
    "EntryType",
    "UnsupportedFormatError",
    "detect_format",
    "extract_archive_to_disk",
    "extract_archive_to_disk_sync",
    "extract_file_to_disk",
    "extract_file_to_disk_sync",
    "is_contained",
    "resolve_entry_path",
    "validate_symlink",
]
