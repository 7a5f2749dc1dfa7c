"""Archive data model shared by decoders and the extraction engine.

Decoders (`TarDecoder`, `ZipDecoder`) produce an `Archive` of
`ArchiveEntry` objects. The extraction engine only reads entries; it never
modifies them, and it reports what happened to each one through an
`EntryResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Callable, Iterator, List, Optional

from .Errors import ContentConsumedError


class EntryType(str, Enum):
    """Kinds of archive entries the engine knows how to write."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


class EntryStatus(str, Enum):
    """Outcome of extracting a single entry."""

    EXTRACTED = "extracted"
    SKIPPED_UNSAFE = "skipped_unsafe"
    WRITE_FAILED = "write_failed"


@dataclass
class ArchiveEntry:
    """A single named member of a decoded archive.

    Attributes:
        name (str): Archive-internal path. Untrusted; may contain `..` or an absolute prefix.
        entry_type (EntryType): File, directory or symbolic link.
        size (int): Declared uncompressed byte length (0 for links and directories).
        content (callable|None): Function streaming the entry's bytes into a writable
            destination. Only meaningful for files.
        symlink_target (str|None): Link target for symbolic links.
        mode (int|None): POSIX permission bits recorded in the archive, if any.
    """
    name: str
    entry_type: EntryType = EntryType.FILE
    size: int = 0
    content: Optional[Callable[[BinaryIO], None]] = field(default=None, repr=False)
    symlink_target: Optional[str] = None
    mode: Optional[int] = None
    _consumed: bool = field(default=False, init=False, repr=False, compare=False)

    @property
    def is_file(self) -> bool:
        return self.entry_type == EntryType.FILE

    @property
    def is_directory(self) -> bool:
        return self.entry_type == EntryType.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.entry_type == EntryType.SYMLINK

    def write_content(self, destination: BinaryIO) -> None:
        """Stream the entry's bytes into `destination`.

        Args:
            destination: Any object with a `write(bytes)` method.

        Raises:
            ContentConsumedError: If the content was already written once.
            Exception: Whatever the underlying decoder raises on a corrupt or
                truncated member.
        """
        if self._consumed:
            raise ContentConsumedError(f"Content of {self.name!r} was already consumed")
        self._consumed = True
        if self.content is not None:
            self.content(destination)


class Archive:
    """Ordered collection of entries plus the decoder resources backing them.

    Entry content is usually read lazily from an open container file, so the
    archive keeps those handles alive until `release()` is called.
    """

    def __init__(self, entries: Optional[List[ArchiveEntry]] = None) -> None:
        self._entries: List[ArchiveEntry] = list(entries or [])
        self._resources: List[Any] = []
        self.released = False

    def add(self, entry: ArchiveEntry) -> None:
        self._entries.append(entry)

    def hold(self, resource: Any) -> None:
        """Keep `resource` open until the archive is released. It must have `close()`."""
        self._resources.append(resource)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> ArchiveEntry:
        return self._entries[index]

    def release(self) -> None:
        """Close decoder resources and drop all entries. Safe to call twice."""
        if self.released:
            return
        self.released = True
        resources, self._resources = self._resources, []
        self._entries.clear()
        for resource in reversed(resources):
            resource.close()


@dataclass(frozen=True)
class EntryResult:
    """What happened to one archive entry.

    Attributes:
        name (str): The entry's archive-internal name.
        status (EntryStatus): Extracted, skipped as unsafe, or failed while writing.
        path (str|None): Resolved output path; None for skipped entries.
        error (BaseException|None): The suppressed exception for failed writes.
    """
    name: str
    status: EntryStatus
    path: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == EntryStatus.EXTRACTED
