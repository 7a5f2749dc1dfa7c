"""TAR container decoder.

Wraps the standard library `tarfile` module. Member headers are read up
front into `ArchiveEntry` objects; member data stays in the container file
and is streamed out on demand when the extraction engine asks for an
entry's content.
"""

import logging
import tarfile
import threading
from typing import BinaryIO, Optional

from .Config import COPY_CHUNK_SIZE
from .Entries import Archive, ArchiveEntry, EntryType
from .Protocols import ArchiveCallback

logger = logging.getLogger(__name__)


def _member_writer(tar: tarfile.TarFile, member: tarfile.TarInfo, lock: threading.Lock):
    """Build the content function for a regular (or hard-linked) member.

    Every member reader seeks the shared container file before each read, so
    reads from concurrent worker threads are serialized on the archive's lock.
    """
    def write(destination: BinaryIO) -> None:
        with lock:
            source = tar.extractfile(member)
        if source is None:
            return
        try:
            while True:
                with lock:
                    chunk = source.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                destination.write(chunk)
        finally:
            source.close()
    return write


class TarDecoder:
    """Decoder for uncompressed tar containers."""

    def decode_stream(
        self,
        input_stream: BinaryIO,
        password: Optional[str] = None,
        callback: Optional[ArchiveCallback] = None,
    ) -> Archive:
        """Read every member header of the tar in `input_stream`.

        Args:
            input_stream (BinaryIO): Seekable stream positioned at the start of the tar.
            password (str | None): Ignored; tar has no encryption.
            callback (callable | None): Called with each entry as it is decoded.

        Returns:
            Archive: Entries in container order. The archive holds the open
            `TarFile`; `input_stream` itself remains owned by the caller.

        Raises:
            tarfile.ReadError: If the stream is not a valid tar archive.
        """
        tar = tarfile.open(fileobj=input_stream, mode="r:")
        archive = Archive()
        archive.hold(tar)
        lock = threading.Lock()
        try:
            for member in tar:
                if member.issym():
                    entry = ArchiveEntry(
                        name=member.name,
                        entry_type=EntryType.SYMLINK,
                        symlink_target=member.linkname,
                        mode=member.mode,
                    )
                elif member.isdir():
                    entry = ArchiveEntry(name=member.name, entry_type=EntryType.DIRECTORY, mode=member.mode)
                elif member.isfile() or member.islnk():
                    # Hard links are written out as a copy of the linked member's data
                    entry = ArchiveEntry(
                        name=member.name,
                        entry_type=EntryType.FILE,
                        size=member.size,
                        content=_member_writer(tar, member, lock),
                        mode=member.mode,
                    )
                else:
                    logger.debug("Ignoring special tar member %r (type %r)", member.name, member.type)
                    continue
                archive.add(entry)
                if callback:
                    callback(entry)
        except BaseException:
            archive.release()
            raise
        return archive
