"""ZIP container decoder.

Provides a minimal adapter around the standard library `zipfile.ZipFile`
class that turns the central directory into `ArchiveEntry` objects.
Encrypted members are supported through an optional password; symbolic
links are recognised from the Unix mode stored in the external attributes.
"""

import logging
import os
import shutil
import stat
import zipfile
import zlib
from typing import BinaryIO, Optional

from .Config import COPY_CHUNK_SIZE
from .Entries import Archive, ArchiveEntry, EntryType
from .Protocols import ArchiveCallback

logger = logging.getLogger(__name__)


def _member_writer(archive: zipfile.ZipFile, info: zipfile.ZipInfo):
    # ZipFile serializes access to its shared file handle, so no extra lock is needed
    def write(destination: BinaryIO) -> None:
        with archive.open(info) as source:
            shutil.copyfileobj(source, destination, COPY_CHUNK_SIZE)
    return write


def _read_link_target(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> Optional[str]:
    # Targets are raw member bytes, decoded the way the OS decodes file names
    try:
        return os.fsdecode(archive.read(info))
    except (RuntimeError, NotImplementedError, ValueError, EOFError, OSError, zipfile.BadZipFile, zlib.error) as e:
        logger.warning("Could not read link target of %r: %s", info.filename, e)
        return None


class ZipDecoder:
    """Decoder for ZIP containers, password-capable."""

    def decode_stream(
        self,
        input_stream: BinaryIO,
        password: Optional[str] = None,
        callback: Optional[ArchiveCallback] = None,
    ) -> Archive:
        """Read the central directory of the zip in `input_stream`.

        Args:
            input_stream (BinaryIO): Seekable stream over the zip file.
            password (str | None): Password used for encrypted members.
            callback (callable | None): Called with each entry as it is decoded.

        Returns:
            Archive: Entries in central-directory order. The archive holds the
            open `ZipFile`; `input_stream` itself remains owned by the caller.

        Raises:
            zipfile.BadZipFile: If the stream is not a valid zip archive.
        """
        try:
            zf = zipfile.ZipFile(input_stream)
        except zipfile.BadZipFile:
            logger.error("Failed: Bad Zipfile")
            raise
        archive = Archive()
        archive.hold(zf)
        if password:
            zf.setpassword(password.encode("utf-8"))
        try:
            for info in zf.infolist():
                unix_mode = info.external_attr >> 16
                permissions = stat.S_IMODE(unix_mode) or None
                if stat.S_ISLNK(unix_mode):
                    # Link targets are stored as the member's data; None marks an unreadable one
                    target = _read_link_target(zf, info)
                    entry = ArchiveEntry(
                        name=info.filename,
                        entry_type=EntryType.SYMLINK,
                        symlink_target=target,
                        mode=permissions,
                    )
                elif info.is_dir():
                    entry = ArchiveEntry(name=info.filename, entry_type=EntryType.DIRECTORY, mode=permissions)
                else:
                    entry = ArchiveEntry(
                        name=info.filename,
                        entry_type=EntryType.FILE,
                        size=info.file_size,
                        content=_member_writer(zf, info),
                        mode=permissions,
                    )
                archive.add(entry)
                if callback:
                    callback(entry)
        except BaseException:
            archive.release()
            raise
        return archive
