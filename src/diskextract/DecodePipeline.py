"""Decode an archive file from disk and extract it.

The supported formats live in one table, `ARCHIVE_FORMATS`. Each row names
the file-name suffixes it claims, an optional decompression stage and the
container decoder. Compressed tarballs are first decompressed into a
private temporary `temp.tar`, because the tar decoder needs a seekable
file. The container is then decoded and extracted with the same
validation as `diskextract.ExtractEngine`, and stored POSIX permission bits
are restored on regular files.

Every resource the pipeline acquires (temp directory, input stream,
decoded archive) is registered on a single exit stack, so it is released
on every exit path, including decoder errors.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from .Compression import BZip2Transform, GZipTransform, XZTransform
from .Config import Settings, load_settings
from .Entries import Archive, EntryResult
from .Errors import UnsupportedFormatError
from .ExtractEngine import ResultCallback, extract_archive_to_disk, extract_archive_to_disk_sync
from .FileIO import InputFileStream, OutputFileStream
from .Protocols import ArchiveCallback, ContainerDecoder, DecompressionTransform
from .TarArchive import TarDecoder
from .ZipArchive import ZipDecoder

logger = logging.getLogger(__name__)

TEMP_ARCHIVE_NAME = "temp.tar"


@dataclass(frozen=True)
class ArchiveFormat:
    """One supported input format.

    Attributes:
        name (str): Short format tag, e.g. "tar.gz".
        suffixes (Tuple[str, ...]): Lower-case file-name suffixes, dot included.
        decoder (callable): Factory for the container decoder.
        transform (callable | None): Factory for the decompression stage, if any.
    """
    name: str
    suffixes: Tuple[str, ...]
    decoder: Callable[[], ContainerDecoder]
    transform: Optional[Callable[[], DecompressionTransform]] = None

    @property
    def needs_decompression(self) -> bool:
        return self.transform is not None


ARCHIVE_FORMATS: Tuple[ArchiveFormat, ...] = (
    ArchiveFormat("tar.gz", (".tar.gz", ".tgz"), TarDecoder, GZipTransform),
    ArchiveFormat("tar.bz2", (".tar.bz2", ".tbz"), TarDecoder, BZip2Transform),
    ArchiveFormat("tar.xz", (".tar.xz", ".txz"), TarDecoder, XZTransform),
    ArchiveFormat("tar", (".tar",), TarDecoder),
    ArchiveFormat("zip", (".zip",), ZipDecoder),
)


def supported_suffixes() -> Tuple[str, ...]:
    return tuple(suffix for fmt in ARCHIVE_FORMATS for suffix in fmt.suffixes)


def detect_format(input_path: str | os.PathLike) -> ArchiveFormat:
    """Pick the archive format for `input_path` by its file-name suffix.

    Matching is case-insensitive and the longest matching suffix wins.

    Raises:
        UnsupportedFormatError: If no format claims the suffix.
    """
    name = os.path.basename(os.fspath(input_path)).lower()
    candidates = sorted(
        ((suffix, fmt) for fmt in ARCHIVE_FORMATS for suffix in fmt.suffixes),
        key=lambda item: len(item[0]),
        reverse=True,
    )
    for suffix, fmt in candidates:
        if name.endswith(suffix):
            return fmt
    raise UnsupportedFormatError(os.fspath(input_path), supported_suffixes())


def decompress_to_file(
    transform: DecompressionTransform,
    input_path: str | os.PathLike,
    output_path: str | os.PathLike,
    buffer_size: Optional[int] = None,
) -> None:
    """Run `transform` over the whole input file, writing `output_path`. Both streams are closed on return."""
    with InputFileStream(input_path) as source, OutputFileStream(output_path, buffer_size=buffer_size) as target:
        transform.decode_stream(source, target)


def _stage_container(
    fmt: ArchiveFormat,
    input_path: str,
    temp_dir: Optional[str],
    buffer_size: Optional[int],
) -> str:
    if temp_dir is None:
        return input_path
    archive_path = os.path.join(temp_dir, TEMP_ARCHIVE_NAME)
    logger.debug("Decompressing %s (%s) into %s", input_path, fmt.name, archive_path)
    decompress_to_file(fmt.transform(), input_path, archive_path, buffer_size)
    return archive_path


def _decode(
    fmt: ArchiveFormat,
    input_stream: InputFileStream,
    password: Optional[str],
    callback: Optional[ArchiveCallback],
) -> Archive:
    logger.debug("Decoding %s container %s", fmt.name, input_stream.path)
    return fmt.decoder().decode_stream(input_stream, password=password, callback=callback)


@contextlib.contextmanager
def open_archive(
    input_path: str | os.PathLike,
    password: Optional[str] = None,
    buffer_size: Optional[int] = None,
    callback: Optional[ArchiveCallback] = None,
    settings: Optional[Settings] = None,
) -> Iterator[Archive]:
    """Decode the archive file at `input_path` for the duration of a `with` block.

    Runs the decompression stage when the format needs one. On exit the
    archive is released, the container stream closed and the temp
    directory removed, whether or not the block raised.

    Raises:
        UnsupportedFormatError: Before any I/O, if the suffix is not supported.
    """
    fmt = detect_format(input_path)
    settings = settings or load_settings()
    input_path = os.fspath(input_path)

    with contextlib.ExitStack() as stack:
        temp_dir = None
        if fmt.needs_decompression:
            temp_dir = tempfile.mkdtemp(prefix=settings.temp_prefix)
            stack.callback(shutil.rmtree, temp_dir)
        archive_path = _stage_container(fmt, input_path, temp_dir, buffer_size)
        input_stream = stack.enter_context(InputFileStream(archive_path))
        archive = _decode(fmt, input_stream, password, callback)
        stack.callback(archive.release)
        yield archive


def extract_file_to_disk_sync(
    input_path: str | os.PathLike,
    output_path: str | os.PathLike,
    password: Optional[str] = None,
    buffer_size: Optional[int] = None,
    callback: Optional[ArchiveCallback] = None,
    on_result: Optional[ResultCallback] = None,
    settings: Optional[Settings] = None,
) -> List[EntryResult]:
    """Decode the archive file at `input_path` and extract it under `output_path`.

    Blocking counterpart of `extract_file_to_disk`; see there for arguments.
    """
    logger.info("Extracting %s archive %s to %s", detect_format(input_path).name, input_path, output_path)
    with open_archive(input_path, password, buffer_size, callback, settings) as archive:
        return extract_archive_to_disk_sync(
            archive, output_path, buffer_size=buffer_size, on_result=on_result, restore_modes=True
        )


async def extract_file_to_disk(
    input_path: str | os.PathLike,
    output_path: str | os.PathLike,
    password: Optional[str] = None,
    buffer_size: Optional[int] = None,
    callback: Optional[ArchiveCallback] = None,
    on_result: Optional[ResultCallback] = None,
    settings: Optional[Settings] = None,
) -> List[EntryResult]:
    """Decode the archive file at `input_path` and extract it under `output_path`.

    The format is chosen from the file name before any I/O happens. Blocking
    stages (decompression, container decode, file writes) run on worker
    threads; file entries are written concurrently.

    Args:
        input_path (PathLike): Archive file ending in one of `supported_suffixes()`.
        output_path (PathLike): Extraction root; created if missing.
        password (str | None): Password for encrypted zip members.
        buffer_size (int | None): Buffer size for the intermediate file and for extracted files.
        callback (callable | None): Called with each entry while the container is decoded.
        on_result (callable | None): Called with each entry's extraction result.
        settings (Settings | None): Configuration; read from the environment when omitted.

    Returns:
        List[EntryResult]: One result per entry, in archive order.

    Raises:
        UnsupportedFormatError: If the suffix is not supported. Nothing is
            created on disk in that case.
        tarfile.ReadError / zipfile.BadZipFile / OSError: If the container
            itself cannot be read. Temporary files are still removed.
    """
    fmt = detect_format(input_path)
    settings = settings or load_settings()
    input_path = os.fspath(input_path)
    logger.info("Extracting %s archive %s to %s", fmt.name, input_path, output_path)

    async with contextlib.AsyncExitStack() as stack:
        temp_dir = None
        if fmt.needs_decompression:
            temp_dir = await asyncio.to_thread(tempfile.mkdtemp, prefix=settings.temp_prefix)
            stack.push_async_callback(asyncio.to_thread, shutil.rmtree, temp_dir)
        archive_path = await asyncio.to_thread(_stage_container, fmt, input_path, temp_dir, buffer_size)
        input_stream = await asyncio.to_thread(InputFileStream, archive_path)
        stack.push_async_callback(asyncio.to_thread, input_stream.close)
        archive = await asyncio.to_thread(_decode, fmt, input_stream, password, callback)
        stack.push_async_callback(asyncio.to_thread, archive.release)
        return await extract_archive_to_disk(
            archive,
            output_path,
            buffer_size=buffer_size or settings.buffer_size,
            on_result=on_result,
            max_workers=settings.max_workers,
            restore_modes=True,
        )
