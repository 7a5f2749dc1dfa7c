"""Buffered local file streams and remote archive download.

Provides the stream primitives the extraction engine writes and reads
through, plus an httpx-backed helper that fetches a remote archive into a
local file so it can be fed to the decode pipeline.

Classes:
    InputFileStream: Read-only, seekable stream over an existing file.
    OutputFileStream: Write-only stream with an explicit, size-bounded buffer.

Functions:
    archive_name_from_url: File name (with suffix) a URL should be saved under.
    download_to_file: Stream a URL into a local directory.
"""

from __future__ import annotations

import io
import logging
import os
import posixpath
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, urlparse

import httpx

from .Config import COPY_CHUNK_SIZE, DEFAULT_BUFFER_SIZE
from .Errors import DownloadError

logger = logging.getLogger(__name__)

DOWNLOAD_ATTEMPTS = 5


class InputFileStream:
    """Read-only stream over an existing file.

    Exposes the subset of the file API that `tarfile`, `zipfile` and the
    stdlib decompressors use: read, seek, tell and the capability checks.

    Attributes:
        path (str): Path of the underlying file.
        name (str): Same as `path`; decoders use it in error messages.
        length (int): File size in bytes at open time.
    """

    def __init__(self, path: str | os.PathLike, buffer_size: Optional[int] = None) -> None:
        self.path = os.fspath(path)
        self.name = self.path
        self._file = open(self.path, "rb", buffering=buffer_size or DEFAULT_BUFFER_SIZE)
        self.length = os.fstat(self._file.fileno()).st_size

    @property
    def closed(self) -> bool:
        return self._file.closed

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        return self._file.read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def close(self) -> None:
        """Close the underlying file. Further calls are no-ops."""
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "InputFileStream":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class OutputFileStream:
    """Write-only stream that creates or truncates a file.

    Bytes are collected in an in-memory buffer of at most `buffer_size`
    bytes and handed to an unbuffered file handle when the buffer fills,
    on `flush()` and on `close()`. Keeping our own buffer lets callers size
    it exactly (down to a single byte for tiny files) instead of relying on
    the interpreter's buffering rules.

    Attributes:
        path (str): Destination path.
        buffer_size (int): Maximum number of bytes held before writing through.
        length (int): Total number of bytes accepted by `write()` so far.
    """

    def __init__(self, path: str | os.PathLike, buffer_size: Optional[int] = None) -> None:
        self.path = os.fspath(path)
        self.buffer_size = max(1, buffer_size or DEFAULT_BUFFER_SIZE)
        self.length = 0
        self._buffer = bytearray()
        self._file = open(self.path, "wb", buffering=0)

    @property
    def closed(self) -> bool:
        return self._file.closed

    def writable(self) -> bool:
        return True

    def write(self, data: bytes) -> int:
        """Accept `data`, writing through once the buffer would overflow.

        Returns:
            int: Number of bytes accepted (always `len(data)`).
        """
        if self._file.closed:
            raise ValueError("write to closed OutputFileStream")
        size = len(data)
        if len(self._buffer) + size > self.buffer_size:
            self.flush()
        if size >= self.buffer_size:
            # Large chunks skip the buffer entirely
            self._write_all(data)
        else:
            self._buffer += data
        self.length += size
        return size

    def flush(self) -> None:
        if self._buffer:
            pending, self._buffer = bytes(self._buffer), bytearray()
            self._write_all(pending)

    def _write_all(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            written = self._file.write(view)
            view = view[written:]

    def close(self) -> None:
        """Flush pending bytes and close the file. Further calls are no-ops.

        The file handle is closed even when the final flush fails; the flush
        error is then re-raised.
        """
        if self._file.closed:
            return
        try:
            self.flush()
        finally:
            self._file.close()

    def __enter__(self) -> "OutputFileStream":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def archive_name_from_url(url: str) -> str:
    """Return the file name a remote archive should be saved under.

    The decode pipeline picks a format by suffix, so the name is taken from
    the last path segment of the URL (query and fragment ignored).

    Raises:
        DownloadError: If the URL path has no usable file name.
    """
    name = posixpath.basename(unquote(urlparse(url).path))
    if not name or name in (".", ".."):
        raise DownloadError(f"Cannot determine an archive file name from {url!r}")
    return name


def download_to_file(
    url: str,
    destination_dir: str | os.PathLike,
    client: Optional[httpx.Client] = None,
    progress_callback: Optional[Callable[[int], None]] = None,
    chunk_size: int = COPY_CHUNK_SIZE,
    attempts: int = DOWNLOAD_ATTEMPTS,
) -> Path:
    """Stream `url` into `destination_dir`, keeping the URL's file name.

    Args:
        url (str): http(s) URL of the archive.
        destination_dir (PathLike): Existing directory to write into.
        client (httpx.Client | None): Client to use. One is created (and closed) if omitted.
        progress_callback (callable | None): Called with the size of every chunk written.
        chunk_size (int): Read size for the response body.
        attempts (int): Number of tries before giving up on transient errors.

    Returns:
        Path: Path of the downloaded file.

    Raises:
        DownloadError: On a non-success status or when all attempts fail.

    Notes:
        429 responses are retried after the server's Retry-After delay; other
        transport errors use a simple linear backoff.
    """
    target = Path(destination_dir) / archive_name_from_url(url)
    owns_client = client is None
    if client is None:
        client = httpx.Client(
            headers={"User-Agent": "diskextract", "Accept": "*/*"},
            follow_redirects=True,
            timeout=httpx.Timeout(10.0, read=300.0),
        )
    try:
        for attempt in range(attempts):
            try:
                with client.stream("GET", url) as response:
                    if response.status_code == 429:
                        wait_time = max(int(response.headers.get("Retry-After", 3)), 1)
                        logger.warning("Received 429 Too Many Requests, retrying after %d seconds.", wait_time)
                        time.sleep(wait_time)
                        continue
                    if response.status_code >= 400:
                        raise DownloadError(f"Server returned {response.status_code} for {url}")
                    with OutputFileStream(target) as output:
                        for chunk in response.iter_bytes(chunk_size):
                            output.write(chunk)
                            if progress_callback:
                                progress_callback(len(chunk))
                logger.debug("Downloaded %s to %s", url, target)
                return target
            except httpx.TransportError as e:
                if attempt == attempts - 1:
                    raise DownloadError(f"Download of {url} failed: {e}") from e
                wait_time = (attempt + 1) * 2
                logger.warning("HTTP error on attempt %d: %s. Retrying after %d seconds.", attempt + 1, e, wait_time)
                time.sleep(wait_time)
        raise DownloadError(f"Download of {url} failed after {attempts} attempts")
    finally:
        if owns_client:
            client.close()
