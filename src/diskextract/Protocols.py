"""Collaborator protocol definitions.

This module declares the interfaces the extraction engine relies on but
does not implement itself: archives, decompression transforms and
container decoders. Codec adapters (`TarArchive`, `ZipArchive`,
`Compression`) satisfy these protocols structurally; the engine never
imports a concrete codec except through the format table in
`DecodePipeline`.
"""

from typing import BinaryIO, Callable, Iterator, Optional, Protocol

from .Entries import Archive, ArchiveEntry

# Invoked once per entry while a container is being decoded
ArchiveCallback = Callable[[ArchiveEntry], None]


class ArchiveProtocol(Protocol):
    """Protocol describing a decoded archive.

    Implementations must iterate entries in a fixed order and free any
    retained decode buffers or file handles in `release()`.
    """

    def __iter__(self) -> Iterator[ArchiveEntry]:
        ...

    def release(self) -> None:
        ...


class DecompressionTransform(Protocol):
    """Protocol for single-stream decompressors (gzip, bzip2, xz)."""

    def decode_stream(self, input_stream: BinaryIO, output_stream: BinaryIO) -> None:
        """Drain `input_stream` completely, writing decompressed bytes to `output_stream`.

        Args:
            input_stream (BinaryIO): Readable stream positioned at the compressed data.
            output_stream (BinaryIO): Writable stream receiving decompressed bytes.

        Notes:
            The engine only uses this as a whole-file pass; no incremental
            contract is required.
        """
        ...


class ContainerDecoder(Protocol):
    """Protocol for container formats (tar, zip) that bundle named entries."""

    def decode_stream(
        self,
        input_stream: BinaryIO,
        password: Optional[str] = None,
        callback: Optional[ArchiveCallback] = None,
    ) -> Archive:
        """Decode a seekable container stream into an `Archive`.

        Args:
            input_stream (BinaryIO): Seekable stream over the container file. It
                must stay open until the returned archive is released.
            password (str | None): Password for encrypted members, where the format supports it.
            callback (callable | None): Called with each entry as it is decoded.

        Returns:
            Archive: Entries in container order.
        """
        ...
