"""Single-stream decompression transforms.

Each transform wraps one of the standard library's decompressing file
objects and drains a whole compressed stream into an output stream. The
decode pipeline uses them to produce an intermediate `.tar` before the
container decoder runs, because `tarfile` needs a seekable file to hand
out members lazily.
"""

import abc
import bz2
import gzip
import lzma
import shutil
from typing import BinaryIO

from .Config import COPY_CHUNK_SIZE


class _StreamTransform(abc.ABC):
    """Base for transforms built on a stdlib decompressing file object."""

    name = "none"

    @abc.abstractmethod
    def open(self, input_stream: BinaryIO) -> BinaryIO:
        """Wrap `input_stream` in a decompressing file object."""

    def decode_stream(self, input_stream: BinaryIO, output_stream: BinaryIO) -> None:
        """Decompress all of `input_stream` into `output_stream`.

        Raises:
            OSError / EOFError / lzma.LZMAError: If the compressed data is corrupt or truncated.
        """
        with self.open(input_stream) as source:
            shutil.copyfileobj(source, output_stream, COPY_CHUNK_SIZE)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class GZipTransform(_StreamTransform):
    name = "gzip"

    def open(self, input_stream: BinaryIO) -> BinaryIO:
        return gzip.GzipFile(fileobj=input_stream, mode="rb")


class BZip2Transform(_StreamTransform):
    name = "bzip2"

    def open(self, input_stream: BinaryIO) -> BinaryIO:
        return bz2.BZ2File(input_stream, mode="rb")


class XZTransform(_StreamTransform):
    name = "xz"

    def open(self, input_stream: BinaryIO) -> BinaryIO:
        return lzma.LZMAFile(input_stream, mode="rb")
