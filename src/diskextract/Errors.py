"""Exception classes raised by diskextract.

Per-entry write failures are never raised; they are reported through
`diskextract.Entries.EntryResult` instead. The classes below cover the
conditions that abort a whole call.
"""


class DiskExtractError(Exception):
    """Base exception class for diskextract errors."""
    pass


class UnsupportedFormatError(DiskExtractError, ValueError):
    """Raised when an input file name matches none of the known archive suffixes."""

    def __init__(self, input_path: str, supported: tuple[str, ...] = ()) -> None:
        self.input_path = input_path
        self.supported = supported
        message = f"Unsupported archive format: {input_path!r}"
        if supported:
            message += f". Must end with one of: {', '.join(supported)}"
        super().__init__(message)


class ContentConsumedError(DiskExtractError):
    """Raised when an entry's content is requested more than once."""
    pass


class DownloadError(DiskExtractError):
    """Raised when a remote archive cannot be fetched."""
    pass
