"""Exception taxonomy for the alignment access engine.

Structural and precondition errors are raised at the call that detects them.
``MalformedRecordError`` is the one per-record error: scans catch it, skip the
record and report it to handlers instead of aborting.
"""

from __future__ import annotations


class AlignmentAccessError(Exception):
    """Base class for all engine errors."""


class MissingIndexError(AlignmentAccessError, FileNotFoundError):
    """A region query was attempted on a file without its index artifact."""

    def __init__(self, alignment_path: str, index_path: str):
        self.alignment_path = alignment_path
        self.index_path = index_path
        super().__init__(f"Missing index ({index_path}) for {alignment_path}")


class UnsortedInputError(AlignmentAccessError):
    """Index creation was attempted on input not sorted by coordinate."""

    def __init__(self, alignment_path: str, sort_order: str | None):
        self.alignment_path = alignment_path
        self.sort_order = sort_order
        super().__init__(
            f"Sorted file expected. File '{alignment_path}' is not sorted by coordinates "
            f"({sort_order or 'unknown'})"
        )


class UnsupportedFormatForIndexingError(AlignmentAccessError):
    """The physical file format has no random-access index form."""

    def __init__(self, alignment_path: str, file_format: str):
        self.alignment_path = alignment_path
        self.file_format = file_format
        super().__init__(
            f"Cannot index '{alignment_path}': {file_format} files have no index form, "
            "only BAM and CRAM can be indexed"
        )


class UnsupportedOutputKindError(AlignmentAccessError, ValueError):
    """An iterator was requested for an unknown output representation."""

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(f"Unknown alignment output kind: {kind!r}")


class MalformedRecordError(AlignmentAccessError):
    """A single record could not be decoded or encoded.

    Recoverable: the record is skipped and registered handlers are notified.
    """

    def __init__(self, message: str, line_number: int | None = None, record: str | None = None):
        self.line_number = line_number
        self.record = record
        if line_number is not None:
            message = f"Malformed record at approximately line number {line_number}: {message}"
        super().__init__(message)


class ResourceAlreadyClosedError(AlignmentAccessError):
    """Use of an iterator or manager after close().

    ``close()`` itself never raises this; closing twice is a no-op.
    """


class NoCoverageSourceError(AlignmentAccessError):
    """No coverage track exists and the window size needs one."""

    def __init__(self, alignment_path: str, window_size: int):
        self.alignment_path = alignment_path
        self.window_size = window_size
        super().__init__(
            f"No coverage track found for {alignment_path} and window size {window_size} "
            "cannot be computed directly; generate a coverage track first"
        )
