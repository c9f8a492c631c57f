"""Batch reading of line-oriented records through an external decoder.

The decoder is a collaborator: it turns one text line into a structured record
and raises ``MalformedRecordError`` when it cannot. Malformed lines are skipped,
logged and reported to every registered handler so a scan completes even with
scattered corruption. Any other decoder exception propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from .errors import MalformedRecordError, ResourceAlreadyClosedError

logger = logging.getLogger(__name__)

Decoder = Callable[[str], Any]
# Called with (raw line, error) for each skipped line
MalformedLineHandler = Callable[[str, MalformedRecordError], None]


class RecordBatchReader:
    """Reads decoded records in batches from an iterable of text lines.

    Lines starting with ``#`` and blank lines are skipped. Line numbers are
    1-based over the whole input, header lines included.
    """

    def __init__(
        self,
        lines: Iterable[str],
        decode: Decoder,
        handlers: tuple[MalformedLineHandler, ...] = (),
    ):
        self._lines: Iterator[str] | None = iter(lines)
        self._decode = decode
        self._handlers = handlers
        self.line_number = 0
        self.malformed = 0

    def __enter__(self) -> RecordBatchReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[Any]:
        while batch := self.read(1000):
            yield from batch

    def read(self, batch_size: int) -> list[Any]:
        """Return up to ``batch_size`` decoded records; empty at end of input."""
        if self._lines is None:
            raise ResourceAlreadyClosedError("Record reader is closed")
        records: list[Any] = []
        while len(records) < batch_size:
            line = next(self._lines, None)
            if line is None:
                break
            self.line_number += 1
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue
            try:
                records.append(self._decode(line))
            except MalformedRecordError as e:
                if e.line_number is None:
                    e = MalformedRecordError(str(e), line_number=self.line_number, record=line)
                self._report(line, e)
        return records

    def _report(self, line: str, error: MalformedRecordError) -> None:
        self.malformed += 1
        logger.warning("%s", error)
        for handler in self._handlers:
            handler(line, error)

    def close(self) -> None:
        if self._lines is None:
            return
        lines, self._lines = self._lines, None
        close = getattr(lines, "close", None)
        if callable(close):
            close()
