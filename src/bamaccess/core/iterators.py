"""Lazy, filtered, limited alignment iterator."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any

import pysam

from .encoders import Encoder, OutputKind, resolve_encoder
from .errors import MalformedRecordError
from .filters import AlignmentFilters
from .options import AlignmentOptions

logger = logging.getLogger(__name__)

# Called with (record name, error) for each skipped record
MalformedRecordHandler = Callable[[str, MalformedRecordError], None]

_SENTINEL = object()


class AlignmentIterator:
    """Forward-only sequence of encoded records pulled from a raw record source.

    Each step pulls raw records until one passes ``filters``, encodes it with the
    encoder chosen at construction and counts it against ``options.limit`` (when
    > 0). The iterator is single-use and not restartable. ``close()`` releases
    the source and may be called any number of times.
    """

    def __init__(
        self,
        source: Iterator[pysam.AlignedSegment],
        filters: AlignmentFilters | None = None,
        options: AlignmentOptions | None = None,
        output_kind: OutputKind | str = OutputKind.NATIVE,
        error_handlers: tuple[MalformedRecordHandler, ...] = (),
        on_close: Callable[[], None] | None = None,
    ):
        options = options or AlignmentOptions()
        # Resolved eagerly so an unknown kind fails here, not on first next()
        self.output_kind = OutputKind.parse(output_kind)
        self._encode: Encoder = resolve_encoder(self.output_kind, options.bin_qualities)
        self._source: Iterator[pysam.AlignedSegment] | None = source
        self._filters = filters or AlignmentFilters()
        self._limit = options.limit if options.limit > 0 else -1
        self._error_handlers = error_handlers
        self._on_close = on_close
        self._pending: Any = _SENTINEL
        self._lookahead: pysam.AlignedSegment | None = None
        self.emitted = 0
        self.skipped = 0

    def __iter__(self) -> AlignmentIterator:
        return self

    def __enter__(self) -> AlignmentIterator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._source is None

    @property
    def limit_reached(self) -> bool:
        return self._limit >= 0 and self.emitted >= self._limit

    def _pull_accepted(self) -> pysam.AlignedSegment | None:
        """Return the next raw record that passes the filters, or None at end."""
        if self._lookahead is not None:
            record, self._lookahead = self._lookahead, None
            return record
        if self._source is None:
            return None
        for record in self._source:
            if self._filters.accept(record):
                return record
        return None

    def _advance(self) -> Any:
        while True:
            record = self._pull_accepted()
            if record is None:
                return _SENTINEL
            try:
                return self._encode(record)
            except MalformedRecordError as e:
                self._report(record.query_name or "", e)

    def _report(self, name: str, error: MalformedRecordError) -> None:
        self.skipped += 1
        logger.warning("Skipping malformed record '%s': %s", name, error)
        for handler in self._error_handlers:
            handler(name, error)

    def has_next(self) -> bool:
        """True if another element will be returned by ``next()``."""
        if self.closed or self.limit_reached:
            return False
        if self._pending is _SENTINEL:
            self._pending = self._advance()
        return self._pending is not _SENTINEL

    def __next__(self) -> Any:
        if not self.has_next():
            raise StopIteration
        item, self._pending = self._pending, _SENTINEL
        self.emitted += 1
        return item

    @property
    def truncated(self) -> bool:
        """True if the limit stopped iteration while accepted records remained.

        Peeks at most one raw record past the limit; the record is kept so the
        answer is stable across calls.
        """
        if not self.limit_reached or self.closed:
            return False
        if self._lookahead is None:
            self._lookahead = self._pull_accepted()
        return self._lookahead is not None

    def close(self) -> None:
        """Release the record source. Safe to call repeatedly."""
        if self._source is None:
            return
        source, self._source = self._source, None
        self._pending = _SENTINEL
        self._lookahead = None
        close = getattr(source, "close", None)
        if callable(close):
            close()
        if self._on_close is not None:
            self._on_close()
        logger.debug("Closed alignment iterator after %d records", self.emitted)
