"""Top-level access to an indexed alignment file."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pysam

from ..constants import (
    COVERAGE_TRACK_SUFFIXES,
    DEFAULT_COVERAGE_BIN_SIZE,
    DEFAULT_MAX_RECORDS,
    GENERATED_COVERAGE_SUFFIX,
)
from .coverage import (
    BamCoverageGenerator,
    BigWigCoverageSource,
    CoverageCalculator,
    CoverageTrackGenerator,
    RegionCoverage,
)
from .encoders import OutputKind
from .errors import MissingIndexError, NoCoverageSourceError
from .filters import AlignmentFilters
from .index import IndexManager
from .iterators import AlignmentIterator, MalformedRecordHandler
from .options import AlignmentOptions
from .region import Region
from .stats import AlignmentGlobalStats, GlobalStatsCalculator

logger = logging.getLogger(__name__)


def _contained(record: pysam.AlignedSegment, start: int, stop: int) -> bool:
    end = record.reference_end or record.reference_start + 1
    return record.reference_start >= start and end <= stop


def _open_mode(path: Path) -> str:
    if path.suffix == ".cram":
        return "rc"
    if path.suffix == ".sam":
        return "r"
    return "rb"


class AlignmentAccessManager:
    """Region queries, iteration, coverage and statistics over one BAM/CRAM file.

    The manager owns at most one open handle at a time, opened lazily by the
    first operation that needs it. Only one iterator may be active per manager;
    callers wanting parallel scans open independent managers.

    Example:
        with AlignmentAccessManager("sample.bam") as bam:
            reads = bam.query(Region("chr1", 100, 200), options=AlignmentOptions(limit=5))
    """

    def __init__(
        self,
        alignment_path: str | Path,
        reference: str | None = None,
        max_records: int = DEFAULT_MAX_RECORDS,
        error_handlers: tuple[MalformedRecordHandler, ...] = (),
    ):
        self.alignment_path = Path(alignment_path)
        if not self.alignment_path.is_file():
            raise FileNotFoundError(f"Alignment file not found: {self.alignment_path}")
        self.reference = reference
        self.max_records = max_records
        self.error_handlers = error_handlers
        self.index = IndexManager(self.alignment_path, reference)
        self._handle: pysam.AlignmentFile | None = None
        # Set once a fetch has moved the handle past the header
        self._consumed = False

    # -- Resource scope ------------------------------------------------------

    def open(self) -> pysam.AlignmentFile:
        """Open the underlying handle if needed and return it."""
        if self._handle is None:
            self._handle = pysam.AlignmentFile(
                str(self.alignment_path),
                _open_mode(self.alignment_path),  # type: ignore[arg-type]
                reference_filename=self.reference,
                check_sq=False,
                ignore_truncation=True,
            )
            self._consumed = False
            logger.debug("Opened %s", self.alignment_path)
        return self._handle

    def close(self) -> None:
        """Release the file handle. Safe to call repeatedly."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        handle.close()
        logger.debug("Closed %s", self.alignment_path)

    @property
    def closed(self) -> bool:
        return self._handle is None

    def __enter__(self) -> AlignmentAccessManager:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Index ---------------------------------------------------------------

    def create_index(self, output_path: str | Path | None = None) -> Path:
        return self.index.create_index(output_path)

    def check_index_exists(self) -> bool:
        return self.index.check_index_exists()

    def _rewound(self) -> pysam.AlignmentFile:
        """Return a handle positioned at the first record after the header."""
        if self._consumed:
            self.close()
        return self.open()

    def _require_index(self) -> None:
        if not self.index.check_index_exists():
            raise MissingIndexError(str(self.alignment_path), str(self.index.index_path))

    # -- Iteration -----------------------------------------------------------

    def iterator(
        self,
        region: Region | None = None,
        filters: AlignmentFilters | None = None,
        options: AlignmentOptions | None = None,
        output_kind: OutputKind | str = OutputKind.NATIVE,
    ) -> AlignmentIterator:
        """Return a lazy iterator over the file or over ``region``.

        The caller owns the iterator and must close it. Region iteration needs
        the index; without a region the whole file is read from its first
        record, reopening the handle if an earlier fetch moved it.

        Raises:
            UnsupportedOutputKindError: If ``output_kind`` is unknown.
            MissingIndexError: If ``region`` is given and no index exists.
        """
        options = options or AlignmentOptions()
        # Resolve before any I/O so a bad kind never touches the file
        kind = OutputKind.parse(output_kind)

        if region is None:
            source: Any = self._rewound().fetch(until_eof=True)
            self._consumed = True
        else:
            self._require_index()
            handle = self.open()
            if not handle.has_index():
                # Opened before the index was written; reopen to load it
                self.close()
                handle = self.open()
            start, stop = region.to_zero_based()
            source = handle.fetch(region.chromosome, start, stop)
            self._consumed = True
            if options.contained:
                source = (r for r in source if _contained(r, start, stop))

        return AlignmentIterator(
            source,
            filters=filters,
            options=options,
            output_kind=kind,
            error_handlers=self.error_handlers,
        )

    def query(
        self,
        region: Region | None = None,
        filters: AlignmentFilters | None = None,
        options: AlignmentOptions | None = None,
        output_kind: OutputKind | str = OutputKind.NATIVE,
    ) -> list[Any]:
        """Return at most ``min(options.limit, max_records)`` records.

        A convenience for small fragments of a file; use ``iterator`` to stream
        larger result sets.
        """
        options = options or AlignmentOptions()
        max_results = options.bounded_limit(self.max_records)
        results: list[Any] = []
        it = self.iterator(region, filters, options, output_kind)
        with _released(it):
            while len(results) < max_results and it.has_next():
                results.append(next(it))
            if len(results) == max_results and (it.truncated or it.has_next()):
                logger.debug("Query on %s stopped at %d records", region or "file", len(results))
        return results

    # -- Coverage ------------------------------------------------------------

    def coverage(
        self,
        region: Region,
        filters: AlignmentFilters | None = None,
        options: AlignmentOptions | None = None,
    ) -> RegionCoverage:
        """Per-base coverage (window size 1) computed from the records in ``region``."""
        options = options or AlignmentOptions()
        calculator = CoverageCalculator(region, options.min_base_quality)
        it = self.iterator(region, filters, options)
        with _released(it):
            for record in it:
                if not record.is_unmapped:
                    calculator.update(record)
        return calculator.result()

    def coverage_track_path(self) -> Path | None:
        """Return the first conventional sibling coverage track that exists."""
        for suffix in COVERAGE_TRACK_SUFFIXES:
            candidate = self.alignment_path.with_name(self.alignment_path.name + suffix)
            if candidate.is_file():
                return candidate
        return None

    def windowed_coverage(
        self,
        region: Region,
        window_size: int,
        track: str | Path | None = None,
    ) -> RegionCoverage:
        """Mean coverage per window, read from a coverage track when available.

        Resolution order: ``track``, then ``<input>.bw``, then
        ``<input>.coverage.bw``, then direct computation when ``window_size`` is 1.

        Raises:
            ValueError: If ``window_size`` is below 1.
            NoCoverageSourceError: If no track exists and ``window_size`` > 1.
        """
        if window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {window_size}")
        track_path = Path(track) if track is not None else self.coverage_track_path()
        if track_path is not None:
            logger.debug("Reading coverage for %s from %s", region, track_path)
            with BigWigCoverageSource(track_path) as source:
                return source.group_by(region, window_size)
        if window_size == 1:
            return self.coverage(region)
        raise NoCoverageSourceError(str(self.alignment_path), window_size)

    def calculate_coverage_track(
        self,
        output_path: str | Path | None = None,
        window_size: int = DEFAULT_COVERAGE_BIN_SIZE,
        generator: CoverageTrackGenerator | None = None,
    ) -> Path:
        """Generate a BigWig coverage track with an external tool."""
        self._require_index()
        output = (
            Path(output_path)
            if output_path is not None
            else self.alignment_path.with_name(self.alignment_path.name + GENERATED_COVERAGE_SUFFIX)
        )
        output.parent.mkdir(parents=True, exist_ok=True)
        generator = generator or BamCoverageGenerator()
        return generator.generate(self.alignment_path, output, window_size)

    # -- Statistics ----------------------------------------------------------

    def stats(
        self,
        region: Region | None = None,
        filters: AlignmentFilters | None = None,
        options: AlignmentOptions | None = None,
    ) -> AlignmentGlobalStats:
        """Summary statistics over the whole file or over ``region``."""
        total = AlignmentGlobalStats()
        calculator = GlobalStatsCalculator()
        it = self.iterator(region, filters, options)
        with _released(it):
            for record in it:
                calculator.update(calculator.compute(record), total)
        return total


@contextlib.contextmanager
def _released(it: AlignmentIterator) -> Iterator[AlignmentIterator]:
    """Close an iterator on exit without masking an in-flight exception."""
    try:
        yield it
    except BaseException:
        try:
            it.close()
        except Exception:
            logger.warning("Failed to close iterator during error handling", exc_info=True)
        raise
    else:
        it.close()
