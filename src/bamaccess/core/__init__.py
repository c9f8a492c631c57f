"""Core alignment access engine."""

from .batches import RecordBatchReader
from .coverage import (
    BamCoverageGenerator,
    BigWigCoverageSource,
    CoverageCalculator,
    CoverageTrackGenerator,
    RegionCoverage,
    WindowedCoverageAggregator,
)
from .encoders import OutputKind, ReadAlignmentMessage, resolve_encoder
from .errors import (
    AlignmentAccessError,
    MalformedRecordError,
    MissingIndexError,
    NoCoverageSourceError,
    ResourceAlreadyClosedError,
    UnsortedInputError,
    UnsupportedFormatForIndexingError,
    UnsupportedOutputKindError,
)
from .filters import AlignmentFilters
from .index import IndexManager
from .iterators import AlignmentIterator
from .manager import AlignmentAccessManager
from .options import AlignmentOptions
from .region import Region, parse_region
from .stats import AlignmentGlobalStats, GlobalStatsCalculator, RunningMoments

__all__ = [
    "AlignmentAccessError",
    "AlignmentAccessManager",
    "AlignmentFilters",
    "AlignmentGlobalStats",
    "AlignmentIterator",
    "AlignmentOptions",
    "BamCoverageGenerator",
    "BigWigCoverageSource",
    "CoverageCalculator",
    "CoverageTrackGenerator",
    "GlobalStatsCalculator",
    "IndexManager",
    "MalformedRecordError",
    "MissingIndexError",
    "NoCoverageSourceError",
    "OutputKind",
    "ReadAlignmentMessage",
    "RecordBatchReader",
    "Region",
    "RegionCoverage",
    "ResourceAlreadyClosedError",
    "RunningMoments",
    "UnsortedInputError",
    "UnsupportedFormatForIndexingError",
    "UnsupportedOutputKindError",
    "WindowedCoverageAggregator",
    "parse_region",
    "resolve_encoder",
]
