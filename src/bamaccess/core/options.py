"""Per-call options bundle for queries, iterators and coverage."""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import DEFAULT_MIN_BASE_QUALITY


@dataclass(frozen=True)
class AlignmentOptions:
    """Options applied to a single query, iterator or coverage call.

    Attributes:
        limit: Maximum records to emit. ``<= 0`` means unbounded (queries are
            still capped by the configured ceiling).
        min_base_quality: Bases below this quality do not count towards coverage.
        contained: Region queries return only records fully inside the region
            instead of any overlap.
        bin_qualities: Quantize per-base qualities in structured output kinds.
    """

    limit: int = 0
    min_base_quality: int = DEFAULT_MIN_BASE_QUALITY
    contained: bool = False
    bin_qualities: bool = False

    def __post_init__(self) -> None:
        if self.min_base_quality < 0:
            raise ValueError(f"min_base_quality must be non-negative, got {self.min_base_quality}")

    def bounded_limit(self, ceiling: int) -> int:
        """Number of records a draining query may return under ``ceiling``."""
        if self.limit > 0:
            return min(self.limit, ceiling)
        return ceiling
