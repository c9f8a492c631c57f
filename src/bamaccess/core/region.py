"""Genomic region value type."""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import MAX_REGION_SIZE


@dataclass(frozen=True)
class Region:
    """A 1-based, closed genomic interval ``[start, end]`` on one chromosome."""

    chromosome: str
    start: int
    end: int

    def __post_init__(self) -> None:
        if not self.chromosome:
            raise ValueError("Region chromosome must not be empty")
        if self.start < 1:
            raise ValueError(f"Region start must be >= 1 (1-based), got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Region end ({self.end}) must be >= start ({self.start})")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def to_zero_based(self) -> tuple[int, int]:
        """Return the equivalent 0-based half-open ``(start, stop)`` pair."""
        return self.start - 1, self.end

    def __str__(self) -> str:
        return f"{self.chromosome}:{self.start}-{self.end}"


def parse_region(region: str) -> Region:
    """
    Parse a genomic region string into a Region.

    Supports formats:
        - chr1:1000-2000
        - chr1:1,000-2,000
        - 1:1000-2000

    Returns:
        Region with 1-based inclusive coordinates.

    Raises:
        ValueError: If region format is invalid or exceeds MAX_REGION_SIZE.
    """
    cleaned = region.replace(",", "").strip()
    try:
        contig, coords = cleaned.rsplit(":", 1)
        start_str, end_str = coords.split("-")
        start = int(start_str)
        end = int(end_str)
    except (ValueError, AttributeError) as e:
        raise ValueError(
            f"Invalid region format: '{region}'. Expected format: 'chr1:1000-2000'"
        ) from e

    parsed = Region(contig, start, end)
    if parsed.length > MAX_REGION_SIZE:
        raise ValueError(
            f"Region size {parsed.length:,}bp exceeds maximum allowed {MAX_REGION_SIZE:,}bp. "
            f"Please request a smaller region."
        )
    return parsed
