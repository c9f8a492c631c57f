"""Per-base pileup, windowed averaging and coverage track access."""

from __future__ import annotations

import logging
import math
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import numpy as np
import pyBigWig
import pysam

from ..constants import DEFAULT_COVERAGE_TOOL
from .region import Region

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class RegionCoverage:
    """Coverage values over a region, one per window of ``window_size`` bases."""

    region: Region
    window_size: int
    values: np.ndarray

    def __post_init__(self) -> None:
        expected = WindowedCoverageAggregator.window_count(self.region.length, self.window_size)
        if len(self.values) != expected:
            raise ValueError(
                f"Expected {expected} coverage values for {self.region} "
                f"at window size {self.window_size}, got {len(self.values)}"
            )
        values = np.array(self.values, dtype=np.float64)
        values.flags.writeable = False
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return len(self.values)

    def window_start(self, index: int) -> int:
        """1-based first position covered by window ``index``."""
        return self.region.start + index * self.window_size

    def mean(self) -> float:
        return float(self.values.mean()) if len(self.values) else 0.0


class WindowedCoverageAggregator:
    """Averages per-base depth over contiguous, non-overlapping windows.

    The region is cut into ``ceil(length / window_size)`` blocks starting at the
    first base; the final block may be shorter and is averaged over its own length.
    """

    def __init__(self, window_size: int):
        if window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {window_size}")
        self.window_size = window_size

    @staticmethod
    def window_count(length: int, window_size: int) -> int:
        return math.ceil(length / window_size)

    def aggregate(self, depth: np.ndarray) -> np.ndarray:
        depth = np.asarray(depth, dtype=np.float64)
        if self.window_size == 1 or depth.size == 0:
            return depth.copy()
        starts = np.arange(0, depth.size, self.window_size)
        sums = np.add.reduceat(depth, starts)
        sizes = np.diff(np.append(starts, depth.size))
        return sums / sizes


class CoverageCalculator:
    """Accumulates per-base depth over a region from aligned records.

    Only aligned bases (CIGAR M, = and X) count, and only when their base quality
    is at least ``min_base_quality``. Records without stored qualities count only
    when the threshold is 0. Bases outside the region are ignored.
    """

    def __init__(self, region: Region, min_base_quality: int = 0):
        self.region = region
        self.min_base_quality = min_base_quality
        self.depth = np.zeros(region.length, dtype=np.int32)

    def update(self, record: pysam.AlignedSegment) -> None:
        if record.is_unmapped or record.reference_name != self.region.chromosome:
            return
        pairs = record.get_aligned_pairs(matches_only=True)
        if not pairs:
            return
        pairs_arr = np.asarray(pairs, dtype=np.int64)
        query_pos = pairs_arr[:, 0]
        offsets = pairs_arr[:, 1] + 1 - self.region.start
        keep = (offsets >= 0) & (offsets < self.depth.size)

        qualities = record.query_qualities
        if qualities is None:
            if self.min_base_quality > 0:
                return
        elif self.min_base_quality > 0:
            keep &= np.asarray(qualities)[query_pos] >= self.min_base_quality

        np.add.at(self.depth, offsets[keep], 1)

    def result(self, window_size: int = 1) -> RegionCoverage:
        values = WindowedCoverageAggregator(window_size).aggregate(self.depth)
        return RegionCoverage(self.region, window_size, values)


class BigWigCoverageSource:
    """Read-only access to a precomputed BigWig coverage track."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._bw = pyBigWig.open(str(self.path))
        if self._bw is None:
            raise OSError(f"Could not open coverage track: {self.path}")

    def __enter__(self) -> BigWigCoverageSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._bw is not None:
            self._bw.close()
            self._bw = None

    def per_base(self, region: Region) -> np.ndarray:
        """Per-base values over ``region``; positions without data read as 0."""
        values = np.zeros(region.length, dtype=np.float64)
        chrom_length = self._bw.chroms(region.chromosome)
        if chrom_length is None:
            logger.warning("Contig %s not found in coverage track %s", region.chromosome, self.path)
            return values

        start, stop = region.to_zero_based()
        stop = min(stop, chrom_length)
        if start >= stop:
            return values
        fetched = np.asarray(self._bw.values(region.chromosome, start, stop), dtype=np.float64)
        values[: fetched.size] = np.nan_to_num(fetched, nan=0.0)
        return values

    def group_by(self, region: Region, window_size: int) -> RegionCoverage:
        values = WindowedCoverageAggregator(window_size).aggregate(self.per_base(region))
        return RegionCoverage(region, window_size, values)


class CoverageTrackGenerator(Protocol):
    """Produces a BigWig coverage track for an alignment file."""

    def generate(self, input_path: Path, output_path: Path, window_size: int) -> Path: ...


class BamCoverageGenerator:
    """Runs deepTools ``bamCoverage`` to write a BigWig track.

    Process failures propagate as ``subprocess.CalledProcessError`` (or
    ``FileNotFoundError`` when the tool is not installed).
    """

    def __init__(self, executable: str = DEFAULT_COVERAGE_TOOL):
        self.executable = executable

    def generate(self, input_path: Path, output_path: Path, window_size: int) -> Path:
        cmd = [
            self.executable,
            "-b",
            str(input_path),
            "-o",
            str(output_path),
            "-of",
            "bigwig",
            "-bs",
            str(window_size),
        ]
        logger.info("Generating coverage track: %s", " ".join(cmd))
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)  # noqa: S603
        for line in result.stdout.splitlines():
            logger.info(line)
        return output_path
