"""Streaming global alignment statistics.

Accumulation is split in two stages. ``GlobalStatsCalculator.compute`` turns one
record into a stand-alone ``AlignmentGlobalStats`` and touches no shared state.
``GlobalStatsCalculator.update`` merges such a delta into a running total: counts
add and moments combine with Chan's pairwise formula, so the final totals do not
depend on merge order (up to floating point rounding).
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field, fields

import numpy as np
import pysam

from ..constants import CIGAR_DEL, CIGAR_INS, HIGH_QUALITY_MAPQ


@dataclass
class RunningMoments:
    """Count, mean and sum of squared deviations of a numeric series."""

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0

    @classmethod
    def of(cls, value: float) -> RunningMoments:
        return cls(1, float(value), 0.0)

    @classmethod
    def from_values(cls, values: Sequence[float]) -> RunningMoments:
        arr = np.asarray(values, dtype=np.float64)
        if arr.size == 0:
            return cls()
        mean = float(arr.mean())
        return cls(int(arr.size), mean, float(((arr - mean) ** 2).sum()))

    def merge(self, other: RunningMoments) -> None:
        if other.count == 0:
            return
        if self.count == 0:
            self.count, self.mean, self.m2 = other.count, other.mean, other.m2
            return
        total = self.count + other.count
        delta = other.mean - self.mean
        self.mean += delta * other.count / total
        self.m2 += other.m2 + delta * delta * self.count * other.count / total
        self.count = total

    @property
    def variance(self) -> float:
        """Population variance (0.0 for fewer than two values)."""
        return self.m2 / self.count if self.count > 1 else 0.0

    @property
    def std(self) -> float:
        return math.sqrt(self.variance)

    def to_dict(self) -> dict:
        return {"count": self.count, "mean": self.mean, "variance": self.variance}


@dataclass
class AlignmentGlobalStats:
    """Summary statistics over a set of alignment records."""

    total: int = 0
    mapped: int = 0
    unmapped: int = 0
    paired: int = 0
    properly_paired: int = 0
    read1: int = 0
    read2: int = 0
    duplicate: int = 0
    secondary: int = 0
    supplementary: int = 0
    qc_fail: int = 0
    high_quality: int = 0
    insertions: int = 0
    deletions: int = 0
    mismatches: int = 0

    mapping_quality: RunningMoments = field(default_factory=RunningMoments)
    read_length: RunningMoments = field(default_factory=RunningMoments)
    base_quality: RunningMoments = field(default_factory=RunningMoments)
    insert_size: RunningMoments = field(default_factory=RunningMoments)
    mapping_quality_histogram: Counter = field(default_factory=Counter)

    def to_dict(self) -> dict:
        out: dict = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, RunningMoments):
                out[f.name] = value.to_dict()
            elif isinstance(value, Counter):
                out[f.name] = {str(k): value[k] for k in sorted(value)}
            else:
                out[f.name] = value
        return out


_COUNT_FIELDS = (
    "total",
    "mapped",
    "unmapped",
    "paired",
    "properly_paired",
    "read1",
    "read2",
    "duplicate",
    "secondary",
    "supplementary",
    "qc_fail",
    "high_quality",
    "insertions",
    "deletions",
    "mismatches",
)
_MOMENT_FIELDS = ("mapping_quality", "read_length", "base_quality", "insert_size")


class GlobalStatsCalculator:
    """Computes per-record stats and merges them into a running total."""

    def compute(self, record: pysam.AlignedSegment) -> AlignmentGlobalStats:
        stats = AlignmentGlobalStats(total=1)

        if record.is_paired:
            stats.paired = 1
            stats.properly_paired = int(record.is_proper_pair)
            stats.read1 = int(record.is_read1)
            stats.read2 = int(record.is_read2)
        stats.duplicate = int(record.is_duplicate)
        stats.secondary = int(record.is_secondary)
        stats.supplementary = int(record.is_supplementary)
        stats.qc_fail = int(record.is_qcfail)

        if record.is_unmapped:
            stats.unmapped = 1
        else:
            stats.mapped = 1
            mapq = record.mapping_quality
            stats.high_quality = int(mapq >= HIGH_QUALITY_MAPQ)
            stats.mapping_quality = RunningMoments.of(mapq)
            stats.mapping_quality_histogram[mapq] += 1
            for op, length in record.cigartuples or ():
                if op == CIGAR_INS:
                    stats.insertions += length
                elif op == CIGAR_DEL:
                    stats.deletions += length
            if record.has_tag("NM"):
                stats.mismatches = int(record.get_tag("NM"))

        length = record.query_length or record.infer_read_length() or 0
        if length:
            stats.read_length = RunningMoments.of(length)

        qualities = record.query_qualities
        if qualities is not None:
            stats.base_quality = RunningMoments.from_values(qualities)

        # Count each template once: read1 of a proper pair with a known insert
        if record.is_proper_pair and record.is_read1 and record.template_length != 0:
            stats.insert_size = RunningMoments.of(abs(record.template_length))

        return stats

    def update(
        self, incremental: AlignmentGlobalStats, total: AlignmentGlobalStats
    ) -> AlignmentGlobalStats:
        """Merge ``incremental`` into ``total`` in place and return ``total``."""
        for name in _COUNT_FIELDS:
            setattr(total, name, getattr(total, name) + getattr(incremental, name))
        for name in _MOMENT_FIELDS:
            getattr(total, name).merge(getattr(incremental, name))
        total.mapping_quality_histogram.update(incremental.mapping_quality_histogram)
        return total
