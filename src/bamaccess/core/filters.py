"""Composable record filters.

An ``AlignmentFilters`` value is an ordered, immutable set of predicates over
``pysam.AlignedSegment``. A record is accepted only when every predicate
accepts it. Builder methods return a new instance, so one filter set can be
shared safely between independent managers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import pysam

Predicate = Callable[[pysam.AlignedSegment], bool]


@dataclass(frozen=True)
class AlignmentFilters:
    """Ordered AND-combination of record predicates."""

    predicates: tuple[Predicate, ...] = ()

    @classmethod
    def create(cls) -> AlignmentFilters:
        return cls()

    def __len__(self) -> int:
        return len(self.predicates)

    def accept(self, record: pysam.AlignedSegment) -> bool:
        """Return True if all predicates accept ``record`` (True for no predicates)."""
        return all(predicate(record) for predicate in self.predicates)

    def add_filter(self, predicate: Predicate) -> AlignmentFilters:
        return AlignmentFilters(self.predicates + (predicate,))

    def add_mapping_quality_filter(self, min_mapq: int) -> AlignmentFilters:
        """Keep records with mapping quality >= ``min_mapq``."""
        return self.add_filter(lambda r: r.mapping_quality >= min_mapq)

    def add_unmapped_filter(self) -> AlignmentFilters:
        """Drop unmapped records."""
        return self.add_filter(lambda r: not r.is_unmapped)

    def add_duplicated_filter(self) -> AlignmentFilters:
        """Drop records flagged as PCR or optical duplicates."""
        return self.add_filter(lambda r: not r.is_duplicate)

    def add_properly_paired_filter(self) -> AlignmentFilters:
        """Keep only records flagged as properly paired."""
        return self.add_filter(lambda r: r.is_paired and r.is_proper_pair)

    def add_insert_size_filter(self, max_insert_size: int) -> AlignmentFilters:
        """Keep records whose absolute template length is <= ``max_insert_size``."""
        return self.add_filter(lambda r: abs(r.template_length) <= max_insert_size)

    def add_secondary_alignments_filter(self) -> AlignmentFilters:
        """Drop secondary alignments."""
        return self.add_filter(lambda r: not r.is_secondary)

    def add_supplementary_filter(self) -> AlignmentFilters:
        """Drop supplementary alignments."""
        return self.add_filter(lambda r: not r.is_supplementary)

    def add_qc_fail_filter(self) -> AlignmentFilters:
        """Drop records failing vendor quality checks."""
        return self.add_filter(lambda r: not r.is_qcfail)

    @classmethod
    def primary_mapped(cls, min_mapq: int = 0) -> AlignmentFilters:
        """Filters matching mapped primary alignments above ``min_mapq``."""
        filters = (
            cls()
            .add_unmapped_filter()
            .add_secondary_alignments_filter()
            .add_supplementary_filter()
        )
        if min_mapq > 0:
            filters = filters.add_mapping_quality_filter(min_mapq)
        return filters
