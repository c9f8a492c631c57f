"""JSON-compatible shaping of records, coverage and statistics."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any

import pysam

from .coverage import RegionCoverage
from .stats import AlignmentGlobalStats


def serialize_native_read(r: pysam.AlignedSegment, include_sequence: bool = True) -> dict:
    """Serialize a pysam record, omitting null paired-end fields to reduce payload."""
    d: dict[str, Any] = {
        "name": r.query_name,
        "contig": r.reference_name,
        "cigar": r.cigarstring,
        "position": r.reference_start,
        "end_position": r.reference_end,
        "mapping_quality": r.mapping_quality,
        "flag": r.flag,
        "is_reverse": r.is_reverse,
        "is_unmapped": r.is_unmapped,
    }
    if include_sequence:
        d["sequence"] = r.query_sequence
        d["qualities"] = list(r.query_qualities) if r.query_qualities is not None else None
    if r.is_paired:
        d["mate_contig"] = r.next_reference_name if r.next_reference_id >= 0 else None
        d["mate_position"] = r.next_reference_start if r.next_reference_id >= 0 else None
        d["insert_size"] = r.template_length
        d["is_proper_pair"] = r.is_proper_pair
        d["is_read1"] = r.is_read1
        d["is_paired"] = True
    return d


# Per-base payload fields of the structured kinds, dropped without include_sequence
_AVRO_SEQUENCE_FIELDS = ("alignedSequence", "alignedQuality")
_PROTO_SEQUENCE_FIELDS = ("aligned_sequence", "aligned_quality")


def serialize_record(record: Any, include_sequence: bool = True) -> dict:
    """Serialize a record of any output kind.

    ``include_sequence=False`` drops bases and qualities for every kind.
    """
    if isinstance(record, pysam.AlignedSegment):
        return serialize_native_read(record, include_sequence)
    if is_dataclass(record):
        d = asdict(record)
        dropped = _PROTO_SEQUENCE_FIELDS
    else:
        d = dict(record)
        dropped = _AVRO_SEQUENCE_FIELDS
    if not include_sequence:
        for key in dropped:
            d.pop(key, None)
    return d


def serialize_coverage(coverage: RegionCoverage, decimals: int = 2) -> dict:
    values = coverage.values
    return {
        "region": str(coverage.region),
        "window_size": coverage.window_size,
        "values": [round(float(v), decimals) for v in values],
        "mean": round(coverage.mean(), decimals),
        "min": float(values.min()) if len(values) else 0.0,
        "max": float(values.max()) if len(values) else 0.0,
        "windows_covered": int((values > 0).sum()),
        "total_windows": len(values),
    }


def serialize_stats(stats: AlignmentGlobalStats) -> dict:
    return stats.to_dict()
