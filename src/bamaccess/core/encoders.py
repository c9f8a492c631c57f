"""Output representations for alignment records.

The set of representations is closed: ``OutputKind`` enumerates it and
``resolve_encoder`` maps a kind to exactly one encoding function, once, when an
iterator is built.

- ``NATIVE``: the ``pysam.AlignedSegment`` itself.
- ``AVRO``: a GA4GH ``ReadAlignment`` record as a JSON-compatible dict
  (camelCase keys, ``None`` for absent optional fields, enum symbols as strings).
- ``PROTO``: a ``ReadAlignmentMessage`` dataclass with proto3 conventions
  (snake_case fields, zero-valued scalars instead of null, enums as integers).
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import partial
from typing import Any

import numpy as np
import pysam

from ..constants import QUALITY_BIN_EDGES, QUALITY_BIN_VALUES
from .errors import MalformedRecordError, UnsupportedOutputKindError

Encoder = Callable[[pysam.AlignedSegment], Any]


class OutputKind(str, enum.Enum):
    NATIVE = "native"
    AVRO = "avro"
    PROTO = "proto"

    @classmethod
    def parse(cls, kind: OutputKind | str) -> OutputKind:
        """Resolve a member or its string value, raising UnsupportedOutputKindError."""
        if isinstance(kind, cls):
            return kind
        try:
            return cls(str(kind).lower())
        except ValueError as e:
            raise UnsupportedOutputKindError(kind) from e


# GA4GH enum symbols, indexed by pysam CIGAR operation code
_AVRO_CIGAR_OPERATIONS = (
    "ALIGNMENT_MATCH",
    "INSERT",
    "DELETE",
    "SKIP",
    "CLIP_SOFT",
    "CLIP_HARD",
    "PAD",
    "SEQUENCE_MATCH",
    "SEQUENCE_MISMATCH",
)


class Strand(enum.IntEnum):
    STRAND_UNSPECIFIED = 0
    NEG_STRAND = 1
    POS_STRAND = 2


class CigarOperation(enum.IntEnum):
    OPERATION_UNSPECIFIED = 0
    ALIGNMENT_MATCH = 1
    INSERT = 2
    DELETE = 3
    SKIP = 4
    CLIP_SOFT = 5
    CLIP_HARD = 6
    PAD = 7
    SEQUENCE_MATCH = 8
    SEQUENCE_MISMATCH = 9


@dataclass
class PositionMessage:
    reference_name: str = ""
    position: int = 0
    strand: Strand = Strand.STRAND_UNSPECIFIED


@dataclass
class CigarUnitMessage:
    operation: CigarOperation = CigarOperation.OPERATION_UNSPECIFIED
    operation_length: int = 0
    reference_sequence: str = ""


@dataclass
class LinearAlignmentMessage:
    position: PositionMessage = field(default_factory=PositionMessage)
    mapping_quality: int = 0
    cigar: list[CigarUnitMessage] = field(default_factory=list)


@dataclass
class ReadAlignmentMessage:
    """Protocol-buffer style GA4GH read alignment.

    Sub-messages that are absent for a record (``alignment`` for unmapped reads,
    ``next_mate_position`` for unpaired reads) are None, as an unset message
    field would be.
    """

    id: str = ""
    read_group_id: str = ""
    fragment_name: str = ""
    improper_placement: bool = False
    duplicate_fragment: bool = False
    number_reads: int = 0
    fragment_length: int = 0
    read_number: int = 0
    failed_vendor_quality_checks: bool = False
    alignment: LinearAlignmentMessage | None = None
    secondary_alignment: bool = False
    supplementary_alignment: bool = False
    aligned_sequence: str = ""
    aligned_quality: list[int] = field(default_factory=list)
    next_mate_position: PositionMessage | None = None
    info: dict[str, list[str]] = field(default_factory=dict)


def bin_qualities(qualities: Sequence[int]) -> list[int]:
    """Quantize Phred qualities with the Illumina 8-level scheme."""
    quals = np.asarray(qualities, dtype=np.int64)
    if quals.size == 0:
        return []
    bins = np.searchsorted(QUALITY_BIN_EDGES, quals, side="right") - 1
    binned = np.where(bins >= 0, np.take(QUALITY_BIN_VALUES, np.clip(bins, 0, None)), quals)
    return binned.tolist()


def _qualities(record: pysam.AlignedSegment, binned: bool) -> list[int]:
    quals = record.query_qualities
    if quals is None:
        return []
    return bin_qualities(quals) if binned else list(quals)


def _read_group(record: pysam.AlignedSegment) -> str | None:
    if record.has_tag("RG"):
        return str(record.get_tag("RG"))
    return None


def _read_number(record: pysam.AlignedSegment) -> int:
    return 1 if record.is_read2 else 0


def _info(record: pysam.AlignedSegment) -> dict[str, list[str]]:
    return {tag: [str(value)] for tag, value in record.get_tags() if tag != "RG"}


def _checked_cigar(record: pysam.AlignedSegment) -> list[tuple[int, int]]:
    cigar = record.cigartuples
    if not cigar:
        raise MalformedRecordError(f"mapped record '{record.query_name}' has no CIGAR")
    return cigar


def encode_native(record: pysam.AlignedSegment) -> pysam.AlignedSegment:
    return record


def encode_avro(record: pysam.AlignedSegment, binned: bool = False) -> dict[str, Any]:
    """Convert a record into a GA4GH Avro ``ReadAlignment`` dict."""
    alignment = None
    if not record.is_unmapped:
        alignment = {
            "position": {
                "referenceName": record.reference_name,
                "position": record.reference_start,
                "strand": "NEG_STRAND" if record.is_reverse else "POS_STRAND",
            },
            "mappingQuality": record.mapping_quality,
            "cigar": [
                {
                    "operation": _AVRO_CIGAR_OPERATIONS[op],
                    "operationLength": length,
                    "referenceSequence": None,
                }
                for op, length in _checked_cigar(record)
            ],
        }

    next_mate = None
    if record.is_paired and not record.mate_is_unmapped and record.next_reference_id >= 0:
        next_mate = {
            "referenceName": record.next_reference_name,
            "position": record.next_reference_start,
            "strand": "NEG_STRAND" if record.mate_is_reverse else "POS_STRAND",
        }

    return {
        "id": record.query_name,
        "readGroupId": _read_group(record),
        "fragmentName": record.query_name,
        "improperPlacement": record.is_paired and not record.is_proper_pair,
        "duplicateFragment": record.is_duplicate,
        "numberReads": 2 if record.is_paired else 1,
        "fragmentLength": record.template_length,
        "readNumber": _read_number(record),
        "failedVendorQualityChecks": record.is_qcfail,
        "alignment": alignment,
        "secondaryAlignment": record.is_secondary,
        "supplementaryAlignment": record.is_supplementary,
        "alignedSequence": record.query_sequence,
        "alignedQuality": _qualities(record, binned),
        "nextMatePosition": next_mate,
        "info": _info(record),
    }


def encode_proto(record: pysam.AlignedSegment, binned: bool = False) -> ReadAlignmentMessage:
    """Convert a record into a ``ReadAlignmentMessage``."""
    alignment = None
    if not record.is_unmapped:
        alignment = LinearAlignmentMessage(
            position=PositionMessage(
                reference_name=record.reference_name or "",
                position=record.reference_start,
                strand=Strand.NEG_STRAND if record.is_reverse else Strand.POS_STRAND,
            ),
            mapping_quality=record.mapping_quality,
            cigar=[
                # pysam codes start at 0 (M); proto enum reserves 0 for unspecified
                CigarUnitMessage(operation=CigarOperation(op + 1), operation_length=length)
                for op, length in _checked_cigar(record)
            ],
        )

    next_mate = None
    if record.is_paired and not record.mate_is_unmapped and record.next_reference_id >= 0:
        next_mate = PositionMessage(
            reference_name=record.next_reference_name or "",
            position=record.next_reference_start,
            strand=Strand.NEG_STRAND if record.mate_is_reverse else Strand.POS_STRAND,
        )

    return ReadAlignmentMessage(
        id=record.query_name or "",
        read_group_id=_read_group(record) or "",
        fragment_name=record.query_name or "",
        improper_placement=record.is_paired and not record.is_proper_pair,
        duplicate_fragment=record.is_duplicate,
        number_reads=2 if record.is_paired else 1,
        fragment_length=record.template_length,
        read_number=_read_number(record),
        failed_vendor_quality_checks=record.is_qcfail,
        alignment=alignment,
        secondary_alignment=record.is_secondary,
        supplementary_alignment=record.is_supplementary,
        aligned_sequence=record.query_sequence or "",
        aligned_quality=_qualities(record, binned),
        next_mate_position=next_mate,
        info=_info(record),
    )


def resolve_encoder(kind: OutputKind | str, binned: bool = False) -> Encoder:
    """Return the encoding function for ``kind``.

    Raises:
        UnsupportedOutputKindError: If ``kind`` is not a known representation.
    """
    output_kind = OutputKind.parse(kind)
    if output_kind is OutputKind.AVRO:
        return partial(encode_avro, binned=binned)
    if output_kind is OutputKind.PROTO:
        return partial(encode_proto, binned=binned)
    return encode_native
