"""Unit tests for bamaccess.core.encoders."""

import pysam
import pytest

from bamaccess.core.encoders import (
    CigarOperation,
    OutputKind,
    ReadAlignmentMessage,
    Strand,
    bin_qualities,
    encode_avro,
    encode_proto,
    resolve_encoder,
)
from bamaccess.core.errors import MalformedRecordError, UnsupportedOutputKindError


@pytest.fixture
def reads(small_bam_path):
    by_name = {}
    with pysam.AlignmentFile(small_bam_path, "rb") as bam:
        for read in bam.fetch(until_eof=True):
            if read.query_name not in by_name or read.is_read1:
                by_name[read.query_name] = read
    return by_name


class TestOutputKind:
    """Tests for output kind resolution."""

    @pytest.mark.unit
    def test_parse_member(self):
        assert OutputKind.parse(OutputKind.AVRO) is OutputKind.AVRO

    @pytest.mark.unit
    def test_parse_string_case_insensitive(self):
        assert OutputKind.parse("Proto") is OutputKind.PROTO

    @pytest.mark.unit
    def test_unknown_kind(self):
        with pytest.raises(UnsupportedOutputKindError, match="json"):
            OutputKind.parse("json")

    @pytest.mark.unit
    def test_unknown_kind_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_encoder("sam")

    @pytest.mark.unit
    def test_native_is_identity(self, reads):
        encode = resolve_encoder(OutputKind.NATIVE)
        assert encode(reads["read1"]) is reads["read1"]


class TestBinQualities:
    """Tests for Illumina 8-level binning."""

    @pytest.mark.unit
    def test_bins(self):
        assert bin_qualities([0, 1, 2, 9, 10, 19, 20, 24, 25, 29, 30, 34, 35, 39, 40, 41]) == [
            0, 1, 6, 6, 15, 15, 22, 22, 27, 27, 33, 33, 37, 37, 40, 40,
        ]

    @pytest.mark.unit
    def test_empty(self):
        assert bin_qualities([]) == []


class TestAvroEncoder:
    """Tests for the GA4GH Avro-style record."""

    @pytest.mark.unit
    def test_mapped_forward(self, reads):
        rec = encode_avro(reads["read1"])
        assert rec["id"] == "read1"
        assert rec["readGroupId"] == "grp1"
        assert rec["alignment"]["position"] == {
            "referenceName": "chr1",
            "position": 100,
            "strand": "POS_STRAND",
        }
        assert rec["alignment"]["mappingQuality"] == 60
        assert rec["alignment"]["cigar"] == [
            {"operation": "ALIGNMENT_MATCH", "operationLength": 50, "referenceSequence": None}
        ]
        assert rec["numberReads"] == 1
        assert rec["nextMatePosition"] is None
        assert rec["alignedQuality"] == [40] * 50
        assert rec["info"] == {"NM": ["0"]}

    @pytest.mark.unit
    def test_reverse_strand(self, reads):
        assert encode_avro(reads["read2"])["alignment"]["position"]["strand"] == "NEG_STRAND"

    @pytest.mark.unit
    def test_indel_cigar(self, reads):
        ops = [c["operation"] for c in encode_avro(reads["read4"])["alignment"]["cigar"]]
        assert ops == ["ALIGNMENT_MATCH", "INSERT", "ALIGNMENT_MATCH"]

    @pytest.mark.unit
    def test_paired(self, reads):
        rec = encode_avro(reads["pair1"])
        assert rec["numberReads"] == 2
        assert rec["readNumber"] == 0
        assert rec["improperPlacement"] is False
        assert rec["fragmentLength"] == 150
        assert rec["nextMatePosition"] == {
            "referenceName": "chr1",
            "position": 700,
            "strand": "NEG_STRAND",
        }

    @pytest.mark.unit
    def test_unmapped_has_no_alignment(self, reads):
        assert encode_avro(reads["read10_unmapped"])["alignment"] is None

    @pytest.mark.unit
    def test_flags(self, reads):
        assert encode_avro(reads["read9_dup"])["duplicateFragment"] is True
        assert encode_avro(reads["read7_secondary"])["secondaryAlignment"] is True

    @pytest.mark.unit
    def test_binned_qualities(self, reads):
        encode = resolve_encoder("avro", binned=True)
        assert encode(reads["read1"])["alignedQuality"] == [40] * 50

    @pytest.mark.unit
    def test_missing_cigar_is_malformed(self, no_cigar_bam_path):
        with pysam.AlignmentFile(no_cigar_bam_path, "rb") as bam:
            bad = next(r for r in bam.fetch(until_eof=True) if r.query_name == "no_cigar")
            with pytest.raises(MalformedRecordError, match="no CIGAR"):
                encode_avro(bad)


class TestProtoEncoder:
    """Tests for the protocol-buffer style message."""

    @pytest.mark.unit
    def test_mapped(self, reads):
        msg = encode_proto(reads["read2"])
        assert isinstance(msg, ReadAlignmentMessage)
        assert msg.id == "read2"
        assert msg.read_group_id == ""
        assert msg.alignment.position.strand == Strand.NEG_STRAND
        assert msg.alignment.position.position == 120
        assert msg.alignment.cigar[0].operation == CigarOperation.ALIGNMENT_MATCH
        assert msg.alignment.cigar[0].operation_length == 50
        assert msg.next_mate_position is None

    @pytest.mark.unit
    def test_deletion_operation(self, reads):
        ops = [c.operation for c in encode_proto(reads["read5"]).alignment.cigar]
        assert ops == [
            CigarOperation.ALIGNMENT_MATCH,
            CigarOperation.DELETE,
            CigarOperation.ALIGNMENT_MATCH,
        ]

    @pytest.mark.unit
    def test_unmapped(self, reads):
        msg = encode_proto(reads["read10_unmapped"])
        assert msg.alignment is None
        assert msg.aligned_sequence == "ACGTACGTAC" * 3

    @pytest.mark.unit
    def test_mate_position(self, reads):
        msg = encode_proto(reads["pair1"])
        assert msg.next_mate_position.position == 700
        assert msg.next_mate_position.strand == Strand.NEG_STRAND
