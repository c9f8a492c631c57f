"""Unit tests for bamaccess.core.filters."""

import pysam
import pytest

from bamaccess.core.filters import AlignmentFilters


@pytest.fixture
def reads(small_bam_path):
    """All records of the small BAM keyed by name (read1 of a pair wins)."""
    by_name = {}
    with pysam.AlignmentFile(small_bam_path, "rb") as bam:
        for read in bam.fetch(until_eof=True):
            if read.query_name not in by_name or read.is_read1:
                by_name[read.query_name] = read
    return by_name


class TestAlignmentFilters:
    """Tests for predicate composition."""

    @pytest.mark.unit
    def test_empty_accepts_everything(self, reads):
        filters = AlignmentFilters.create()
        assert len(filters) == 0
        assert all(filters.accept(r) for r in reads.values())

    @pytest.mark.unit
    def test_builder_returns_new_instance(self):
        base = AlignmentFilters.create()
        extended = base.add_unmapped_filter()
        assert len(base) == 0
        assert len(extended) == 1

    @pytest.mark.unit
    def test_mapping_quality(self, reads):
        filters = AlignmentFilters.create().add_mapping_quality_filter(30)
        assert filters.accept(reads["read1"])
        assert not filters.accept(reads["read6_lowq"])

    @pytest.mark.unit
    def test_unmapped(self, reads):
        filters = AlignmentFilters.create().add_unmapped_filter()
        assert not filters.accept(reads["read10_unmapped"])
        assert filters.accept(reads["read1"])

    @pytest.mark.unit
    def test_duplicates(self, reads):
        filters = AlignmentFilters.create().add_duplicated_filter()
        assert not filters.accept(reads["read9_dup"])
        assert filters.accept(reads["read1"])

    @pytest.mark.unit
    def test_properly_paired(self, reads):
        filters = AlignmentFilters.create().add_properly_paired_filter()
        assert filters.accept(reads["pair1"])
        assert not filters.accept(reads["read1"])

    @pytest.mark.unit
    def test_insert_size(self, reads):
        assert AlignmentFilters.create().add_insert_size_filter(200).accept(reads["pair1"])
        assert not AlignmentFilters.create().add_insert_size_filter(100).accept(reads["pair1"])

    @pytest.mark.unit
    def test_secondary(self, reads):
        filters = AlignmentFilters.create().add_secondary_alignments_filter()
        assert not filters.accept(reads["read7_secondary"])

    @pytest.mark.unit
    def test_all_predicates_must_accept(self, reads):
        filters = (
            AlignmentFilters.create()
            .add_unmapped_filter()
            .add_mapping_quality_filter(30)
            .add_duplicated_filter()
        )
        accepted = {name for name, r in reads.items() if filters.accept(r)}
        assert "read6_lowq" not in accepted
        assert "read9_dup" not in accepted
        assert "read10_unmapped" not in accepted
        assert "read1" in accepted

    @pytest.mark.unit
    def test_custom_predicate(self, reads):
        filters = AlignmentFilters.create().add_filter(lambda r: r.query_name.startswith("pair"))
        assert filters.accept(reads["pair1"])
        assert not filters.accept(reads["read2"])

    @pytest.mark.unit
    def test_primary_mapped(self, reads):
        filters = AlignmentFilters.primary_mapped(min_mapq=10)
        assert filters.accept(reads["read1"])
        assert not filters.accept(reads["read6_lowq"])
        assert not filters.accept(reads["read7_secondary"])
        assert not filters.accept(reads["read10_unmapped"])
