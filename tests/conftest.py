"""Shared test fixtures for bamaccess tests."""

import os

import pytest

from tests.create_fixtures import (
    create_bigwig,
    create_deep_bam,
    create_no_cigar_bam,
    create_quality_bam,
    create_queryname_bam,
    create_sam,
    create_small_bam,
)


@pytest.fixture(scope="session")
def fixtures_dir(tmp_path_factory):
    """Read-only fixtures shared by the whole session."""
    directory = tmp_path_factory.mktemp("fixtures")
    create_small_bam(str(directory))
    create_deep_bam(str(directory))
    create_quality_bam(str(directory))
    create_quality_bam(str(directory), low_quality_at_150=True)
    create_no_cigar_bam(str(directory))
    return directory


@pytest.fixture
def small_bam_path(fixtures_dir):
    """Path to the small, sorted and indexed test BAM."""
    return os.path.join(fixtures_dir, "small.bam")


@pytest.fixture
def deep_bam_path(fixtures_dir):
    """Path to a BAM with 1000 reads overlapping chr1:100-200."""
    return os.path.join(fixtures_dir, "deep.bam")


@pytest.fixture
def quality_bam_path(fixtures_dir):
    return os.path.join(fixtures_dir, "quality.bam")


@pytest.fixture
def quality_low_bam_path(fixtures_dir):
    return os.path.join(fixtures_dir, "quality_low.bam")


@pytest.fixture
def no_cigar_bam_path(fixtures_dir):
    return os.path.join(fixtures_dir, "nocigar.bam")


# Function-scoped fixtures for tests that write next to the alignment file


@pytest.fixture
def unindexed_bam_path(tmp_path):
    """A sorted BAM without an index artifact."""
    return create_small_bam(str(tmp_path), name="unindexed.bam", index=False)


@pytest.fixture
def indexed_bam_copy(tmp_path):
    """A sorted, indexed BAM in its own directory."""
    return create_small_bam(str(tmp_path))


@pytest.fixture
def queryname_bam_path(tmp_path):
    return create_queryname_bam(str(tmp_path))


@pytest.fixture
def sam_path(tmp_path):
    return create_sam(str(tmp_path))


@pytest.fixture
def bigwig_path(tmp_path):
    """A standalone BigWig coverage track."""
    return create_bigwig(str(tmp_path / "track.bw"))
