"""Shared constants for bamaccess runtime defaults and thresholds.

This module is the single source of truth for default values that are consumed
across configuration loading, query bounding, coverage and statistics.
"""

from __future__ import annotations

# Networking defaults for the MCP surface
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_TRANSPORT = "stdio"
DEFAULT_LOG_LEVEL = "INFO"

# Query bounding: absolute ceiling for records returned by a single query
DEFAULT_MAX_RECORDS = 50_000

# Filtering defaults
DEFAULT_MIN_MAPQ = 0
DEFAULT_MIN_BASE_QUALITY = 0
HIGH_QUALITY_MAPQ = 30

# Coverage defaults
DEFAULT_WINDOW_SIZE = 1
DEFAULT_COVERAGE_BIN_SIZE = 50
DEFAULT_COVERAGE_TOOL = "bamCoverage"
MAX_REGION_SIZE = 10_000_000  # 10 Mbp

# Sibling file naming
BAM_INDEX_SUFFIX = ".bai"
CRAM_INDEX_SUFFIX = ".crai"
COVERAGE_TRACK_SUFFIXES = (".bw", ".coverage.bw")
GENERATED_COVERAGE_SUFFIX = ".coverage.bw"

# Timeout for engine calls made from the async tool handlers (seconds)
ENGINE_TIMEOUT_SECONDS = 60.0

# pysam CIGAR operation codes counted by statistics
CIGAR_INS = 1  # I
CIGAR_DEL = 2  # D

# Illumina 8-level quality binning: qualities >= EDGES[i] map to VALUES[i];
# qualities below the first edge are kept as-is
QUALITY_BIN_EDGES = (2, 10, 20, 25, 30, 35, 40)
QUALITY_BIN_VALUES = (6, 15, 22, 27, 33, 37, 40)
