"""MCP tool handlers for bamaccess.

Each handler validates its arguments, runs the synchronous engine on a worker
thread under a timeout and returns an MCP content payload. Every call opens its
own ``AlignmentAccessManager`` so handles are never shared between calls.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ..config import AccessConfig
from ..constants import ENGINE_TIMEOUT_SECONDS
from .coverage import BamCoverageGenerator
from .encoders import OutputKind
from .filters import AlignmentFilters
from .manager import AlignmentAccessManager
from .options import AlignmentOptions
from .region import parse_region
from .serialization import serialize_coverage, serialize_record, serialize_stats
from .validation import (
    validate_aux_path,
    validate_path,
    validate_positive,
    validate_quality,
    validate_region,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _text(payload: Any) -> dict:
    return {"content": [{"type": "text", "text": json.dumps(payload)}]}


async def _run_engine(func: Callable[[], T], timeout: float = ENGINE_TIMEOUT_SECONDS) -> T:
    """Run a blocking engine call on a worker thread with timeout protection.

    Raises:
        asyncio.TimeoutError: If the call exceeds ``timeout``.
    """
    return await asyncio.wait_for(asyncio.to_thread(func), timeout=timeout)


def _manager(file_path: str, config: AccessConfig) -> AlignmentAccessManager:
    return AlignmentAccessManager(
        file_path, reference=config.reference, max_records=config.max_records
    )


# -- Tool Handlers -----------------------------------------------------------


async def handle_query_alignments(args: dict[str, Any], config: AccessConfig) -> dict:
    """Return records overlapping (or contained in) a region."""
    file_path = args["file_path"]
    validate_path(file_path, config)
    region_str = args["region"]
    validate_region(region_str)
    region = parse_region(region_str)

    output_kind = OutputKind.parse(args.get("output_kind", OutputKind.AVRO))
    min_mapq = args.get("min_mapq", config.min_mapq)
    validate_quality("min_mapq", min_mapq, 255)
    options = AlignmentOptions(
        limit=args.get("limit", 0),
        contained=args.get("contained", False),
        bin_qualities=args.get("bin_qualities", False),
    )
    filters = AlignmentFilters.create()
    if min_mapq > 0:
        filters = filters.add_mapping_quality_filter(min_mapq)
    include_sequence = args.get("include_sequence", True)

    def _query() -> list[dict]:
        with _manager(file_path, config) as bam:
            records = bam.query(region, filters, options, output_kind)
            return [serialize_record(r, include_sequence) for r in records]

    records = await _run_engine(_query)
    logger.debug("query_alignments %s %s -> %d records", file_path, region, len(records))
    return _text(
        {
            "region": str(region),
            "output_kind": output_kind.value,
            "count": len(records),
            "records": records,
        }
    )


async def handle_get_coverage(args: dict[str, Any], config: AccessConfig) -> dict:
    """Return per-base or windowed coverage for a region."""
    file_path = args["file_path"]
    validate_path(file_path, config)
    region_str = args["region"]
    validate_region(region_str)
    region = parse_region(region_str)

    window_size = args.get("window_size", config.default_window)
    validate_positive("window_size", window_size)
    min_base_quality = args.get("min_base_quality", config.min_base_quality)
    validate_quality("min_base_quality", min_base_quality, 93)
    min_mapq = args.get("min_mapq", config.min_mapq)
    validate_quality("min_mapq", min_mapq, 255)
    track = args.get("track")
    if track is not None:
        validate_aux_path(track, config)

    def _coverage() -> dict:
        with _manager(file_path, config) as bam:
            if window_size == 1 and track is None and bam.coverage_track_path() is None:
                # Direct computation honours the per-call quality thresholds
                filters = AlignmentFilters.primary_mapped(min_mapq)
                options = AlignmentOptions(min_base_quality=min_base_quality)
                return serialize_coverage(bam.coverage(region, filters, options))
            return serialize_coverage(bam.windowed_coverage(region, window_size, track))

    return _text(await _run_engine(_coverage))


async def handle_get_stats(args: dict[str, Any], config: AccessConfig) -> dict:
    """Return global alignment statistics for a file or a region."""
    file_path = args["file_path"]
    validate_path(file_path, config)
    region = None
    if args.get("region"):
        validate_region(args["region"])
        region = parse_region(args["region"])
    min_mapq = args.get("min_mapq", config.min_mapq)
    validate_quality("min_mapq", min_mapq, 255)
    filters = AlignmentFilters.create()
    if min_mapq > 0:
        filters = filters.add_mapping_quality_filter(min_mapq)

    def _stats() -> dict:
        with _manager(file_path, config) as bam:
            return serialize_stats(bam.stats(region, filters))

    payload = await _run_engine(_stats)
    payload["region"] = str(region) if region else None
    return _text(payload)


async def handle_create_index(args: dict[str, Any], config: AccessConfig) -> dict:
    """Create (or overwrite) the index for a coordinate-sorted BAM/CRAM file."""
    file_path = args["file_path"]
    validate_path(file_path, config)
    output_path = args.get("output_path")
    if output_path is not None:
        validate_aux_path(output_path, config)

    def _index() -> str:
        return str(_manager(file_path, config).create_index(output_path))

    index_path = await _run_engine(_index)
    return _text({"file_path": file_path, "index_path": index_path})


async def handle_check_index(args: dict[str, Any], config: AccessConfig) -> dict:
    """Report whether the conventional index exists next to the file."""
    file_path = args["file_path"]
    validate_path(file_path, config)
    bam = _manager(file_path, config)
    return _text(
        {
            "file_path": file_path,
            "index_path": str(bam.index.index_path),
            "exists": bam.check_index_exists(),
        }
    )


async def handle_generate_coverage_track(args: dict[str, Any], config: AccessConfig) -> dict:
    """Run the external coverage tool to write a BigWig track next to the file."""
    file_path = args["file_path"]
    validate_path(file_path, config)
    output_path = args.get("output_path")
    if output_path is not None:
        validate_aux_path(output_path, config)
    bin_size = args.get("bin_size", config.coverage_bin_size)
    validate_positive("bin_size", bin_size)
    generator = BamCoverageGenerator(config.coverage_tool)

    def _generate() -> str:
        with _manager(file_path, config) as bam:
            return str(bam.calculate_coverage_track(output_path, bin_size, generator))

    track_path = await _run_engine(_generate)
    return _text({"file_path": file_path, "track_path": track_path, "bin_size": bin_size})
