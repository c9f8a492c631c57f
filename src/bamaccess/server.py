"""MCP server setup for bamaccess using FastMCP."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from .config import AccessConfig
from .core.tools import (
    handle_check_index,
    handle_create_index,
    handle_generate_coverage_track,
    handle_get_coverage,
    handle_get_stats,
    handle_query_alignments,
)


def _content_text(result: dict) -> str:
    return str(result["content"][0]["text"])


def create_server(config: AccessConfig | None = None) -> FastMCP:
    """Create and configure the bamaccess MCP server."""
    if config is None:
        config = AccessConfig.from_env()

    mcp = FastMCP(name="bamaccess", host=config.host, port=config.port)

    # -- Tools ---------------------------------------------------------------
    # Thin wrappers delegate to the handlers in core/tools.py.
    # FastMCP derives the JSON-Schema from the function signature.

    @mcp.tool(
        description=(
            "Return alignment records overlapping a region of an indexed BAM/CRAM file. "
            "output_kind is one of 'native', 'avro' or 'proto'. Results are capped."
        ),
    )
    async def query_alignments(
        file_path: str,
        region: str,
        limit: int = 0,
        min_mapq: int | None = None,
        contained: bool = False,
        output_kind: str = "avro",
        bin_qualities: bool = False,
        include_sequence: bool = True,
    ) -> str:
        args: dict = {
            "file_path": file_path,
            "region": region,
            "limit": limit,
            "contained": contained,
            "output_kind": output_kind,
            "bin_qualities": bin_qualities,
            "include_sequence": include_sequence,
        }
        if min_mapq is not None:
            args["min_mapq"] = min_mapq
        return _content_text(await handle_query_alignments(args, config))

    @mcp.tool(
        description=(
            "Per-base (window_size=1) or windowed mean coverage for a region. "
            "Windowed coverage needs a BigWig track next to the file."
        ),
    )
    async def get_coverage(
        file_path: str,
        region: str,
        window_size: int | None = None,
        min_base_quality: int | None = None,
        min_mapq: int | None = None,
        track: str | None = None,
    ) -> str:
        args: dict = {"file_path": file_path, "region": region}
        if window_size is not None:
            args["window_size"] = window_size
        if min_base_quality is not None:
            args["min_base_quality"] = min_base_quality
        if min_mapq is not None:
            args["min_mapq"] = min_mapq
        if track is not None:
            args["track"] = track
        return _content_text(await handle_get_coverage(args, config))

    @mcp.tool(description="Global alignment statistics for a file or a region")
    async def get_stats(
        file_path: str,
        region: str | None = None,
        min_mapq: int | None = None,
    ) -> str:
        args: dict = {"file_path": file_path}
        if region is not None:
            args["region"] = region
        if min_mapq is not None:
            args["min_mapq"] = min_mapq
        return _content_text(await handle_get_stats(args, config))

    @mcp.tool(description="Create the index for a coordinate-sorted BAM/CRAM file")
    async def create_index(file_path: str, output_path: str | None = None) -> str:
        args: dict = {"file_path": file_path}
        if output_path is not None:
            args["output_path"] = output_path
        return _content_text(await handle_create_index(args, config))

    @mcp.tool(description="Check whether a BAM/CRAM file has its index next to it")
    async def check_index(file_path: str) -> str:
        return _content_text(await handle_check_index({"file_path": file_path}, config))

    @mcp.tool(description="Generate a BigWig coverage track with the configured external tool")
    async def generate_coverage_track(
        file_path: str,
        output_path: str | None = None,
        bin_size: int | None = None,
    ) -> str:
        args: dict = {"file_path": file_path}
        if output_path is not None:
            args["output_path"] = output_path
        if bin_size is not None:
            args["bin_size"] = bin_size
        return _content_text(await handle_generate_coverage_track(args, config))

    return mcp
