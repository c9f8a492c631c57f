"""Argument checks for the tool handlers.

Region strings, alignment and auxiliary file paths, and numeric tool arguments
are checked here before any file is opened. Every failure is a ``ValueError``.
"""

from __future__ import annotations

import re
from pathlib import Path

from ..config import AccessConfig

# chr1:1000-2000 or chr1:1,000-2,000; contig names may carry HLA-style *, | and +
REGION_PATTERN = re.compile(r"^[A-Za-z0-9_.\-|*+]+:[\d,]{1,15}-[\d,]{1,15}$")

MAX_FILE_PATH_LENGTH = 2048
MAX_REGION_LENGTH = 100

ALLOWED_FILE_EXTENSIONS = (".bam", ".cram", ".sam")


def validate_region(region: str) -> None:
    """Check the shape of a region string; ``parse_region`` checks its values.

    Raises:
        ValueError: If the string is too long or not ``contig:start-end``.
    """
    if len(region) > MAX_REGION_LENGTH:
        raise ValueError(f"Region string too long (max {MAX_REGION_LENGTH} characters)")
    if not REGION_PATTERN.match(region):
        raise ValueError(f"Invalid region format: '{region}'. Expected format: chr1:1000-2000")


def _check_length(file_path: str) -> None:
    if len(file_path) > MAX_FILE_PATH_LENGTH:
        raise ValueError(f"File path too long (max {MAX_FILE_PATH_LENGTH} characters)")


def _check_allowed(file_path: str, config: AccessConfig) -> None:
    """Reject paths resolving outside ``config.allowed_directories`` (if set)."""
    if not config.allowed_directories:
        return
    try:
        resolved = Path(file_path).resolve()
    except OSError as e:
        raise ValueError(f"Invalid path: {file_path}") from e

    for directory in config.allowed_directories:
        try:
            if resolved.is_relative_to(Path(directory).resolve()):
                return
        except OSError:
            continue
    raise ValueError("Path is not in allowed directories")


def validate_path(file_path: str, config: AccessConfig) -> None:
    """Check an alignment file path: local, BAM/CRAM/SAM, inside the allow-list.

    Raises:
        ValueError: If the path is not allowed.
    """
    _check_length(file_path)
    if "://" in file_path:
        raise ValueError("Remote files are not supported")
    if not file_path.lower().endswith(ALLOWED_FILE_EXTENSIONS):
        raise ValueError(f"Unsupported file type. Allowed extensions: {ALLOWED_FILE_EXTENSIONS}")
    _check_allowed(file_path, config)


def validate_aux_path(file_path: str, config: AccessConfig) -> None:
    """Check an index or coverage track path against the directory allow-list."""
    _check_length(file_path)
    _check_allowed(file_path, config)


def validate_positive(name: str, value: int) -> None:
    """Window and bin sizes must be at least 1."""
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")


def validate_quality(name: str, value: int, maximum: int) -> None:
    if not 0 <= value <= maximum:
        raise ValueError(f"{name} must be between 0 and {maximum}, got {value}")
