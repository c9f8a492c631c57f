"""Configuration for bamaccess, loaded from environment variables."""

import os
from dataclasses import dataclass

from .constants import (
    DEFAULT_COVERAGE_BIN_SIZE,
    DEFAULT_COVERAGE_TOOL,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_RECORDS,
    DEFAULT_MIN_BASE_QUALITY,
    DEFAULT_MIN_MAPQ,
    DEFAULT_PORT,
    DEFAULT_TRANSPORT,
    DEFAULT_WINDOW_SIZE,
)


@dataclass
class AccessConfig:
    """Engine and server configuration loaded from environment variables."""

    # Query settings
    max_records: int = DEFAULT_MAX_RECORDS
    min_mapq: int = DEFAULT_MIN_MAPQ
    min_base_quality: int = DEFAULT_MIN_BASE_QUALITY
    reference: str | None = None

    # Coverage settings
    default_window: int = DEFAULT_WINDOW_SIZE
    coverage_bin_size: int = DEFAULT_COVERAGE_BIN_SIZE
    coverage_tool: str = DEFAULT_COVERAGE_TOOL

    # Transport settings
    transport: str = DEFAULT_TRANSPORT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    # Security settings
    allowed_directories: list[str] | None = None

    def __post_init__(self) -> None:
        """Validate config values."""
        if self.max_records < 1:
            raise ValueError(f"max_records must be at least 1, got {self.max_records}")

        if not 0 <= self.min_mapq <= 255:
            raise ValueError(f"min_mapq must be between 0 and 255, got {self.min_mapq}")

        if not 0 <= self.min_base_quality <= 93:
            raise ValueError(
                f"min_base_quality must be between 0 and 93, got {self.min_base_quality}"
            )

        if self.default_window < 1:
            raise ValueError(f"default_window must be at least 1, got {self.default_window}")

        if self.coverage_bin_size < 1:
            raise ValueError(
                f"coverage_bin_size must be at least 1, got {self.coverage_bin_size}"
            )

        valid_transports = ("stdio", "sse", "streamable-http")
        if self.transport not in valid_transports:
            raise ValueError(f"transport must be one of {valid_transports}, got '{self.transport}'")

        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")

        self.log_level = self.log_level.upper()
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level '{self.log_level}'")

    @classmethod
    def from_env(cls) -> "AccessConfig":
        """Create config from environment variables."""
        env = os.environ

        return cls(
            max_records=int(env.get("BAMACCESS_MAX_RECORDS", str(DEFAULT_MAX_RECORDS))),
            min_mapq=int(env.get("BAMACCESS_MIN_MAPQ", str(DEFAULT_MIN_MAPQ))),
            min_base_quality=int(
                env.get("BAMACCESS_MIN_BASE_QUALITY", str(DEFAULT_MIN_BASE_QUALITY))
            ),
            reference=env.get("BAMACCESS_REFERENCE"),
            default_window=int(env.get("BAMACCESS_DEFAULT_WINDOW", str(DEFAULT_WINDOW_SIZE))),
            coverage_bin_size=int(
                env.get("BAMACCESS_COVERAGE_BIN_SIZE", str(DEFAULT_COVERAGE_BIN_SIZE))
            ),
            coverage_tool=env.get("BAMACCESS_COVERAGE_TOOL", DEFAULT_COVERAGE_TOOL),
            transport=env.get("BAMACCESS_TRANSPORT", DEFAULT_TRANSPORT),
            host=env.get("BAMACCESS_HOST", DEFAULT_HOST),
            port=int(env.get("BAMACCESS_PORT", str(DEFAULT_PORT))),
            log_level=env.get("BAMACCESS_LOG_LEVEL", DEFAULT_LOG_LEVEL),
            allowed_directories=[
                d.strip()
                for d in env.get("BAMACCESS_ALLOWED_DIRECTORIES", "").split(",")
                if d.strip()
            ]
            or None,
        )
