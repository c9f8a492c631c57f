"""bamaccess: indexed random access, coverage and statistics for BAM/CRAM files."""

from .core import (
    AlignmentAccessManager,
    AlignmentFilters,
    AlignmentOptions,
    OutputKind,
    Region,
)

__version__ = "0.1.0"

__all__ = [
    "AlignmentAccessManager",
    "AlignmentFilters",
    "AlignmentOptions",
    "OutputKind",
    "Region",
    "__version__",
]
