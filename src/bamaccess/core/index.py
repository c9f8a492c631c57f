"""Random-access index creation and checks for BAM/CRAM files."""

from __future__ import annotations

import logging
from pathlib import Path

import pysam

from ..constants import BAM_INDEX_SUFFIX, CRAM_INDEX_SUFFIX
from .errors import UnsortedInputError, UnsupportedFormatForIndexingError

logger = logging.getLogger(__name__)


def sort_order(header: pysam.AlignmentHeader) -> str | None:
    """Return the ``@HD SO`` value of a header, or None when absent."""
    return header.to_dict().get("HD", {}).get("SO")


class IndexManager:
    """Builds and checks the index artifact that sits next to an alignment file.

    The conventional index lives at ``<input>.bai`` for BAM and ``<input>.crai``
    for CRAM.
    """

    def __init__(self, alignment_path: str | Path, reference: str | None = None):
        self.alignment_path = Path(alignment_path)
        self.reference = reference

    @property
    def index_path(self) -> Path:
        suffix = CRAM_INDEX_SUFFIX if self.alignment_path.suffix == ".cram" else BAM_INDEX_SUFFIX
        return self.alignment_path.with_name(self.alignment_path.name + suffix)

    def check_index_exists(self) -> bool:
        return self.index_path.is_file()

    def create_index(self, output_path: str | Path | None = None) -> Path:
        """
        Write an index for the alignment file, overwriting any existing one.

        Args:
            output_path: Where to write the index. Defaults to ``index_path``.

        Returns:
            Path of the written index.

        Raises:
            UnsortedInputError: If the header does not declare coordinate sort order.
            UnsupportedFormatForIndexingError: If the file is neither BAM nor CRAM.
        """
        output = Path(output_path) if output_path is not None else self.index_path
        output.parent.mkdir(parents=True, exist_ok=True)

        # Auto-detect the physical format; check_sq=False keeps header-only or
        # headerless files openable so the checks below report the real problem
        with pysam.AlignmentFile(
            str(self.alignment_path),
            "r",
            reference_filename=self.reference,
            check_sq=False,
        ) as reader:
            order = sort_order(reader.header)
            if order != "coordinate":
                raise UnsortedInputError(str(self.alignment_path), order)

            if reader.is_bam:
                file_format = "BAM"
            elif reader.is_cram:
                file_format = "CRAM"
            else:
                raise UnsupportedFormatForIndexingError(
                    str(self.alignment_path), reader.format or "SAM"
                )

        pysam.index(str(self.alignment_path), str(output))
        logger.info("Wrote %s index: %s", file_format, output)
        return output
