"""Segment merger — concatenates clips into the final output."""

import logging
import subprocess
from pathlib import Path

from clipstitch import ffutil
from clipstitch.errors import MergeError
from clipstitch.models import Clip

logger = logging.getLogger(__name__)

CONCAT_LIST_NAME = "concat_list.txt"


class SegmentMerger:
    def __init__(self, scratch_dir: Path):
        self.scratch_dir = Path(scratch_dir)

    def merge(self, clips: list[Clip], output_path: Path) -> Path:
        """Concatenate ``clips`` in the given order into ``output_path``.

        The order comes from an explicit manifest, never a directory listing.
        Streams are copied, so all clips must share a compatible profile. On
        failure no partial output is left behind.
        """
        if not clips:
            raise ValueError("merge called with empty clip list")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

        list_path = ffutil.write_concat_list(
            [c.path for c in clips], self.scratch_dir / CONCAT_LIST_NAME
        )
        logger.debug(f"Concat manifest written to {list_path}")

        try:
            ffutil.concat_exact(list_path, output_path)
        except (subprocess.CalledProcessError, ffutil.EmptyOutputError, OSError) as e:
            try:
                output_path.unlink(missing_ok=True)
            except OSError as cleanup_err:
                logger.warning(f"Could not remove partial output {output_path}: {cleanup_err}")
            raise MergeError(
                f"Failed to join {len(clips)} segments: {ffutil.tail_stderr(e)}", cause=e
            ) from e

        logger.info(f"All segments successfully merged into {output_path}")
        return output_path
