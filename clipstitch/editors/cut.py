"""Segment cutter — extracts one time-bounded clip from a cached source."""

import logging
import subprocess
from pathlib import Path

from clipstitch import ffutil
from clipstitch.errors import CutError, InvalidRange
from clipstitch.models import CachedSource, Clip

logger = logging.getLogger(__name__)

# Failures of a single extraction attempt that warrant trying the next one.
ATTEMPT_ERRORS = (subprocess.CalledProcessError, ffutil.EmptyOutputError, OSError)


class SegmentCutter:
    """Stream-copy first, full re-encode as the fallback."""

    def __init__(self, scratch_dir: Path, container: str = "mp4"):
        self.scratch_dir = Path(scratch_dir)
        self.container = container

    def clip_path(self, ordinal: int, source_id: str) -> Path:
        return self.scratch_dir / f"cut_segment_{ordinal}_{source_id}.{self.container}"

    def cut(self, source: CachedSource, start: int, end: int, ordinal: int) -> Clip:
        """Extract ``[start, end)`` seconds of ``source`` into the scratch area.

        Raises InvalidRange before touching ffmpeg when the range is empty,
        and CutError when both extraction strategies fail.
        """
        duration = end - start
        if duration <= 0:
            raise InvalidRange(f"End time ({end}s) must be after start time ({start}s).")

        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        output = self.clip_path(ordinal, source.id)

        try:
            ffutil.copy_range(source.local_path, start, duration, output)
        except ATTEMPT_ERRORS as e:
            logger.warning(
                f"Lossless cut failed for {source.id}. Attempting re-encode... "
                f"({ffutil.tail_stderr(e, limit=200)})"
            )
            _remove(output)
        else:
            logger.info(f"Segment (lossless cut) for {source.id} saved to {output}")
            return Clip(ordinal=ordinal, source_id=source.id, path=output)

        try:
            ffutil.reencode_range(source.local_path, start, duration, output)
        except ATTEMPT_ERRORS as e:
            _remove(output)
            raise CutError(
                f"Cutting {source.id} [{start}s, {end}s) failed: {ffutil.tail_stderr(e)}",
                cause=e,
            ) from e

        logger.info(f"Segment (re-encoded) for {source.id} saved to {output}")
        return Clip(ordinal=ordinal, source_id=source.id, path=output, reencoded=True)


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove partial clip {path}: {e}")
