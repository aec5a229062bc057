"""Shared data types used across clipstitch."""

import re
from dataclasses import dataclass
from pathlib import Path

from clipstitch.errors import InvalidRange, TimecodeError

_TIMECODE_RE = re.compile(r"^(\d+)(?::(\d{1,2}))?(?::(\d{1,2}))?$")


def parse_timecode(value: str | int) -> int:
    """Convert ``HH:MM:SS``, ``MM:SS`` or ``SS`` into total whole seconds.

    Integers are accepted as already-canonical seconds. Minute and second
    fields following a larger unit must be below 60.
    """
    if isinstance(value, bool):
        raise TimecodeError(f"Invalid time format: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise TimecodeError(f"Invalid time format: {value!r}")
        return value
    if not isinstance(value, str):
        raise TimecodeError(f"Invalid time format: {value!r}")

    match = _TIMECODE_RE.match(value.strip())
    if match is None:
        raise TimecodeError(
            f"Invalid time format: {value!r}. Expected HH:MM:SS, MM:SS, or SS."
        )

    parts = [int(p) for p in match.groups() if p is not None]
    if any(p >= 60 for p in parts[1:]):
        raise TimecodeError(f"Invalid time format: {value!r}. Field out of range.")

    total = 0
    for part in parts:
        total = total * 60 + part
    return total


def format_timecode(seconds: int) -> str:
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


@dataclass(frozen=True)
class SegmentRequest:
    """One (source, start, end) entry from the task list."""

    source_ref: str
    start_time: str | int
    end_time: str | int

    def bounds(self) -> tuple[int, int]:
        """Return ``(start, end)`` in seconds, raising InvalidRange if unusable."""
        try:
            start = parse_timecode(self.start_time)
            end = parse_timecode(self.end_time)
        except TimecodeError as e:
            raise InvalidRange(str(e)) from e
        if end <= start:
            raise InvalidRange(
                f"End time ({self.end_time}) must be after start time ({self.start_time})."
            )
        return start, end


@dataclass(frozen=True)
class CachedSource:
    """A fully retrieved source file living in the source cache."""

    id: str
    local_path: Path


@dataclass(frozen=True)
class Clip:
    """A time-bounded extract of one cached source, in the scratch area."""

    ordinal: int
    source_id: str
    path: Path
    reencoded: bool = False


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration: float
    width: int | None = None
    height: int | None = None
    codec_video: str | None = None
    codec_audio: str | None = None
