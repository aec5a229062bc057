"""Task list schema and run configuration — the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from clipstitch.errors import TaskListError
from clipstitch.models import SegmentRequest

DEFAULT_CACHE_DIR = Path("media") / ".youtube_cache"
DEFAULT_SCRATCH_DIR = Path("media") / ".temp_segments"

REQUIRED_FIELDS = ("url", "startTime", "endTime")


@dataclass(frozen=True)
class FetchConfig:
    """Configuration for source retrieval and the on-disk cache."""

    cache_dir: Path = DEFAULT_CACHE_DIR
    max_height: int = 720
    container: str = "mp4"


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level run configuration."""

    output: Path
    scratch_dir: Path = DEFAULT_SCRATCH_DIR
    retain_scratch: bool = False
    fetch: FetchConfig = field(default_factory=FetchConfig)


def _is_timecode_value(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, str) and value.strip() != ""


def parse_tasks(data) -> list[SegmentRequest]:
    """Validate a decoded task list and build the segment requests.

    The whole batch is rejected if any entry is missing a required field.
    """
    if not isinstance(data, list):
        raise TaskListError("Task list must be a JSON array of objects")

    requests: list[SegmentRequest] = []
    for i, entry in enumerate(data, 1):
        if not isinstance(entry, dict):
            raise TaskListError(f"Task {i} is not an object")

        missing = [f for f in REQUIRED_FIELDS if f not in entry or entry[f] in (None, "")]
        if missing:
            raise TaskListError(
                f"Task {i} is missing required field(s): {', '.join(missing)}"
            )
        if not isinstance(entry["url"], str):
            raise TaskListError(f"Task {i}: 'url' must be a string")
        for name in ("startTime", "endTime"):
            if not _is_timecode_value(entry[name]):
                raise TaskListError(
                    f"Task {i}: '{name}' must be a timecode string or whole seconds"
                )

        requests.append(
            SegmentRequest(
                source_ref=entry["url"],
                start_time=entry["startTime"],
                end_time=entry["endTime"],
            )
        )
    return requests


def load_tasks(path: str | Path) -> list[SegmentRequest]:
    """Load and validate a task list from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    return parse_tasks(data)
