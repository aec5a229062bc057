"""Orchestrator — turns an ordered task list into one assembled video."""

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from clipstitch import ffutil
from clipstitch.editors.cut import SegmentCutter
from clipstitch.editors.merge import SegmentMerger
from clipstitch.errors import ConfigError, RequestError
from clipstitch.manifest import PipelineConfig
from clipstitch.models import Clip, SegmentRequest, format_timecode
from clipstitch.sources.fetcher import SourceFetcher

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]


@dataclass(frozen=True)
class SkippedRequest:
    """A request that did not produce a clip, and why."""

    index: int
    source_ref: str
    stage: str
    reason: str


@dataclass
class PipelineResult:
    output_path: Path
    produced_clip_count: int = 0
    merged: bool = False
    clips: list[Clip] = field(default_factory=list)
    skipped: list[SkippedRequest] = field(default_factory=list)
    duration: float | None = None

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class Pipeline:
    """Drives resolve -> fetch-or-reuse -> cut per request, then one merge.

    Requests are processed sequentially in input order. A failure confined
    to one request skips that request only; a merge failure aborts the run.
    The scratch directory is cleared when the run starts and again when it
    ends, unless ``retain_scratch`` is set.
    """

    def __init__(
        self,
        config: PipelineConfig,
        fetcher: SourceFetcher | None = None,
        cutter: SegmentCutter | None = None,
        merger: SegmentMerger | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        _check_scratch_layout(config)
        self.config = config
        self.fetcher = fetcher or SourceFetcher(config.fetch)
        self.cutter = cutter or SegmentCutter(config.scratch_dir, container=config.fetch.container)
        self.merger = merger or SegmentMerger(config.scratch_dir)
        self._on_progress = on_progress

    def _progress(self, stage: str, frac: float) -> None:
        if self._on_progress:
            self._on_progress(stage, frac)

    def run(self, requests: list[SegmentRequest]) -> PipelineResult:
        self._reset_scratch()
        try:
            return self._run(requests)
        finally:
            self._finish_scratch()

    def _run(self, requests: list[SegmentRequest]) -> PipelineResult:
        result = PipelineResult(output_path=self.config.output)
        total = len(requests)

        for i, request in enumerate(requests, 1):
            self._progress(f"Processing video {i}/{total}", 0.9 * (i - 1) / max(total, 1))
            try:
                clip = self._process_one(i, total, request)
            except RequestError as e:
                logger.warning(
                    f"Skipping request {i}/{total} ({request.source_ref}) "
                    f"at stage '{e.stage}': {e}"
                )
                result.skipped.append(
                    SkippedRequest(index=i, source_ref=request.source_ref, stage=e.stage, reason=str(e))
                )
                continue
            result.clips.append(clip)

        result.produced_clip_count = len(result.clips)

        if not result.clips:
            logger.warning("No segments were successfully cut. Nothing to join.")
            self._progress("Done (nothing to join)", 1.0)
            return result

        self._progress(f"Joining {len(result.clips)} segments", 0.9)
        logger.info(f"Joining {len(result.clips)} segments...")
        self.merger.merge(result.clips, self.config.output)
        result.merged = True
        self._progress("Done", 1.0)
        return result

    def _process_one(self, index: int, total: int, request: SegmentRequest) -> Clip:
        logger.info(f"Processing video {index}/{total}: {request.source_ref}")

        source_id = self.fetcher.resolve(request.source_ref)
        logger.debug(f"[{index}] Extracted video ID: {source_id}")

        start, end = request.bounds()

        source = self.fetcher.ensure(request.source_ref)

        logger.info(
            f"[{index}] Cutting segment for {source_id}: "
            f"{format_timecode(start)} to {format_timecode(end)}"
        )
        return self.cutter.cut(source, start, end, ordinal=index)

    def _reset_scratch(self) -> None:
        scratch = self.config.scratch_dir
        if scratch.exists():
            shutil.rmtree(scratch)
        scratch.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Temporary segments directory: {scratch.resolve()} (cleared)")

    def _finish_scratch(self) -> None:
        scratch = self.config.scratch_dir
        if self.config.retain_scratch:
            logger.info(f"Temporary segment files retained in {scratch}")
            return
        try:
            shutil.rmtree(scratch)
            logger.debug(f"Cleaned up temporary directory: {scratch}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Error cleaning up temporary directory {scratch}: {e}")


def _check_scratch_layout(config: PipelineConfig) -> None:
    """Scratch is wiped on every run, so it must not hold the cache or the output."""
    scratch = config.scratch_dir.resolve()
    cache = config.fetch.cache_dir.resolve()
    output = config.output.resolve()
    if scratch == cache or scratch in cache.parents:
        raise ConfigError(
            f"Scratch directory {config.scratch_dir} would clear the cache at {config.fetch.cache_dir}"
        )
    if scratch == output or scratch in output.parents:
        raise ConfigError(
            f"Scratch directory {config.scratch_dir} would delete the output {config.output}"
        )


def process(
    config: PipelineConfig,
    requests: list[SegmentRequest],
    on_progress: ProgressCallback | None = None,
) -> PipelineResult:
    """Check tools, run the full pipeline and probe the assembled output.

    Args:
        config: Run configuration.
        requests: Validated segment requests, in output order.
        on_progress: Optional callback(stage_name, fraction_complete).
    """
    ffutil.check_ffmpeg()

    result = Pipeline(config, on_progress=on_progress).run(requests)

    if result.merged:
        try:
            result.duration = ffutil.probe(result.output_path).duration
        except (subprocess.CalledProcessError, ValueError, KeyError) as e:
            logger.warning(f"Could not probe output {result.output_path}: {e}")

    logger.info(
        f"Video processing complete: {result.produced_clip_count} clip(s) produced, "
        f"{result.skipped_count} skipped"
    )
    return result
