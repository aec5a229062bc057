"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import shutil
import subprocess
from pathlib import Path

from clipstitch.models import ProbeResult

logger = logging.getLogger(__name__)

CONCAT_HEADER = "ffconcat version 1.0\n"


class FFmpegNotFoundError(RuntimeError):
    pass


class EmptyOutputError(RuntimeError):
    """Raised when ffmpeg exits cleanly but leaves no usable output."""
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def tail_stderr(exc: BaseException, limit: int = 500) -> str:
    """Best-effort short stderr excerpt from a failed subprocess call."""
    stderr = getattr(exc, "stderr", None)
    if not stderr:
        return str(exc)
    if isinstance(stderr, bytes):
        stderr = stderr.decode(errors="replace")
    return stderr.strip()[-limit:]


def _run(cmd: list[str], output_path: Path) -> None:
    logger.debug(f"Running: {' '.join(cmd)}")
    subprocess.run(cmd, capture_output=True, check=True)
    if not output_path.exists() or output_path.stat().st_size == 0:
        raise EmptyOutputError(f"ffmpeg produced no output at {output_path}")


def probe(input_path: Path) -> ProbeResult:
    """Extract media metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    data = json.loads(result.stdout)

    video_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "video"), None
    )
    audio_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "audio"), None
    )

    if video_stream is None:
        raise ValueError(f"No video stream found in {input_path}")

    return ProbeResult(
        duration=float(data["format"]["duration"]),
        width=video_stream.get("width"),
        height=video_stream.get("height"),
        codec_video=video_stream.get("codec_name"),
        codec_audio=audio_stream.get("codec_name") if audio_stream else None,
    )


def copy_range(input_path: Path, start: int, duration: int, output_path: Path) -> Path:
    """Extract ``duration`` seconds from ``start`` without re-encoding.

    Fails when the cut does not land on a decodable frame boundary (or the
    container rejects the copied streams).
    """
    cmd = [
        "ffmpeg", "-y",
        "-ss", str(start),
        "-i", str(input_path),
        "-t", str(duration),
        "-c", "copy",
        str(output_path),
    ]
    _run(cmd, output_path)
    return output_path


def reencode_range(input_path: Path, start: int, duration: int, output_path: Path) -> Path:
    """Extract ``duration`` seconds from ``start``, re-encoding every frame."""
    cmd = [
        "ffmpeg", "-y",
        "-ss", str(start),
        "-i", str(input_path),
        "-t", str(duration),
        str(output_path),
    ]
    _run(cmd, output_path)
    return output_path


def _quote_concat_path(path: Path) -> str:
    # ffconcat uses shell-like single quoting; a literal quote is '\''
    return "'" + str(path).replace("'", "'\\''") + "'"


def write_concat_list(inputs: list[Path], list_path: Path) -> Path:
    """Write an ffconcat manifest listing ``inputs`` in the given order."""
    lines = [CONCAT_HEADER]
    for p in inputs:
        lines.append(f"file {_quote_concat_path(Path(p).resolve())}\n")
    list_path.write_text("".join(lines), encoding="utf-8")
    return list_path


def concat_exact(list_path: Path, output_path: Path) -> Path:
    """Concatenate the files named in an ffconcat manifest, copying streams."""
    cmd = [
        "ffmpeg", "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(list_path),
        "-c", "copy",
        str(output_path),
    ]
    _run(cmd, output_path)
    return output_path
