"""Shared test fixtures."""

import subprocess
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import yt_dlp

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_tasks_path() -> Path:
    return FIXTURES_DIR / "sample_tasks.json"


def _arg(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


class FakeFFmpeg:
    """Stands in for ``subprocess.run`` inside clipstitch.ffutil.

    Cuts write a small text marker ``[<source stem>:<start>+<duration>:<mode>]``
    and concatenation joins the listed files byte-for-byte, so the merged
    output spells out which clips went in and in what order.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.copy_fails: set[str] = set()
        self.reencode_fails: set[str] = set()
        self.concat_fails = False

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        output = Path(cmd[-1])

        if "-f" in cmd and _arg(cmd, "-f") == "concat":
            if self.concat_fails:
                output.write_bytes(b"partial")
                raise subprocess.CalledProcessError(1, cmd, stderr=b"Non-monotonous DTS in output stream")
            list_path = Path(_arg(cmd, "-i"))
            chunks = []
            for line in list_path.read_text(encoding="utf-8").splitlines()[1:]:
                quoted = line[len("file "):]
                chunks.append(Path(quoted[1:-1].replace("'\\''", "'")).read_bytes())
            output.write_bytes(b"".join(chunks))
            return MagicMock(returncode=0)

        source = Path(_arg(cmd, "-i")).stem
        mode = "copy" if "-c" in cmd else "reencode"
        failing = self.copy_fails if mode == "copy" else self.reencode_fails
        if source in failing or "*" in failing:
            raise subprocess.CalledProcessError(1, cmd, stderr=b"Invalid data found when processing input")
        marker = f"[{source}:{_arg(cmd, '-ss')}+{_arg(cmd, '-t')}:{mode}]"
        output.write_bytes(marker.encode())
        return MagicMock(returncode=0)

    def commands(self, kind: str) -> list[list[str]]:
        if kind == "concat":
            return [c for c in self.calls if "-f" in c and _arg(c, "-f") == "concat"]
        if kind == "copy":
            return [c for c in self.calls if "-c" in c and "-ss" in c]
        return [c for c in self.calls if "-ss" in c and "-c" not in c]


@pytest.fixture
def fake_ffmpeg():
    fake = FakeFFmpeg()
    with patch("clipstitch.ffutil.subprocess.run", side_effect=fake):
        yield fake


@pytest.fixture
def fake_ytdlp():
    """Patch yt-dlp so downloads write a small file into the staging path."""
    state = SimpleNamespace(downloads=[], options=[], failing=set())

    def factory(opts):
        state.options.append(opts)
        ydl = MagicMock()
        ydl.__enter__.return_value = ydl

        def download(urls):
            url = urls[0]
            state.downloads.append(url)
            if any(token in url for token in state.failing):
                Path(opts["outtmpl"].replace("%(ext)s", "mp4.part")).write_bytes(b"trunc")
                raise yt_dlp.utils.DownloadError("ERROR: Video unavailable")
            Path(opts["outtmpl"].replace("%(ext)s", "mp4")).write_bytes(b"source:" + url.encode())

        ydl.download.side_effect = download
        return ydl

    with patch("clipstitch.sources.fetcher.yt_dlp.YoutubeDL", side_effect=factory):
        yield state
