#!/usr/bin/env python3
"""Generate a synthetic source video for clipstitch pipeline testing.

Produces a ~20-second H.264/AAC video with a keyframe every 5 seconds, so
stream-copy cuts at 0/5/10/15s succeed and cuts elsewhere exercise the
re-encode fallback:
  0-5s   440 Hz tone + blue
  5-10s  660 Hz tone + red
  10-15s 880 Hz tone + green
  15-20s 220 Hz tone + yellow

Drop the result into the cache directory as ``<11-char-id>.mp4`` to run the
pipeline without downloading anything.
"""

import subprocess
import sys
from pathlib import Path


def generate_test_video(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    audio_filter = (
        "sine=f=440:d=5[a0];"
        "sine=f=660:d=5[a1];"
        "sine=f=880:d=5[a2];"
        "sine=f=220:d=5[a3];"
        "[a0][a1][a2][a3]concat=n=4:v=0:a=1[aout]"
    )

    video_filter = (
        "color=c=blue:s=320x240:d=5:r=30[v0];"
        "color=c=red:s=320x240:d=5:r=30[v1];"
        "color=c=green:s=320x240:d=5:r=30[v2];"
        "color=c=yellow:s=320x240:d=5:r=30[v3];"
        "[v0][v1][v2][v3]concat=n=4:v=1:a=0[vout]"
    )

    filter_complex = audio_filter + ";" + video_filter

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", filter_complex,
        "-map", "[vout]",
        "-map", "[aout]",
        "-c:v", "libx264",
        "-g", "150",
        "-c:a", "aac",
        "-shortest",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("media/.youtube_cache/synthAAAAAA.mp4")
    generate_test_video(out)
