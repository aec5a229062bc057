"""Thin CLI entry point — loads a task list and calls the engine."""

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.logging import RichHandler

from clipstitch.engine import process
from clipstitch.errors import ClipStitchError
from clipstitch.ffutil import FFmpegNotFoundError
from clipstitch.manifest import (
    DEFAULT_CACHE_DIR,
    DEFAULT_SCRATCH_DIR,
    FetchConfig,
    PipelineConfig,
    load_tasks,
)


def setup_logging(verbose: bool = False) -> None:
    """Console logging through Rich; DEBUG when verbose."""
    logging.root.handlers.clear()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[
            RichHandler(
                show_time=True,
                show_level=True,
                show_path=False,
                markup=False,
            )
        ],
    )
    for noisy in ("urllib3.connectionpool", "werkzeug"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="clipstitch",
        description="clipstitch: cut segments from online videos and join them into one file.",
    )
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Assemble a video from a JSON task list")
    proc.add_argument("--input", "-i", type=Path, required=True,
                      help="JSON file describing videos and segments")
    proc.add_argument("--output", "-o", type=Path, required=True,
                      help="Path for the final merged video")
    proc.add_argument("--cache-dir", "-c", type=Path, default=DEFAULT_CACHE_DIR,
                      help="Directory for downloaded source videos (kept across runs)")
    proc.add_argument("--temp-dir", "-t", type=Path, default=DEFAULT_SCRATCH_DIR,
                      help="Directory for temporary segments (will be cleared)")
    proc.add_argument("--max-height", type=int, default=720,
                      help="Preferred maximum video height when downloading")
    proc.add_argument("--keep-temp", action="store_true",
                      help="Keep temporary segments after the run")
    proc.add_argument("--verbose", "-v", action="store_true",
                      help="Debug logging; also keeps temporary segments")

    serve = sub.add_parser("serve", help="Launch the web job API")
    serve.add_argument("--port", type=int, default=3032, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    serve.add_argument("--cache-dir", "-c", type=Path, default=DEFAULT_CACHE_DIR,
                       help="Directory for downloaded source videos")
    serve.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(args.verbose)

    if args.command == "serve":
        from clipstitch.web import create_app
        app = create_app(cache_dir=args.cache_dir)
        print(f"clipstitch job API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        requests = load_tasks(args.input)
    except (OSError, json.JSONDecodeError, ClipStitchError) as e:
        print(f"Error reading or parsing input JSON file ({args.input}): {e}", file=sys.stderr)
        sys.exit(1)

    config = PipelineConfig(
        output=args.output,
        scratch_dir=args.temp_dir,
        retain_scratch=args.keep_temp or args.verbose,
        fetch=FetchConfig(cache_dir=args.cache_dir, max_height=args.max_height),
    )

    try:
        result = process(config, requests)
    except FFmpegNotFoundError as e:
        print(f"Error: {e}. Please ensure ffmpeg is installed and on your PATH.", file=sys.stderr)
        sys.exit(1)
    except ClipStitchError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    if result.merged:
        print(f"Done! Output: {result.output_path.resolve()}")
        if result.duration is not None:
            print(f"  Duration: {result.duration:.1f}s")
    else:
        print("Nothing to join: no segments were produced.")
    print(f"  Clips produced: {result.produced_clip_count}")
    print(f"  Requests skipped: {result.skipped_count}")
    for s in result.skipped:
        print(f"    #{s.index} [{s.stage}] {s.source_ref}: {s.reason}")
    print(f"  Original downloads are cached in: {config.fetch.cache_dir.resolve()}")


if __name__ == "__main__":
    main()
