"""Source retrieval — resolve a reference URL and make sure it is cached."""

import logging
from pathlib import Path

import yt_dlp

from clipstitch.errors import DownloadError, InvalidReference
from clipstitch.manifest import FetchConfig
from clipstitch.models import CachedSource
from clipstitch.sources.cache import SourceCache
from clipstitch.sources.identifier import extract_source_id

logger = logging.getLogger(__name__)


class _YtDlpLogger:
    """Route yt-dlp's own messages into our logger."""

    def debug(self, msg: str) -> None:
        logger.debug(msg)

    def info(self, msg: str) -> None:
        logger.debug(msg)

    def warning(self, msg: str) -> None:
        logger.warning(msg)

    def error(self, msg: str) -> None:
        logger.error(msg)


def format_selector(max_height: int) -> str:
    """Prefer <= max_height video+audio, then a muxed <= max_height, then anything."""
    return (
        f"bestvideo[height<={max_height}]+bestaudio"
        f"/best[height<={max_height}]"
        f"/best"
    )


class SourceFetcher:
    """Ensures exactly one cached local copy exists per source identifier."""

    def __init__(self, config: FetchConfig, cache: SourceCache | None = None):
        self.config = config
        self.cache = cache or SourceCache(config.cache_dir, container=config.container)

    def resolve(self, source_ref: str) -> str:
        source_id = extract_source_id(source_ref)
        if source_id is None:
            raise InvalidReference(f"Could not extract video ID from URL: {source_ref}")
        return source_id

    def ensure(self, source_ref: str) -> CachedSource:
        """Return the cached copy of ``source_ref``, downloading it if absent.

        An existing cache entry is returned as-is: no freshness or
        resolution check is made.
        """
        source_id = self.resolve(source_ref)

        cached = self.cache.get(source_id)
        if cached is not None:
            logger.info(f"Video {source_id} found in cache: {cached.local_path}")
            return cached

        logger.info(f"Video {source_id} not in cache. Downloading...")
        return self.fetch(source_id, source_ref)

    def fetch(self, source_id: str, source_ref: str) -> CachedSource:
        """Retrieve ``source_ref`` into staging and commit it to the cache."""
        staged = self.cache.stage(source_id)

        try:
            self._download(source_ref, staged)
        except yt_dlp.utils.DownloadError as e:
            self.cache.discard(staged)
            raise DownloadError(f"Error downloading {source_ref} (ID: {source_id}): {e}", cause=e) from e
        except Exception as e:
            self.cache.discard(staged)
            logger.exception(f"Unexpected error downloading {source_id}")
            raise DownloadError(f"Unexpected error downloading {source_ref}: {e}", cause=e) from e

        if not staged.is_file() or staged.stat().st_size == 0:
            self.cache.discard(staged)
            raise DownloadError(f"Retrieval of {source_ref} produced no {self.config.container} file")

        cached = self.cache.commit(source_id, staged)
        logger.info(f"Downloaded and cached {source_id} to {cached.local_path}")
        return cached

    def _download(self, url: str, staged: Path) -> None:
        container = self.config.container
        ydl_opts = {
            "format": format_selector(self.config.max_height),
            "merge_output_format": container,
            "outtmpl": str(staged.with_suffix("")) + ".%(ext)s",
            "postprocessors": [
                {
                    "key": "FFmpegVideoRemuxer",
                    "preferedformat": container,
                }
            ],
            "noplaylist": True,
            "overwrites": True,
            "writeinfojson": False,
            "writethumbnail": False,
            "ignoreerrors": False,
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "logger": _YtDlpLogger(),
        }
        logger.debug(f"yt-dlp format selector: {ydl_opts['format']}")
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            ydl.download([url])
