"""Content-addressed on-disk store of retrieved sources."""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from clipstitch.models import CachedSource

logger = logging.getLogger(__name__)

STAGING_DIRNAME = ".incoming"


class SourceCache:
    """Directory-backed mapping from source identifier to a cached file.

    Entries are ``<cache_dir>/<id>.<container>``. Each retrieval writes into
    its own private directory under ``<cache_dir>/.incoming/`` and is moved
    into place by :meth:`commit`, so a file at the canonical path is always a
    completed retrieval and concurrent retrievals of the same id never share
    partial files. Entries are never evicted, overwritten or deleted here.
    """

    def __init__(self, cache_dir: Path, container: str = "mp4"):
        self.cache_dir = Path(cache_dir)
        self.container = container

    @property
    def staging_dir(self) -> Path:
        return self.cache_dir / STAGING_DIRNAME

    def ensure_dir(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.staging_dir.mkdir(parents=True, exist_ok=True)

    def path(self, source_id: str) -> Path:
        return self.cache_dir / f"{source_id}.{self.container}"

    def exists(self, source_id: str) -> bool:
        return self.path(source_id).is_file()

    def get(self, source_id: str) -> CachedSource | None:
        if not self.exists(source_id):
            return None
        return CachedSource(id=source_id, local_path=self.path(source_id))

    def stage(self, source_id: str) -> Path:
        """Create a private staging directory; return the file path to fill."""
        self.ensure_dir()
        work_dir = Path(tempfile.mkdtemp(dir=self.staging_dir, prefix=f"{source_id}."))
        return work_dir / f"{source_id}.{self.container}"

    def commit(self, source_id: str, staged: Path) -> CachedSource:
        """Atomically move a completed retrieval into the cache."""
        target = self.path(source_id)
        if target.exists():
            # Another run got there first; keep the existing entry.
            logger.debug(f"Cache entry {source_id} already present, discarding staged copy")
        else:
            os.replace(staged, target)
            logger.debug(f"Committed {source_id} to cache at {target}")
        self.discard(staged)
        return CachedSource(id=source_id, local_path=target)

    def discard(self, staged: Path) -> None:
        """Remove the private staging directory holding ``staged``."""
        work_dir = Path(staged).parent
        if work_dir.resolve().parent != self.staging_dir.resolve() or not work_dir.is_dir():
            return
        try:
            shutil.rmtree(work_dir)
        except OSError as e:
            logger.warning(f"Could not remove staging directory {work_dir}: {e}")
