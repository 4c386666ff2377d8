"""Thumbnail storage backends.

A deployment uses exactly one backend, chosen by ``THUMBNAIL_STORAGE``:

- ``disk``: files named ``<video_id><ext>`` under ``ASSETS_ROOT``, also
  served by the ``/assets`` static mount
- ``memory``: a process-scoped map, lost on restart, served only by
  ``GET /api/thumbnails/{video_id}``
"""

from __future__ import annotations

import logging
import mimetypes
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from tubely.config.settings import Settings
from tubely.files.assets import (
    asset_disk_path,
    asset_filename,
    asset_url,
    thumbnail_api_url,
)
from tubely.files.file_manager import write_bytes_atomic
from tubely.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thumbnail:
    data: bytes
    media_type: str


class ThumbnailStore(ABC):
    """Saves thumbnails and answers the read path for them."""

    mode: str

    @abstractmethod
    def save(self, video_id: str, data: bytes, media_type: str) -> str:
        """Store a thumbnail and return its public URL."""

    @abstractmethod
    def load(self, video_id: str) -> Thumbnail | None:
        """Return the stored thumbnail, or None if there is none."""


class MemoryThumbnailStore(ThumbnailStore):
    mode = "memory"

    def __init__(self, base_url: str):
        self._base_url = base_url
        self._items: dict[str, Thumbnail] = {}
        self._lock = threading.Lock()

    def save(self, video_id: str, data: bytes, media_type: str) -> str:
        with self._lock:
            self._items[video_id] = Thumbnail(data=data, media_type=media_type)
        logger.info("Thumbnail cached in memory: %s (%d bytes)", video_id, len(data))
        return thumbnail_api_url(self._base_url, video_id)

    def load(self, video_id: str) -> Thumbnail | None:
        with self._lock:
            return self._items.get(video_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class DiskThumbnailStore(ThumbnailStore):
    """
    Files named ``<video_id><ext>`` under the assets root.

    The declared media type is kept in a hidden ``.<video_id>.media-type``
    sidecar so reads return it unchanged, whatever the extension.
    """

    mode = "disk"

    def __init__(self, assets_root: str, base_url: str):
        self._root = assets_root
        self._base_url = base_url

    def save(self, video_id: str, data: bytes, media_type: str) -> str:
        filename = asset_filename(video_id, media_type)
        try:
            path = asset_disk_path(self._root, filename)
            # Drop copies stored under a different extension
            for stale in self._find(video_id):
                if stale != path:
                    stale.unlink(missing_ok=True)
            write_bytes_atomic(path, data)
            write_bytes_atomic(self._media_type_path(video_id), media_type.encode("utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to write thumbnail for {video_id}: {e}") from e
        return asset_url(self._base_url, filename)

    def load(self, video_id: str) -> Thumbnail | None:
        for path in self._find(video_id):
            try:
                data = path.read_bytes()
            except OSError as e:
                raise StorageError(f"Failed to read thumbnail {path}: {e}") from e
            return Thumbnail(data=data, media_type=self._read_media_type(video_id, path))
        return None

    def _find(self, video_id: str) -> list[Path]:
        root = Path(self._root)
        if not root.is_dir():
            return []
        prefix = f"{video_id}."
        return sorted(
            p for p in root.iterdir()
            if p.is_file() and p.name.startswith(prefix) and not p.name.endswith(".part")
        )

    def _media_type_path(self, video_id: str) -> Path:
        return asset_disk_path(self._root, f".{video_id}.media-type")

    def _read_media_type(self, video_id: str, path: Path) -> str:
        try:
            stored = self._media_type_path(video_id).read_text(encoding="utf-8").strip()
        except (OSError, ValueError):
            stored = ""
        if stored:
            return stored
        guessed, _ = mimetypes.guess_type(path.name)
        return guessed or "application/octet-stream"


def build_thumbnail_store(cfg: Settings) -> ThumbnailStore:
    """Create the backend selected by ``cfg.THUMBNAIL_STORAGE``."""
    if cfg.THUMBNAIL_STORAGE == "memory":
        return MemoryThumbnailStore(cfg.BASE_URL)
    if cfg.THUMBNAIL_STORAGE == "disk":
        return DiskThumbnailStore(cfg.ASSETS_ROOT, cfg.BASE_URL)
    raise ValueError(f"Unknown thumbnail storage mode: {cfg.THUMBNAIL_STORAGE}")
