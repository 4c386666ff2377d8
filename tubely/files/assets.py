"""Builders for asset filenames, object keys and public URLs."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

from tubely.utils.security import safe_join

VIDEO_MEDIA_TYPE = "video/mp4"
DEFAULT_EXTENSION = ".bin"

# Aspect-ratio buckets used as object key prefixes
LANDSCAPE = "landscape"
PORTRAIT = "portrait"
OTHER = "other"
ASPECT_RATIO_BUCKETS = (LANDSCAPE, PORTRAIT, OTHER)


def media_type_to_ext(media_type: str) -> str:
    """
    Map a declared media type to a file extension.

    ``image/png`` -> ``.png``, ``image/jpeg; charset=binary`` -> ``.jpeg``.
    Anything without a ``type/subtype`` shape falls back to ``.bin``.
    """
    essence = media_type.split(";", 1)[0].strip().lower()
    parts = essence.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return DEFAULT_EXTENSION
    subtype = "".join(c for c in parts[1] if c.isalnum() or c in "+-.")
    return f".{subtype}" if subtype else DEFAULT_EXTENSION


def asset_filename(video_id: str, media_type: str) -> str:
    return f"{video_id}{media_type_to_ext(media_type)}"


def asset_disk_path(assets_root: str, filename: str) -> Path:
    return safe_join(assets_root, filename)


def asset_url(base_url: str, filename: str) -> str:
    return f"{base_url.rstrip('/')}/assets/{quote(filename)}"


def thumbnail_api_url(base_url: str, video_id: str) -> str:
    return f"{base_url.rstrip('/')}/api/thumbnails/{quote(video_id, safe='')}"


def build_video_key(bucket_tag: str, video_id: str) -> str:
    """
    Object key for an uploaded video: ``<bucket_tag>/<video_id>.mp4``.

    Both segments are percent-escaped so neither can introduce extra
    path levels.
    """
    if bucket_tag not in ASPECT_RATIO_BUCKETS:
        raise ValueError(f"Unknown aspect ratio bucket: {bucket_tag!r}")
    if not video_id:
        raise ValueError("Video id is required")
    return f"{quote(bucket_tag, safe='')}/{quote(video_id, safe='')}.mp4"


def build_object_url(bucket: str, region: str, key: str, endpoint_url: str | None = None) -> str:
    """Public URL of an object. Path-style when a custom endpoint is configured."""
    escaped_key = quote(key, safe="/")
    if endpoint_url:
        return f"{endpoint_url.rstrip('/')}/{quote(bucket, safe='')}/{escaped_key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{escaped_key}"
