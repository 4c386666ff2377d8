"""Logging setup and the per-video upload logger."""

import logging
import sys
from typing import Optional

from tubely.config.settings import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

UPLOAD_LOGGER = "tubely.uploads"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "botocore": logging.WARNING,
    "boto3": logging.WARNING,
    "s3transfer": logging.WARNING,
    "multipart": logging.INFO,
}


def setup_logging(level: Optional[str] = None) -> None:
    """Send every record to stdout; DEBUG when ``settings.DEBUG`` is on."""
    log_level = level or ("DEBUG" if settings.DEBUG else "INFO")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


class VideoLogger(logging.LoggerAdapter):
    """
    Upload logger bound to one video.

    Messages get a ``[video:<first 8 chars>]`` prefix, and each record carries
    the full id as ``record.video_id`` for handlers that want it.
    """

    def __init__(self, video_id: str, logger: Optional[logging.Logger] = None):
        super().__init__(logger or logging.getLogger(UPLOAD_LOGGER), {"video_id": video_id})

    def process(self, msg, kwargs):
        video_id = self.extra["video_id"]
        kwargs["extra"] = {**(kwargs.get("extra") or {}), "video_id": video_id}
        return f"[video:{video_id[:8]}] {msg}", kwargs
