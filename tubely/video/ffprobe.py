from __future__ import annotations

import json
import logging
import math
import subprocess

from tubely.config.settings import settings
from tubely.files.assets import LANDSCAPE, OTHER, PORTRAIT
from tubely.utils.exceptions import ProbeExecutionError, ProbeParseError

logger = logging.getLogger(__name__)

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 0.05


def probe_dimensions(file_path: str) -> tuple[int, int]:
    """Read width and height of the first video stream with ffprobe."""
    cmd = [
        settings.FFPROBE_PATH,
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=width,height",
        "-of", "json",
        file_path,
    ]

    logger.debug("Probing video dimensions: %s", file_path)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ProbeExecutionError(f"Could not run ffprobe: {e}") from e

    stderr_output = (result.stderr or "").strip()
    if result.returncode != 0:
        raise ProbeExecutionError(
            f"ffprobe failed (code {result.returncode}): {stderr_output[:500]}"
        )
    if stderr_output:
        raise ProbeExecutionError(f"ffprobe reported errors: {stderr_output[:500]}")

    try:
        data = json.loads(result.stdout)
        stream = data["streams"][0]
        width = int(stream["width"])
        height = int(stream["height"])
    except (json.JSONDecodeError, KeyError, IndexError, TypeError, ValueError) as e:
        raise ProbeParseError(f"Unexpected ffprobe output for {file_path}: {e}") from e

    if width <= 0 or height <= 0:
        raise ProbeParseError(f"Invalid video dimensions {width}x{height} for {file_path}")

    return width, height


def classify_aspect_ratio(width: int, height: int) -> str:
    """Bucket a frame size into landscape, portrait or other. Landscape wins ties."""
    ratio = width / height
    if math.isclose(ratio, LANDSCAPE_RATIO, rel_tol=0.0, abs_tol=RATIO_TOLERANCE):
        return LANDSCAPE
    if math.isclose(ratio, PORTRAIT_RATIO, rel_tol=0.0, abs_tol=RATIO_TOLERANCE):
        return PORTRAIT
    return OTHER


def get_video_aspect_ratio(file_path: str) -> str:
    """Probe ``file_path`` once and return its aspect-ratio bucket."""
    width, height = probe_dimensions(file_path)
    bucket = classify_aspect_ratio(width, height)
    logger.info("Classified %s as %s (%dx%d)", file_path, bucket, width, height)
    return bucket
