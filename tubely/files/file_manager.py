"""Temporary file handling and asset writes."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


@contextmanager
def scoped_temp_file(temp_dir: str, suffix: str = "") -> Iterator[Path]:
    """
    Yield a fresh, empty temporary file path inside ``temp_dir``.

    The file is removed once when the block exits, whether it exits
    normally or with an exception.
    """
    Path(temp_dir).mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(suffix=suffix, dir=temp_dir)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
            logger.debug("Temp file removed: %s", path)
        except OSError as e:
            logger.warning("Failed to remove temp file %s: %s", path, e)


def copy_stream_to_path(src: BinaryIO, dest: Path) -> int:
    """Copy a file-like object to ``dest`` in chunks. Returns bytes written."""
    src.seek(0)
    with open(dest, "wb") as out:
        shutil.copyfileobj(src, out, COPY_CHUNK_SIZE)
        written = out.tell()
    logger.info("File written: %s (%d bytes)", dest, written)
    return written


def write_bytes_atomic(dest: Path, content: bytes) -> None:
    """Write ``content`` next to ``dest`` then rename it into place."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")
    tmp.write_bytes(content)
    os.replace(tmp, dest)
    logger.info("File written: %s (%d bytes)", dest, len(content))
