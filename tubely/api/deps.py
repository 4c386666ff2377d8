"""Shared request helpers: injected services, caller identity, ownership checks."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.orm import Session
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Message, Receive

from tubely.config.settings import settings
from tubely.db import crud
from tubely.db.models import Video
from tubely.storage.object_store import ObjectStore
from tubely.storage.thumbnails import ThumbnailStore
from tubely.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from tubely.utils.security import get_bearer_token, parse_video_id, validate_jwt

# Allowance for multipart boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def get_thumbnail_store(request: Request) -> ThumbnailStore:
    return request.app.state.thumbnail_store


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def authenticate(request: Request) -> str:
    """Return the user id carried by the request's bearer token."""
    token = get_bearer_token(request.headers)
    return validate_jwt(token, settings.JWT_SECRET)


def get_owned_video(request: Request, db: Session, video_id: str | None) -> Video:
    """
    Resolve ``video_id`` to a video the caller owns.

    Checks run in a fixed order: id shape, credentials, existence, ownership.
    """
    video_id = parse_video_id(video_id)
    user_id = authenticate(request)

    video = crud.get_video(db, video_id)
    if not video:
        raise NotFoundError("Couldn't find video")
    if video.user_id != user_id:
        raise ForbiddenError("Not authorized to update this video")
    return video


class BodyLimiter:
    """
    ASGI ``receive`` wrapper that counts request body bytes.

    Raises BadRequestError as soon as more than ``max_bytes`` have arrived, so
    an oversized body is never read to the end.
    """

    def __init__(self, receive: Receive, max_bytes: int, limit: int):
        self._receive = receive
        self._max_bytes = max_bytes
        self._limit = limit
        self.received = 0

    async def __call__(self) -> Message:
        message = await self._receive()
        if message["type"] == "http.request":
            self.received += len(message.get("body", b""))
            if self.received > self._max_bytes:
                raise BadRequestError(f"File exceeds size limit ({self._limit} bytes)")
        return message


def check_declared_size(request: Request, limit: int) -> None:
    """Reject a request whose Content-Length already rules it out, before parsing."""
    raw = request.headers.get("content-length")
    if raw is None:
        return
    try:
        declared = int(raw)
    except ValueError:
        raise BadRequestError("Invalid Content-Length header")
    if declared > limit + MULTIPART_OVERHEAD_BYTES:
        raise BadRequestError(f"File exceeds size limit ({limit} bytes)")


@asynccontextmanager
async def upload_form(request: Request, limit: int) -> AsyncIterator[FormData]:
    """
    Parse a multipart body of at most ``limit`` file bytes.

    The declared length is checked first; the body itself is counted while it
    streams in, which covers chunked requests with no Content-Length. Spooled
    upload files are closed when the block exits.
    """
    check_declared_size(request, limit)
    limiter = BodyLimiter(request.receive, limit + MULTIPART_OVERHEAD_BYTES, limit)
    limited = Request(request.scope, receive=limiter)
    try:
        form = await limited.form()
    except StarletteHTTPException as e:
        raise BadRequestError(
            f"Couldn't parse form data: {e.detail}", user_message="Couldn't parse form data"
        )
    try:
        yield form
    finally:
        await form.close()


def get_upload_field(form: FormData, field: str, label: str) -> UploadFile:
    """Pull a file part out of a parsed multipart form."""
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        raise BadRequestError(f"{label} file missing")
    return upload


def check_upload_size(upload: UploadFile, limit: int) -> None:
    size = upload.size
    if size is None:
        upload.file.seek(0, 2)
        size = upload.file.tell()
        upload.file.seek(0)
    if size > limit:
        raise BadRequestError(f"File exceeds size limit ({limit} bytes)")
