"""Thumbnail upload and read endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from tubely.api.deps import (
    check_upload_size,
    get_owned_video,
    get_thumbnail_store,
    get_upload_field,
    upload_form,
)
from tubely.config.settings import settings
from tubely.db import crud
from tubely.db.database import get_db
from tubely.storage.thumbnails import ThumbnailStore
from tubely.utils.exceptions import BadRequestError, NotFoundError
from tubely.utils.logging import VideoLogger
from tubely.utils.security import parse_video_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["thumbnails"])


@router.post("/thumbnail_upload/{video_id}", status_code=204)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    db: Session = Depends(get_db),
    store: ThumbnailStore = Depends(get_thumbnail_store),
):
    """Store a thumbnail image for a video the caller owns."""
    video = get_owned_video(request, db, video_id)
    log = VideoLogger(video.id)

    limit = settings.MAX_THUMBNAIL_UPLOAD_BYTES
    async with upload_form(request, limit) as form:
        upload = get_upload_field(form, "thumbnail", "Thumbnail")
        check_upload_size(upload, limit)

        media_type = upload.content_type
        if not media_type:
            raise BadRequestError("Missing Content-Type for thumbnail")

        data = await upload.read()

    url = await run_in_threadpool(store.save, video.id, data, media_type)

    video.thumbnail_url = url
    crud.update_video(db, video)
    log.info("Thumbnail stored (%s, %s, %d bytes)", store.mode, media_type, len(data))

    return Response(status_code=204)


@router.get("/thumbnails/{video_id}")
def get_thumbnail(
    video_id: str,
    db: Session = Depends(get_db),
    store: ThumbnailStore = Depends(get_thumbnail_store),
):
    """Serve a stored thumbnail with its original media type."""
    video_id = parse_video_id(video_id)
    video = crud.get_video(db, video_id)
    if not video:
        raise NotFoundError("Couldn't find video")

    thumbnail = store.load(video.id)
    if thumbnail is None:
        raise NotFoundError("Thumbnail not found")

    return Response(
        content=thumbnail.data,
        media_type=thumbnail.media_type,
        headers={"Cache-Control": "no-store"},
    )
