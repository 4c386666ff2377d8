from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from tubely.api.deps import (
    authenticate,
    check_upload_size,
    get_object_store,
    get_owned_video,
    get_upload_field,
    upload_form,
)
from tubely.config.settings import settings
from tubely.db import crud
from tubely.db.database import get_db
from tubely.files.assets import VIDEO_MEDIA_TYPE, build_video_key
from tubely.files.file_manager import copy_stream_to_path, scoped_temp_file
from tubely.storage.object_store import ObjectStore
from tubely.utils.exceptions import BadRequestError, StorageError
from tubely.utils.logging import VideoLogger
from tubely.video.ffprobe import get_video_aspect_ratio

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])


# ---------- Pydantic Schemas ----------

class VideoCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None


class VideoResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str]
    video_url: Optional[str]
    thumbnail_url: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]


def _video_to_response(video) -> dict:
    """Convert a Video ORM model to a response dict."""
    return {
        "id": video.id,
        "user_id": video.user_id,
        "title": video.title,
        "description": video.description,
        "video_url": video.video_url,
        "thumbnail_url": video.thumbnail_url,
        "created_at": video.created_at.isoformat() if video.created_at else None,
        "updated_at": video.updated_at.isoformat() if video.updated_at else None,
    }


# ---------- Endpoints ----------

@router.post("/videos", status_code=201, response_model=VideoResponse)
def create_video(req: VideoCreateRequest, request: Request, db: Session = Depends(get_db)):
    """Create an empty video record owned by the caller."""
    user_id = authenticate(request)
    video = crud.create_video(
        db,
        user_id=user_id,
        title=req.title,
        description=req.description,
    )
    logger.info("Video created: %s (user %s)", video.id, user_id)
    return _video_to_response(video)


@router.get("/videos", response_model=list[VideoResponse])
def list_videos(
    request: Request,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """List the caller's videos, newest first."""
    user_id = authenticate(request)
    videos = crud.get_videos_for_user(db, user_id, skip=skip, limit=limit)
    return [_video_to_response(v) for v in videos]


@router.get("/videos/{video_id}", response_model=VideoResponse)
def get_video(video_id: str, request: Request, db: Session = Depends(get_db)):
    video = get_owned_video(request, db, video_id)
    return _video_to_response(video)


@router.delete("/videos/{video_id}", status_code=204)
def delete_video(video_id: str, request: Request, db: Session = Depends(get_db)):
    video = get_owned_video(request, db, video_id)
    crud.delete_video(db, video.id)
    logger.info("Video deleted: %s", video.id)
    return Response(status_code=204)


@router.post("/video_upload/{video_id}", response_model=VideoResponse)
async def upload_video(
    video_id: str,
    request: Request,
    db: Session = Depends(get_db),
    object_store: ObjectStore = Depends(get_object_store),
):
    """
    Upload an MP4 for a video the caller owns.

    The file is staged in a temp file, probed for its aspect ratio and sent
    to object storage under ``<landscape|portrait|other>/<video_id>.mp4``.
    The record is only updated once the upload succeeded.
    """
    video = get_owned_video(request, db, video_id)
    log = VideoLogger(video.id)

    limit = settings.MAX_VIDEO_UPLOAD_BYTES
    async with upload_form(request, limit) as form:
        upload = get_upload_field(form, "video", "Video")
        check_upload_size(upload, limit)
        if upload.content_type != VIDEO_MEDIA_TYPE:
            raise BadRequestError("Invalid file type, only MP4 is allowed")

        with scoped_temp_file(settings.TEMP_DIR, suffix=".mp4") as temp_path:
            try:
                await run_in_threadpool(copy_stream_to_path, upload.file, temp_path)
            except OSError as e:
                raise StorageError(f"Failed to stage upload for {video.id}: {e}") from e
            log.info("Staged upload at %s", temp_path)

            bucket_tag = await run_in_threadpool(get_video_aspect_ratio, str(temp_path))
            key = build_video_key(bucket_tag, video.id)
            await run_in_threadpool(object_store.upload, key, str(temp_path), VIDEO_MEDIA_TYPE)
            log.info("Uploaded to object storage as %s", key)

    video.video_url = object_store.object_url(key)
    crud.update_video(db, video)

    return _video_to_response(video)
