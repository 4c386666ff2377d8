from sqlalchemy.orm import Session

from tubely.db.models import Video


def get_video(db: Session, video_id: str) -> Video | None:
    """Fetch a single video by id."""
    return db.query(Video).filter(Video.id == video_id).first()


def get_videos_for_user(
    db: Session, user_id: str, skip: int = 0, limit: int = 50
) -> list[Video]:
    """List a user's videos, newest first."""
    return (
        db.query(Video)
        .filter(Video.user_id == user_id)
        .order_by(Video.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_video(db: Session, **kwargs) -> Video:
    video = Video(**kwargs)
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def update_video(db: Session, video: Video) -> Video:
    """Persist changes made to an already loaded video."""
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def delete_video(db: Session, video_id: str) -> bool:
    """Delete a video by id. Returns True if a row was removed."""
    video = get_video(db, video_id)
    if not video:
        return False
    db.delete(video)
    db.commit()
    return True
