from fastapi import APIRouter

from tubely.api import system, thumbnails, videos

api_router = APIRouter(prefix="/api")

api_router.include_router(system.router)
api_router.include_router(videos.router)
api_router.include_router(thumbnails.router)
