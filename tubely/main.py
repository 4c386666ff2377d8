import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tubely.api.router import api_router
from tubely.config.settings import settings
from tubely.db.database import init_db
from tubely.storage.object_store import build_object_store
from tubely.storage.thumbnails import build_thumbnail_store
from tubely.utils.exceptions import TubelyError, get_user_message
from tubely.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Tubely starting up...")
    settings.ensure_directories()
    init_db()
    app.state.thumbnail_store = build_thumbnail_store(settings)
    app.state.object_store = build_object_store(settings)
    logger.info(
        "Database initialized, thumbnails stored in %s, videos in bucket %s.",
        app.state.thumbnail_store.mode,
        settings.S3_BUCKET,
    )
    yield
    logger.info("Tubely shutting down.")


app = FastAPI(
    title="Tubely",
    description="Video records with thumbnail and MP4 uploads",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TubelyError)
async def handle_tubely_error(request: Request, exc: TubelyError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": get_user_message(exc)})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first['msg']}" if field else first["msg"]
    logger.info("%s %s rejected (400): %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("%s %s crashed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": get_user_message(exc)})


app.include_router(api_router)

# Thumbnails written in disk mode
app.mount("/assets", StaticFiles(directory=settings.ASSETS_ROOT, check_dir=False), name="assets")


def run() -> None:
    """Serve the app with uvicorn on ``HOST:PORT``."""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
