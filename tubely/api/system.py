from fastapi import APIRouter, Request

router = APIRouter(tags=["system"])


@router.get("/healthz")
def healthz(request: Request):
    """Liveness probe."""
    return {
        "status": "ok",
        "thumbnail_storage": request.app.state.thumbnail_store.mode,
    }
