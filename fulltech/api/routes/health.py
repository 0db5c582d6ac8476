from datetime import datetime, timezone

from fastapi import APIRouter, Response

from fulltech.core.config import get_settings

router = APIRouter()
settings = get_settings()


@router.get("/health")
def health(response: Response):
    response.headers["Cache-Control"] = "no-store"
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }
