import time
from datetime import UTC, datetime

from fastapi import APIRouter

from bookreview.config import APP_NAME, ENVIRONMENT, VERSION

router = APIRouter(tags=["health"])

_started = time.monotonic()


@router.get("/")
async def index():
    return {
        "message": f"{APP_NAME} is running",
        "version": VERSION,
        "environment": ENVIRONMENT,
        "timestamp": datetime.now(UTC).isoformat(),
        "endpoints": {
            "auth": "/api/auth",
            "users": "/api/users",
            "books": "/api/books",
            "reviews": "/api/reviews",
        },
    }


@router.get("/api/health")
async def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - _started, 3),
    }
