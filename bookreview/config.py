import os
from pathlib import Path

APP_NAME = "Book Review Platform API"
VERSION = "2.0.0"
ENVIRONMENT = os.environ.get("BOOKREVIEW_ENV", "development")

DB_PATH = os.environ.get("BOOKREVIEW_DB_PATH", str(Path.cwd() / "bookreview.db"))
DATABASE_URL = os.environ.get("BOOKREVIEW_DATABASE_URL", f"sqlite+aiosqlite:///{DB_PATH}")

# Credentials
JWT_SECRET = os.environ.get("BOOKREVIEW_JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_MINUTES = int(os.environ.get("BOOKREVIEW_JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))
BCRYPT_ROUNDS = int(os.environ.get("BOOKREVIEW_BCRYPT_ROUNDS", "12"))

LOG_LEVEL = os.environ.get("BOOKREVIEW_LOG_LEVEL", "INFO")

HOST = os.environ.get("BOOKREVIEW_HOST", "127.0.0.1")
PORT = int(os.environ.get("BOOKREVIEW_PORT", "3001"))


def _allowed_origins() -> list[str]:
    origins = []
    frontend_url = os.environ.get("BOOKREVIEW_FRONTEND_URL")
    if frontend_url:
        origins.append(frontend_url)
    extra = os.environ.get("BOOKREVIEW_ALLOWED_ORIGINS")
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())
    if not origins:
        origins = ["http://localhost:3000", "http://localhost:5173"]
    return list(dict.fromkeys(origins))


ALLOWED_ORIGINS = _allowed_origins()
