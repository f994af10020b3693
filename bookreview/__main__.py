import logging
import subprocess
import sys
from pathlib import Path

import uvicorn

from bookreview.config import DB_PATH, HOST, PORT
from bookreview.log import configure_logging

logger = logging.getLogger(__name__)


def run_migrations():
    """Run Alembic migrations before serving."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)

    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=False,
    )
    if result.returncode != 0:
        logger.error("Migrations failed with exit code %d", result.returncode)
        sys.exit(1)


def main():
    configure_logging()
    run_migrations()
    logger.info("Serving on %s:%d", HOST, PORT)
    uvicorn.run("bookreview.app:app", host=HOST, port=PORT, log_config=None)


if __name__ == "__main__":
    main()
