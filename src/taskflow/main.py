"""Entry point: starts the API server (and, unless disabled, the refresh scheduler)."""

import asyncio
import logging
from logging.handlers import RotatingFileHandler

import uvicorn

from config.settings import settings

# ── Logging ────────────────────────────────────────────────


def setup_logging() -> None:
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler
    fh = RotatingFileHandler(
        log_dir / "taskflow.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    fh.setFormatter(formatter)
    fh.setLevel(level)

    # Console handler
    ch = logging.StreamHandler()
    ch.setFormatter(formatter)
    ch.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(fh)
    root.addHandler(ch)

    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ── Main ───────────────────────────────────────────────────


async def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting Taskflow...")

    from taskflow.models.database import Database, init_db
    from taskflow.web.app import create_app

    # DATABASE_URL가 없으면 여기서 RuntimeError로 종료한다
    database = Database.from_settings(settings)
    await init_db(database)
    logger.info("Database initialized")

    if not (settings.supabase_url and settings.supabase_anon_key):
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set: every API request will get 401")
    if not settings.cron_secret:
        logger.warning("CRON_SECRET not set: cron endpoints are disabled")

    app = create_app(settings, database=database)
    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.host, port=settings.port, log_config=None)
    )
    logger.info("Taskflow is listening on %s:%d", settings.host, settings.port)
    # uvicorn handles SIGINT/SIGTERM; the lifespan stops the scheduler and disposes the pool
    await server.serve()
    logger.info("Goodbye!")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
