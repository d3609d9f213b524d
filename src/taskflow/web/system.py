"""Health check and cron entry points (serverless deployments without the in-process scheduler)."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from taskflow.scheduler.refresh_engine import run_daily_reset, run_weekly_maintenance
from taskflow.web.deps import require_cron_secret

health_router = APIRouter()
cron_router = APIRouter(prefix="/cron", dependencies=[Depends(require_cron_secret)])
logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@health_router.get("/health")
async def health(request: Request):
    """Uptime and database reachability; 503 when the database is down."""
    connected = await request.app.state.database.ping()
    body = {
        "status": "ok" if connected else "degraded",
        "timestamp": _timestamp(),
        "uptime": round(time.time() - request.app.state.started_at, 3),
        "database": {
            "connected": connected,
            "status": "healthy" if connected else "disconnected",
        },
    }
    return JSONResponse(status_code=200 if connected else 503, content=body)


@cron_router.post("/daily")
async def cron_daily(request: Request):
    report = await run_daily_reset(request.app.state.database)
    return {"message": "Daily tasks refreshed", "timestamp": _timestamp(), **report.as_dict()}


@cron_router.post("/weekly")
async def cron_weekly(request: Request):
    report = await run_weekly_maintenance(
        request.app.state.database,
        request.app.state.settings.completed_retention_days,
    )
    return {
        "message": "Weekly tasks refreshed and old completed tasks/subtasks cleaned up",
        "timestamp": _timestamp(),
        **report.as_dict(),
    }
