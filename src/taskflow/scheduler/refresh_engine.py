"""APScheduler-based engine. 반복 할일 리셋(매일)과 주간 리셋 + 완료 항목 정리(매주 일요일) 잡을 관리한다."""

import logging
from dataclasses import dataclass, field

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from taskflow.models.database import Database
from taskflow.services.subtask_service import SubtaskService
from taskflow.services.task_service import DEFAULT_RETENTION_DAYS, TaskService, list_owner_ids

logger = logging.getLogger(__name__)


@dataclass
class JobReport:
    processed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"owners": len(self.processed), "failed": len(self.failed)}


async def _owners(database: Database, refresh_type: str | None = None) -> list[str]:
    # 매 실행 시 tasks 테이블을 스캔한다 (캐시하지 않음)
    async with database.session() as session:
        return await list_owner_ids(session, refresh_type)


async def run_daily_reset(database: Database) -> JobReport:
    """Reset daily tasks for every owner that has one."""
    report = JobReport()
    for user_id in await _owners(database, "daily"):
        try:
            async with database.session() as session:
                count = await TaskService(session, user_id).reset_daily_tasks()
            report.processed.append(user_id)
            logger.debug("Reset %d daily tasks for user_id=%s", count, user_id)
        except Exception:
            report.failed.append(user_id)
            logger.exception("Daily reset failed for user_id=%s", user_id)
    logger.info(
        "Daily reset done (owners=%d, failed=%d)", len(report.processed), len(report.failed)
    )
    return report


async def run_weekly_maintenance(
    database: Database,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> JobReport:
    """Reset weekly tasks, then purge old completed tasks/subtasks for every owner."""
    report = JobReport()
    for user_id in await _owners(database, "weekly"):
        try:
            async with database.session() as session:
                await TaskService(session, user_id).reset_weekly_tasks()
            report.processed.append(user_id)
        except Exception:
            report.failed.append(user_id)
            logger.exception("Weekly reset failed for user_id=%s", user_id)

    for user_id in await _owners(database):
        try:
            async with database.session() as session:
                tasks = await TaskService(session, user_id).delete_old_completed_tasks(
                    retention_days
                )
                subtasks = await SubtaskService(session, user_id).delete_old_completed_subtasks(
                    retention_days
                )
            if tasks or subtasks:
                logger.info(
                    "Purged %d tasks, %d subtasks for user_id=%s", tasks, subtasks, user_id
                )
            if user_id not in report.processed and user_id not in report.failed:
                report.processed.append(user_id)
        except Exception:
            # 리셋은 성공했어도 정리에 실패하면 failed로만 집계
            if user_id in report.processed:
                report.processed.remove(user_id)
            if user_id not in report.failed:
                report.failed.append(user_id)
            logger.exception("Completed purge failed for user_id=%s", user_id)

    logger.info(
        "Weekly maintenance done (owners=%d, failed=%d)",
        len(report.processed),
        len(report.failed),
    )
    return report


class RefreshEngine:
    def __init__(self, database: Database, settings) -> None:
        self._database = database
        self._settings = settings
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def _trigger(self, **kwargs) -> CronTrigger:
        return CronTrigger(
            hour=self._settings.refresh_hour,
            minute=self._settings.refresh_minute,
            timezone=self._settings.refresh_timezone,
            **kwargs,
        )

    async def start(self) -> None:
        self._scheduler = AsyncIOScheduler(timezone=self._settings.refresh_timezone)
        self._scheduler.add_job(
            self._daily_reset,
            trigger=self._trigger(),
            id="daily_reset",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        # 매주 일요일: 주간 리셋 후 오래된 완료 항목 삭제
        self._scheduler.add_job(
            self._weekly_maintenance,
            trigger=self._trigger(day_of_week="sun"),
            id="weekly_maintenance",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "Refresh engine started: daily at %02d:%02d, weekly on Sunday at %02d:%02d (%s)",
            self._settings.refresh_hour,
            self._settings.refresh_minute,
            self._settings.refresh_hour,
            self._settings.refresh_minute,
            self._settings.refresh_timezone,
        )

    async def stop(self) -> None:
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

    async def _daily_reset(self) -> None:
        try:
            await run_daily_reset(self._database)
        except Exception:
            logger.exception("Error in daily reset")

    async def _weekly_maintenance(self) -> None:
        try:
            await run_weekly_maintenance(
                self._database, self._settings.completed_retention_days
            )
        except Exception:
            logger.exception("Error in weekly maintenance")
