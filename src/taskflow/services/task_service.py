from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import case, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.models.category import Category
from taskflow.models.database import utcnow
from taskflow.models.task import Subtask, Task
from taskflow.services.scope import OwnerScope

DEFAULT_RETENTION_DAYS = 7

# Fields a client may change through update_task()
TASK_UPDATE_FIELDS = frozenset({"title", "completed", "refresh_type", "category_id", "deadline"})


@dataclass
class TaskWithDetails:
    task: Task
    category_name: str | None = None
    subtasks: list[Subtask] = field(default_factory=list)


def apply_completion(row: Task | Subtask, completed: bool, now: datetime | None = None) -> None:
    """Set ``completed`` and keep ``completed_at`` in step with it.

    false→true stamps the time, true→false clears it, true→true keeps the
    original timestamp.
    """
    if completed and not row.completed:
        row.completed_at = now or utcnow()
    elif not completed:
        row.completed_at = None
    row.completed = completed


class TaskService(OwnerScope):
    # ── Task CRUD ──────────────────────────────────────────

    async def list_tasks(self) -> list[TaskWithDetails]:
        """Owner's tasks, daily ones first, then by display order."""
        daily_first = case((Task.refresh_type == "daily", 0), else_=1)
        result = await self.session.execute(
            self.select(Task).order_by(daily_first, Task.order, Task.id)
        )
        tasks = list(result.scalars().all())
        if not tasks:
            return []

        result = await self.session.execute(
            select(Subtask)
            .where(Subtask.task_id.in_([t.id for t in tasks]))
            .order_by(Subtask.id)
        )
        subtasks_by_task: dict[str, list[Subtask]] = {}
        for subtask in result.scalars().all():
            subtasks_by_task.setdefault(subtask.task_id, []).append(subtask)

        result = await self.session.execute(self.select(Category))
        category_names = {c.id: c.name for c in result.scalars().all()}

        return [
            TaskWithDetails(
                task=t,
                category_name=category_names.get(t.category_id),
                subtasks=subtasks_by_task.get(t.id, []),
            )
            for t in tasks
        ]

    async def get_task(self, task_id: str) -> Task | None:
        return await self._first(self.select(Task).where(Task.id == task_id))

    async def create_task(
        self,
        title: str,
        refresh_type: str = "none",
        category_id: str | None = None,
        deadline: datetime | None = None,
    ) -> Task:
        category_id = await self._check_category(category_id)
        task = Task(
            title=title,
            refresh_type=refresh_type,
            category_id=category_id,
            deadline=deadline,
            order=await self._next_order(Task),
            user_id=self.user_id,
        )
        self.session.add(task)
        await self.session.commit()
        await self.session.refresh(task)
        return task

    async def update_task(self, task_id: str, **kwargs) -> Task | None:
        task = await self.get_task(task_id)
        if not task:
            return None
        if "category_id" in kwargs:
            kwargs["category_id"] = await self._check_category(kwargs["category_id"])
        for key, value in kwargs.items():
            if key == "completed":
                apply_completion(task, value)
            elif key in TASK_UPDATE_FIELDS:
                setattr(task, key, value)
        await self.session.commit()
        await self.session.refresh(task)
        return task

    async def delete_task(self, task_id: str) -> None:
        """Delete a task and its subtasks. Unknown ids are ignored."""
        async with self.atomic():
            await self.session.execute(
                delete(Subtask).where(
                    Subtask.task_id == task_id,
                    Subtask.task_id.in_(self.owned_task_ids()),
                )
            )
            await self.session.execute(self.delete(Task).where(Task.id == task_id))

    async def reorder_tasks(self, task_ids: list[str]) -> None:
        await self._reorder(Task, task_ids)

    # ── Batch operations ───────────────────────────────────

    async def reset_daily_tasks(self) -> int:
        return await self._reset_tasks("daily")

    async def reset_weekly_tasks(self) -> int:
        return await self._reset_tasks("weekly")

    async def _reset_tasks(self, refresh_type: str) -> int:
        """Uncomplete every task of the given refresh type, and their subtasks.

        Applies to all matching tasks, completed or not. Returns the number of
        tasks reset.
        """
        now = utcnow()
        async with self.atomic():
            result = await self.session.execute(
                self.select(Task, Task.id).where(Task.refresh_type == refresh_type)
            )
            task_ids = list(result.scalars().all())
            if not task_ids:
                return 0

            await self.session.execute(
                self.update(Task)
                .where(Task.refresh_type == refresh_type)
                .values(completed=False, completed_at=None, last_refreshed=now)
            )
            await self.session.execute(
                update(Subtask)
                .where(Subtask.task_id.in_(task_ids))
                .values(completed=False, completed_at=None)
            )
        return len(task_ids)

    async def delete_old_completed_tasks(
        self,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        now: datetime | None = None,
    ) -> int:
        """Delete tasks completed before the retention window, with their subtasks."""
        cutoff = (now or utcnow()) - timedelta(days=retention_days)
        async with self.atomic():
            result = await self.session.execute(
                self.select(Task, Task.id).where(
                    Task.completed.is_(True),
                    Task.completed_at < cutoff,
                )
            )
            task_ids = list(result.scalars().all())
            if not task_ids:
                return 0
            await self.session.execute(delete(Subtask).where(Subtask.task_id.in_(task_ids)))
            await self.session.execute(self.delete(Task).where(Task.id.in_(task_ids)))
        return len(task_ids)


# ── Owner enumeration ──────────────────────────────────────


async def list_owner_ids(session: AsyncSession, refresh_type: str | None = None) -> list[str]:
    """Distinct owners present in the task table, optionally by refresh type.

    Not owner-scoped: used by the scheduler and cron entry points.
    """
    stmt = select(Task.user_id).distinct()
    if refresh_type is not None:
        stmt = stmt.where(Task.refresh_type == refresh_type)
    result = await session.execute(stmt.order_by(Task.user_id))
    return list(result.scalars().all())
