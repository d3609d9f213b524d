from datetime import datetime, timedelta

from sqlalchemy import delete, select

from taskflow.models.database import utcnow
from taskflow.models.task import Subtask, Task
from taskflow.services.scope import OwnerScope
from taskflow.services.task_service import DEFAULT_RETENTION_DAYS, apply_completion

SUBTASK_UPDATE_FIELDS = frozenset({"title", "completed", "deadline"})


class SubtaskService(OwnerScope):
    """Subtasks have no owner column; ownership is checked through the parent task."""

    def _owned_subtasks(self):
        return select(Subtask).where(Subtask.task_id.in_(self.owned_task_ids()))

    async def _task_exists(self, task_id: str) -> bool:
        return await self._first(self.select(Task, Task.id).where(Task.id == task_id)) is not None

    async def list_subtasks(self, task_id: str) -> list[Subtask]:
        """Subtasks of one task; empty when the task is not the owner's."""
        result = await self.session.execute(
            self._owned_subtasks().where(Subtask.task_id == task_id).order_by(Subtask.id)
        )
        return list(result.scalars().all())

    async def get_subtask(self, subtask_id: str) -> Subtask | None:
        return await self._first(self._owned_subtasks().where(Subtask.id == subtask_id))

    async def create_subtask(
        self,
        task_id: str,
        title: str,
        deadline: datetime | None = None,
    ) -> Subtask | None:
        """Returns None when the parent task does not exist for this owner."""
        if not await self._task_exists(task_id):
            return None
        subtask = Subtask(task_id=task_id, title=title, deadline=deadline)
        self.session.add(subtask)
        await self.session.commit()
        await self.session.refresh(subtask)
        return subtask

    async def update_subtask(self, subtask_id: str, **kwargs) -> Subtask | None:
        subtask = await self.get_subtask(subtask_id)
        if not subtask:
            return None
        for key, value in kwargs.items():
            if key == "completed":
                apply_completion(subtask, value)
            elif key in SUBTASK_UPDATE_FIELDS:
                setattr(subtask, key, value)
        await self.session.commit()
        await self.session.refresh(subtask)
        return subtask

    async def delete_subtask(self, subtask_id: str) -> None:
        await self.session.execute(
            delete(Subtask).where(
                Subtask.id == subtask_id,
                Subtask.task_id.in_(self.owned_task_ids()),
            )
        )
        await self.session.commit()

    async def delete_old_completed_subtasks(
        self,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        now: datetime | None = None,
    ) -> int:
        cutoff = (now or utcnow()) - timedelta(days=retention_days)
        async with self.atomic():
            result = await self.session.execute(
                delete(Subtask).where(
                    Subtask.task_id.in_(self.owned_task_ids()),
                    Subtask.completed.is_(True),
                    Subtask.completed_at < cutoff,
                ).execution_options(synchronize_session=False)
            )
        return result.rowcount
