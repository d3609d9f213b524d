"""Owner-bound data access.

Every service in this package extends :class:`OwnerScope`. Statements are
built through ``select``/``update``/``delete`` here so the ``user_id`` filter
is attached once, instead of being repeated at every call site.
"""

from contextlib import asynccontextmanager

from sqlalchemy import Delete, Select, Update, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.models.category import Category
from taskflow.models.task import Task


class CategoryNotFound(Exception):
    """A category id that does not exist for the calling owner."""


class OwnerScope:
    def __init__(self, session: AsyncSession, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    # ── Statement builders ─────────────────────────────────

    def select(self, model, *columns) -> Select:
        stmt = select(*columns) if columns else select(model)
        return stmt.where(model.user_id == self.user_id)

    def update(self, model) -> Update:
        return update(model).where(model.user_id == self.user_id)

    def delete(self, model) -> Delete:
        return delete(model).where(model.user_id == self.user_id)

    def owned_task_ids(self) -> Select:
        """Subquery of the owner's task ids, for tables owned through a task."""
        return self.select(Task, Task.id)

    # ── Helpers ────────────────────────────────────────────

    async def _first(self, stmt):
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def _check_category(self, category_id: str | None) -> str | None:
        """The id itself if it is one of the owner's categories, None when empty.

        Raises CategoryNotFound for unknown ids and other owners' categories.
        """
        if not category_id:
            return None
        found = await self._first(
            self.select(Category, Category.id).where(Category.id == category_id)
        )
        if found is None:
            raise CategoryNotFound(category_id)
        return category_id

    async def _next_order(self, model) -> int:
        """Display order for a new row: current max + 1, or 0 for the first row."""
        result = await self.session.execute(self.select(model, func.max(model.order)))
        current = result.scalar()
        return 0 if current is None else current + 1

    async def _reorder(self, model, ids: list[str]) -> None:
        for position, row_id in enumerate(ids):
            await self.session.execute(
                self.update(model).where(model.id == row_id).values(order=position)
            )
        await self.session.commit()

    @asynccontextmanager
    async def atomic(self):
        """Commit the enclosed statements together, or roll all of them back."""
        try:
            yield self.session
        except Exception:
            await self.session.rollback()
            raise
        await self.session.commit()
