from taskflow.models.category import Category
from taskflow.models.note import Note
from taskflow.models.task import Task
from taskflow.services.scope import OwnerScope


class CategoryService(OwnerScope):
    async def list_categories(self) -> list[Category]:
        result = await self.session.execute(self.select(Category))
        return list(result.scalars().all())

    async def get_category(self, category_id: str) -> Category | None:
        return await self._first(self.select(Category).where(Category.id == category_id))

    async def create_category(self, name: str) -> Category:
        category = Category(name=name, user_id=self.user_id)
        self.session.add(category)
        await self.session.commit()
        await self.session.refresh(category)
        return category

    async def update_category(self, category_id: str, name: str) -> Category | None:
        category = await self.get_category(category_id)
        if not category:
            return None
        category.name = name
        await self.session.commit()
        await self.session.refresh(category)
        return category

    async def delete_category(self, category_id: str) -> None:
        """Delete a category; its tasks and notes stay, detached."""
        async with self.atomic():
            for model in (Task, Note):
                await self.session.execute(
                    self.update(model)
                    .where(model.category_id == category_id)
                    .values(category_id=None)
                )
            await self.session.execute(
                self.delete(Category).where(Category.id == category_id)
            )
