from dataclasses import dataclass

from taskflow.models.category import Category
from taskflow.models.database import utcnow
from taskflow.models.note import Announcement, Note
from taskflow.services.scope import OwnerScope

NOTE_UPDATE_FIELDS = frozenset({"title", "content", "category_id"})


@dataclass
class NoteWithCategory:
    note: Note
    category_name: str | None = None


# ── Notes ──────────────────────────────────────────────────


class NoteService(OwnerScope):
    async def list_notes(self) -> list[NoteWithCategory]:
        result = await self.session.execute(self.select(Note).order_by(Note.order, Note.id))
        notes = list(result.scalars().all())

        result = await self.session.execute(self.select(Category))
        category_names = {c.id: c.name for c in result.scalars().all()}

        return [NoteWithCategory(n, category_names.get(n.category_id)) for n in notes]

    async def get_note(self, note_id: str) -> Note | None:
        return await self._first(self.select(Note).where(Note.id == note_id))

    async def create_note(
        self,
        title: str,
        content: str = "",
        category_id: str | None = None,
    ) -> Note:
        category_id = await self._check_category(category_id)
        note = Note(
            title=title,
            content=content,
            category_id=category_id,
            order=await self._next_order(Note),
            user_id=self.user_id,
        )
        self.session.add(note)
        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def update_note(self, note_id: str, **kwargs) -> Note | None:
        note = await self.get_note(note_id)
        if not note:
            return None
        if "category_id" in kwargs:
            kwargs["category_id"] = await self._check_category(kwargs["category_id"])
        for key, value in kwargs.items():
            if key in NOTE_UPDATE_FIELDS:
                setattr(note, key, value)
        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def delete_note(self, note_id: str) -> None:
        await self.session.execute(self.delete(Note).where(Note.id == note_id))
        await self.session.commit()

    async def reorder_notes(self, note_ids: list[str]) -> None:
        await self._reorder(Note, note_ids)


# ── Announcement ───────────────────────────────────────────


class AnnouncementService(OwnerScope):
    """One current announcement per owner: the most recently updated row."""

    async def get_announcement(self) -> Announcement | None:
        return await self._first(
            self.select(Announcement).order_by(Announcement.updated_at.desc()).limit(1)
        )

    async def upsert_announcement(self, message: str) -> Announcement:
        announcement = await self.get_announcement()
        if announcement:
            announcement.message = message
            announcement.updated_at = utcnow()
        else:
            announcement = Announcement(message=message, user_id=self.user_id)
            self.session.add(announcement)
        await self.session.commit()
        await self.session.refresh(announcement)
        return announcement
