"""Request/response models. JSON keys are camelCase; snake_case is accepted on input."""

from datetime import datetime, timezone
from typing import Annotated, ClassVar, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


def _iso_utc(value: datetime) -> str:
    return value.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


UtcDatetime = Annotated[datetime, PlainSerializer(_iso_utc, return_type=str, when_used="json")]
RefreshType = Literal["none", "daily", "weekly"]


def parse_deadline(value):
    """ISO-8601 string → naive UTC datetime. ``None`` and ``""`` clear the deadline."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError("Invalid deadline date format") from None
    else:
        raise ValueError("Invalid deadline date format")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("cannot be empty")
    return v.strip()


Title = Annotated[str, AfterValidator(_not_blank)]
Deadline = Annotated[datetime | None, BeforeValidator(parse_deadline)]


class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class _PartialUpdate(_Schema):
    """PATCH bodies: absent fields are left alone, explicit nulls are rejected
    except for the clearable fields (categoryId, deadline)."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"category_id", "deadline"})

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in self.model_fields_set - self.nullable_fields:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


# ── Requests ───────────────────────────────────────────────


class CategoryCreate(_Schema):
    name: Title


class CategoryUpdate(_Schema):
    name: str | None = None


class TaskCreate(_Schema):
    title: Title
    refresh_type: RefreshType = "none"
    category_id: str | None = None
    deadline: Deadline = None


class TaskUpdate(_PartialUpdate):
    title: Title | None = None
    completed: bool | None = None
    refresh_type: RefreshType | None = None
    category_id: str | None = None
    deadline: Deadline = None


class SubtaskCreate(_Schema):
    task_id: str
    title: Title
    deadline: Deadline = None


class SubtaskUpdate(_PartialUpdate):
    title: Title | None = None
    completed: bool | None = None
    deadline: Deadline = None


class NoteCreate(_Schema):
    title: Title
    content: str = ""
    category_id: str | None = None


class NoteUpdate(_PartialUpdate):
    title: Title | None = None
    content: str | None = None
    category_id: str | None = None


class ReorderRequest(_Schema):
    ids: list[str]


class AnnouncementUpdate(_Schema):
    message: str


# ── Responses ──────────────────────────────────────────────


class CategoryOut(_Schema):
    id: str
    name: str
    user_id: str


class SubtaskOut(_Schema):
    id: str
    title: str
    completed: bool
    completed_at: UtcDatetime | None = None
    task_id: str
    deadline: UtcDatetime | None = None


class TaskOut(_Schema):
    id: str
    title: str
    completed: bool
    completed_at: UtcDatetime | None = None
    refresh_type: str
    category_id: str | None = None
    last_refreshed: UtcDatetime | None = None
    deadline: UtcDatetime | None = None
    order: int
    user_id: str


class TaskDetailOut(TaskOut):
    category_name: str | None = None
    subtasks: list[SubtaskOut] = Field(default_factory=list)

    @classmethod
    def build(cls, item) -> "TaskDetailOut":
        """From a ``TaskWithDetails``."""
        return cls(
            **TaskOut.model_validate(item.task).model_dump(),
            category_name=item.category_name,
            subtasks=[SubtaskOut.model_validate(s) for s in item.subtasks],
        )


class NoteOut(_Schema):
    id: str
    title: str
    content: str
    category_id: str | None = None
    order: int
    user_id: str


class NoteDetailOut(NoteOut):
    category_name: str | None = None

    @classmethod
    def build(cls, item) -> "NoteDetailOut":
        """From a ``NoteWithCategory``."""
        return cls(**NoteOut.model_validate(item.note).model_dump(), category_name=item.category_name)


class AnnouncementOut(_Schema):
    id: str
    message: str
    updated_at: UtcDatetime
    user_id: str


class MessageOut(BaseModel):
    message: str
