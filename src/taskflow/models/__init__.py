from taskflow.models.database import Base, Database, init_db, utcnow
from taskflow.models.category import Category
from taskflow.models.task import Subtask, Task
from taskflow.models.note import Announcement, Note

__all__ = [
    "Base",
    "Database",
    "init_db",
    "utcnow",
    "Category",
    "Task",
    "Subtask",
    "Note",
    "Announcement",
]
