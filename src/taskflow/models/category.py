from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.models.database import Base, new_id


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
