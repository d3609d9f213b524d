"""Async engine, session factory and declarative base."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class Database:
    """Owns the connection pool. One instance per process, passed around explicitly."""

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 20,
        pool_timeout: float = 10.0,
        pool_recycle: int = 1800,
        echo: bool = False,
    ) -> None:
        if not url:
            raise RuntimeError(
                "DATABASE_URL must be set. Did you forget to provision a database?"
            )
        kwargs: dict = {"echo": echo, "pool_pre_ping": True}
        # SQLite (tests, local dev) uses a single shared connection; pool sizing
        # only applies to server databases.
        if not url.startswith("sqlite"):
            kwargs.update(
                pool_size=pool_size,
                max_overflow=0,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
            )
        self.url = url
        self.engine = create_async_engine(url, **kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            echo=settings.db_echo,
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        # All models must be imported so Base.metadata knows about them
        import taskflow.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Run a trivial query; False when the database cannot be reached."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


async def init_db(database: Database) -> None:
    """Create missing tables and verify the connection."""
    await database.create_all()
    if not await database.ping():
        raise RuntimeError("Database connection failed")
