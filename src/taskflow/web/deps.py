"""FastAPI dependencies: database session, current user, owner-bound services.

Everything is read from ``request.app.state``, which ``create_app`` fills in,
so tests can build an app around an in-memory database and a fake verifier.
"""

import logging
import secrets
from collections.abc import AsyncIterator

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.services.auth_service import AuthError, AuthUser, extract_bearer
from taskflow.services.category_service import CategoryService
from taskflow.services.note_service import AnnouncementService, NoteService
from taskflow.services.subtask_service import SubtaskService
from taskflow.services.task_service import TaskService

logger = logging.getLogger(__name__)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.database.session() as session:
        yield session


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
) -> AuthUser:
    token = extract_bearer(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized: No token provided")
    try:
        return await request.app.state.verifier.verify(token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=f"Unauthorized: {e}")


def require_cron_secret(
    request: Request,
    authorization: str | None = Header(None),
) -> None:
    """Cron entry points only run with ``Authorization: Bearer <CRON_SECRET>``."""
    expected = request.app.state.settings.cron_secret
    token = extract_bearer(authorization) or ""
    if not expected or not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning("Rejected cron request to %s", request.url.path)
        raise HTTPException(status_code=401, detail="Unauthorized")


def _owner_bound(service_cls):
    def dependency(
        session: AsyncSession = Depends(get_session),
        user: AuthUser = Depends(get_current_user),
    ):
        return service_cls(session, user.id)

    dependency.__name__ = f"get_{service_cls.__name__}"
    return dependency


get_category_service = _owner_bound(CategoryService)
get_task_service = _owner_bound(TaskService)
get_subtask_service = _owner_bound(SubtaskService)
get_note_service = _owner_bound(NoteService)
get_announcement_service = _owner_bound(AnnouncementService)
