"""REST endpoints for categories, tasks, subtasks, notes and the announcement."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from taskflow.services.category_service import CategoryService
from taskflow.services.note_service import AnnouncementService, NoteService
from taskflow.services.subtask_service import SubtaskService
from taskflow.services.task_service import TaskService
from taskflow.web.deps import (
    get_announcement_service,
    get_category_service,
    get_note_service,
    get_subtask_service,
    get_task_service,
)
from taskflow.web.schemas import (
    AnnouncementOut,
    AnnouncementUpdate,
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    MessageOut,
    NoteCreate,
    NoteDetailOut,
    NoteOut,
    NoteUpdate,
    ReorderRequest,
    SubtaskCreate,
    SubtaskOut,
    SubtaskUpdate,
    TaskCreate,
    TaskDetailOut,
    TaskOut,
    TaskUpdate,
)

router = APIRouter()
logger = logging.getLogger(__name__)


# ── Categories ─────────────────────────────────────────────


@router.get("/categories", response_model=list[CategoryOut])
async def list_categories(service: CategoryService = Depends(get_category_service)):
    return await service.list_categories()


@router.post("/categories", response_model=CategoryOut, status_code=201)
async def create_category(
    body: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
):
    return await service.create_category(body.name)


@router.patch("/categories/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: str,
    body: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    if not body.name or not body.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    category = await service.update_category(category_id, body.name.strip())
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    service: CategoryService = Depends(get_category_service),
):
    await service.delete_category(category_id)
    return Response(status_code=204)


# ── Tasks ──────────────────────────────────────────────────


@router.get("/tasks", response_model=list[TaskDetailOut])
async def list_tasks(service: TaskService = Depends(get_task_service)):
    return [TaskDetailOut.build(item) for item in await service.list_tasks()]


@router.post("/tasks", response_model=TaskOut, status_code=201)
async def create_task(body: TaskCreate, service: TaskService = Depends(get_task_service)):
    return await service.create_task(
        title=body.title,
        refresh_type=body.refresh_type,
        category_id=body.category_id,
        deadline=body.deadline,
    )


@router.post("/tasks/reorder", response_model=MessageOut)
async def reorder_tasks(body: ReorderRequest, service: TaskService = Depends(get_task_service)):
    await service.reorder_tasks(body.ids)
    return {"message": "Tasks reordered"}


@router.post("/tasks/refresh/daily", response_model=MessageOut)
async def refresh_daily(service: TaskService = Depends(get_task_service)):
    await service.reset_daily_tasks()
    return {"message": "Daily tasks refreshed"}


@router.post("/tasks/refresh/weekly", response_model=MessageOut)
async def refresh_weekly(service: TaskService = Depends(get_task_service)):
    await service.reset_weekly_tasks()
    return {"message": "Weekly tasks refreshed"}


@router.post("/tasks/cleanup/completed")
async def cleanup_completed(
    request: Request,
    tasks: TaskService = Depends(get_task_service),
    subtasks: SubtaskService = Depends(get_subtask_service),
):
    retention_days = request.app.state.settings.completed_retention_days
    deleted_tasks = await tasks.delete_old_completed_tasks(retention_days)
    deleted_subtasks = await subtasks.delete_old_completed_subtasks(retention_days)
    return {
        "message": "Old completed tasks deleted",
        "tasks": deleted_tasks,
        "subtasks": deleted_subtasks,
    }


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    service: TaskService = Depends(get_task_service),
):
    task = await service.update_task(task_id, **body.changes())
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(task_id: str, service: TaskService = Depends(get_task_service)):
    await service.delete_task(task_id)
    return Response(status_code=204)


# ── Subtasks ───────────────────────────────────────────────


@router.get("/tasks/{task_id}/subtasks", response_model=list[SubtaskOut])
async def list_subtasks(task_id: str, service: SubtaskService = Depends(get_subtask_service)):
    return await service.list_subtasks(task_id)


@router.post("/subtasks", response_model=SubtaskOut, status_code=201)
async def create_subtask(
    body: SubtaskCreate,
    service: SubtaskService = Depends(get_subtask_service),
):
    subtask = await service.create_subtask(body.task_id, body.title, body.deadline)
    if not subtask:
        raise HTTPException(status_code=404, detail="Task not found")
    return subtask


@router.patch("/subtasks/{subtask_id}", response_model=SubtaskOut)
async def update_subtask(
    subtask_id: str,
    body: SubtaskUpdate,
    service: SubtaskService = Depends(get_subtask_service),
):
    subtask = await service.update_subtask(subtask_id, **body.changes())
    if not subtask:
        raise HTTPException(status_code=404, detail="Subtask not found")
    return subtask


@router.delete("/subtasks/{subtask_id}", status_code=204)
async def delete_subtask(
    subtask_id: str,
    service: SubtaskService = Depends(get_subtask_service),
):
    await service.delete_subtask(subtask_id)
    return Response(status_code=204)


# ── Notes ──────────────────────────────────────────────────


@router.get("/notes", response_model=list[NoteDetailOut])
async def list_notes(service: NoteService = Depends(get_note_service)):
    return [NoteDetailOut.build(item) for item in await service.list_notes()]


@router.post("/notes", response_model=NoteOut, status_code=201)
async def create_note(body: NoteCreate, service: NoteService = Depends(get_note_service)):
    return await service.create_note(body.title, body.content, body.category_id)


@router.post("/notes/reorder", response_model=MessageOut)
async def reorder_notes(body: ReorderRequest, service: NoteService = Depends(get_note_service)):
    await service.reorder_notes(body.ids)
    return {"message": "Notes reordered"}


@router.patch("/notes/{note_id}", response_model=NoteOut)
async def update_note(
    note_id: str,
    body: NoteUpdate,
    service: NoteService = Depends(get_note_service),
):
    note = await service.update_note(note_id, **body.changes())
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.delete("/notes/{note_id}", status_code=204)
async def delete_note(note_id: str, service: NoteService = Depends(get_note_service)):
    await service.delete_note(note_id)
    return Response(status_code=204)


# ── Announcement ───────────────────────────────────────────


@router.get("/announcement", response_model=AnnouncementOut | None)
async def get_announcement(service: AnnouncementService = Depends(get_announcement_service)):
    return await service.get_announcement()


@router.put("/announcement", response_model=AnnouncementOut)
async def put_announcement(
    body: AnnouncementUpdate,
    service: AnnouncementService = Depends(get_announcement_service),
):
    announcement = await service.upsert_announcement(body.message)
    logger.info("Announcement updated for user_id=%s", service.user_id)
    return announcement
