import pytest

from taskflow.services.subtask_service import SubtaskService
from taskflow.services.task_service import TaskService


@pytest.fixture
def tasks(db_session, owners):
    return TaskService(db_session, owners["owner"])


@pytest.fixture
def subtasks(db_session, owners):
    return SubtaskService(db_session, owners["owner"])


@pytest.fixture
def other_subtasks(db_session, owners):
    return SubtaskService(db_session, owners["other"])


@pytest.mark.asyncio
async def test_create_and_list(tasks, subtasks):
    task = await tasks.create_task("Trip")
    await subtasks.create_subtask(task.id, "Pack")
    await subtasks.create_subtask(task.id, "Book hotel")

    titles = sorted(s.title for s in await subtasks.list_subtasks(task.id))
    assert titles == ["Book hotel", "Pack"]


@pytest.mark.asyncio
async def test_create_under_unknown_task(subtasks):
    assert await subtasks.create_subtask("missing", "orphan") is None


@pytest.mark.asyncio
async def test_create_under_foreign_task(tasks, other_subtasks):
    task = await tasks.create_task("mine")
    assert await other_subtasks.create_subtask(task.id, "intruder") is None


@pytest.mark.asyncio
async def test_list_foreign_task_is_empty(tasks, subtasks, other_subtasks):
    task = await tasks.create_task("mine")
    await subtasks.create_subtask(task.id, "child")

    assert await other_subtasks.list_subtasks(task.id) == []


@pytest.mark.asyncio
async def test_completion_timestamps(tasks, subtasks):
    task = await tasks.create_task("Trip")
    sub = await subtasks.create_subtask(task.id, "Pack")

    done = await subtasks.update_subtask(sub.id, completed=True)
    assert done.completed_at is not None
    stamp = done.completed_at

    again = await subtasks.update_subtask(sub.id, completed=True, title="Pack bags")
    assert again.completed_at == stamp
    assert again.title == "Pack bags"

    undone = await subtasks.update_subtask(sub.id, completed=False)
    assert undone.completed_at is None


@pytest.mark.asyncio
async def test_update_foreign_subtask(tasks, subtasks, other_subtasks):
    task = await tasks.create_task("mine")
    sub = await subtasks.create_subtask(task.id, "child")

    assert await other_subtasks.update_subtask(sub.id, title="hacked") is None
    assert (await subtasks.get_subtask(sub.id)).title == "child"


@pytest.mark.asyncio
async def test_delete_subtask(tasks, subtasks, other_subtasks):
    task = await tasks.create_task("mine")
    sub = await subtasks.create_subtask(task.id, "child")

    await other_subtasks.delete_subtask(sub.id)
    assert await subtasks.get_subtask(sub.id) is not None

    await subtasks.delete_subtask(sub.id)
    await subtasks.delete_subtask(sub.id)
    assert await subtasks.get_subtask(sub.id) is None
