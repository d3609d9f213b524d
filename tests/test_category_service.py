import pytest

from taskflow.services.category_service import CategoryService
from taskflow.services.note_service import NoteService
from taskflow.services.scope import CategoryNotFound
from taskflow.services.task_service import TaskService


@pytest.fixture
def categories(db_session, owners):
    return CategoryService(db_session, owners["owner"])


@pytest.mark.asyncio
async def test_create_and_list(categories):
    await categories.create_category("Work")
    await categories.create_category("Home")

    names = sorted(c.name for c in await categories.list_categories())
    assert names == ["Home", "Work"]


@pytest.mark.asyncio
async def test_list_is_owner_scoped(db_session, owners, categories):
    await categories.create_category("Mine")
    await CategoryService(db_session, owners["other"]).create_category("Theirs")

    assert [c.name for c in await categories.list_categories()] == ["Mine"]


@pytest.mark.asyncio
async def test_update_category(categories):
    category = await categories.create_category("Wrok")

    updated = await categories.update_category(category.id, "Work")
    assert updated.name == "Work"


@pytest.mark.asyncio
async def test_update_category_wrong_owner(db_session, owners, categories):
    category = await categories.create_category("Mine")
    other = CategoryService(db_session, owners["other"])

    assert await other.update_category(category.id, "Stolen") is None
    assert (await categories.get_category(category.id)).name == "Mine"


@pytest.mark.asyncio
async def test_delete_category_detaches_tasks_and_notes(db_session, owners, categories):
    category = await categories.create_category("Errands")
    tasks = TaskService(db_session, owners["owner"])
    notes = NoteService(db_session, owners["owner"])
    task = await tasks.create_task("Buy milk", category_id=category.id)
    note = await notes.create_note("Shopping list", category_id=category.id)

    await categories.delete_category(category.id)

    assert await categories.get_category(category.id) is None
    assert (await tasks.get_task(task.id)).category_id is None
    assert (await notes.get_note(note.id)).category_id is None


@pytest.mark.asyncio
async def test_delete_category_wrong_owner_is_noop(db_session, owners, categories):
    category = await categories.create_category("Mine")
    task = await TaskService(db_session, owners["owner"]).create_task(
        "Keep", category_id=category.id
    )

    await CategoryService(db_session, owners["other"]).delete_category(category.id)

    assert await categories.get_category(category.id) is not None
    assert (await TaskService(db_session, owners["owner"]).get_task(task.id)).category_id == category.id


@pytest.mark.asyncio
async def test_delete_unknown_category(categories):
    await categories.delete_category("nope")


@pytest.mark.asyncio
async def test_foreign_category_cannot_be_attached(db_session, owners, categories):
    theirs = await CategoryService(db_session, owners["other"]).create_category("Theirs")
    tasks = TaskService(db_session, owners["owner"])
    notes = NoteService(db_session, owners["owner"])
    task = await tasks.create_task("mine")

    with pytest.raises(CategoryNotFound):
        await tasks.create_task("x", category_id=theirs.id)
    with pytest.raises(CategoryNotFound):
        await tasks.update_task(task.id, category_id=theirs.id)
    with pytest.raises(CategoryNotFound):
        await notes.create_note("n", category_id="no-such-category")

    mine = await categories.create_category("Mine")
    assert (await tasks.update_task(task.id, category_id=mine.id)).category_id == mine.id
    assert (await tasks.update_task(task.id, category_id=None)).category_id is None
