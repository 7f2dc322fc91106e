# app/services/tasks.py
"""
Task hierarchy engine: the only writer of Task rows.

Handles:
- Title uniqueness per owner (backed by the uq_task_owner_title constraint)
- Parent existence, ownership and cycle checks
- Completion gating of status changes and deletion by direct children
- Duplicate category detection and category resolution
- Cascading delete of a task and everything below it in one transaction
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.api.v1.schemas.tasks import TaskCreate, TaskUpdate, TaskResponse
from app.core.config import settings
from app.db.crud import task as task_crud
from app.db.models import Task, TaskStatus, User
from app.exceptions.domain import (
    AccessDeniedError,
    CannotProceedError,
    DuplicateCategoryError,
    InternalStoreError,
    ResourceConflictError,
    ResourceNotFoundError,
)
from app.services import categories as category_service
from app.services import users as user_service

TITLE_CONFLICT = "Title must be unique for the user."


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def has_duplicate_categories(names: Optional[Sequence[str]]) -> bool:
    """True iff names holds the same string more than once"""
    if not names or len(names) < 2:
        return False
    return len(set(names)) != len(names)


def can_modify(task: Task, user: User) -> bool:
    return task.owner_id == user.id or user.is_elevated


def ensure_can_modify(task: Task, user: User) -> None:
    if not can_modify(task, user):
        logger.warning(f"User {user.id} denied access to task {task.id} owned by {task.owner_id}")
        raise AccessDeniedError("You do not have permission to access this task")


async def get_task_or_404(db: AsyncSession, task_id: int) -> Task:
    task = await task_crud.get_task_by_id(db, task_id)
    if task is None:
        raise ResourceNotFoundError("Task", task_id)
    return task


async def validate_child_task_completion(db: AsyncSession, task_id: int) -> None:
    """Raises CannotProceedError while any direct child of the task is not DONE"""
    if await task_crud.has_incomplete_children(db, task_id):
        logger.info(f"Task {task_id} blocked by incomplete child tasks")
        raise CannotProceedError(task_id)


def _status_change_is_gated(new_status: TaskStatus) -> bool:
    return settings.GATE_ALL_STATUS_CHANGES or new_status == TaskStatus.DONE


async def _ensure_unique_title(db: AsyncSession, title: str, owner_id: int, exclude_id: Optional[int] = None):
    if not await task_crud.is_title_unique(db, title, owner_id, exclude_id=exclude_id):
        raise ResourceConflictError(TITLE_CONFLICT)


async def _load_parent(db: AsyncSession, parent_id: int, owner_id: int) -> Task:
    parent = await task_crud.get_task_by_id(db, parent_id)
    if parent is None:
        raise ResourceNotFoundError("Parent Task", parent_id)
    if parent.owner_id != owner_id:
        raise AccessDeniedError("Parent task must belong to the authenticated user.")
    return parent


async def _ensure_no_cycle(db: AsyncSession, task_id: int, parent_id: int) -> None:
    if parent_id == task_id:
        raise ResourceConflictError("A task cannot be its own parent.")
    if task_id in await task_crud.get_ancestor_ids(db, parent_id):
        raise ResourceConflictError(
            f"Task {parent_id} is a descendant of task {task_id} and cannot become its parent."
        )


def _violates_title_constraint(error: IntegrityError) -> bool:
    # Postgres names the constraint, SQLite lists its columns
    message = str(error.orig)
    return "uq_task_owner_title" in message or "tasks.owner_id, tasks.title" in message


def _violates_foreign_key(error: IntegrityError) -> bool:
    return "foreign key" in str(error.orig).lower()


async def _commit_task(db: AsyncSession, task: Task, action: str) -> Task:
    """
    Commit, mapping races lost after the pre-checks onto the errors those checks
    would have raised: a duplicate title becomes a conflict and a parent deleted in
    the meantime becomes NotFound. Any other integrity error propagates.
    """
    parent_id = task.parent_id
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Integrity error while trying to {action} task: {e.orig}")
        if _violates_title_constraint(e):
            raise ResourceConflictError(TITLE_CONFLICT) from e
        if (_violates_foreign_key(e) and parent_id is not None
                and await task_crud.get_task_by_id(db, parent_id) is None):
            raise ResourceNotFoundError("Parent Task", parent_id) from e
        raise
    except Exception as e:
        logger.error(f"Failed to {action} task: {e}")
        await db.rollback()
        raise

    if task.id is None:
        raise InternalStoreError(f"Failed to {action} task")
    await db.refresh(task)
    return task


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_task(db: AsyncSession, owner_username: str, task_in: TaskCreate) -> Task:
    owner = await user_service.get_user_by_username(db, owner_username)

    if task_in.parent_id is not None:
        await _load_parent(db, task_in.parent_id, owner.id)

    await _ensure_unique_title(db, task_in.title, owner.id)

    if has_duplicate_categories(task_in.category_names):
        raise DuplicateCategoryError()
    categories = await category_service.resolve_categories(db, task_in.category_names or [])

    now = _now()
    task = Task(
        owner_id=owner.id,
        parent_id=task_in.parent_id,
        title=task_in.title,
        description=task_in.description,
        status=task_in.status or TaskStatus.TODO,
        created_at=now,
        updated_at=now,
    )
    task.categories = categories
    db.add(task)

    task = await _commit_task(db, task, "create")
    logger.info(f"Task created: id={task.id} title={task.title!r} owner={owner.username}")
    return task


async def update_task(db: AsyncSession, task_id: int, task_in: TaskUpdate, acting_user: User) -> Task:
    """Partial update; every check runs before the first field is touched"""
    task = await get_task_or_404(db, task_id)
    ensure_can_modify(task, acting_user)

    changes = task_in.model_dump(exclude_unset=True)

    if "title" in changes:
        await _ensure_unique_title(db, changes["title"], task.owner_id, exclude_id=task.id)

    if "category_names" in changes and has_duplicate_categories(changes["category_names"]):
        raise DuplicateCategoryError()

    new_status = changes.get("status")
    if new_status is not None and new_status != task.status and _status_change_is_gated(new_status):
        await validate_child_task_completion(db, task.id)

    if changes.get("parent_id") is not None:
        await _load_parent(db, changes["parent_id"], task.owner_id)
        await _ensure_no_cycle(db, task.id, changes["parent_id"])

    categories = None
    if "category_names" in changes:
        categories = await category_service.resolve_categories(db, changes.pop("category_names"))

    for field in ("title", "description", "status", "parent_id"):
        if field in changes:
            setattr(task, field, changes[field])
    if categories is not None:
        task.categories = categories
    task.updated_at = _now()

    task = await _commit_task(db, task, "update")
    logger.info(f"Task {task.id} updated by user {acting_user.id}: {sorted(task_in.model_fields_set)}")
    return task


async def update_task_status(db: AsyncSession, task_id: int, new_status: TaskStatus, acting_user: User) -> Task:
    task = await get_task_or_404(db, task_id)
    ensure_can_modify(task, acting_user)

    if _status_change_is_gated(new_status):
        await validate_child_task_completion(db, task.id)

    old_status = task.status
    task.status = new_status
    task.updated_at = _now()

    task = await _commit_task(db, task, "update status of")
    logger.info(f"Task {task.id} status {old_status.format()} -> {new_status.format()} by user {acting_user.id}")
    return task


async def delete_task(db: AsyncSession, task_id: int, acting_user: User) -> int:
    """
    Deletes the task and all of its descendants in one transaction.
    Returns the number of task rows removed.
    """
    task = await get_task_or_404(db, task_id)
    ensure_can_modify(task, acting_user)
    await validate_child_task_completion(db, task.id)

    try:
        levels = await task_crud.get_descendant_levels(db, [task.id])
        deleted = await task_crud.delete_task_levels(db, task.id, levels)
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to delete task {task_id}: {e}")
        await db.rollback()
        raise

    logger.info(f"Task {task_id} deleted with {deleted - 1} descendants by user {acting_user.id}")
    return deleted


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_task(db: AsyncSession, task_id: int, acting_user: User) -> Task:
    task = await get_task_or_404(db, task_id)
    ensure_can_modify(task, acting_user)
    return task


async def to_responses(db: AsyncSession, tasks: List[Task], include_subtasks: bool = False) -> List[TaskResponse]:
    """Converts tasks to transfer records, nesting all descendants when asked"""
    if not include_subtasks:
        return [TaskResponse.from_model(task) for task in tasks]
    children_by_parent = await task_crud.get_subtree_index(db, [task.id for task in tasks])
    return [TaskResponse.build_tree(task, children_by_parent) for task in tasks]
