# app/db/crud/task.py
from typing import Optional, List, Dict, Set, Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import exists, delete, and_, Select
from loguru import logger

from app.db.models import Task, TaskStatus, task_categories


async def get_task_by_id(db: AsyncSession, task_id: int) -> Optional[Task]:
    result = await db.execute(select(Task).filter(Task.id == task_id))
    return result.scalars().first()


async def has_incomplete_children(db: AsyncSession, task_id: int) -> bool:
    """True when at least one direct child is not DONE"""
    return bool(await db.scalar(
        select(exists().where(and_(Task.parent_id == task_id, Task.status != TaskStatus.DONE)))
    ))


async def is_title_unique(
        db: AsyncSession,
        title: str,
        owner_id: int,
        exclude_id: Optional[int] = None
) -> bool:
    """Exact, case-sensitive title check among one owner's tasks"""
    query = select(Task.id).filter(Task.owner_id == owner_id, Task.title == title)
    if exclude_id is not None:
        query = query.filter(Task.id != exclude_id)
    return (await db.execute(query.limit(1))).first() is None


async def get_ancestor_ids(db: AsyncSession, task_id: int) -> List[int]:
    """Ids on the parent chain of a task, nearest first, excluding the task itself"""
    ancestors: List[int] = []
    seen: Set[int] = {task_id}
    current = task_id
    while True:
        parent_id = await db.scalar(select(Task.parent_id).filter(Task.id == current))
        if parent_id is None or parent_id in seen:
            return ancestors
        ancestors.append(parent_id)
        seen.add(parent_id)
        current = parent_id


async def get_descendant_levels(db: AsyncSession, task_ids: Iterable[int]) -> List[List[int]]:
    """
    Breadth-first walk below the given tasks. Returns one list of ids per depth,
    children first; the given ids themselves are not included.
    """
    levels: List[List[int]] = []
    seen: Set[int] = set(task_ids)
    frontier = list(seen)
    while frontier:
        result = await db.execute(select(Task.id).filter(Task.parent_id.in_(frontier)))
        level = [task_id for task_id in result.scalars().all() if task_id not in seen]
        if not level:
            break
        seen.update(level)
        levels.append(level)
        frontier = level
    return levels


async def get_subtree_index(db: AsyncSession, root_ids: Iterable[int]) -> Dict[int, List[Task]]:
    """
    Loads every descendant of the given tasks and indexes them by parent id,
    children ordered by id.
    """
    levels = await get_descendant_levels(db, root_ids)
    descendant_ids = [task_id for level in levels for task_id in level]
    index: Dict[int, List[Task]] = {}
    if not descendant_ids:
        return index

    result = await db.execute(
        select(Task).filter(Task.id.in_(descendant_ids)).order_by(Task.id.asc())
    )
    for task in result.scalars().all():
        index.setdefault(task.parent_id, []).append(task)
    return index


async def delete_task_levels(db: AsyncSession, task_id: int, levels: List[List[int]]) -> int:
    """
    Deletes the descendants (deepest level first) and then the task itself, flushing
    per level so no row ever references a deleted parent. Does not commit.
    """
    deleted = 0
    for level in list(reversed(levels)) + [[task_id]]:
        await db.execute(delete(task_categories).where(task_categories.c.task_id.in_(level)))
        result = await db.execute(delete(Task).where(Task.id.in_(level)))
        deleted += result.rowcount
        await db.flush()
    logger.debug(f"Removed {deleted} task rows under task {task_id}")
    return deleted


def build_task_query(
        owner_id: Optional[int] = None,
        parent_id: Optional[int] = None,
        roots_only: bool = False,
        status: Optional[TaskStatus] = None
) -> Select:
    """Listing query with the optional owner, parent and status filters applied"""
    query = select(Task)
    if owner_id is not None:
        query = query.filter(Task.owner_id == owner_id)
    if roots_only:
        query = query.filter(Task.parent_id.is_(None))
    elif parent_id is not None:
        query = query.filter(Task.parent_id == parent_id)
    if status is not None:
        query = query.filter(Task.status == status)
    return query
