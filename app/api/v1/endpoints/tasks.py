# app/api/v1/endpoints/tasks.py
"""Task endpoints; all rules live in app.services.tasks"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.db.crud import task as task_crud
from app.db.models import Task, TaskStatus, User
from app.api.v1.schemas.tasks import TaskCreate, TaskUpdate, TaskStatusUpdate, TaskResponse
from app.auth.dependencies import get_current_user
from app.core import tracing
from app.core.pagination import AutoPaginator, PaginatedResponse, PaginationParams, get_pagination
from app.exceptions.domain import AccessDeniedError
from app.middleware.rate_limiting import limiter
from app.services import tasks as task_service

router = APIRouter()

SORTABLE_FIELDS = ["id", "title", "status", "created_at", "updated_at"]


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
async def create_task(
        request: Request,
        task_in: TaskCreate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    task = await task_service.create_task(db, current_user.username, task_in)
    tracing.info("Task created", task_id=task.id, owner=current_user.username, parent_id=task.parent_id)
    return TaskResponse.from_model(task)


@router.get("/", response_model=PaginatedResponse[TaskResponse])
@limiter.limit("120/minute")
async def list_tasks(
        request: Request,
        owner_id: Optional[int] = Query(None, description="Only tasks of this owner (elevated roles)"),
        parent_id: Optional[int] = Query(None, description="Only direct children of this task"),
        status_filter: Optional[TaskStatus] = Query(None, alias="status", description="Only tasks in this status"),
        pagination: PaginationParams = Depends(get_pagination),
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Paginated flat listing. Regular users only ever see their own tasks."""
    if not current_user.is_elevated:
        if owner_id is not None and owner_id != current_user.id:
            raise AccessDeniedError("You can only list your own tasks")
        owner_id = current_user.id

    async def to_responses(tasks: List[Task]) -> List[TaskResponse]:
        return await task_service.to_responses(db, tasks)

    return await AutoPaginator.paginate(
        db,
        Task,
        pagination,
        base_query=task_crud.build_task_query(owner_id=owner_id, parent_id=parent_id, status=status_filter),
        search_fields=["title", "description"],
        sortable_fields=SORTABLE_FIELDS,
        transform=to_responses,
        request=request
    )


@router.get("/my-tasks", response_model=PaginatedResponse[TaskResponse])
@limiter.limit("120/minute")
async def list_my_tasks(
        request: Request,
        pagination: PaginationParams = Depends(get_pagination),
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """The caller's root tasks, each with its full sub-task tree"""
    async def to_trees(tasks: List[Task]) -> List[TaskResponse]:
        return await task_service.to_responses(db, tasks, include_subtasks=True)

    return await AutoPaginator.paginate(
        db,
        Task,
        pagination,
        base_query=task_crud.build_task_query(owner_id=current_user.id, roots_only=True),
        search_fields=["title", "description"],
        sortable_fields=SORTABLE_FIELDS,
        transform=to_trees,
        request=request
    )


@router.get("/{task_id}", response_model=TaskResponse)
@limiter.limit("120/minute")
async def get_task(
        request: Request,
        task_id: int,
        include_subtasks: bool = Query(False, description="Nest all descendants under sub_tasks"),
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    task = await task_service.get_task(db, task_id, current_user)
    [response] = await task_service.to_responses(db, [task], include_subtasks=include_subtasks)
    return response


@router.put("/{task_id}", response_model=TaskResponse)
@limiter.limit("60/minute")
async def update_task(
        request: Request,
        task_id: int,
        task_in: TaskUpdate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    task = await task_service.update_task(db, task_id, task_in, current_user)
    tracing.info("Task updated", task_id=task.id, user=current_user.username,
                 fields=sorted(task_in.model_fields_set))
    return TaskResponse.from_model(task)


@router.patch("/{task_id}/status", response_model=TaskResponse)
@limiter.limit("60/minute")
async def update_task_status(
        request: Request,
        task_id: int,
        status_in: TaskStatusUpdate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    task = await task_service.update_task_status(db, task_id, status_in.status, current_user)
    tracing.info("Task status changed", task_id=task.id, status=task.status.value, user=current_user.username)
    return TaskResponse.from_model(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def delete_task(
        request: Request,
        task_id: int,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    deleted = await task_service.delete_task(db, task_id, current_user)
    tracing.info("Task deleted", task_id=task_id, rows_deleted=deleted, user=current_user.username)
