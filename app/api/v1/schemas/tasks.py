# app/api/v1/schemas/tasks.py
from datetime import datetime
from typing import Optional, List, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

from app.db.models.enums import TaskStatus
from app.utils.validators import CategoryNameValidator


def _parse_status(value):
    if value is None:
        return value
    return TaskStatus.parse(value)


def _check_category_name(name: str) -> None:
    is_valid, message = CategoryNameValidator.validate(name)
    if not is_valid:
        raise ValueError(message)


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Task title, unique per owner")
    description: Optional[str] = Field(None, min_length=1, max_length=255, description="Task description")


class TaskCreate(TaskBase):
    """Schema for creating a task"""
    status: Optional[TaskStatus] = Field(None, description="Initial status, TODO when omitted")
    parent_id: Optional[int] = Field(None, description="Id of the parent task")
    category_names: Optional[List[str]] = Field(None, description="Category names to attach")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        return _parse_status(value)

    @field_validator("category_names")
    @classmethod
    def validate_category_names(cls, value):
        if value is not None:
            for name in value:
                _check_category_name(name)
        return value


class TaskUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are applied; an explicit
    "parent_id": null detaches the task from its parent.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[TaskStatus] = None
    parent_id: Optional[int] = None
    category_names: Optional[List[str]] = None

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        return _parse_status(value)

    @field_validator("category_names")
    @classmethod
    def validate_category_names(cls, value):
        if value is not None:
            for name in value:
                _check_category_name(name)
        return value

    @field_validator("title", "status", "category_names")
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class TaskStatusUpdate(BaseModel):
    status: TaskStatus = Field(..., description="One of TODO, IN_PROGRESS, DONE (case-insensitive)")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        return TaskStatus.parse(value)


class TaskResponse(BaseModel):
    """
    Transfer representation of a task. sub_tasks is left out of the JSON entirely
    when there is nothing to nest.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    parent_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    status: TaskStatus
    categories: List[str] = Field(default_factory=list)
    sub_tasks: List["TaskResponse"] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @model_serializer(mode="wrap")
    def omit_empty_sub_tasks(self, handler):
        data = handler(self)
        if not data.get("sub_tasks"):
            data.pop("sub_tasks", None)
        return data

    @classmethod
    def from_model(cls, task, sub_tasks: Optional[List["TaskResponse"]] = None) -> "TaskResponse":
        return cls(
            id=task.id,
            owner_id=task.owner_id,
            parent_id=task.parent_id,
            title=task.title,
            description=task.description,
            status=task.status,
            categories=task.category_names,
            sub_tasks=sub_tasks or [],
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

    @classmethod
    def build_tree(cls, task, children_by_parent: Dict[int, list]) -> "TaskResponse":
        """Nest every descendant found in children_by_parent under task"""
        children = children_by_parent.get(task.id, [])
        return cls.from_model(task, [cls.build_tree(child, children_by_parent) for child in children])


TaskResponse.model_rebuild()
