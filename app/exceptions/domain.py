# app/exceptions/domain.py
from typing import Any, Optional

from fastapi import HTTPException, status


class ResourceNotFoundError(HTTPException):
    """Referenced entity does not exist"""
    def __init__(self, resource: str, identifier: Any = None, detail: Optional[str] = None):
        if detail is None:
            detail = f"{resource} not found" if identifier is None else f"{resource} not found with ID: {identifier}"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ResourceConflictError(HTTPException):
    """Operation would violate a uniqueness or hierarchy rule"""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class DuplicateCategoryError(ResourceConflictError):
    def __init__(self):
        super().__init__(detail="A task cannot have duplicate categories.")


class CannotProceedError(ResourceConflictError):
    """Status change or deletion blocked by an incomplete direct child"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(detail=f"Cannot proceed with task {task_id} while child tasks are not completed.")


class CategoryInUseError(ResourceConflictError):
    def __init__(self, name: str):
        super().__init__(detail=f"Category '{name}' is assigned to one or more tasks and cannot be deleted.")


class AccessDeniedError(HTTPException):
    def __init__(self, detail: str = "You do not have permission to access this resource"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InternalStoreError(HTTPException):
    """The store failed to persist a record"""
    def __init__(self, detail: str = "Failed to persist record"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
