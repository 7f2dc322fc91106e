"""API v1 endpoints"""
from fastapi import APIRouter
from .endpoints import auth, users, categories, tasks

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
# Registered ahead of the task routes so /tasks/categories is not read as a task id
api_router.include_router(categories.router, prefix="/tasks/categories", tags=["categories"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
