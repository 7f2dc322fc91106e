# app/api/v1/endpoints/categories.py
"""Category management, restricted to moderators and administrators"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.db.models import Category, User
from app.api.v1.schemas.categories import CategoryRequest, CategoryResponse
from app.auth.dependencies import require_elevated
from app.core import tracing
from app.core.pagination import AutoPaginator, PaginatedResponse, PaginationParams, get_pagination
from app.middleware.rate_limiting import limiter
from app.services import categories as category_service

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[CategoryResponse])
@limiter.limit("60/minute")
async def list_categories(
        request: Request,
        pagination: PaginationParams = Depends(get_pagination),
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_elevated)
):
    return await AutoPaginator.paginate(
        db,
        Category,
        pagination,
        response_schema=CategoryResponse,
        search_fields=["name"],
        sortable_fields=["id", "name", "created_at"],
        request=request
    )


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_category(
        request: Request,
        category_in: CategoryRequest,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_elevated)
):
    category = await category_service.create_category(db, category_in.name)
    tracing.info("Category created", category_id=category.id, name=category.name, user=current_user.username)
    return category


@router.get("/{category_id}", response_model=CategoryResponse)
@limiter.limit("60/minute")
async def get_category(
        request: Request,
        category_id: int,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_elevated)
):
    return await category_service.get_category(db, category_id)


@router.put("/{category_id}", response_model=CategoryResponse)
@limiter.limit("30/minute")
async def update_category(
        request: Request,
        category_id: int,
        category_in: CategoryRequest,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_elevated)
):
    category = await category_service.rename_category(db, category_id, category_in.name)
    tracing.info("Category renamed", category_id=category.id, name=category.name, user=current_user.username)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def delete_category(
        request: Request,
        category_id: int,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_elevated)
):
    await category_service.delete_category(db, category_id)
    tracing.info("Category deleted", category_id=category_id, user=current_user.username)
