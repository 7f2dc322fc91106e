# app/services/categories.py
"""Category resolver and the rules around category CRUD."""
from typing import List, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.config import settings
from app.db.crud import category as category_crud
from app.db.models import Category
from app.exceptions.domain import ResourceNotFoundError, ResourceConflictError, CategoryInUseError


async def resolve_category(db: AsyncSession, name: str, create_missing: bool = None) -> Category:
    """
    Looks a category up by exact name. Unknown names raise ResourceNotFoundError
    unless create_missing (default: AUTO_CREATE_CATEGORIES) is set, in which case the
    category is inserted in the current transaction.
    """
    if create_missing is None:
        create_missing = settings.AUTO_CREATE_CATEGORIES

    category = await category_crud.get_category_by_name(db, name)
    if category is not None:
        return category
    if not create_missing:
        raise ResourceNotFoundError("Category", detail=f"Category not found with name: {name}")

    logger.info(f"Creating category on demand: {name}")
    return await category_crud.create_category(db, name, commit=False)


async def resolve_categories(db: AsyncSession, names: Sequence[str]) -> List[Category]:
    return [await resolve_category(db, name) for name in names]


async def get_category(db: AsyncSession, category_id: int) -> Category:
    category = await category_crud.get_category_by_id(db, category_id)
    if category is None:
        raise ResourceNotFoundError("Category", category_id)
    return category


async def create_category(db: AsyncSession, name: str) -> Category:
    if not await category_crud.is_category_name_unique(db, name):
        raise ResourceConflictError(f"Category already exists with name: {name}")
    try:
        return await category_crud.create_category(db, name)
    except IntegrityError:
        raise ResourceConflictError(f"Category already exists with name: {name}")


async def rename_category(db: AsyncSession, category_id: int, name: str) -> Category:
    category = await get_category(db, category_id)
    if not await category_crud.is_category_name_unique(db, name, exclude_id=category_id):
        raise ResourceConflictError(f"Category already exists with name: {name}")
    try:
        return await category_crud.update_category(db, category, name)
    except IntegrityError:
        raise ResourceConflictError(f"Category already exists with name: {name}")


async def delete_category(db: AsyncSession, category_id: int) -> None:
    category = await get_category(db, category_id)
    if await category_crud.is_category_in_use(db, category_id):
        raise CategoryInUseError(category.name)
    await category_crud.delete_category(db, category)
