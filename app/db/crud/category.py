# app/db/crud/category.py
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import exists
from loguru import logger

from app.db.models import Category, task_categories


async def get_category_by_id(db: AsyncSession, category_id: int) -> Optional[Category]:
    result = await db.execute(select(Category).filter(Category.id == category_id))
    return result.scalars().first()


async def get_category_by_name(db: AsyncSession, name: str) -> Optional[Category]:
    result = await db.execute(select(Category).filter(Category.name == name))
    return result.scalars().first()


async def is_category_name_unique(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> bool:
    query = select(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return (await db.execute(query.limit(1))).first() is None


async def is_category_in_use(db: AsyncSession, category_id: int) -> bool:
    return bool(await db.scalar(
        select(exists().where(task_categories.c.category_id == category_id))
    ))


async def create_category(db: AsyncSession, name: str, commit: bool = True) -> Category:
    """Inserts a category; with commit=False the row is only flushed"""
    try:
        category = Category(name=name)
        db.add(category)
        if commit:
            await db.commit()
            await db.refresh(category)
        else:
            await db.flush()
        logger.info(f"Category created: {name}")
        return category
    except Exception as e:
        logger.error(f"Failed to create category {name}: {e}")
        await db.rollback()
        raise


async def update_category(db: AsyncSession, category: Category, name: str) -> Category:
    try:
        old_name = category.name
        category.name = name
        await db.commit()
        await db.refresh(category)
        logger.info(f"Category renamed: {old_name} -> {name}")
        return category
    except Exception as e:
        logger.error(f"Failed to update category {category.id}: {e}")
        await db.rollback()
        raise


async def delete_category(db: AsyncSession, category: Category) -> None:
    try:
        await db.delete(category)
        await db.commit()
        logger.info(f"Category deleted: {category.name}")
    except Exception as e:
        logger.error(f"Failed to delete category {category.name}: {e}")
        await db.rollback()
        raise
