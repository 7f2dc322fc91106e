from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from loguru import logger

from app.db.models import User


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.username == username))
    user = result.scalars().first()
    if user:
        logger.debug(f"User found: {username}")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.email == email))
    return result.scalars().first()


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).filter(User.id == user_id))
    user = result.scalars().first()
    if user:
        logger.debug(f"User found: ID {user_id}")
    return user


async def create_user_db(db: AsyncSession, user_data: Dict[str, Any]) -> User:
    """
    Creates a new user record. Username, email and hashed_password are required.
    """
    try:
        missing = [key for key in ('username', 'email', 'hashed_password') if not user_data.get(key)]
        if missing:
            raise ValueError(f"Missing required user fields: {', '.join(missing)}")

        user = User(**user_data)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info(f"User created successfully: {user.username} ({user.role})")
        return user
    except Exception as e:
        logger.error(f"Failed to create user: {e}")
        await db.rollback()
        raise
