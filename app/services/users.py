# app/services/users.py
"""User directory: lookups that fail loudly, plus account creation."""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.auth.security import Hasher
from app.db.crud import user as user_crud
from app.db.models import User, UserRole
from app.exceptions.auth import UserAlreadyExistsError
from app.exceptions.domain import ResourceNotFoundError


async def get_user_by_username(db: AsyncSession, username: str) -> User:
    user = await user_crud.get_user_by_username(db, username)
    if user is None:
        raise ResourceNotFoundError("User", detail=f"User not found with username: {username}")
    return user


async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
    user = await user_crud.get_user_by_id(db, user_id)
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user


async def register_user(
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER
) -> User:
    """Creates an account after checking username and email are free"""
    if await user_crud.get_user_by_username(db, username):
        raise UserAlreadyExistsError("username")
    if await user_crud.get_user_by_email(db, email):
        raise UserAlreadyExistsError("email")

    try:
        return await user_crud.create_user_db(db, {
            "username": username,
            "email": email,
            "hashed_password": Hasher.get_password_hash(password),
            "role": role,
            "is_active": True,
        })
    except IntegrityError:
        logger.warning(f"Concurrent registration for username={username} email={email}")
        raise UserAlreadyExistsError("username or email")
