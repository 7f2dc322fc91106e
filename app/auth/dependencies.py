# app/auth/dependencies.py
from typing import Callable

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError
from loguru import logger

from app.db.database import get_db
from app.auth.security import decode_token
from app.db.crud.user import get_user_by_id
from app.db.crud.token import is_jti_blacklisted
from app.api.v1.schemas.auth import TokenData
from app.db.models import User, UserRole
from app.exceptions.auth import (
    InvalidTokenError,
    TokenBlacklistedError,
    InactiveUserError,
    InsufficientRoleError,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_token_data(token: str = Depends(oauth2_scheme)) -> TokenData:
    """Decode a bearer access token into its claims"""
    try:
        payload = decode_token(token)
    except JWTError:
        raise InvalidTokenError()

    if payload.get("type") != "access":
        logger.warning("Non-access token presented as bearer credential")
        raise InvalidTokenError()

    username, user_id, jti = payload.get("sub"), payload.get("user_id"), payload.get("jti")
    if not all([username, user_id, jti]):
        logger.warning("Invalid token payload - missing required fields")
        raise InvalidTokenError()

    return TokenData(
        username=username, user_id=user_id, jti=jti, role=payload.get("role"), exp=payload.get("exp")
    )


async def get_current_user(
        db: AsyncSession = Depends(get_db),
        token_data: TokenData = Depends(get_token_data)
) -> User:
    """
    Resolves the bearer token to an active user. Blacklisted (logged out) tokens
    and unknown users get 401, deactivated accounts 403.
    """
    if await is_jti_blacklisted(db, token_data.jti):
        raise TokenBlacklistedError()

    user = await get_user_by_id(db, token_data.user_id)
    if user is None:
        logger.warning(f"User not found | user_id={token_data.user_id}")
        raise InvalidTokenError()

    if not user.is_active:
        logger.warning(f"Inactive user authentication attempt | username={user.username}")
        raise InactiveUserError()

    logger.debug(f"User authenticated | username={user.username} | user_id={user.id}")
    return user


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory admitting only users holding one of the given roles"""

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if UserRole(current_user.role) not in roles:
            logger.warning(f"User {current_user.username} with role {current_user.role} denied")
            raise InsufficientRoleError()
        return current_user

    return role_checker


require_elevated = require_roles(UserRole.MODERATOR, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)
