# app/api/v1/endpoints/auth.py
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi.util import get_remote_address
from jose import JWTError

from app.db.database import get_db
from app.auth.dependencies import get_current_user, get_token_data
from app.auth.security import Hasher, create_access_token, create_refresh_token, decode_token
from app.db.crud.user import get_user_by_username, get_user_by_id
from app.db.crud.token import (
    create_refresh_token_db,
    get_active_refresh_token,
    revoke_refresh_token_db,
    revoke_user_refresh_tokens,
    add_to_blacklist,
)
from app.api.v1.schemas.auth import Token, TokenData, UserCreate, UserLogin, RefreshTokenRequest
from app.db.models import User
from app.core.config import settings
from app.core import tracing
from app.exceptions.auth import InvalidCredentialsError, InactiveUserError, InvalidTokenError
from app.middleware.rate_limiting import limiter
from app.services import users as user_service

router = APIRouter()


async def issue_tokens_and_save_refresh(db: AsyncSession, user: User) -> Token:
    claims = {"sub": user.username, "user_id": user.id, "role": user.role.value}

    access_token = create_access_token(data=claims)
    refresh_token = create_refresh_token(data=claims)

    refresh_expires_at = datetime.fromtimestamp(decode_token(refresh_token)["exp"], tz=timezone.utc)
    await create_refresh_token_db(db, user.id, refresh_token, refresh_expires_at)
    tracing.info("Refresh token saved", username=user.username, user_id=user.id)

    return Token(access_token=access_token, refresh_token=refresh_token)


async def authenticate(db: AsyncSession, username: str, password: str, ip: str) -> User:
    user = await get_user_by_username(db, username)
    if not user or not Hasher.verify_password(password, user.hashed_password):
        tracing.warning("Login failed - invalid credentials", username=username, ip=ip)
        raise InvalidCredentialsError()

    if not user.is_active:
        tracing.warning("Login failed - account inactive", username=username, ip=ip)
        raise InactiveUserError()

    tracing.info("Login successful", username=user.username, user_id=user.id, ip=ip)
    return user


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def register_user(request: Request, user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    ip = get_remote_address(request)
    tracing.info("Registration attempt", username=user_in.username, ip=ip)

    user = await user_service.register_user(db, user_in.username, user_in.email, user_in.password)
    tracing.info("User registered successfully", username=user.username, user_id=user.id, ip=ip)
    return await issue_tokens_and_save_refresh(db, user)


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
        request: Request,
        form_data: OAuth2PasswordRequestForm = Depends(),
        db: AsyncSession = Depends(get_db)
):
    user = await authenticate(db, form_data.username, form_data.password, get_remote_address(request))
    return await issue_tokens_and_save_refresh(db, user)


@router.post("/login-json", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_via_json(request: Request, user_login: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await authenticate(db, user_login.username, user_login.password, get_remote_address(request))
    return await issue_tokens_and_save_refresh(db, user)


@router.post("/refresh-token", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token(request: Request, body: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    """Rotates a refresh token: the presented one is revoked and a new pair issued"""
    ip = get_remote_address(request)

    try:
        payload = decode_token(body.refresh_token)
    except JWTError:
        raise InvalidTokenError("Invalid refresh token")
    if payload.get("type") != "refresh" or payload.get("user_id") is None:
        tracing.warning("Token refresh with non-refresh token", ip=ip)
        raise InvalidTokenError("Invalid refresh token")

    token_record = await get_active_refresh_token(db, body.refresh_token)
    if token_record is None:
        tracing.warning("Refresh token unknown or revoked", user_id=payload.get("user_id"), ip=ip)
        raise InvalidTokenError("Invalid refresh token")

    user = await get_user_by_id(db, token_record.user_id)
    if user is None or not user.is_active:
        tracing.warning("Token refresh for missing or inactive user", user_id=token_record.user_id, ip=ip)
        raise InvalidTokenError("Invalid refresh token")

    await revoke_refresh_token_db(db, token_record)
    tracing.info("Token refresh successful", username=user.username, user_id=user.id, ip=ip)
    return await issue_tokens_and_save_refresh(db, user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
async def logout(
        request: Request,
        token_data: TokenData = Depends(get_token_data),
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    """Blacklists the presented access token and revokes the caller's refresh tokens"""
    expires_at = datetime.fromtimestamp(token_data.exp, tz=timezone.utc) if token_data.exp else (
        datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    await add_to_blacklist(db, token_data.jti, expires_at)
    revoked = await revoke_user_refresh_tokens(db, current_user.id)
    tracing.info("Logout successful", username=current_user.username, refresh_tokens_revoked=revoked,
                 ip=get_remote_address(request))
