# app/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi.util import get_remote_address

from app.db.database import get_db
from app.api.v1.schemas.auth import PrivilegedUserCreate
from app.api.v1.schemas.users import UserResponse
from app.auth.dependencies import get_current_user, require_elevated, require_admin
from app.db.models import User
from app.core import tracing
from app.middleware.rate_limiting import limiter
from app.services import users as user_service

router = APIRouter()


@router.get("/me", response_model=UserResponse)
@limiter.limit("30/minute")
async def read_current_user(request: Request, current_user: User = Depends(get_current_user)):
    tracing.info("User profile requested", username=current_user.username, ip=get_remote_address(request))
    return current_user


@router.post("/admin", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_privileged_user(
        request: Request,
        user_in: PrivilegedUserCreate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_admin)
):
    """ADMIN-only: create an account with an explicit role"""
    user = await user_service.register_user(db, user_in.username, user_in.email, user_in.password, role=user_in.role)
    tracing.info("Privileged user created", username=user.username, role=user.role.value,
                 created_by=current_user.username, ip=get_remote_address(request))
    return user


@router.get("/{user_id}", response_model=UserResponse)
@limiter.limit("20/minute")
async def get_user_by_id_endpoint(
        request: Request,
        user_id: int,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_elevated)
):
    tracing.info("User lookup", user_id=user_id, requester=current_user.username, ip=get_remote_address(request))
    return await user_service.get_user_by_id(db, user_id)
