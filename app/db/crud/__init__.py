"""CRUD operations for database models"""
from .user import (
    get_user_by_username,
    get_user_by_email,
    get_user_by_id,
    create_user_db
)
from .token import (
    create_refresh_token_db,
    get_active_refresh_token,
    revoke_refresh_token_db,
    revoke_user_refresh_tokens,
    delete_expired_refresh_tokens,
    add_to_blacklist,
    is_jti_blacklisted,
    delete_expired_blacklisted_tokens,
    cleanup_expired_tokens
)
from . import task
from . import category

__all__ = [
    # User CRUD
    "get_user_by_username",
    "get_user_by_email",
    "get_user_by_id",
    "create_user_db",
    # Token CRUD
    "create_refresh_token_db",
    "get_active_refresh_token",
    "revoke_refresh_token_db",
    "revoke_user_refresh_tokens",
    "delete_expired_refresh_tokens",
    "add_to_blacklist",
    "is_jti_blacklisted",
    "delete_expired_blacklisted_tokens",
    "cleanup_expired_tokens",
    # Task hierarchy
    "task",
    "category",
]
