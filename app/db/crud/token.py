import asyncio
from datetime import datetime, timezone
from typing import Optional, Dict

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import delete, update, and_, or_
from loguru import logger

from app.db.models import RefreshToken, BlacklistedToken
from app.auth.security import Hasher


async def create_refresh_token_db(
        db: AsyncSession,
        user_id: int,
        token: str,
        expires_at: datetime
) -> RefreshToken:
    """
    Stores the SHA-256 digest of a refresh token.
    """
    try:
        new_refresh_token = RefreshToken(
            user_id=user_id,
            token_hash=Hasher.hash_refresh_token(token),
            expires_at=expires_at
        )
        db.add(new_refresh_token)
        await db.commit()
        await db.refresh(new_refresh_token)
        logger.info(f"Refresh token created for user {user_id}")
        return new_refresh_token
    except Exception as e:
        logger.error(f"Failed to create refresh token for user {user_id}: {e}")
        await db.rollback()
        raise


async def get_active_refresh_token(db: AsyncSession, token: str) -> Optional[RefreshToken]:
    """
    Looks up an unrevoked, unexpired refresh token by the digest of its raw value.
    """
    result = await db.execute(
        select(RefreshToken).filter(
            and_(
                RefreshToken.token_hash == Hasher.hash_refresh_token(token),
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > datetime.now(timezone.utc)
            )
        )
    )
    record = result.scalars().first()
    if record:
        logger.debug(f"Valid refresh token found for user {record.user_id}")
    return record


async def revoke_refresh_token_db(db: AsyncSession, refresh_token_record: RefreshToken) -> RefreshToken:
    try:
        refresh_token_record.revoked_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(refresh_token_record)
        logger.info(f"Refresh token revoked for user {refresh_token_record.user_id}")
        return refresh_token_record
    except Exception as e:
        logger.error(f"Failed to revoke refresh token: {e}")
        await db.rollback()
        raise


async def revoke_user_refresh_tokens(db: AsyncSession, user_id: int) -> int:
    """Revokes every active refresh token of a user; returns how many were revoked"""
    try:
        result = await db.execute(
            update(RefreshToken)
            .where(and_(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None)))
            .values(revoked_at=datetime.now(timezone.utc))
        )
        await db.commit()
        logger.info(f"Revoked {result.rowcount} refresh tokens for user {user_id}")
        return result.rowcount
    except Exception as e:
        logger.error(f"Failed to revoke refresh tokens for user {user_id}: {e}")
        await db.rollback()
        raise


async def _delete_in_batches(db: AsyncSession, model, condition, batch_size: int, label: str) -> int:
    total_deleted = 0
    while True:
        subquery = select(model.id).where(condition).limit(batch_size)
        result = await db.execute(delete(model).where(model.id.in_(subquery)))
        deleted_count = result.rowcount
        total_deleted += deleted_count
        await db.commit()

        logger.info(f"Deleted batch of {deleted_count} expired {label}")
        if deleted_count < batch_size:
            break
        await asyncio.sleep(0.1)

    logger.info(f"Total expired {label} deleted: {total_deleted}")
    return total_deleted


async def delete_expired_refresh_tokens(db: AsyncSession, batch_size: int = 1000) -> int:
    """
    Deletes refresh tokens that have expired or been revoked, in batches.
    """
    try:
        condition = or_(
            RefreshToken.expires_at <= datetime.now(timezone.utc),
            RefreshToken.revoked_at.isnot(None)
        )
        return await _delete_in_batches(db, RefreshToken, condition, batch_size, "refresh tokens")
    except Exception as e:
        logger.error(f"Failed to delete expired refresh tokens: {e}")
        await db.rollback()
        raise


async def add_to_blacklist(db: AsyncSession, jti: str, expires_at: datetime) -> BlacklistedToken:
    try:
        blacklisted_entry = BlacklistedToken(jti=jti, expires_at=expires_at)
        db.add(blacklisted_entry)
        await db.commit()
        await db.refresh(blacklisted_entry)
        logger.info(f"Token blacklisted: {jti}")
        return blacklisted_entry
    except Exception as e:
        logger.error(f"Failed to blacklist token {jti}: {e}")
        await db.rollback()
        raise


async def is_jti_blacklisted(db: AsyncSession, jti: str) -> bool:
    result = await db.execute(
        select(BlacklistedToken).filter(
            and_(
                BlacklistedToken.jti == jti,
                BlacklistedToken.expires_at > datetime.now(timezone.utc)
            )
        )
    )
    is_blacklisted = result.scalars().first() is not None
    if is_blacklisted:
        logger.warning(f"Blacklisted token used: {jti}")
    return is_blacklisted


async def delete_expired_blacklisted_tokens(db: AsyncSession, batch_size: int = 1000) -> int:
    try:
        condition = BlacklistedToken.expires_at <= datetime.now(timezone.utc)
        return await _delete_in_batches(db, BlacklistedToken, condition, batch_size, "blacklisted tokens")
    except Exception as e:
        logger.error(f"Failed to delete expired blacklisted tokens: {e}")
        await db.rollback()
        raise


async def cleanup_expired_tokens(db: AsyncSession, batch_size: int = 1000) -> Dict[str, int]:
    """
    Removes expired refresh and blacklisted tokens; returns per-kind counts.
    """
    stats = {
        "refresh_tokens_deleted": await delete_expired_refresh_tokens(db, batch_size),
        "blacklisted_tokens_deleted": await delete_expired_blacklisted_tokens(db, batch_size),
    }
    stats["total_deleted"] = stats["refresh_tokens_deleted"] + stats["blacklisted_tokens_deleted"]
    logger.info(f"Token cleanup completed: {stats}")
    return stats
