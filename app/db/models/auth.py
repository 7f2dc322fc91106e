# app/db/models/auth.py
"""Authentication-related models"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func, ForeignKey, Index, Enum
from sqlalchemy.orm import relationship

from app.db.models.base import Base, TimestampMixin, IDMixin
from app.db.models.enums import UserRole


class User(Base, IDMixin, TimestampMixin):
    """Account that owns tasks"""
    __tablename__ = "users"

    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_user_username_active', 'username', 'is_active'),
        Index('idx_user_created_at', 'created_at'),
    )

    @property
    def is_elevated(self) -> bool:
        return UserRole(self.role).is_elevated

    def __repr__(self):
        return f"<User username={self.username} role={self.role}>"


class RefreshToken(Base, TimestampMixin):
    """Issued refresh token, stored as a SHA-256 digest"""
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    issued_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index('idx_refresh_token_user_active', 'user_id', 'revoked_at'),
        Index('idx_refresh_token_cleanup', 'expires_at', 'revoked_at'),
    )

    def __repr__(self):
        return f"<RefreshToken user_id={self.user_id} expires_at={self.expires_at}>"


class BlacklistedToken(Base):
    __tablename__ = "blacklisted_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(255), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    blacklisted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_blacklisted_jti_expires', 'jti', 'expires_at'),
        Index('idx_blacklisted_expires', 'expires_at'),
    )

    def __repr__(self):
        return f"<BlacklistedToken jti={self.jti}>"
