# app/api/v1/schemas/auth.py
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.db.models.enums import UserRole
from app.utils.validators import PasswordValidator, UsernameValidator


class Token(BaseModel):
    """
    JWT pair returned by the authentication endpoints.
    """
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None


class TokenData(BaseModel):
    """
    Claims extracted from an access token.
    """
    username: str
    user_id: int
    jti: str
    role: Optional[UserRole] = None
    exp: Optional[int] = None


class UserCreate(BaseModel):
    username: str = Field(..., description="3-50 characters: letters, digits, '_', '-', '.'")
    email: EmailStr = Field(..., description="User's email address.")
    password: str = Field(
        ...,
        description="At least 8 characters with upper and lower case letters, a digit and a special character."
    )
    password_confirm: str = Field(..., description="Must match the password field.")

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        is_valid, message = UsernameValidator.validate(value)
        if not is_valid:
            raise ValueError(message)
        return value

    @field_validator("password")
    @classmethod
    def validate_password_complexity(cls, value: str) -> str:
        is_valid, message = PasswordValidator.validate_complexity(value)
        if not is_valid:
            raise ValueError(message)
        return value

    @model_validator(mode='after')
    def passwords_match(self) -> 'UserCreate':
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match.")
        return self


class PrivilegedUserCreate(UserCreate):
    """Account created by an administrator with an explicit role"""
    role: UserRole = Field(UserRole.MODERATOR, description="Role of the new account")


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)
