# app/exceptions/auth.py
from fastapi import HTTPException, status


class AuthenticationError(HTTPException):
    """Base authentication error"""
    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


class InvalidCredentialsError(AuthenticationError):
    """Invalid username/password"""
    def __init__(self):
        super().__init__(detail="Invalid username or password")


class InvalidTokenError(AuthenticationError):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(detail=detail)


class TokenBlacklistedError(AuthenticationError):
    """Token has been blacklisted"""
    def __init__(self):
        super().__init__(detail="Token has been revoked")


class InactiveUserError(HTTPException):
    """User account is inactive"""
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )


class InsufficientRoleError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient role for this operation"
        )


class UserAlreadyExistsError(HTTPException):
    """Username or email already taken"""
    def __init__(self, field: str = "email"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with this {field} already exists"
        )
