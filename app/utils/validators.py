# app/utils/validators.py
import re
from typing import Optional, Tuple


class PasswordValidator:
    """Password validation utilities"""

    MIN_LENGTH = 8
    MAX_LENGTH = 64
    SPECIAL_CHARACTERS = r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?]"

    @classmethod
    def validate_complexity(cls, password: str) -> Tuple[bool, Optional[str]]:
        """
        Validate password complexity
        Returns (is_valid, error_message)
        """
        if len(password) < cls.MIN_LENGTH:
            return False, f"Password must be at least {cls.MIN_LENGTH} characters long"

        if len(password) > cls.MAX_LENGTH:
            return False, f"Password must be less than {cls.MAX_LENGTH} characters long"

        if not re.search(r"[a-z]", password):
            return False, "Password must contain at least one lowercase letter"

        if not re.search(r"[A-Z]", password):
            return False, "Password must contain at least one uppercase letter"

        if not re.search(r"\d", password):
            return False, "Password must contain at least one digit"

        if not re.search(cls.SPECIAL_CHARACTERS, password):
            return False, "Password must contain at least one special character"

        return True, None


class UsernameValidator:
    PATTERN = r"^[a-zA-Z0-9_\-.]+$"
    MIN_LENGTH = 3
    MAX_LENGTH = 50

    @classmethod
    def validate(cls, username: str) -> Tuple[bool, Optional[str]]:
        if not cls.MIN_LENGTH <= len(username) <= cls.MAX_LENGTH:
            return False, f"Username must be between {cls.MIN_LENGTH} and {cls.MAX_LENGTH} characters"
        if not re.match(cls.PATTERN, username):
            return False, "Username can only contain letters, numbers, underscores, hyphens, and periods"
        return True, None


class CategoryNameValidator:
    PATTERN = r"^[a-zA-Z0-9_]+$"
    MAX_LENGTH = 50

    @classmethod
    def validate(cls, name: str) -> Tuple[bool, Optional[str]]:
        if not isinstance(name, str) or not name or len(name) > cls.MAX_LENGTH:
            return False, f"Category name must be between 1 and {cls.MAX_LENGTH} characters"
        if not re.match(cls.PATTERN, name):
            return False, "Each category name must contain only letters, numbers, and underscores"
        return True, None
