# app/db/models/enums.py
import enum
from typing import Union


class TaskStatus(str, enum.Enum):
    """Lifecycle status of a task"""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"

    @classmethod
    def allowed_values(cls) -> str:
        return ", ".join(member.format() for member in cls)

    @classmethod
    def parse(cls, value: Union[str, "TaskStatus"]) -> "TaskStatus":
        """Parse a status literal (case-insensitive); unknown literals raise ValueError"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Status must be one of: {cls.allowed_values()}")
        normalized = value.strip().upper()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Status must be one of: {cls.allowed_values()}")

    def format(self) -> str:
        """Wire literal of the status"""
        return self.value


class UserRole(str, enum.Enum):
    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"

    @property
    def is_elevated(self) -> bool:
        return self in (UserRole.MODERATOR, UserRole.ADMIN)
