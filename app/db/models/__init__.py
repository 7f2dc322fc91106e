# app/db/models/__init__.py
"""
Database models package
Imports all models for easy access
"""

# Import base classes and mixins
from app.db.models.base import Base, TimestampMixin, IDMixin

# Import all enums
from app.db.models.enums import TaskStatus, UserRole

# Import authentication models
from app.db.models.auth import User, RefreshToken, BlacklistedToken

# Import task models
from app.db.models.category import Category
from app.db.models.task import Task, task_categories

# Export all models and enums
__all__ = [
    # Base classes
    'Base', 'TimestampMixin', 'IDMixin',

    # Enums
    'TaskStatus', 'UserRole',

    # Authentication models
    'User', 'RefreshToken', 'BlacklistedToken',

    # Task models
    'Category', 'Task', 'task_categories',
]
