# app/db/models/task.py
"""Hierarchical task model"""
from sqlalchemy import Column, Integer, String, ForeignKey, Index, Enum, Table, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.models.base import Base, TimestampMixin, IDMixin
from app.db.models.enums import TaskStatus


task_categories = Table(
    "task_categories",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Task(Base, IDMixin, TimestampMixin):
    """Task owned by a user; parent_id links it into the owner's task forest"""
    __tablename__ = "tasks"

    title = Column(String(255), nullable=False)
    description = Column(String(255), nullable=True)
    status = Column(Enum(TaskStatus), nullable=False, default=TaskStatus.TODO, index=True)

    # Foreign keys
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Integer, ForeignKey("tasks.id"), nullable=True)

    # Relationships
    owner = relationship("User", back_populates="tasks")
    categories = relationship("Category", secondary=task_categories, lazy="selectin")

    __table_args__ = (
        UniqueConstraint('owner_id', 'title', name='uq_task_owner_title'),
        Index('idx_task_owner_parent', 'owner_id', 'parent_id'),
        Index('idx_task_parent_status', 'parent_id', 'status'),
    )

    @property
    def category_names(self):
        return sorted(category.name for category in self.categories)

    def __repr__(self):
        return f"<Task id={self.id} title={self.title} status={self.status}>"
