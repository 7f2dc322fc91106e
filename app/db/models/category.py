# app/db/models/category.py
"""Task category model"""
from sqlalchemy import Column, String

from app.db.models.base import Base, TimestampMixin, IDMixin


class Category(Base, IDMixin, TimestampMixin):
    __tablename__ = "categories"

    name = Column(String(50), unique=True, index=True, nullable=False)

    def __repr__(self):
        return f"<Category name={self.name}>"
