# app/api/v1/schemas/categories.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.validators import CategoryNameValidator


class CategoryRequest(BaseModel):
    name: str = Field(..., description="Letters, digits and underscores only")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        is_valid, message = CategoryNameValidator.validate(value)
        if not is_valid:
            raise ValueError(message)
        return value


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
    updated_at: datetime
