"""Application request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from registry.schemas.base import CamelModel, CamelORMModel

MAX_NAME_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 1000


class ApplicationCreate(CamelModel):
    name: str = Field(..., max_length=MAX_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Application name is required")
        return value.strip()


class ApplicationResponse(CamelORMModel):
    id: int
    name: str
    description: Optional[str] = None
    service_count: int = 0
    schema_count: int = 0
    created_at: datetime
    updated_at: datetime
