"""Service request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from registry.schemas.application import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from registry.schemas.base import CamelModel, CamelORMModel


class ServiceUpdate(CamelModel):
    name: str = Field(..., max_length=MAX_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Service name is required")
        return value.strip()


class ServiceCreate(ServiceUpdate):
    application_id: int = Field(..., gt=0)


class ServiceResponse(CamelORMModel):
    id: int
    name: str
    description: Optional[str] = None
    application_id: int
    application_name: str
    schema_count: int = 0
    created_at: datetime
    updated_at: datetime
