"""Schema request/response schemas."""
from datetime import datetime
from typing import Optional

from registry.models.schema import FileFormat, Schema
from registry.schemas.base import CamelModel, CamelORMModel


class SchemaResponse(CamelORMModel):
    id: int
    application_id: int
    application_name: str
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    version: int
    file_path: str
    file_format: FileFormat
    is_latest: bool
    content: Optional[str] = None
    created_at: datetime
    scope_identifier: str

    @classmethod
    def from_schema(cls, schema: Schema, content: str | None = None) -> "SchemaResponse":
        return cls(
            id=schema.id,
            application_id=schema.application_id,
            application_name=schema.application.name,
            service_id=schema.service_id,
            service_name=schema.service.name if schema.service else None,
            version=schema.version,
            file_path=schema.file_path,
            file_format=schema.file_format,
            is_latest=schema.is_latest,
            content=content,
            created_at=schema.created_at,
            scope_identifier=schema.scope_identifier,
        )


class ValidationResponse(CamelModel):
    valid: bool
    message: str
    warnings: list[str] = []
    file_format: Optional[FileFormat] = None


class SchemaStatistics(CamelModel):
    application_name: str
    service_name: Optional[str] = None
    total_versions: int
    latest_version: Optional[int] = None
