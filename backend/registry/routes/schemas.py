"""Schemas API routes.

Uploads accept either a multipart file or the raw JSON/YAML text as the
request body. The service query/form parameter is optional; without it the
schema is stored at application level.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from registry.config import settings
from registry.errors import PayloadTooLargeError, SchemaValidationError
from registry.routes.deps import get_schema_service
from registry.schemas.application import MAX_NAME_LENGTH
from registry.schemas.common import MessageResponse, Page, PaginationParams
from registry.schemas.schema import SchemaResponse, SchemaStatistics, ValidationResponse
from registry.services.schema_versioning import SchemaVersioningService

router = APIRouter(prefix="/api/schemas", tags=["schemas"])


def _decode(raw: bytes) -> str:
    if len(raw) > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError(
            f"Schema exceeds maximum upload size of {settings.MAX_UPLOAD_BYTES} bytes"
        )
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise SchemaValidationError("Schema content must be UTF-8 text")


def _check_length(name: str, label: str) -> str:
    if len(name) > MAX_NAME_LENGTH:
        raise SchemaValidationError(
            f"{label} name must be at most {MAX_NAME_LENGTH} characters"
        )
    return name


def _require_name(value: str, label: str) -> str:
    if not value or not value.strip():
        raise SchemaValidationError(f"{label} name is required")
    return _check_length(value.strip(), label)


def _optional_name(value: Optional[str], label: str = "Service") -> Optional[str]:
    if value is None or not value.strip():
        return None
    return _check_length(value.strip(), label)


@router.post("/upload", response_model=SchemaResponse, status_code=201)
async def upload_schema_file(
    file: UploadFile = File(...),
    application: str = Form(...),
    service: Optional[str] = Form(None),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Upload a schema file as the next version of its scope."""
    content = _decode(await file.read())
    return await schemas.upload(
        content, _require_name(application, "Application"), _optional_name(service)
    )


@router.post("/upload-json", response_model=SchemaResponse, status_code=201)
async def upload_schema_content(
    request: Request,
    application: str = Query(...),
    service: Optional[str] = Query(None),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Upload raw JSON or YAML text from the request body."""
    content = _decode(await request.body())
    return await schemas.upload(
        content, _require_name(application, "Application"), _optional_name(service)
    )


@router.post("/validate", response_model=ValidationResponse)
async def validate_schema_file(
    file: UploadFile = File(...),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Validate a schema file without storing it."""
    result, fmt = schemas.validate_content(_decode(await file.read()))
    return ValidationResponse(
        valid=result.valid, message=result.message, warnings=result.warnings, file_format=fmt
    )


@router.post("/validate-json", response_model=ValidationResponse)
async def validate_schema_content(
    request: Request,
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Validate raw JSON or YAML text without storing it."""
    result, fmt = schemas.validate_content(_decode(await request.body()))
    return ValidationResponse(
        valid=result.valid, message=result.message, warnings=result.warnings, file_format=fmt
    )


@router.get("", response_model=Page[SchemaResponse])
async def list_schemas(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """List schemas across all scopes, newest first."""
    return await schemas.list_all(PaginationParams(page=page, size=size))


@router.get("/{application_name}/latest", response_model=SchemaResponse)
async def get_latest_schema(
    application_name: str,
    service: Optional[str] = Query(None),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Get the latest schema of a scope, with content."""
    return await schemas.get_latest(application_name, _optional_name(service))


@router.get("/{schema_id}", response_model=SchemaResponse)
async def get_schema(
    schema_id: int,
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Get schema metadata by ID."""
    return await schemas.get(schema_id)


@router.get("/{schema_id}/content", response_model=SchemaResponse)
async def get_schema_with_content(
    schema_id: int,
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Get schema metadata and content by ID."""
    return await schemas.get_with_content(schema_id)


@router.get("/{application_name}/list", response_model=Page[SchemaResponse])
async def list_schemas_for_scope(
    application_name: str,
    service: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Paged versions of one scope, newest first."""
    return await schemas.list_for_scope(
        application_name, _optional_name(service), PaginationParams(page=page, size=size)
    )


@router.get("/{application_name}/versions", response_model=list[SchemaResponse])
async def list_schema_versions(
    application_name: str,
    service: Optional[str] = Query(None),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """All versions of one scope, newest first."""
    return await schemas.list_versions(application_name, _optional_name(service))


@router.get("/{application_name}/versions/{version}", response_model=SchemaResponse)
async def get_schema_by_version(
    application_name: str,
    version: int,
    service: Optional[str] = Query(None),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Get one exact version of a scope, with content."""
    return await schemas.get_by_version(application_name, _optional_name(service), version)


@router.get("/{application_name}/statistics", response_model=SchemaStatistics)
async def get_schema_statistics(
    application_name: str,
    service: Optional[str] = Query(None),
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    return await schemas.statistics(application_name, _optional_name(service))


@router.delete("/{schema_id}", response_model=MessageResponse)
async def delete_schema(
    schema_id: int,
    schemas: SchemaVersioningService = Depends(get_schema_service),
):
    """Delete a schema version. The next-highest version becomes latest."""
    await schemas.delete(schema_id)
    return MessageResponse(message="Schema deleted successfully", data={"id": schema_id})
