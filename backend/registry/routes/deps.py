"""FastAPI dependencies that build the service layer for one request."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from registry.database import get_db
from registry.services.application_registry import ApplicationRegistry
from registry.services.file_storage import FileStorageService, get_file_storage
from registry.services.schema_versioning import SchemaVersioningService
from registry.services.service_registry import ServiceRegistry


def get_application_registry(
    db: AsyncSession = Depends(get_db),
    storage: FileStorageService = Depends(get_file_storage),
) -> ApplicationRegistry:
    return ApplicationRegistry(db, storage)


def get_service_registry(
    db: AsyncSession = Depends(get_db),
    storage: FileStorageService = Depends(get_file_storage),
) -> ServiceRegistry:
    return ServiceRegistry(db, storage)


def get_schema_service(
    db: AsyncSession = Depends(get_db),
    storage: FileStorageService = Depends(get_file_storage),
) -> SchemaVersioningService:
    return SchemaVersioningService(db, storage)
