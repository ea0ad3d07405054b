"""Service management, always within one owning application."""
import logging

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registry.errors import DuplicateResourceError, ResourceNotFoundError
from registry.models import Application, Schema, Service
from registry.repositories import ApplicationRepository, SchemaRepository, ServiceRepository
from registry.schemas.common import Page, PaginationParams
from registry.schemas.service import ServiceResponse
from registry.services.file_storage import FileStorageService

logger = logging.getLogger(__name__)


class ServiceRegistry:
    def __init__(self, db: AsyncSession, storage: FileStorageService):
        self.db = db
        self.storage = storage
        self.applications = ApplicationRepository(db)
        self.services = ServiceRepository(db)
        self.schemas = SchemaRepository(db)

    async def _get_application(self, application_id: int) -> Application:
        application = await self.applications.get_by_id(application_id)
        if application is None:
            raise ResourceNotFoundError(f"Application not found with ID: {application_id}")
        return application

    async def create(
        self, name: str, description: str | None, application_id: int
    ) -> Service:
        logger.info("Creating service %s for application ID %s", name, application_id)
        application = await self._get_application(application_id)
        if await self.services.exists_by_name(name, application_id):
            raise DuplicateResourceError(
                f"Service already exists: {name} in application: {application.name}"
            )

        service = Service(name=name, description=description, application=application)
        try:
            await self.services.add(service)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceError(
                f"Service already exists: {name} in application ID: {application_id}"
            )

        logger.info("Created service %s with ID %s", name, service.id)
        return service

    async def get(self, service_id: int) -> Service:
        service = await self.services.get_by_id(service_id)
        if service is None:
            raise ResourceNotFoundError(f"Service not found with ID: {service_id}")
        return service

    async def get_by_name(self, name: str, application_name: str) -> Service:
        service = await self.services.find_by_name_and_application_name(name, application_name)
        if service is None:
            raise ResourceNotFoundError(
                f"Service not found: {name} in application: {application_name}"
            )
        return service

    async def exists(self, name: str, application_id: int) -> bool:
        return await self.services.exists_by_name(name, application_id)

    async def count_for_application(self, application_id: int) -> int:
        await self._get_application(application_id)
        return await self.services.count_for_application(application_id)

    async def list_page(
        self, application_id: int, params: PaginationParams
    ) -> Page[ServiceResponse]:
        await self._get_application(application_id)
        items = await self.services.list_for_application(
            application_id, limit=params.size, offset=params.offset
        )
        total = await self.services.count_for_application(application_id)
        responses = [await self.to_response(s) for s in items]
        return Page[ServiceResponse].build(responses, total, params)

    async def list_all(self, application_id: int) -> list[ServiceResponse]:
        await self._get_application(application_id)
        items = await self.services.list_for_application(application_id)
        return [await self.to_response(s) for s in items]

    async def update(self, service_id: int, name: str, description: str | None) -> Service:
        logger.info("Updating service with ID: %s", service_id)
        service = await self.get(service_id)

        if service.name != name and await self.services.exists_by_name(name, service.application_id):
            raise DuplicateResourceError(
                f"Service already exists: {name} in application: {service.application.name}"
            )

        service.name = name
        service.description = description
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceError(
                f"Service already exists: {name} in application ID: {service.application_id}"
            )
        return service

    async def delete(self, service_id: int) -> None:
        """Delete a service with its schemas and schema files."""
        service = await self.get(service_id)
        file_paths = await self.schemas.file_paths_for_service(service_id)

        await self.db.execute(delete(Schema).where(Schema.service_id == service_id))
        await self.services.delete(service)
        await self.db.commit()

        for path in file_paths:
            await self.storage.delete(path)
        logger.info("Deleted service %s with %d schema file(s)", service.name, len(file_paths))

    async def get_or_create(self, name: str, application: Application) -> Service:
        """Idempotent lookup used by uploads; never raises on an existing name."""
        service = await self.services.find_by_name(name, application.id)
        if service is not None:
            return service

        logger.info("Auto-creating service %s for application %s", name, application.name)
        application_id = application.id
        service = Service(
            name=name,
            description=f"Auto-created service for: {name}",
            application=application,
        )
        try:
            await self.services.add(service)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            found = await self.services.find_by_name(name, application_id)
            if found is None:
                raise
            return found
        return service

    async def to_response(self, service: Service) -> ServiceResponse:
        return ServiceResponse(
            id=service.id,
            name=service.name,
            description=service.description,
            application_id=service.application_id,
            application_name=service.application.name,
            schema_count=await self.services.count_schemas(service.id),
            created_at=service.created_at,
            updated_at=service.updated_at,
        )
