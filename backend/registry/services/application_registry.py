"""Application management: explicit CRUD plus the get-or-create used by uploads."""
import logging

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registry.errors import DuplicateResourceError, ResourceNotFoundError
from registry.models import Application, Schema, Service
from registry.repositories import ApplicationRepository, SchemaRepository
from registry.schemas.application import ApplicationResponse
from registry.schemas.common import Page, PaginationParams
from registry.services.file_storage import FileStorageService

logger = logging.getLogger(__name__)


class ApplicationRegistry:
    def __init__(self, db: AsyncSession, storage: FileStorageService):
        self.db = db
        self.storage = storage
        self.applications = ApplicationRepository(db)
        self.schemas = SchemaRepository(db)

    async def create(self, name: str, description: str | None = None) -> Application:
        """Create an application, rejecting a name that exists in any letter case."""
        logger.info("Creating application: %s", name)
        if await self.applications.exists_by_name(name):
            raise DuplicateResourceError(f"Application already exists: {name}")

        application = Application(name=name, description=description)
        try:
            await self.applications.add(application)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceError(f"Application already exists: {name}")

        logger.info("Created application %s with ID %s", name, application.id)
        return application

    async def get(self, application_id: int) -> Application:
        application = await self.applications.get_by_id(application_id)
        if application is None:
            raise ResourceNotFoundError(f"Application not found with ID: {application_id}")
        return application

    async def get_by_name(self, name: str) -> Application:
        application = await self.applications.find_by_name(name)
        if application is None:
            raise ResourceNotFoundError(f"Application not found: {name}")
        return application

    async def exists(self, name: str) -> bool:
        return await self.applications.exists_by_name(name)

    async def list_page(self, params: PaginationParams) -> Page[ApplicationResponse]:
        items = await self.applications.list_page(params.size, params.offset)
        total = await self.applications.count()
        responses = [await self.to_response(a) for a in items]
        return Page[ApplicationResponse].build(responses, total, params)

    async def list_all(self) -> list[ApplicationResponse]:
        return [await self.to_response(a) for a in await self.applications.list_all()]

    async def update(
        self, application_id: int, name: str, description: str | None
    ) -> Application:
        logger.info("Updating application with ID: %s", application_id)
        application = await self.get(application_id)

        if application.name.lower() != name.lower() and await self.applications.exists_by_name(name):
            raise DuplicateResourceError(f"Application already exists: {name}")

        application.name = name
        application.description = description
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceError(f"Application already exists: {name}")
        return application

    async def delete(self, application_id: int) -> None:
        """Delete an application with its services, schemas and schema files."""
        application = await self.get(application_id)
        file_paths = await self.schemas.file_paths_for_application(application_id)

        await self.db.execute(delete(Schema).where(Schema.application_id == application_id))
        await self.db.execute(delete(Service).where(Service.application_id == application_id))
        await self.applications.delete(application)
        await self.db.commit()

        for path in file_paths:
            await self.storage.delete(path)
        logger.info(
            "Deleted application %s with %d schema file(s)", application.name, len(file_paths)
        )

    async def get_or_create(self, name: str) -> Application:
        """Idempotent lookup used by uploads; never raises on an existing name."""
        application = await self.applications.find_by_name(name)
        if application is not None:
            return application

        logger.info("Auto-creating application: %s", name)
        application = Application(name=name, description=f"Auto-created application for: {name}")
        try:
            await self.applications.add(application)
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent auto-create of the same name.
            await self.db.rollback()
            return await self.get_by_name(name)
        return application

    async def to_response(self, application: Application) -> ApplicationResponse:
        return ApplicationResponse(
            id=application.id,
            name=application.name,
            description=application.description,
            service_count=await self.applications.count_services(application.id),
            schema_count=await self.applications.count_schemas(application.id),
            created_at=application.created_at,
            updated_at=application.updated_at,
        )
