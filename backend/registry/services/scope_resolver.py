"""Resolve human-readable application/service names into a schema scope."""
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from registry.models import Application, Service
from registry.services.application_registry import ApplicationRegistry
from registry.services.file_storage import FileStorageService
from registry.services.service_registry import ServiceRegistry


def has_service(service_name: str | None) -> bool:
    return service_name is not None and bool(service_name.strip())


@dataclass
class ResolvedScope:
    application: Application
    service: Service | None = None

    @property
    def application_id(self) -> int:
        return self.application.id

    @property
    def service_id(self) -> int | None:
        return self.service.id if self.service is not None else None


class ScopeResolver:
    """Two lookups with different contracts.

    ``resolve`` is the upload path and creates whatever is missing.
    ``lookup`` is the read path and raises ResourceNotFoundError instead.
    """

    def __init__(self, db: AsyncSession, storage: FileStorageService):
        self.applications = ApplicationRegistry(db, storage)
        self.services = ServiceRegistry(db, storage)

    async def resolve(self, application_name: str, service_name: str | None = None) -> ResolvedScope:
        application = await self.applications.get_or_create(application_name)
        if not has_service(service_name):
            return ResolvedScope(application)
        service = await self.services.get_or_create(service_name, application)
        return ResolvedScope(application, service)

    async def lookup(self, application_name: str, service_name: str | None = None) -> ResolvedScope:
        application = await self.applications.get_by_name(application_name)
        if not has_service(service_name):
            return ResolvedScope(application)
        service = await self.services.get_by_name(service_name, application.name)
        return ResolvedScope(application, service)
