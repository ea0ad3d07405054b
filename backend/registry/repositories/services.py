"""Service Repository

Services are always looked up inside one application.
"""
from typing import Sequence

from sqlalchemy import func, select

from registry.models import Application, Schema, Service
from registry.repositories.base import BaseRepository


class ServiceRepository(BaseRepository[Service]):
    model = Service

    async def find_by_name(self, name: str, application_id: int) -> Service | None:
        result = await self.session.execute(
            select(Service).where(
                Service.name == name,
                Service.application_id == application_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_name_and_application_name(
        self, name: str, application_name: str
    ) -> Service | None:
        result = await self.session.execute(
            select(Service)
            .join(Application, Service.application_id == Application.id)
            .where(
                Service.name == name,
                func.lower(Application.name) == application_name.lower(),
            )
        )
        return result.scalar_one_or_none()

    async def exists_by_name(self, name: str, application_id: int) -> bool:
        return await self.find_by_name(name, application_id) is not None

    async def list_for_application(
        self, application_id: int, limit: int | None = None, offset: int = 0
    ) -> Sequence[Service]:
        query = (
            select(Service)
            .where(Service.application_id == application_id)
            .order_by(Service.name)
        )
        if limit is not None:
            query = query.limit(limit).offset(offset)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count_for_application(self, application_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Service.id)).where(Service.application_id == application_id)
        )
        return result.scalar() or 0

    async def count_schemas(self, service_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Schema.id)).where(Schema.service_id == service_id)
        )
        return result.scalar() or 0
