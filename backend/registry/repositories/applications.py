"""Application Repository"""
from typing import Sequence

from sqlalchemy import func, select

from registry.models import Application, Schema, Service
from registry.repositories.base import BaseRepository


class ApplicationRepository(BaseRepository[Application]):
    model = Application

    async def find_by_name(self, name: str) -> Application | None:
        """Case-insensitive lookup."""
        result = await self.session.execute(
            select(Application).where(func.lower(Application.name) == name.lower())
        )
        return result.scalar_one_or_none()

    async def exists_by_name(self, name: str) -> bool:
        return await self.find_by_name(name) is not None

    async def list_page(self, limit: int, offset: int) -> Sequence[Application]:
        result = await self.session.execute(
            select(Application).order_by(Application.name).limit(limit).offset(offset)
        )
        return result.scalars().all()

    async def list_all(self) -> Sequence[Application]:
        result = await self.session.execute(select(Application).order_by(Application.name))
        return result.scalars().all()

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(Application.id)))
        return result.scalar() or 0

    async def count_services(self, application_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Service.id)).where(Service.application_id == application_id)
        )
        return result.scalar() or 0

    async def count_schemas(self, application_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Schema.id)).where(Schema.application_id == application_id)
        )
        return result.scalar() or 0
