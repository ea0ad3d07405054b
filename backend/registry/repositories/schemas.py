"""
Schema Repository

Scoped queries over schema versions. A scope is (application_id,
service_id) where a NULL service_id selects application-level schemas
only, never the service-level schemas of the same application.
"""
from typing import Sequence

from sqlalchemy import Select, func, select

from registry.models import Schema
from registry.repositories.base import BaseRepository


def _in_scope(query: Select, application_id: int, service_id: int | None) -> Select:
    query = query.where(Schema.application_id == application_id)
    if service_id is None:
        return query.where(Schema.service_id.is_(None))
    return query.where(Schema.service_id == service_id)


class SchemaRepository(BaseRepository[Schema]):
    model = Schema

    async def next_version(self, application_id: int, service_id: int | None) -> int:
        """max(version) + 1 within the scope, 1 for an empty scope."""
        query = _in_scope(select(func.max(Schema.version)), application_id, service_id)
        result = await self.session.execute(query)
        return (result.scalar() or 0) + 1

    async def mark_all_not_latest(self, application_id: int, service_id: int | None) -> int:
        """Clear is_latest on every flagged row in the scope. Returns rows changed."""
        query = _in_scope(select(Schema), application_id, service_id).where(
            Schema.is_latest.is_(True)
        )
        result = await self.session.execute(query)
        flagged = result.scalars().all()
        for schema in flagged:
            schema.is_latest = False
        await self.session.flush()
        return len(flagged)

    async def find_latest(self, application_id: int, service_id: int | None) -> Schema | None:
        query = (
            _in_scope(select(Schema), application_id, service_id)
            .where(Schema.is_latest.is_(True))
            .order_by(Schema.version.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_highest_version(
        self, application_id: int, service_id: int | None
    ) -> Schema | None:
        query = (
            _in_scope(select(Schema), application_id, service_id)
            .order_by(Schema.version.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_by_version(
        self, application_id: int, service_id: int | None, version: int
    ) -> Schema | None:
        query = _in_scope(select(Schema), application_id, service_id).where(
            Schema.version == version
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_for_scope(
        self,
        application_id: int,
        service_id: int | None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[Schema]:
        """Versions in the scope, newest first."""
        query = _in_scope(select(Schema), application_id, service_id).order_by(
            Schema.version.desc()
        )
        if limit is not None:
            query = query.limit(limit).offset(offset)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count_for_scope(self, application_id: int, service_id: int | None) -> int:
        query = _in_scope(select(func.count(Schema.id)), application_id, service_id)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def list_page(self, limit: int, offset: int) -> Sequence[Schema]:
        result = await self.session.execute(
            select(Schema).order_by(Schema.id.desc()).limit(limit).offset(offset)
        )
        return result.scalars().all()

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(Schema.id)))
        return result.scalar() or 0

    async def exists_by_file_path(self, file_path: str) -> bool:
        result = await self.session.execute(
            select(Schema.id).where(Schema.file_path == file_path).limit(1)
        )
        return result.scalar() is not None

    async def file_paths_for_application(self, application_id: int) -> list[str]:
        result = await self.session.execute(
            select(Schema.file_path).where(Schema.application_id == application_id)
        )
        return list(result.scalars().all())

    async def file_paths_for_service(self, service_id: int) -> list[str]:
        result = await self.session.execute(
            select(Schema.file_path).where(Schema.service_id == service_id)
        )
        return list(result.scalars().all())
