"""Schema versioning: upload, lookup and deletion of schema versions.

Every (application, service) scope carries its own version sequence
starting at 1, and at most one row per scope is flagged is_latest.

Upload order for one scope, under the scope lock and inside one metadata
transaction:

    1. compute next version (max + 1)
    2. clear is_latest on the current latest row(s)
    3. insert the new row flagged is_latest (flush, so a version or content
       path collision from another process surfaces before any file is
       written)
    4. write the content file
    5. commit

A failed content write rolls back steps 1-3. A failed commit after a
successful write leaves an orphaned file at the version's path, which the
next successful upload of that version overwrites.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registry.config import settings
from registry.errors import ResourceNotFoundError, SchemaValidationError, StorageError
from registry.models import Schema
from registry.models.schema import FileFormat
from registry.repositories import SchemaRepository
from registry.schemas.common import Page, PaginationParams
from registry.schemas.schema import SchemaResponse, SchemaStatistics
from registry.services.file_storage import FileStorageService
from registry.services.schema_parser import parse_document
from registry.services.schema_validator import ValidationResult, validate_schema
from registry.services.scope_locks import ScopeLockRegistry, scope_locks
from registry.services.scope_resolver import ResolvedScope, ScopeResolver

logger = logging.getLogger(__name__)

MAX_UPLOAD_ATTEMPTS = 3


class SchemaVersioningService:
    def __init__(
        self,
        db: AsyncSession,
        storage: FileStorageService,
        locks: ScopeLockRegistry = scope_locks,
        strict: bool | None = None,
    ):
        self.db = db
        self.storage = storage
        self.locks = locks
        self.strict = settings.STRICT_VALIDATION if strict is None else strict
        self.schemas = SchemaRepository(db)
        self.resolver = ScopeResolver(db, storage)

    # ── Validation ───────────────────────────────────────────────

    def validate_content(self, content: str) -> tuple[ValidationResult, FileFormat | None]:
        """Parse and validate without touching any store."""
        try:
            fmt, document = parse_document(content)
        except SchemaValidationError as e:
            return ValidationResult.failure(f"Failed to parse schema content: {e.message}"), None
        return validate_schema(document, self.strict), fmt

    def _parse_and_validate(self, content: str) -> FileFormat:
        fmt, document = parse_document(content)
        result = validate_schema(document, self.strict)
        if not result.valid:
            raise SchemaValidationError(f"Invalid OpenAPI schema: {result.message}")
        if result.has_warnings:
            logger.warning("Schema validation warnings: %s", result.warnings)
        return fmt

    # ── Upload ───────────────────────────────────────────────────

    async def upload(
        self, content: str, application_name: str, service_name: str | None = None
    ) -> SchemaResponse:
        """Store ``content`` as the next version of its scope and return it."""
        logger.info(
            "Uploading schema content for application: %s, service: %s",
            application_name, service_name,
        )
        # Validation runs before scope resolution so a rejected document
        # never auto-creates an application or service.
        fmt = self._parse_and_validate(content)

        for attempt in range(1, MAX_UPLOAD_ATTEMPTS + 1):
            scope = await self.resolver.resolve(application_name, service_name)
            async with self.locks.hold(scope.application_id, scope.service_id):
                try:
                    schema = await self._store_version(scope, content, fmt)
                except IntegrityError:
                    await self.db.rollback()
                    if attempt == MAX_UPLOAD_ATTEMPTS:
                        raise
                    logger.warning(
                        "Version or path collision for %s/%s, retrying (attempt %d)",
                        application_name, service_name, attempt,
                    )
                    continue

            logger.info(
                "Schema uploaded with ID %s as version %s of %s",
                schema.id, schema.version, schema.scope_identifier,
            )
            return SchemaResponse.from_schema(schema, content)

    async def _store_version(self, scope: ResolvedScope, content: str, fmt: FileFormat) -> Schema:
        version = await self.schemas.next_version(scope.application_id, scope.service_id)
        await self.schemas.mark_all_not_latest(scope.application_id, scope.service_id)

        service_name = scope.service.name if scope.service is not None else None
        scope_ids = None
        file_path = self.storage.generate_file_path(
            scope.application.name, service_name, version, fmt
        )
        if await self.schemas.exists_by_file_path(file_path):
            # Another scope sanitizes to the same directory.
            scope_ids = (scope.application_id, scope.service_id)
            file_path = self.storage.generate_file_path(
                scope.application.name, service_name, version, fmt, scope_ids
            )
            logger.info("Content path taken by another scope, using %s", file_path)

        schema = Schema(
            application=scope.application,
            service=scope.service,
            version=version,
            file_path=file_path,
            file_format=fmt,
            is_latest=True,
            content=content,
        )
        await self.schemas.add(schema)

        try:
            await self.storage.save_schema(
                content, scope.application.name, service_name, version, fmt, scope_ids
            )
        except StorageError:
            await self.db.rollback()
            raise

        await self.db.commit()
        return schema

    # ── Reads ────────────────────────────────────────────────────

    async def _get(self, schema_id: int) -> Schema:
        schema = await self.schemas.get_by_id(schema_id)
        if schema is None:
            raise ResourceNotFoundError(f"Schema not found with ID: {schema_id}")
        return schema

    async def get(self, schema_id: int) -> SchemaResponse:
        return SchemaResponse.from_schema(await self._get(schema_id))

    async def get_with_content(self, schema_id: int) -> SchemaResponse:
        schema = await self._get(schema_id)
        return SchemaResponse.from_schema(schema, await self.storage.read(schema.file_path))

    async def get_latest(
        self, application_name: str, service_name: str | None = None
    ) -> SchemaResponse:
        scope = await self.resolver.lookup(application_name, service_name)
        schema = await self.schemas.find_latest(scope.application_id, scope.service_id)
        if schema is None:
            raise ResourceNotFoundError(
                f"No schema found for application: {application_name}, service: {service_name}"
            )
        return SchemaResponse.from_schema(schema, await self.storage.read(schema.file_path))

    async def get_by_version(
        self, application_name: str, service_name: str | None, version: int
    ) -> SchemaResponse:
        scope = await self.resolver.lookup(application_name, service_name)
        schema = await self.schemas.find_by_version(scope.application_id, scope.service_id, version)
        if schema is None:
            raise ResourceNotFoundError(
                f"Schema version {version} not found for application: "
                f"{application_name}, service: {service_name}"
            )
        return SchemaResponse.from_schema(schema, await self.storage.read(schema.file_path))

    async def list_versions(
        self, application_name: str, service_name: str | None = None
    ) -> list[SchemaResponse]:
        """Every version in the scope, newest first, without content."""
        scope = await self.resolver.lookup(application_name, service_name)
        schemas = await self.schemas.list_for_scope(scope.application_id, scope.service_id)
        return [SchemaResponse.from_schema(s) for s in schemas]

    async def list_for_scope(
        self, application_name: str, service_name: str | None, params: PaginationParams
    ) -> Page[SchemaResponse]:
        scope = await self.resolver.lookup(application_name, service_name)
        schemas = await self.schemas.list_for_scope(
            scope.application_id, scope.service_id, limit=params.size, offset=params.offset
        )
        total = await self.schemas.count_for_scope(scope.application_id, scope.service_id)
        return Page[SchemaResponse].build(
            [SchemaResponse.from_schema(s) for s in schemas], total, params
        )

    async def list_all(self, params: PaginationParams) -> Page[SchemaResponse]:
        schemas = await self.schemas.list_page(params.size, params.offset)
        total = await self.schemas.count()
        return Page[SchemaResponse].build(
            [SchemaResponse.from_schema(s) for s in schemas], total, params
        )

    async def statistics(
        self, application_name: str, service_name: str | None = None
    ) -> SchemaStatistics:
        scope = await self.resolver.lookup(application_name, service_name)
        total = await self.schemas.count_for_scope(scope.application_id, scope.service_id)
        latest = await self.schemas.find_latest(scope.application_id, scope.service_id)
        return SchemaStatistics(
            application_name=scope.application.name,
            service_name=scope.service.name if scope.service is not None else None,
            total_versions=total,
            latest_version=latest.version if latest is not None else None,
        )

    # ── Delete ───────────────────────────────────────────────────

    async def delete(self, schema_id: int) -> None:
        """Delete one version; promote the next-highest if it was the latest."""
        logger.info("Deleting schema with ID: %s", schema_id)
        schema = await self._get(schema_id)
        application_id, service_id = schema.application_id, schema.service_id

        async with self.locks.hold(application_id, service_id):
            # Re-read under the lock: an upload may have demoted it meanwhile.
            schema = await self.db.get(Schema, schema_id, populate_existing=True)
            if schema is None:
                raise ResourceNotFoundError(f"Schema not found with ID: {schema_id}")
            was_latest = schema.is_latest
            file_path = schema.file_path

            await self.schemas.delete(schema)
            if was_latest:
                successor = await self.schemas.find_highest_version(application_id, service_id)
                if successor is not None:
                    successor.is_latest = True
                    await self.db.flush()
                    logger.info(
                        "Marked schema version %s as latest after deletion", successor.version
                    )
            await self.db.commit()

        if await self.schemas.exists_by_file_path(file_path):
            logger.warning("Keeping schema file still referenced by another row: %s", file_path)
        else:
            await self.storage.delete(file_path)
        logger.info("Schema deleted with ID: %s", schema_id)
