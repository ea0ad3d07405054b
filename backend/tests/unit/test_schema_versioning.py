"""
Tests for schema versioning: per-scope version sequences, the single
latest flag, promotion on delete, and content round trips.
"""

import asyncio
import json
import os

import pytest
from sqlalchemy import func, select

from registry.errors import ResourceNotFoundError, SchemaValidationError, StorageError
from registry.models import Application, Schema, Service
from registry.models.schema import FileFormat
from registry.schemas.common import PaginationParams
from registry.services.schema_versioning import SchemaVersioningService
from tests.samples import OPENAPI_YAML, openapi_json


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar()


async def _latest_rows(db, application_name: str, service_name: str | None = None):
    query = (
        select(Schema)
        .join(Application, Schema.application_id == Application.id)
        .where(Application.name == application_name, Schema.is_latest.is_(True))
        .execution_options(populate_existing=True)
    )
    if service_name is None:
        query = query.where(Schema.service_id.is_(None))
    else:
        query = query.join(Service, Schema.service_id == Service.id).where(
            Service.name == service_name
        )
    result = await db.execute(query)
    return result.scalars().all()


# ==================== UPLOAD ====================


class TestUpload:
    async def test_versions_increase_with_single_latest(self, schema_service, db):
        uploaded = []
        for i in range(4):
            uploaded.append(await schema_service.upload(openapi_json(version=f"1.{i}.0"), "shop"))

        assert [s.version for s in uploaded] == [1, 2, 3, 4]
        latest = await _latest_rows(db, "shop")
        assert len(latest) == 1
        assert latest[0].version == 4

    async def test_application_and_service_scopes_count_independently(self, schema_service):
        app_level = await schema_service.upload(openapi_json(), "shop")
        cart_1 = await schema_service.upload(openapi_json(), "shop", "cart")
        cart_2 = await schema_service.upload(openapi_json(), "shop", "cart")
        app_level_2 = await schema_service.upload(openapi_json(), "shop")

        assert (app_level.version, app_level_2.version) == (1, 2)
        assert (cart_1.version, cart_2.version) == (1, 2)
        assert app_level.service_id is None
        assert cart_1.service_name == "cart"

    async def test_upload_returns_content_and_metadata(self, schema_service, storage):
        content = openapi_json("Users API")
        schema = await schema_service.upload(content, "ecommerce-api", "user-service")

        assert schema.application_name == "ecommerce-api"
        assert schema.service_name == "user-service"
        assert schema.version == 1
        assert schema.is_latest is True
        assert schema.file_format == FileFormat.JSON
        assert schema.content == content
        assert schema.scope_identifier == "ecommerce-api.user-service"
        assert schema.file_path == os.path.join(
            storage.base_path, "ecommerce-api", "user-service", "schema_1.json"
        )

    async def test_yaml_upload_stored_with_yaml_extension(self, schema_service):
        schema = await schema_service.upload(OPENAPI_YAML, "orders")

        assert schema.file_format == FileFormat.YAML
        assert schema.file_path.endswith("orders/schema_1.yaml")

    async def test_content_round_trips_byte_for_byte(self, schema_service):
        content = "openapi: 3.0.0\r\ninfo:\r\n  title: Ünïcode API\r\n  version: '1'\r\npaths:\r\n  /a: {}\r\n\r\n"
        uploaded = await schema_service.upload(content, "shop")

        fetched = await schema_service.get_with_content(uploaded.id)
        assert fetched.content == content

    @pytest.mark.parametrize(
        "document,reason",
        [
            ({"info": {"title": "t", "version": "1"}, "paths": {"/a": {}}}, "'openapi'"),
            ({"openapi": "3.0.0", "info": {"version": "1"}, "paths": {"/a": {}}}, "'title'"),
            ({"openapi": "3.0.0", "info": {"title": "t"}, "paths": {"/a": {}}}, "'version'"),
            ({"openapi": "2.0", "info": {"title": "t", "version": "1"}, "paths": {"/a": {}}}, "Invalid OpenAPI version"),
            ({"openapi": "3.0.0", "info": {"title": "t", "version": "1"}, "paths": {}}, "at least one API path"),
        ],
        ids=["no-openapi-or-swagger", "no-title", "no-info-version", "non-3x-openapi", "empty-paths"],
    )
    async def test_invalid_schema_leaves_no_trace(self, schema_service, db, storage, document, reason):
        with pytest.raises(SchemaValidationError, match=reason):
            await schema_service.upload(json.dumps(document), "ghost", "svc")

        assert await _count(db, Application) == 0
        assert await _count(db, Service) == 0
        assert await _count(db, Schema) == 0
        assert not os.path.exists(storage.base_path) or not os.listdir(storage.base_path)

    async def test_unparseable_content_rejected(self, schema_service, db):
        with pytest.raises(SchemaValidationError, match="neither valid JSON nor YAML"):
            await schema_service.upload("openapi: [3.0.0\ninfo: {title", "ghost")
        assert await _count(db, Application) == 0

    async def test_existing_names_are_reused_case_insensitively(self, schema_service, db):
        await schema_service.upload(openapi_json(), "Shop", "Cart")
        second = await schema_service.upload(openapi_json(), "shop", "Cart")

        assert second.application_name == "Shop"
        assert second.version == 2
        assert await _count(db, Application) == 1
        assert await _count(db, Service) == 1

    async def test_storage_failure_rolls_back_metadata(self, schema_service, db, monkeypatch):
        await schema_service.upload(openapi_json(), "shop")

        async def broken_save(*args, **kwargs):
            raise StorageError("Error storing schema file: disk full")

        monkeypatch.setattr(schema_service.storage, "save_schema", broken_save)
        with pytest.raises(StorageError):
            await schema_service.upload(openapi_json(version="2.0.0"), "shop")

        monkeypatch.undo()
        latest = await schema_service.get_latest("shop")
        assert latest.version == 1
        assert await _count(db, Schema) == 1

        retried = await schema_service.upload(openapi_json(version="2.0.0"), "shop")
        assert retried.version == 2

    async def test_concurrent_uploads_to_one_scope(self, session_factory, storage, locks):
        async with session_factory() as session:
            first = SchemaVersioningService(session, storage, locks=locks, strict=True)
            await first.upload(openapi_json(), "shop", "cart")

        async def upload(i):
            async with session_factory() as session:
                service = SchemaVersioningService(session, storage, locks=locks, strict=True)
                return await service.upload(openapi_json(version=f"2.{i}.0"), "shop", "cart")

        results = await asyncio.gather(*(upload(i) for i in range(5)))

        assert sorted(s.version for s in results) == [2, 3, 4, 5, 6]
        async with session_factory() as session:
            latest = await _latest_rows(session, "shop", "cart")
            assert [s.version for s in latest] == [6]


# ==================== CONTENT PATHS ====================


class TestContentPaths:
    async def test_applications_sanitizing_to_same_directory_keep_own_content(
        self, schema_service
    ):
        alpha = openapi_json("Alpha API")
        beta = openapi_json("Beta API")

        first = await schema_service.upload(alpha, "my app")
        second = await schema_service.upload(beta, "my_app")

        assert first.file_path != second.file_path
        assert f"/my_app__{second.application_id}/" in second.file_path
        assert (await schema_service.get_by_version("my app", None, 1)).content == alpha
        assert (await schema_service.get_by_version("my_app", None, 1)).content == beta

    async def test_services_differing_only_in_case_keep_own_content(self, schema_service, storage):
        upper = openapi_json("Upper Cart")
        lower = openapi_json("Lower Cart")

        kept = await schema_service.upload(upper, "shop", "Cart")
        doomed = await schema_service.upload(lower, "shop", "cart")
        assert kept.file_path != doomed.file_path

        await schema_service.delete(doomed.id)

        assert storage.exists(kept.file_path)
        assert not storage.exists(doomed.file_path)
        assert (await schema_service.get_latest("shop", "Cart")).content == upper

    async def test_later_versions_of_first_scope_avoid_taken_paths(self, schema_service):
        await schema_service.upload(openapi_json(), "my app")
        await schema_service.upload(openapi_json(), "my_app")
        await schema_service.upload(openapi_json(), "my_app")

        # schema_2 in the plain directory now belongs to "my_app".
        third = await schema_service.upload(openapi_json("Alpha v2"), "my app")

        assert third.version == 2
        assert f"/my_app__{third.application_id}/schema_2.json" in third.file_path
        assert (await schema_service.get_latest("my app")).content == openapi_json("Alpha v2")


# ==================== SCENARIOS ====================


class TestScenarios:
    async def test_ecommerce_service_history(self, schema_service):
        for i in range(3):
            await schema_service.upload(openapi_json(version=f"1.{i}.0"), "ecommerce-api", "user-service")

        versions = await schema_service.list_versions("ecommerce-api", "user-service")
        assert [v.version for v in versions] == [3, 2, 1]
        assert [v.is_latest for v in versions] == [True, False, False]
        assert all(v.content is None for v in versions)

        latest = await schema_service.get_latest("ecommerce-api", "user-service")
        assert latest.version == 3
        assert '"version": "1.2.0"' in latest.content

        second = await schema_service.get_by_version("ecommerce-api", "user-service", 2)
        assert '"version": "1.1.0"' in second.content

    async def test_four_independent_scopes(self, schema_service, db):
        await schema_service.upload(openapi_json(), "shop")
        await schema_service.upload(openapi_json(), "shop", "cart")
        await schema_service.upload(openapi_json(), "shop", "billing")
        await schema_service.upload(openapi_json(), "blog", "posts")

        assert await _count(db, Application) == 2
        assert await _count(db, Service) == 3
        assert await _count(db, Schema) == 4
        latest = await db.execute(select(func.count()).where(Schema.is_latest.is_(True)))
        assert latest.scalar() == 4

    async def test_list_versions_of_application_excludes_service_schemas(self, schema_service):
        await schema_service.upload(openapi_json(), "shop")
        await schema_service.upload(openapi_json(), "shop", "cart")
        await schema_service.upload(openapi_json(), "shop", "cart")

        versions = await schema_service.list_versions("shop")
        assert [(v.version, v.service_id) for v in versions] == [(1, None)]


# ==================== READS ====================


class TestReads:
    async def test_unknown_application(self, schema_service):
        with pytest.raises(ResourceNotFoundError, match="Application not found: nope"):
            await schema_service.get_latest("nope")

    async def test_unknown_service(self, schema_service):
        await schema_service.upload(openapi_json(), "shop")
        with pytest.raises(ResourceNotFoundError, match="Service not found: nope"):
            await schema_service.list_versions("shop", "nope")

    async def test_scope_without_schemas(self, schema_service):
        await schema_service.upload(openapi_json(), "shop", "cart")
        with pytest.raises(ResourceNotFoundError, match="No schema found for application: shop"):
            await schema_service.get_latest("shop")

    async def test_missing_version(self, schema_service):
        await schema_service.upload(openapi_json(), "shop")
        with pytest.raises(ResourceNotFoundError, match="Schema version 9 not found"):
            await schema_service.get_by_version("shop", None, 9)

    async def test_get_by_id_has_no_content(self, schema_service):
        uploaded = await schema_service.upload(openapi_json(), "shop")

        schema = await schema_service.get(uploaded.id)
        assert schema.content is None
        assert schema.version == 1

        with pytest.raises(ResourceNotFoundError, match="Schema not found with ID: 999"):
            await schema_service.get(999)

    async def test_statistics(self, schema_service):
        await schema_service.upload(openapi_json(), "shop", "cart")
        await schema_service.upload(openapi_json(), "shop", "cart")

        stats = await schema_service.statistics("shop", "cart")
        assert stats.total_versions == 2
        assert stats.latest_version == 2
        assert stats.service_name == "cart"

    async def test_paged_listing(self, schema_service):
        for _ in range(5):
            await schema_service.upload(openapi_json(), "shop")

        page = await schema_service.list_for_scope("shop", None, PaginationParams(page=1, size=2))
        assert page.total == 5
        assert page.total_pages == 3
        assert [s.version for s in page.items] == [3, 2]


# ==================== VALIDATE ONLY ====================


class TestValidateContent:
    def test_valid_content_reports_format(self, schema_service):
        result, fmt = schema_service.validate_content(OPENAPI_YAML)
        assert result.valid is True
        assert fmt == FileFormat.YAML

    def test_parse_failure_is_a_result_not_an_error(self, schema_service):
        result, fmt = schema_service.validate_content("")
        assert result.valid is False
        assert result.message.startswith("Failed to parse schema content")
        assert fmt is None

    async def test_validation_stores_nothing(self, schema_service, db):
        schema_service.validate_content(openapi_json())
        assert await _count(db, Application) == 0


# ==================== DELETE ====================


class TestDelete:
    async def test_deleting_latest_promotes_previous(self, schema_service, storage):
        uploaded = [await schema_service.upload(openapi_json(), "shop", "cart") for _ in range(3)]

        await schema_service.delete(uploaded[-1].id)

        latest = await schema_service.get_latest("shop", "cart")
        assert latest.version == 2
        assert latest.is_latest is True
        assert not storage.exists(uploaded[-1].file_path)

    async def test_deleting_older_version_keeps_latest(self, schema_service):
        uploaded = [await schema_service.upload(openapi_json(), "shop") for _ in range(3)]

        await schema_service.delete(uploaded[0].id)

        versions = await schema_service.list_versions("shop")
        assert [(v.version, v.is_latest) for v in versions] == [(3, True), (2, False)]

    async def test_deleting_only_schema_leaves_no_latest(self, schema_service):
        only = await schema_service.upload(openapi_json(), "shop")

        await schema_service.delete(only.id)

        with pytest.raises(ResourceNotFoundError):
            await schema_service.get_latest("shop")

    async def test_version_numbers_continue_after_delete(self, schema_service):
        first = await schema_service.upload(openapi_json(), "shop")
        second = await schema_service.upload(openapi_json(), "shop")
        await schema_service.delete(second.id)

        third = await schema_service.upload(openapi_json(), "shop")
        assert first.version == 1
        assert third.version == 2

    async def test_delete_unknown_schema(self, schema_service):
        with pytest.raises(ResourceNotFoundError):
            await schema_service.delete(42)
