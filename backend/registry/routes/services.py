"""Services API routes."""
from fastapi import APIRouter, Depends, Query

from registry.routes.deps import get_service_registry
from registry.schemas.common import MessageResponse, Page, PaginationParams
from registry.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from registry.services.service_registry import ServiceRegistry

router = APIRouter(prefix="/api/services", tags=["services"])


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    body: ServiceCreate,
    registry: ServiceRegistry = Depends(get_service_registry),
):
    """Create a service inside an existing application."""
    service = await registry.create(body.name, body.description, body.application_id)
    return await registry.to_response(service)


@router.get("/name/{service_name}", response_model=ServiceResponse)
async def get_service_by_name(
    service_name: str,
    application_name: str = Query(..., alias="applicationName"),
    registry: ServiceRegistry = Depends(get_service_registry),
):
    return await registry.to_response(await registry.get_by_name(service_name, application_name))


@router.get(
    "/application/{application_id}",
    response_model=Page[ServiceResponse] | list[ServiceResponse],
)
async def list_services_by_application(
    application_id: int,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    all: bool = Query(False, description="Return every service without paging"),
    registry: ServiceRegistry = Depends(get_service_registry),
):
    """List the services of one application ordered by name."""
    if all:
        return await registry.list_all(application_id)
    return await registry.list_page(application_id, PaginationParams(page=page, size=size))


@router.get("/exists/{service_name}", response_model=MessageResponse)
async def check_service_exists(
    service_name: str,
    application_id: int = Query(..., alias="applicationId"),
    registry: ServiceRegistry = Depends(get_service_registry),
):
    exists = await registry.exists(service_name, application_id)
    return MessageResponse(
        message="Service exists" if exists else "Service does not exist",
        data=exists,
    )


@router.get("/count/application/{application_id}", response_model=MessageResponse)
async def count_services_by_application(
    application_id: int,
    registry: ServiceRegistry = Depends(get_service_registry),
):
    count = await registry.count_for_application(application_id)
    return MessageResponse(message=f"Application has {count} service(s)", data=count)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int,
    registry: ServiceRegistry = Depends(get_service_registry),
):
    """Get a single service by ID."""
    return await registry.to_response(await registry.get(service_id))


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    body: ServiceUpdate,
    registry: ServiceRegistry = Depends(get_service_registry),
):
    service = await registry.update(service_id, body.name, body.description)
    return await registry.to_response(service)


@router.delete("/{service_id}", response_model=MessageResponse)
async def delete_service(
    service_id: int,
    registry: ServiceRegistry = Depends(get_service_registry),
):
    """Delete a service together with its schemas and files."""
    await registry.delete(service_id)
    return MessageResponse(message="Service deleted successfully", data={"id": service_id})
