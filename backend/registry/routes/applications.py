"""Applications API routes."""
from fastapi import APIRouter, Depends, Query

from registry.routes.deps import get_application_registry
from registry.schemas.application import ApplicationCreate, ApplicationResponse
from registry.schemas.common import MessageResponse, Page, PaginationParams
from registry.services.application_registry import ApplicationRegistry

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.post("", response_model=ApplicationResponse, status_code=201)
async def create_application(
    body: ApplicationCreate,
    registry: ApplicationRegistry = Depends(get_application_registry),
):
    """Create an application. Names are unique regardless of case."""
    application = await registry.create(body.name, body.description)
    return await registry.to_response(application)


@router.get("", response_model=Page[ApplicationResponse] | list[ApplicationResponse])
async def list_applications(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    all: bool = Query(False, description="Return every application without paging"),
    registry: ApplicationRegistry = Depends(get_application_registry),
):
    """List applications ordered by name."""
    if all:
        return await registry.list_all()
    return await registry.list_page(PaginationParams(page=page, size=size))


@router.get("/name/{name}", response_model=ApplicationResponse)
async def get_application_by_name(
    name: str,
    registry: ApplicationRegistry = Depends(get_application_registry),
):
    """Get an application by case-insensitive name."""
    return await registry.to_response(await registry.get_by_name(name))


@router.get("/exists/{name}", response_model=MessageResponse)
async def check_application_exists(
    name: str,
    registry: ApplicationRegistry = Depends(get_application_registry),
):
    exists = await registry.exists(name)
    return MessageResponse(
        message="Application exists" if exists else "Application does not exist",
        data=exists,
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    registry: ApplicationRegistry = Depends(get_application_registry),
):
    """Get a single application by ID."""
    return await registry.to_response(await registry.get(application_id))


@router.put("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: int,
    body: ApplicationCreate,
    registry: ApplicationRegistry = Depends(get_application_registry),
):
    """Rename or re-describe an application."""
    application = await registry.update(application_id, body.name, body.description)
    return await registry.to_response(application)


@router.delete("/{application_id}", response_model=MessageResponse)
async def delete_application(
    application_id: int,
    registry: ApplicationRegistry = Depends(get_application_registry),
):
    """Delete an application together with its services, schemas and files."""
    await registry.delete(application_id)
    return MessageResponse(message="Application deleted successfully", data={"id": application_id})
