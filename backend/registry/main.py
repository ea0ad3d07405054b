"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from registry.config import settings
from registry.database import engine, get_db
from registry.errors import register_error_handlers
from registry.models import Base
from registry.services.file_storage import FileStorageService, get_file_storage

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the storage root on startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    storage = get_file_storage()
    logger.info("Schema storage initialized at %s", storage.base_path)

    yield

    await engine.dispose()


configure_logging()

app = FastAPI(
    title="OpenAPI Schema Registry",
    version="1.0.0",
    description="Stores and versions OpenAPI documents per application and service.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.get("/api/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    storage: FileStorageService = Depends(get_file_storage),
):
    """Verify API, database connectivity and the storage root."""
    storage_ok = Path(storage.base_path).is_dir()
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "ok" if storage_ok else "degraded",
            "database": "connected",
            "storage": "available" if storage_ok else "unavailable",
        }
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        return {"status": "error", "database": "disconnected", "storage": "unknown"}


# Register routers
from registry.routes.applications import router as applications_router
from registry.routes.services import router as services_router
from registry.routes.schemas import router as schemas_router
app.include_router(applications_router)
app.include_router(services_router)
app.include_router(schemas_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("registry.main:app", host="0.0.0.0", port=settings.API_PORT)
