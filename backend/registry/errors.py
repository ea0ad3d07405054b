"""Domain exceptions and their HTTP rendering.

Services raise these; the handlers registered on the FastAPI app turn them
into the JSON error body returned to clients.
"""
import logging
from datetime import datetime, timezone

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base class for errors that map to a specific HTTP status."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ResourceNotFoundError(RegistryError):
    """Raised when an application, service or schema does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"


class DuplicateResourceError(RegistryError):
    """Raised by explicit creates and renames that collide with an existing name."""

    status_code = 409
    error_code = "DUPLICATE_RESOURCE"


class SchemaValidationError(RegistryError):
    """Raised when content is not JSON/YAML or fails the OpenAPI structure rules."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class PayloadTooLargeError(RegistryError):
    status_code = 413
    error_code = "PAYLOAD_TOO_LARGE"


class StorageError(RegistryError):
    """Raised when the content store cannot write or read a schema file."""

    status_code = 500
    error_code = "STORAGE_ERROR"


def _error_payload(error: str, message: str, status: int, path: str, details=None) -> dict:
    return {
        "error": error,
        "message": message,
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
        "details": details,
    }


def register_error_handlers(app) -> None:
    @app.exception_handler(RegistryError)
    async def registry_error_handler(request: Request, exc: RegistryError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(exc.error_code, exc.message, exc.status_code, request.url.path),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = {
            ".".join(str(part) for part in err["loc"]): err["msg"] for err in exc.errors()
        }
        return JSONResponse(
            status_code=400,
            content=_error_payload(
                "VALIDATION_ERROR", "Request validation failed", 400, request.url.path, details
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_payload(
                "INTERNAL_ERROR", "An unexpected error occurred", 500, request.url.path
            ),
        )
