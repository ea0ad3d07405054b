"""Content store for raw schema documents on the local filesystem.

Each schema version owns one file at a path derived from its scope:
``{base}/{application}[/{service}]/schema_{version}.{ext}``.
"""
import logging
import os
import re
from pathlib import Path

import aiofiles

from registry.config import settings
from registry.errors import StorageError
from registry.models.schema import FileFormat

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9._-]")
_REPEATED_UNDERSCORE_RE = re.compile(r"_{2,}")


def sanitize_name(name: str | None) -> str:
    """Map a human-readable name onto a single safe path segment."""
    if name is None or not name.strip():
        return "unnamed"
    cleaned = _UNSAFE_CHARS_RE.sub("_", name)
    cleaned = _REPEATED_UNDERSCORE_RE.sub("_", cleaned).lower()
    # "." and ".." survive the character filter but would walk the tree.
    if cleaned in (".", ".."):
        return "unnamed"
    return cleaned


class FileStorageService:
    """Handles schema file read/write under a base directory."""

    def __init__(self, base_path: str | None = None):
        self.base_path = (base_path or settings.SCHEMA_STORAGE_PATH).rstrip("/") or "/"
        Path(self.base_path).mkdir(parents=True, exist_ok=True)

    def generate_file_path(
        self,
        application_name: str,
        service_name: str | None,
        version: int,
        file_format: FileFormat,
        scope_ids: tuple[int, int | None] | None = None,
    ) -> str:
        """Build the content path of one schema version.

        With ``scope_ids`` (application_id, service_id) each segment gets an
        ``__{id}`` suffix. sanitize_name never emits a double underscore, so
        a qualified path cannot match a plain one, and it is unique per scope.
        """
        app_segment = sanitize_name(application_name)
        if scope_ids is not None:
            app_segment = f"{app_segment}__{scope_ids[0]}"
        parts = [self.base_path, app_segment]
        if service_name is not None and service_name.strip():
            service_segment = sanitize_name(service_name)
            if scope_ids is not None and scope_ids[1] is not None:
                service_segment = f"{service_segment}__{scope_ids[1]}"
            parts.append(service_segment)
        parts.append(f"schema_{version}.{file_format.extension}")
        return "/".join(parts)

    async def save_schema(
        self,
        content: str,
        application_name: str,
        service_name: str | None,
        version: int,
        file_format: FileFormat,
        scope_ids: tuple[int, int | None] | None = None,
    ) -> str:
        """Write content for a schema version. Returns the storage path."""
        file_path = self.generate_file_path(
            application_name, service_name, version, file_format, scope_ids
        )
        try:
            Path(file_path).parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "w", encoding="utf-8", newline="") as f:
                await f.write(content)
        except OSError as e:
            raise StorageError(f"Error storing schema file: {file_path}: {e.strerror or e}") from e
        logger.info("Saved schema to file: %s", file_path)
        return file_path

    async def read(self, file_path: str) -> str:
        """Read raw schema text from storage."""
        if not self.exists(file_path):
            raise StorageError(f"Error reading schema file: {file_path} does not exist")
        try:
            async with aiofiles.open(file_path, "r", encoding="utf-8", newline="") as f:
                return await f.read()
        except OSError as e:
            raise StorageError(f"Error reading schema file: {file_path}: {e.strerror or e}") from e

    async def delete(self, file_path: str) -> bool:
        """Best-effort delete. Failures are logged and reported as False."""
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Deleted schema file: %s", file_path)
            return True
        except OSError:
            logger.warning("Failed to delete schema file: %s", file_path, exc_info=True)
            return False

    def exists(self, file_path: str) -> bool:
        return Path(file_path).is_file()


file_storage: FileStorageService | None = None


def get_file_storage() -> FileStorageService:
    """FastAPI dependency returning the process-wide content store."""
    global file_storage
    if file_storage is None:
        file_storage = FileStorageService()
    return file_storage
