# Data access layer - metadata repositories
from registry.repositories.applications import ApplicationRepository
from registry.repositories.base import BaseRepository
from registry.repositories.schemas import SchemaRepository
from registry.repositories.services import ServiceRepository

__all__ = [
    "ApplicationRepository",
    "BaseRepository",
    "SchemaRepository",
    "ServiceRepository",
]
