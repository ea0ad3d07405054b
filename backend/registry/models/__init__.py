"""Import all models so SQLAlchemy metadata knows about them."""
from registry.models.base import Base
from registry.models.application import Application
from registry.models.service import Service
from registry.models.schema import Schema, FileFormat

__all__ = ["Base", "Application", "Service", "Schema", "FileFormat"]
