"""Schema model - one stored version of an OpenAPI document within a scope.

A scope is (application_id, service_id); service_id NULL marks an
application-level schema with its own version sequence.
"""
import enum

from sqlalchemy import (
    String, Text, Integer, Boolean, Enum, ForeignKey, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from registry.models.base import Base, TimestampMixin
from registry.models.application import Application
from registry.models.service import Service


class FileFormat(str, enum.Enum):
    JSON = "JSON"
    YAML = "YAML"

    @property
    def extension(self) -> str:
        return self.value.lower()


class Schema(Base, TimestampMixin):
    __tablename__ = "schemas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=True, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)
    file_format: Mapped[FileFormat] = mapped_column(
        Enum(FileFormat, native_enum=False, length=10), nullable=False
    )
    is_latest: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    application: Mapped[Application] = relationship(lazy="joined")
    service: Mapped[Service | None] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("application_id", "service_id", "version", name="uq_schemas_version_scope"),
        # NULLs are distinct in the constraint above, so application-level
        # versions need their own partial index.
        Index(
            "uq_schemas_app_level_version",
            "application_id",
            "version",
            unique=True,
            postgresql_where=text("service_id IS NULL"),
            sqlite_where=text("service_id IS NULL"),
        ),
    )

    @property
    def scope_identifier(self) -> str:
        if self.service is None:
            return self.application.name
        return f"{self.application.name}.{self.service.name}"
