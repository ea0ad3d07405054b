"""Service model - named API service inside an application."""
from sqlalchemy import String, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from registry.models.base import Base, TimestampMixin
from registry.models.application import Application


class Service(Base, TimestampMixin):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )

    application: Mapped[Application] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("name", "application_id", name="uq_services_name_application"),
    )
