"""Application model - top-level owner of services and schemas."""
from sqlalchemy import String, Text, Integer, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from registry.models.base import Base, TimestampMixin


class Application(Base, TimestampMixin):
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


# Names are unique regardless of case.
Index("uq_applications_name_lower", func.lower(Application.name), unique=True)
