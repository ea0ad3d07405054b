"""Shared Pydantic schemas."""
import math
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from registry.schemas.base import CamelModel

T = TypeVar("T")


class PaginationParams(BaseModel):
    page: int = Field(0, ge=0)
    size: int = Field(20, ge=1, le=200)

    @property
    def offset(self) -> int:
        return self.page * self.size


class Page(CamelModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    size: int
    total_pages: int

    @classmethod
    def build(cls, items: list[T], total: int, params: PaginationParams) -> "Page[T]":
        return cls(
            items=items,
            total=total,
            page=params.page,
            size=params.size,
            total_pages=math.ceil(total / params.size) if total else 0,
        )


class MessageResponse(CamelModel):
    message: str
    status: str = "success"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Optional[Any] = None
