from __future__ import annotations

from pydantic import BaseModel, Field


class PaginationOut(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)


def page_count(*, total: int, limit: int) -> int:
    return (total + limit - 1) // limit if total else 0
