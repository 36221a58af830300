"""Pagination helpers shared by list endpoints"""

import math
from typing import Any, Optional

from pydantic import BaseModel, Field

from .. import config


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def resolve_pagination(pagination: Optional[PaginationParams]) -> PaginationParams:
    return pagination or PaginationParams()


def create_page(data: list[Any], total: int, pagination: PaginationParams) -> dict:
    """Build the {data, total, page, limit, totalPages} envelope"""
    return {
        "data": data,
        "total": total,
        "page": pagination.page,
        "limit": pagination.limit,
        "totalPages": math.ceil(total / pagination.limit) if pagination.limit else 0,
    }
