# eduledger/utils/pagination.py
"""Page/size paging for recipient inboxes."""
from math import ceil
from typing import Any, Dict
from fastapi import Query
from pydantic import BaseModel, Field

MAX_PAGE_SIZE = 100


class PageRequest(BaseModel):
    page: int = Field(1, ge=1)
    size: int = Field(20, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class Paginator:
    @staticmethod
    def page_request(
        page: int = Query(1, ge=1, description="Page number, starting from 1"),
        size: int = Query(20, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    ) -> PageRequest:
        """FastAPI dependency for page/size query parameters"""
        return PageRequest(page=page, size=size)

    @staticmethod
    def page_fields(request: PageRequest, total: int) -> Dict[str, Any]:
        """Paging fields merged into a list response next to its items"""
        total_pages = ceil(total / request.size) if total else 0
        return {
            "page": request.page,
            "size": request.size,
            "total_pages": total_pages,
            "has_next": request.page < total_pages,
            "has_previous": request.page > 1,
        }
