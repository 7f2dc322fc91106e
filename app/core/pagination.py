# app/core/pagination.py
"""
Pagination shared by every list endpoint
"""
from math import ceil
from typing import TypeVar, Generic, List, Optional, Dict, Any, Type, Callable, Awaitable, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field
from sqlalchemy import select, func, or_, Select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Query as QueryParam, Request

T = TypeVar('T')


class PaginationParams(BaseModel):
    """Base pagination parameters used across all endpoints"""
    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    size: int = Field(20, ge=1, le=100, description="Items per page")
    sort_by: Optional[str] = Field(None, description="Field to sort by")
    sort_order: str = Field("asc", pattern="^(asc|desc)$", description="Sort order")
    search: Optional[str] = Field(None, description="Search term")

    @computed_field
    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Generic paginated response that all list endpoints use
    """
    model_config = ConfigDict(from_attributes=True)

    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool
    links: Optional[Dict[str, Optional[str]]] = None


class AutoPaginator:
    """
    Paginates any SQLAlchemy model query
    """

    @staticmethod
    async def paginate(
            db: AsyncSession,
            model: Type[Any],
            params: PaginationParams,
            response_schema: Optional[Type[BaseModel]] = None,
            filters: Optional[Dict[str, Any]] = None,
            search_fields: Optional[List[str]] = None,
            base_query: Optional[Select] = None,
            request: Optional[Request] = None,
            sortable_fields: Optional[Sequence[str]] = None,
            transform: Optional[Callable[[List[Any]], Awaitable[List[Any]]]] = None
    ) -> PaginatedResponse:
        """
        Args:
            db: Database session
            model: SQLAlchemy model class
            params: Pagination parameters
            response_schema: Pydantic schema each row is validated into
            filters: field -> value equality filters; None values are skipped
            search_fields: Fields matched case-insensitively against params.search
            base_query: Optional base query to build upon
            request: FastAPI request for building links
            sortable_fields: Whitelist for params.sort_by; anything else falls back to id
            transform: Async callable converting the page of rows; takes precedence
                over response_schema
        """
        query = select(model) if base_query is None else base_query

        if filters:
            for field, value in filters.items():
                if hasattr(model, field) and value is not None:
                    query = query.where(getattr(model, field) == value)

        if params.search and search_fields:
            search_conditions = [
                getattr(model, field).ilike(f"%{params.search}%")
                for field in search_fields
                if hasattr(model, field)
            ]
            if search_conditions:
                query = query.where(or_(*search_conditions))

        sort_allowed = params.sort_by and hasattr(model, params.sort_by) and (
            sortable_fields is None or params.sort_by in sortable_fields
        )
        if sort_allowed:
            order_column = getattr(model, params.sort_by)
            if params.sort_order == "desc":
                query = query.order_by(order_column.desc(), model.id.desc())
            else:
                query = query.order_by(order_column.asc(), model.id.asc())
        elif hasattr(model, 'id'):
            query = query.order_by(model.id.asc())

        total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0
        pages = ceil(total / params.size) if total > 0 else 0

        result = await db.execute(query.offset(params.offset).limit(params.size))
        items = list(result.scalars().all())

        if transform is not None:
            items = await transform(items)
        elif response_schema is not None:
            items = [response_schema.model_validate(item) for item in items]

        links = None
        if request is not None:
            base_url = str(request.url).split('?')[0]
            links = AutoPaginator._build_links(base_url, params, pages)

        return PaginatedResponse(
            items=items,
            total=total,
            page=params.page,
            size=params.size,
            pages=pages,
            has_next=params.page < pages,
            has_prev=params.page > 1,
            links=links
        )

    @staticmethod
    def _build_links(base_url: str, params: PaginationParams, total_pages: int) -> Dict[str, Optional[str]]:
        """Build HATEOAS-style pagination links"""
        links = {
            "self": f"{base_url}?page={params.page}&size={params.size}",
            "first": None,
            "prev": None,
            "next": None,
            "last": None
        }

        if total_pages > 0:
            links["first"] = f"{base_url}?page=1&size={params.size}"
            links["last"] = f"{base_url}?page={total_pages}&size={params.size}"

            if params.page > 1:
                links["prev"] = f"{base_url}?page={params.page - 1}&size={params.size}"

            if params.page < total_pages:
                links["next"] = f"{base_url}?page={params.page + 1}&size={params.size}"

        for link_type, link in links.items():
            if link:
                if params.search:
                    link += f"&search={params.search}"
                if params.sort_by:
                    link += f"&sort_by={params.sort_by}&sort_order={params.sort_order}"
                links[link_type] = link

        return links


def get_pagination(
        page: int = QueryParam(1, ge=1, description="Page number"),
        size: int = QueryParam(20, ge=1, le=100, description="Items per page"),
        sort_by: Optional[str] = QueryParam(None, description="Sort field"),
        sort_order: str = QueryParam("asc", pattern="^(asc|desc)$", description="Sort order"),
        search: Optional[str] = QueryParam(None, description="Search term")
) -> PaginationParams:
    """Dependency to extract pagination parameters"""
    return PaginationParams(
        page=page,
        size=size,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search
    )
