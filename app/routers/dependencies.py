"""
Query-string dependencies shared by the paginated list endpoints
(``GET /accesos`` and ``GET /personas``).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Query, Request

from app.schemas.common import PaginationParams
from app.utils.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

PAGINATION_KEYS = frozenset({"page", "limit"})


def pagination_params(
    page: Annotated[int, Query(description="Página (base 1).", ge=1)] = 1,
    limit: Annotated[
        int,
        Query(description=f"Registros por página (máx. {MAX_PAGE_LIMIT}).", ge=1, le=MAX_PAGE_LIMIT),
    ] = DEFAULT_PAGE_LIMIT,
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)


def query_filtros(request: Request) -> dict[str, str]:
    """Every query parameter except pagination; the service allow-lists them."""
    return {
        key: value
        for key, value in request.query_params.items()
        if key not in PAGINATION_KEYS
    }
