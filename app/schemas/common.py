"""
Shared Pydantic v2 schemas reused across modules.

Provides the camelCase base model (the public API speaks camelCase while
the ORM uses snake_case), pagination parameters, and the generic message
envelope.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.utils.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT


class CamelModel(BaseModel):
    """Base model exposing snake_case attributes as camelCase JSON keys.

    ``populate_by_name`` lets services build instances with the Python
    names; ``from_attributes`` lets them validate ORM rows directly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class PaginationParams(BaseModel):
    """Pagination parameters for list endpoints.

    Attributes:
        page: 1-based page number.
        limit: Number of rows per page (capped to protect the DB).
    """

    page: int = Field(
        default=1,
        ge=1,
        description="Número de página (base 1).",
    )
    limit: int = Field(
        default=DEFAULT_PAGE_LIMIT,
        ge=1,
        le=MAX_PAGE_LIMIT,
        description=f"Registros por página (máximo {MAX_PAGE_LIMIT}).",
    )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class MessageResponse(BaseModel):
    """Generic message envelope for operations that do not return a resource.

    Attributes:
        message: Short human-readable result summary.
    """

    message: str = Field(..., description="Resumen del resultado de la operación.")


class SuccessResponse(MessageResponse):
    """Message envelope with an explicit success flag (password recovery flow)."""

    success: bool = True
