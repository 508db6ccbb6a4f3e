"""
Pydantic v2 schemas for attendance sessions (entry / exit scans).
"""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import ConfigDict, Field

from app.schemas.common import CamelModel


class RegistrarAccesoRequest(CamelModel):
    """Payload for ``POST /api/registrar-acceso``.

    ``carnet`` holds either a regular carnet or a visitor card number.
    It is declared optional so that a missing value reaches the service and
    is reported with the domain message instead of a generic schema error.
    """

    carnet: str | None = Field(default=None, max_length=50)

    model_config = ConfigDict(json_schema_extra={"example": {"carnet": "A123"}})


class AccesoResponse(CamelModel):
    """Public representation of one attendance session."""

    id: int
    persona_id: int | None = None
    nombre: str
    rol_universidad: str | None = None
    carnet: str | None = None
    numero_tarjeta: str | None = None
    fecha: datetime.date
    hora_entrada: datetime.time
    hora_salida: datetime.time | None = None


class RegistrarAccesoResponse(CamelModel):
    """Response of a scan: which transition happened and the session state."""

    message: str
    tipo: Literal["entrada", "salida"]
    acceso: AccesoResponse


class AccesosPage(CamelModel):
    """One page of ``GET /api/accesos``."""

    total: int
    page: int
    limit: int
    items: list[AccesoResponse]
