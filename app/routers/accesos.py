"""
Attendance router — card scans and access history.

Mounts under ``/api`` (prefix set in ``main.py``).

Endpoints
---------
POST /registrar-acceso  — Toggle entry/exit for the scanned card.
GET  /accesos           — Paginated, filtered session history.
GET  /accesos/exportar  — Filtered history as ``.xlsx`` (ADMIN).
"""

from __future__ import annotations

import io
import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.exporters.excel_exporter import build_accesos_workbook
from app.models.usuario import Usuario
from app.routers.dependencies import pagination_params, query_filtros
from app.schemas.acceso import (
    AccesoResponse,
    AccesosPage,
    RegistrarAccesoRequest,
    RegistrarAccesoResponse,
)
from app.schemas.common import PaginationParams
from app.services import acceso_service, consulta_service
from app.services.auth_service import require_role
from app.services.notification_service import NotificationDispatcher, get_dispatcher
from app.utils.constants import ROLE_ADMIN
from app.utils.fechas import now_local

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Accesos"])


# ---------------------------------------------------------------------------
# POST /registrar-acceso
# ---------------------------------------------------------------------------


@router.post(
    "/registrar-acceso",
    response_model=RegistrarAccesoResponse,
    summary="Registrar entrada o salida",
    description=(
        "Registra el paso de un carnet o tarjeta de visitante por el lector. "
        "Si la persona tiene una sesión abierta hoy se registra la salida; "
        "en caso contrario se abre una nueva sesión de entrada."
    ),
    responses={
        200: {"description": "Entrada o salida registrada."},
        400: {"description": "No se envió carnet."},
        404: {"description": "Ninguna persona activa tiene ese carnet o tarjeta."},
    },
)
def registrar_acceso(
    body: RegistrarAccesoRequest,
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> RegistrarAccesoResponse:
    """Toggle the attendance session of the scanned card.

    Args:
        body: Scanned carnet or visitor card number.
        db: Database session injected by ``get_db``.
        dispatcher: Notification dispatcher for the access email.

    Returns:
        The transition (``entrada`` / ``salida``) and the session row.
    """
    result = acceso_service.register_scan(db, body.carnet, dispatcher)
    return RegistrarAccesoResponse(
        message=result.message,
        tipo=result.tipo,
        acceso=AccesoResponse.model_validate(result.acceso),
    )


# ---------------------------------------------------------------------------
# GET /accesos
# ---------------------------------------------------------------------------


@router.get(
    "/accesos",
    response_model=AccesosPage,
    summary="Historial de accesos",
    description=(
        "Historial paginado, del más reciente al más antiguo. Filtros "
        "permitidos: ``nombre`` (contiene), ``rolUniversidad``, ``carnet``, "
        "``numeroTarjeta``, ``fecha`` (AAAA-MM-DD) y ``tipo`` "
        "(``entrada`` = sesiones abiertas, ``salida`` = sesiones cerradas)."
    ),
    responses={
        200: {"description": "Página de accesos."},
        400: {"description": "Filtro no permitido o valor inválido."},
    },
)
def list_accesos(
    filtros: Annotated[dict[str, str], Depends(query_filtros)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    db: Annotated[Session, Depends(get_db)],
) -> AccesosPage:
    logger.debug("GET /accesos filtros=%s pagination=%s", filtros, pagination)
    pagina = consulta_service.query_accesos(db, filtros, pagination)
    return AccesosPage(
        total=pagina.total,
        page=pagina.page,
        limit=pagina.limit,
        items=[AccesoResponse.model_validate(a) for a in pagina.items],
    )


# ---------------------------------------------------------------------------
# GET /accesos/exportar
# ---------------------------------------------------------------------------


@router.get(
    "/accesos/exportar",
    response_class=StreamingResponse,
    summary="Exportar historial de accesos a Excel",
    description=(
        "Genera un archivo ``.xlsx`` con todos los accesos que cumplen los "
        "mismos filtros de ``GET /accesos``, sin paginación. Solo ADMIN."
    ),
    responses={
        200: {
            "description": "Archivo Excel generado.",
            "content": {
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": {}
            },
        },
        400: {"description": "Filtro no permitido o valor inválido."},
        401: {"description": "Token JWT ausente o inválido."},
        403: {"description": "El usuario no tiene rol ADMIN."},
    },
)
def exportar_accesos(
    filtros: Annotated[dict[str, str], Depends(query_filtros)],
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_role(ROLE_ADMIN))],
) -> StreamingResponse:
    """Stream the filtered access history as an Excel workbook.

    Raises:
        ValidationError: Unknown filter parameter or bad value.
    """
    accesos = consulta_service.list_accesos(db, filtros)
    generado = now_local()
    file_bytes = build_accesos_workbook(accesos, filtros, generado)

    filename = f"accesos_{generado.strftime('%Y%m%d_%H%M%S')}.xlsx"
    logger.info(
        "Access export by usuario id=%d: %d rows, %d bytes",
        current_user.id, len(accesos), len(file_bytes),
    )
    return StreamingResponse(
        io.BytesIO(file_bytes),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(file_bytes)),
        },
    )
