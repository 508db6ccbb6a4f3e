"""
Person directory router ("huellas") and visitor registration.

Mounts under ``/api`` (prefix set in ``main.py``).

Endpoints
---------
POST   /save                  — Register a person.
GET    /huellas               — Full directory listing.
PUT    /huellas/{id}          — Partial update (ADMIN).
DELETE /huellas/{id}          — Delete a record (ADMIN).
GET    /buscar-carnet/{carnet} — Active person holding a card.
POST   /registrar-visitante   — Register a visitor valid for one month.
GET    /personas              — Paginated, filtered directory.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.routers.dependencies import pagination_params, query_filtros
from app.schemas.common import MessageResponse, PaginationParams
from app.schemas.persona import (
    PersonaCreate,
    PersonaEncontradaResponse,
    PersonaGuardadaResponse,
    PersonaResponse,
    PersonasPage,
    PersonaUpdate,
    VisitanteCreate,
)
from app.services import consulta_service, persona_service, visitante_service
from app.services.auth_service import require_role
from app.services.notification_service import NotificationDispatcher, get_dispatcher
from app.utils.constants import ROLE_ADMIN

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Personas"])


# ---------------------------------------------------------------------------
# POST /save
# ---------------------------------------------------------------------------


@router.post(
    "/save",
    response_model=PersonaGuardadaResponse,
    summary="Registrar persona",
    description=(
        "Registra una persona en el directorio y envía el correo de "
        "bienvenida. Los visitantes registrados por esta vía también "
        "expiran un mes después."
    ),
    responses={
        200: {"description": "Persona registrada."},
        400: {"description": "Faltan datos, rol inválido o carnet ya asignado."},
    },
)
def save_persona(
    body: PersonaCreate,
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> PersonaGuardadaResponse:
    persona = persona_service.create_persona(db, body, dispatcher)
    return PersonaGuardadaResponse(
        message="✅ Datos guardados correctamente",
        huella=PersonaResponse.model_validate(persona),
    )


# ---------------------------------------------------------------------------
# GET /huellas
# ---------------------------------------------------------------------------


@router.get(
    "/huellas",
    response_model=list[PersonaResponse],
    summary="Listar directorio completo",
)
def list_huellas(
    db: Annotated[Session, Depends(get_db)],
) -> list[PersonaResponse]:
    return [PersonaResponse.model_validate(p) for p in persona_service.list_personas(db)]


# ---------------------------------------------------------------------------
# PUT /huellas/{id}
# ---------------------------------------------------------------------------


@router.put(
    "/huellas/{persona_id}",
    response_model=PersonaGuardadaResponse,
    summary="Actualizar persona",
    description="Actualización parcial: solo cambian los campos enviados. Solo ADMIN.",
    responses={
        200: {"description": "Registro actualizado."},
        400: {"description": "Rol inválido o carnet ya asignado."},
        401: {"description": "Token JWT ausente o inválido."},
        403: {"description": "El usuario no tiene rol ADMIN."},
        404: {"description": "Registro no encontrado."},
    },
)
def update_huella(
    persona_id: Annotated[int, Path(description="ID de la persona.", ge=1)],
    body: PersonaUpdate,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(require_role(ROLE_ADMIN))],
) -> PersonaGuardadaResponse:
    """Partially update a directory record.

    Args:
        persona_id: Primary key of the record.
        body: Fields to change; omitted fields are left untouched.
        db: Database session.
        _current_user: ADMIN guard.

    Raises:
        NotFoundError: No record with that id.
        ConflictError: New card already held by another active person.
    """
    persona = persona_service.update_persona(db, persona_id, body)
    return PersonaGuardadaResponse(
        message="✅ Registro actualizado",
        huella=PersonaResponse.model_validate(persona),
    )


# ---------------------------------------------------------------------------
# DELETE /huellas/{id}
# ---------------------------------------------------------------------------


@router.delete(
    "/huellas/{persona_id}",
    response_model=MessageResponse,
    summary="Eliminar persona",
    responses={
        200: {"description": "Registro eliminado."},
        401: {"description": "Token JWT ausente o inválido."},
        403: {"description": "El usuario no tiene rol ADMIN."},
        404: {"description": "Registro no encontrado."},
    },
)
def delete_huella(
    persona_id: Annotated[int, Path(description="ID de la persona.", ge=1)],
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(require_role(ROLE_ADMIN))],
) -> MessageResponse:
    persona_service.delete_persona(db, persona_id)
    return MessageResponse(message="✅ Registro eliminado")


# ---------------------------------------------------------------------------
# GET /buscar-carnet/{carnet}
# ---------------------------------------------------------------------------


@router.get(
    "/buscar-carnet/{carnet}",
    response_model=PersonaEncontradaResponse,
    summary="Buscar persona por carnet o tarjeta",
    responses={
        200: {"description": "Persona encontrada."},
        404: {"description": "Ninguna persona activa tiene ese carnet o tarjeta."},
    },
)
def buscar_carnet(
    carnet: str,
    db: Annotated[Session, Depends(get_db)],
) -> PersonaEncontradaResponse:
    persona = persona_service.get_by_card(db, carnet)
    return PersonaEncontradaResponse(
        message="✅ Persona encontrada",
        persona=PersonaResponse.model_validate(persona),
    )


# ---------------------------------------------------------------------------
# POST /registrar-visitante
# ---------------------------------------------------------------------------


@router.post(
    "/registrar-visitante",
    response_model=MessageResponse,
    summary="Registrar visitante",
    description=(
        "Registra un visitante con tarjeta temporal. El registro expira un "
        "mes calendario después y es eliminado por la limpieza periódica."
    ),
    responses={
        200: {"description": "Visitante registrado."},
        400: {"description": "Faltan datos o la tarjeta ya está asignada."},
    },
)
def registrar_visitante(
    body: VisitanteCreate,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    visitante_service.create_visitor(db, body)
    return MessageResponse(message="✅ Visitante registrado correctamente")


# ---------------------------------------------------------------------------
# GET /personas
# ---------------------------------------------------------------------------


@router.get(
    "/personas",
    response_model=PersonasPage,
    summary="Directorio paginado",
    description=(
        "Directorio ordenado por nombre y apellido. Los campos de texto "
        "(nombre, apellido, correos, carrera, etc.) filtran por coincidencia "
        "parcial; ``carnet``, ``numeroTarjeta`` y ``rolUniversidad`` por "
        "coincidencia exacta. Cualquier otro parámetro es rechazado."
    ),
    responses={
        200: {"description": "Página de personas."},
        400: {"description": "Filtro no permitido."},
    },
)
def list_personas(
    filtros: Annotated[dict[str, str], Depends(query_filtros)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    db: Annotated[Session, Depends(get_db)],
) -> PersonasPage:
    logger.debug("GET /personas filtros=%s pagination=%s", filtros, pagination)
    pagina = consulta_service.query_personas(db, filtros, pagination)
    return PersonasPage(
        total=pagina.total,
        page=pagina.page,
        limit=pagina.limit,
        items=[PersonaResponse.model_validate(p) for p in pagina.items],
    )
