"""
Directory and access-history queries with pagination.

Request parameters are matched against an explicit allow-list per
resource. Each allowed parameter names its column and its match strategy:

- ``EXACT``    — equality (card numbers, role, date).
- ``CONTAINS`` — case-insensitive substring (names, emails, free text).

Unknown parameters are rejected with ``ValidationError`` instead of being
passed to the database. Ordering always ends with the primary key so that
consecutive pages never skip or repeat a row.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy.orm import Query, Session

from app.models.acceso import Acceso
from app.models.persona import Persona
from app.schemas.common import PaginationParams
from app.utils.constants import TIPO_ENTRADA, TIPOS_ACCESO
from app.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


class Match(enum.Enum):
    EXACT = "exact"
    CONTAINS = "contains"


@dataclass(frozen=True)
class FiltroCampo:
    column: Any
    match: Match
    parse: Any = None  # optional str -> value converter


def _parse_fecha(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Fecha inválida '{value}', use el formato AAAA-MM-DD") from exc


FILTROS_ACCESO: dict[str, FiltroCampo] = {
    "nombre": FiltroCampo(Acceso.nombre, Match.CONTAINS),
    "rolUniversidad": FiltroCampo(Acceso.rol_universidad, Match.EXACT),
    "carnet": FiltroCampo(Acceso.carnet, Match.EXACT),
    "numeroTarjeta": FiltroCampo(Acceso.numero_tarjeta, Match.EXACT),
    "fecha": FiltroCampo(Acceso.fecha, Match.EXACT, _parse_fecha),
}

FILTROS_PERSONA: dict[str, FiltroCampo] = {
    "nombre": FiltroCampo(Persona.nombre, Match.CONTAINS),
    "apellido": FiltroCampo(Persona.apellido, Match.CONTAINS),
    "cedula": FiltroCampo(Persona.cedula, Match.CONTAINS),
    "idInstitucional": FiltroCampo(Persona.id_institucional, Match.CONTAINS),
    "correoPersonal": FiltroCampo(Persona.correo_personal, Match.CONTAINS),
    "correoInstitucional": FiltroCampo(Persona.correo_institucional, Match.CONTAINS),
    "carrera": FiltroCampo(Persona.carrera, Match.CONTAINS),
    "programa": FiltroCampo(Persona.programa, Match.CONTAINS),
    "departamento": FiltroCampo(Persona.departamento, Match.CONTAINS),
    "dependencia": FiltroCampo(Persona.dependencia, Match.CONTAINS),
    "cargo": FiltroCampo(Persona.cargo, Match.CONTAINS),
    "area": FiltroCampo(Persona.area, Match.CONTAINS),
    "razonVisita": FiltroCampo(Persona.razon_visita, Match.CONTAINS),
    "carnet": FiltroCampo(Persona.carnet, Match.EXACT),
    "numeroTarjeta": FiltroCampo(Persona.numero_tarjeta, Match.EXACT),
    "rolUniversidad": FiltroCampo(Persona.rol_universidad, Match.EXACT),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_filtros(
    query: Query,
    filtros: Mapping[str, str],
    permitidos: dict[str, FiltroCampo],
) -> Query:
    """Append one WHERE clause per non-empty allowed parameter.

    Raises:
        ValidationError: A parameter is not in *permitidos*.
    """
    desconocidos = sorted(set(filtros) - set(permitidos))
    if desconocidos:
        raise ValidationError(
            f"Filtros no permitidos: {desconocidos}. Valores permitidos: {sorted(permitidos)}"
        )

    for nombre, raw in filtros.items():
        value = (raw or "").strip()
        if not value:
            continue
        campo = permitidos[nombre]
        if campo.match is Match.CONTAINS:
            query = query.filter(campo.column.ilike(f"%{_escape_like(value)}%", escape="\\"))
        else:
            parsed = campo.parse(value) if campo.parse else value
            query = query.filter(campo.column == parsed)
    return query


def _apply_tipo(query: Query, tipo: str | None) -> Query:
    tipo = (tipo or "").strip()
    if not tipo:
        return query
    if tipo not in TIPOS_ACCESO:
        raise ValidationError(f"Tipo inválido '{tipo}'. Valores permitidos: {TIPOS_ACCESO}")
    if tipo == TIPO_ENTRADA:
        return query.filter(Acceso.hora_salida.is_(None))
    return query.filter(Acceso.hora_salida.isnot(None))


def _accesos_query(db: Session, filtros: Mapping[str, str]) -> Query:
    filtros = dict(filtros)
    tipo = filtros.pop("tipo", None)
    q = db.query(Acceso)
    q = _apply_filtros(q, filtros, FILTROS_ACCESO)
    q = _apply_tipo(q, tipo)
    return q.order_by(Acceso.fecha.desc(), Acceso.hora_entrada.desc(), Acceso.id.desc())


@dataclass
class Pagina:
    """One page of results plus the total match count."""

    total: int
    page: int
    limit: int
    items: list


def _paginate(query: Query, pagination: PaginationParams) -> Pagina:
    total: int = query.order_by(None).count()
    items = query.offset(pagination.offset).limit(pagination.limit).all()
    return Pagina(total=total, page=pagination.page, limit=pagination.limit, items=items)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def query_accesos(
    db: Session,
    filtros: Mapping[str, str],
    pagination: PaginationParams,
) -> Pagina:
    """Paginated access history, newest first.

    Args:
        db: Active SQLAlchemy session.
        filtros: Request parameters other than ``page``/``limit``. Besides
            the allow-listed columns it accepts ``tipo``: "entrada" keeps
            sessions still open, "salida" keeps closed sessions.
        pagination: Page number and size.

    Raises:
        ValidationError: Unknown parameter, bad ``tipo`` or bad ``fecha``.
    """
    pagina = _paginate(_accesos_query(db, filtros), pagination)
    logger.debug(
        "query_accesos: page=%d limit=%d total=%d returned=%d",
        pagina.page, pagina.limit, pagina.total, len(pagina.items),
    )
    return pagina


def list_accesos(db: Session, filtros: Mapping[str, str]) -> list[Acceso]:
    """All access rows matching *filtros*, same order as ``query_accesos``."""
    return _accesos_query(db, filtros).all()


def query_personas(
    db: Session,
    filtros: Mapping[str, str],
    pagination: PaginationParams,
) -> Pagina:
    """Paginated directory ordered by nombre, apellido.

    Raises:
        ValidationError: Unknown filter parameter.
    """
    q = _apply_filtros(db.query(Persona), filtros, FILTROS_PERSONA)
    q = q.order_by(Persona.nombre.asc(), Persona.apellido.asc(), Persona.id.asc())
    pagina = _paginate(q, pagination)
    logger.debug(
        "query_personas: page=%d limit=%d total=%d returned=%d",
        pagina.page, pagina.limit, pagina.total, len(pagina.items),
    )
    return pagina
