"""
Visitor lifecycle — registration with a one-month validity and the purge
of expired visitors.

``sweep_expired_visitors`` is a bulk ``DELETE``: rows removed by a
concurrent writer simply are not counted, so running the sweep while scans
or registrations are in flight is safe, and a second run with no new
expirations deletes nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.database import commit_or_raise
from app.models.acceso import Acceso
from app.models.persona import Persona
from app.schemas.persona import VisitanteCreate
from app.services import persona_service
from app.utils.constants import ROL_VISITANTE
from app.utils.fechas import add_one_month, now_local

logger = logging.getLogger(__name__)


def create_visitor(db: Session, data: VisitanteCreate, now: datetime | None = None) -> Persona:
    """Register a visitor whose record expires one calendar month from *now*.

    Raises:
        ConflictError: The card is held by another active person.
        StorageError: The insert could not be committed.
    """
    now = now or now_local()
    persona_service.ensure_card_available(db, data.numero_tarjeta, now)

    visitante = Persona(
        nombre=data.nombre,
        apellido=data.apellido,
        cedula=data.cedula,
        razon_visita=data.razon_visita,
        numero_tarjeta=data.numero_tarjeta,
        rol_universidad=ROL_VISITANTE,
        fecha_expiracion=add_one_month(now),
        fecha_registro=now,
    )
    db.add(visitante)
    commit_or_raise(db, "creating visitante")
    db.refresh(visitante)
    logger.info(
        "Visitante registered id=%d tarjeta='%s' expira=%s",
        visitante.id, visitante.numero_tarjeta, visitante.fecha_expiracion.isoformat(),
    )
    return visitante


def sweep_expired_visitors(db: Session, now: datetime | None = None) -> int:
    """Delete every visitor whose ``fecha_expiracion`` is before *now*.

    Access history rows of the purged visitors are kept with their
    ``persona_id`` cleared.

    Returns:
        Number of visitor records deleted.
    """
    now = now or now_local()
    expirados = (
        db.query(Persona.id)
        .filter(
            Persona.rol_universidad == ROL_VISITANTE,
            Persona.fecha_expiracion < now,
        )
        .scalar_subquery()
    )
    db.query(Acceso).filter(Acceso.persona_id.in_(expirados)).update(
        {Acceso.persona_id: None}, synchronize_session=False
    )
    deleted = (
        db.query(Persona)
        .filter(
            Persona.rol_universidad == ROL_VISITANTE,
            Persona.fecha_expiracion < now,
        )
        .delete(synchronize_session=False)
    )
    commit_or_raise(db, "sweeping expired visitantes")
    logger.info("Visitor sweep at %s deleted %d expired visitantes", now.isoformat(), deleted)
    return deleted
