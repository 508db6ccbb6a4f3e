"""
Person directory service layer.

All database access for ``/api/save``, ``/api/huellas`` and
``/api/buscar-carnet`` lives here. Functions receive a SQLAlchemy
``Session`` and return ORM objects ready for serialisation.

Design notes
------------
- A card identifier is looked up against both card columns: regular
  persons use ``carnet`` and visitors ``numero_tarjeta``.
- Only visitors expire. Visitors past ``fecha_expiracion`` are not active:
  lookups skip them and their card can be issued again before the sweep
  removes the row.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.database import commit_or_raise
from app.models.acceso import Acceso
from app.models.persona import Persona
from app.schemas.persona import PersonaCreate, PersonaUpdate
from app.services.notification_service import NotificationDispatcher
from app.utils.constants import ROL_VISITANTE, ROLES_UNIVERSIDAD
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError
from app.utils.fechas import add_one_month, now_local

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _card_filter(card_id: str):
    return or_(Persona.carnet == card_id, Persona.numero_tarjeta == card_id)


def _active_filter(now: datetime):
    return or_(
        Persona.rol_universidad != ROL_VISITANTE,
        Persona.fecha_expiracion.is_(None),
        Persona.fecha_expiracion >= now,
    )


def _validate_rol(rol: str) -> None:
    if rol not in ROLES_UNIVERSIDAD:
        raise ValidationError(
            f"Rol de universidad inválido: '{rol}'. Valores permitidos: {ROLES_UNIVERSIDAD}"
        )


def ensure_card_available(
    db: Session,
    card_id: str,
    now: datetime,
    exclude_id: int | None = None,
) -> None:
    """Raise ``ConflictError`` if an active person already holds *card_id*."""
    q = db.query(Persona.id).filter(_card_filter(card_id), _active_filter(now))
    if exclude_id is not None:
        q = q.filter(Persona.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"❌ El número de carnet o tarjeta {card_id} ya está asignado")


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def find_by_card(db: Session, card_id: str, now: datetime | None = None) -> Persona | None:
    """Return the active person holding *card_id* in either card column."""
    now = now or now_local()
    return (
        db.query(Persona)
        .filter(_card_filter(card_id), _active_filter(now))
        .order_by(Persona.id.desc())
        .first()
    )


def get_by_card(db: Session, card_id: str) -> Persona:
    card_id = (card_id or "").strip()
    if not card_id:
        raise ValidationError("❌ El número de carnet es requerido")
    persona = find_by_card(db, card_id)
    if persona is None:
        raise NotFoundError("❌ Persona no encontrada")
    return persona


def get_persona(db: Session, persona_id: int) -> Persona:
    persona = db.query(Persona).filter(Persona.id == persona_id).first()
    if persona is None:
        raise NotFoundError("❌ Registro no encontrado")
    return persona


def list_personas(db: Session) -> list[Persona]:
    personas = db.query(Persona).order_by(Persona.nombre, Persona.apellido, Persona.id).all()
    logger.debug("list_personas: %d records", len(personas))
    return personas


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


def create_persona(
    db: Session,
    data: PersonaCreate,
    dispatcher: NotificationDispatcher,
    now: datetime | None = None,
) -> Persona:
    """Register a person in the directory and send the welcome email.

    Raises:
        ValidationError: Unknown ``rol_universidad``.
        ConflictError: The carnet is held by another active person.
        StorageError: The insert could not be committed.
    """
    now = now or now_local()
    _validate_rol(data.rol_universidad)
    ensure_card_available(db, data.carnet, now)
    if data.numero_tarjeta:
        ensure_card_available(db, data.numero_tarjeta, now)

    persona = Persona(**data.model_dump(), fecha_registro=now)
    if persona.rol_universidad == ROL_VISITANTE:
        persona.fecha_expiracion = add_one_month(now)
    db.add(persona)
    commit_or_raise(db, "creating persona")
    db.refresh(persona)
    logger.info(
        "Persona registered id=%d rol='%s' carnet='%s'",
        persona.id, persona.rol_universidad, persona.carnet,
    )

    dispatcher.notify_person_welcome(persona)
    return persona


def update_persona(
    db: Session,
    persona_id: int,
    data: PersonaUpdate,
    now: datetime | None = None,
) -> Persona:
    """Apply a partial update; only fields present in the payload change.

    A role change into ``Visitante`` starts the one-month validity; a change
    out of it clears the expiry.
    """
    persona = get_persona(db, persona_id)
    changes = data.model_dump(exclude_unset=True)

    if "rol_universidad" in changes:
        _validate_rol(changes["rol_universidad"])
    now = now or now_local()
    for card_field in ("carnet", "numero_tarjeta"):
        nuevo = changes.get(card_field)
        if nuevo and nuevo != getattr(persona, card_field):
            ensure_card_available(db, nuevo, now, exclude_id=persona.id)

    for field, value in changes.items():
        setattr(persona, field, value)

    if persona.rol_universidad != ROL_VISITANTE:
        persona.fecha_expiracion = None
    elif persona.fecha_expiracion is None:
        persona.fecha_expiracion = add_one_month(now)

    commit_or_raise(db, "updating persona")
    db.refresh(persona)
    logger.info("Persona updated id=%d fields=%s", persona.id, sorted(changes))
    return persona


def delete_persona(db: Session, persona_id: int) -> None:
    """Delete a directory record; its access history keeps the snapshots."""
    persona = get_persona(db, persona_id)
    db.query(Acceso).filter(Acceso.persona_id == persona.id).update(
        {Acceso.persona_id: None}, synchronize_session=False
    )
    db.delete(persona)
    commit_or_raise(db, "deleting persona")
    logger.info("Persona deleted id=%d", persona_id)
