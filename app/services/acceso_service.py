"""
Attendance session tracker — entry/exit toggle per person and day.

A scan either closes the open session of the card holder for today or opens a
new one. The transition is written so that two scans racing on the same
person can never leave two open sessions:

1. Close step: a single conditional ``UPDATE ... WHERE id = :candidate AND
   hora_salida IS NULL``. Only one writer can win that row.
2. Open step: ``INSERT`` guarded by the partial unique index
   ``uq_acceso_abierto_por_dia`` (one open session per person and day).
   Losing that race raises ``IntegrityError``; the scan is rolled back and
   resolved through the close step instead.

When several open sessions exist anyway (rows written before the index),
the most recently created one is closed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import commit_or_raise
from app.models.acceso import Acceso
from app.models.persona import Persona
from app.services import persona_service
from app.services.notification_service import NotificationDispatcher
from app.utils.constants import TIPO_ENTRADA, TIPO_SALIDA
from app.utils.exceptions import NotFoundError, StorageError, ValidationError
from app.utils.fechas import now_local

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of ``register_scan``: the transition and the session row."""

    tipo: str
    acceso: Acceso

    @property
    def message(self) -> str:
        if self.tipo == TIPO_ENTRADA:
            return "✅ Entrada registrada"
        return "✅ Salida registrada"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _open_session_id(db: Session, persona_id: int, fecha: date) -> int | None:
    row = (
        db.query(Acceso.id)
        .filter(
            Acceso.persona_id == persona_id,
            Acceso.fecha == fecha,
            Acceso.hora_salida.is_(None),
        )
        .order_by(Acceso.id.desc())
        .first()
    )
    return row[0] if row is not None else None


def _try_close(db: Session, persona_id: int, fecha: date, hora: time) -> Acceso | None:
    """Close today's open session of the person; ``None`` if there is none.

    Retries when another writer closes the candidate between the SELECT
    and the conditional UPDATE.
    """
    while True:
        acceso_id = _open_session_id(db, persona_id, fecha)
        if acceso_id is None:
            return None
        updated = (
            db.query(Acceso)
            .filter(Acceso.id == acceso_id, Acceso.hora_salida.is_(None))
            .update({Acceso.hora_salida: hora}, synchronize_session=False)
        )
        if updated == 1:
            commit_or_raise(db, "closing acceso")
            return db.query(Acceso).filter(Acceso.id == acceso_id).one()


def _open(db: Session, persona: Persona, card_id: str, fecha: date, hora: time) -> Acceso:
    acceso = Acceso(
        persona_id=persona.id,
        tarjeta=card_id,
        nombre=persona.nombre_completo,
        rol_universidad=persona.rol_universidad,
        carnet=persona.carnet or "",
        numero_tarjeta=persona.numero_tarjeta or "",
        fecha=fecha,
        hora_entrada=hora,
    )
    db.add(acceso)
    db.commit()
    db.refresh(acceso)
    return acceso


def _notify(
    dispatcher: NotificationDispatcher,
    result: ScanResult,
    persona: Persona,
) -> None:
    try:
        dispatcher.notify_access(result.acceso, result.tipo, persona.correo_destino)
    except Exception:
        logger.exception(
            "Access notification failed for acceso id=%d; scan kept", result.acceso.id
        )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def register_scan(
    db: Session,
    card_id: str | None,
    dispatcher: NotificationDispatcher,
    now: datetime | None = None,
) -> ScanResult:
    """Register an entry or exit for the person holding *card_id*.

    Args:
        db: Active SQLAlchemy session.
        card_id: Scanned carnet or visitor card number.
        dispatcher: Receives the best-effort access notification.
        now: Scan instant; defaults to the campus wall clock.

    Returns:
        ``ScanResult`` with ``tipo`` "entrada" (new open session) or
        "salida" (the open session of today now has ``hora_salida``).

    Raises:
        ValidationError: Empty card identifier.
        NotFoundError: No active person holds the card.
        StorageError: The session could not be persisted.
    """
    card_id = (card_id or "").strip()
    if not card_id:
        raise ValidationError("❌ Se requiere carnet o número de tarjeta")

    now = now or now_local()
    fecha = now.date()
    hora = now.time().replace(microsecond=0)

    persona = persona_service.find_by_card(db, card_id, now)
    if persona is None:
        logger.info("Scan rejected, unknown card='%s'", card_id)
        raise NotFoundError("❌ Persona no encontrada")

    cerrado = _try_close(db, persona.id, fecha, hora)
    if cerrado is not None:
        result = ScanResult(tipo=TIPO_SALIDA, acceso=cerrado)
    else:
        try:
            result = ScanResult(tipo=TIPO_ENTRADA, acceso=_open(db, persona, card_id, fecha, hora))
        except IntegrityError:
            # A concurrent scan opened today's session first.
            db.rollback()
            logger.info("Concurrent entry for card='%s'; closing instead", card_id)
            cerrado = _try_close(db, persona.id, fecha, hora)
            if cerrado is None:
                raise StorageError()
            result = ScanResult(tipo=TIPO_SALIDA, acceso=cerrado)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Storage failure while opening acceso for card='%s'", card_id)
            raise StorageError() from exc

    logger.info(
        "Acceso %s card='%s' persona_id=%d acceso_id=%d",
        result.tipo, card_id, persona.id, result.acceso.id,
    )
    _notify(dispatcher, result, persona)
    return result
