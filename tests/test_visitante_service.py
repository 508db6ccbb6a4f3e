from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from app.models.acceso import Acceso
from app.models.persona import Persona
from app.scheduler import SWEEP_JOB_ID, VisitorSweepScheduler
from app.schemas.persona import VisitanteCreate
from app.services.acceso_service import register_scan
from app.services.visitante_service import create_visitor, sweep_expired_visitors
from app.utils.exceptions import ConflictError


def _visitante(**overrides) -> VisitanteCreate:
    data = {
        "nombre": "Carlos",
        "apellido": "Rivas",
        "cedula": "16789456",
        "razonVisita": "Reunión con decanatura",
        "numeroTarjeta": "V-017",
    }
    data.update(overrides)
    return VisitanteCreate(**data)


def test_visitor_expires_one_calendar_month_later(db, fixed_now):
    visitante = create_visitor(db, _visitante(), now=fixed_now)

    assert visitante.rol_universidad == "Visitante"
    assert visitante.fecha_expiracion == datetime(2025, 4, 10, 8, 30, 0)
    assert visitante.fecha_registro == fixed_now


def test_visitor_created_on_january_31_expires_end_of_february(db):
    visitante = create_visitor(db, _visitante(), now=datetime(2025, 1, 31, 12, 0, 0))

    assert visitante.fecha_expiracion == datetime(2025, 2, 28, 12, 0, 0)


def test_visitor_card_already_held_is_rejected(db, make_persona, fixed_now):
    make_persona(carnet="V-017")

    with pytest.raises(ConflictError):
        create_visitor(db, _visitante(), now=fixed_now)


def test_card_of_expired_visitor_can_be_reissued(db, fixed_now):
    create_visitor(db, _visitante(), now=fixed_now - timedelta(days=40))

    nuevo = create_visitor(db, _visitante(nombre="Ana"), now=fixed_now)

    assert nuevo.numero_tarjeta == "V-017"


def test_sweep_removes_all_and_only_expired_visitors(db, make_persona, fixed_now):
    expirado_1 = create_visitor(
        db, _visitante(numeroTarjeta="V-1"), now=fixed_now - timedelta(days=45)
    )
    expirado_2 = create_visitor(
        db, _visitante(numeroTarjeta="V-2"), now=fixed_now - timedelta(days=32)
    )
    vigente = create_visitor(
        db, _visitante(numeroTarjeta="V-3"), now=fixed_now - timedelta(days=3)
    )
    estudiante = make_persona(carnet="A123")
    expirados = {expirado_1.id, expirado_2.id}
    restantes = {vigente.id, estudiante.id}

    deleted = sweep_expired_visitors(db, now=fixed_now)

    assert deleted == 2
    ids = {p.id for p in db.query(Persona).all()}
    assert ids == restantes
    assert ids.isdisjoint(expirados)


def test_sweep_is_idempotent(db, fixed_now):
    create_visitor(db, _visitante(), now=fixed_now - timedelta(days=40))

    assert sweep_expired_visitors(db, now=fixed_now) == 1
    assert sweep_expired_visitors(db, now=fixed_now) == 0


def test_visitor_expiring_exactly_now_is_kept(db, fixed_now):
    create_visitor(db, _visitante(), now=datetime(2025, 2, 10, 8, 30, 0))

    assert sweep_expired_visitors(db, now=fixed_now) == 0


def test_sweep_keeps_access_history(db, dispatcher, fixed_now):
    hace_40_dias = fixed_now - timedelta(days=40)
    create_visitor(db, _visitante(), now=hace_40_dias)
    register_scan(db, "V-017", dispatcher, now=hace_40_dias + timedelta(hours=1))

    sweep_expired_visitors(db, now=fixed_now)

    acceso = db.query(Acceso).one()
    assert acceso.persona_id is None
    assert acceso.nombre == "Carlos Rivas"
    assert acceso.numero_tarjeta == "V-017"


def test_scheduler_run_once_uses_injected_clock(session_factory, db, fixed_now):
    create_visitor(db, _visitante(), now=fixed_now - timedelta(days=40))
    sweeper = VisitorSweepScheduler(session_factory, clock=lambda: fixed_now)

    assert sweeper.run_once() == 1
    assert sweeper.run_once() == 0
    assert db.query(Persona).count() == 0


def test_scheduler_run_once_logs_failures(fixed_now):
    session = _BrokenSession()
    sweeper = VisitorSweepScheduler(lambda: session, clock=lambda: fixed_now)

    assert sweeper.run_once() == 0
    assert session.closed


def test_scheduler_start_and_shutdown(session_factory):
    sweeper = VisitorSweepScheduler(session_factory, interval_hours=24)

    sweeper.start()
    try:
        assert sweeper.running
        assert sweeper._scheduler.get_job(SWEEP_JOB_ID) is not None
    finally:
        sweeper.shutdown()
    assert not sweeper.running


class _BrokenSession:
    closed = False

    def query(self, *args, **kwargs):
        raise RuntimeError("database unavailable")

    def close(self):
        self.closed = True
