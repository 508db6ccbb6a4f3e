from __future__ import annotations

import os

# Settings are cached on first use; point them at SQLite before importing app.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VISITOR_SWEEP_ENABLED"] = "false"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.main import app as fastapi_app
from app.models.persona import Persona
from app.models.usuario import Usuario
from app.services.notification_service import get_dispatcher
from app.utils.constants import ROLE_ADMIN
from app.utils.security import create_access_token, hash_password


class RecordingDispatcher:
    """Stands in for ``NotificationDispatcher`` and keeps every call."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple] = []

    def _record(self, *call):
        self.calls.append(call)
        if self.fail:
            raise RuntimeError("smtp down")
        return True

    def notify_access(self, acceso, tipo, destinatario):
        return self._record("access", acceso.id, tipo, destinatario)

    def notify_person_welcome(self, persona):
        return self._record("person_welcome", persona.id)

    def notify_account_welcome(self, usuario, password_original):
        return self._record("account_welcome", usuario.id)

    def notify_password_reset(self, usuario, token):
        return self._record("password_reset", usuario.id, token)

    def kinds(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture()
def failing_dispatcher():
    return RecordingDispatcher(fail=True)


@pytest.fixture()
def fixed_now():
    return datetime(2025, 3, 10, 8, 30, 0)


@pytest.fixture()
def client(session_factory, dispatcher):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def make_persona(db):
    def _make(**overrides) -> Persona:
        data = {
            "nombre": "Laura",
            "apellido": "Gómez",
            "cedula": "1107845123",
            "rol_universidad": "Estudiante",
            "correo_personal": "laura@example.com",
            "carnet": "A123",
        }
        data.update(overrides)
        persona = Persona(**data)
        db.add(persona)
        db.commit()
        db.refresh(persona)
        return persona

    return _make


@pytest.fixture()
def make_usuario(db):
    def _make(password: str = "secreto1", **overrides) -> Usuario:
        data = {
            "nombre": "María",
            "apellido": "Flores",
            "cedula": "31456789",
            "rol_universidad": "Personal Administrativo",
            "correo_personal": "maria@example.com",
            "correo_institucional": "m.flores@unicatolica.edu.co",
            "role": ROLE_ADMIN,
        }
        data.update(overrides)
        usuario = Usuario(password_hash=hash_password(password), **data)
        db.add(usuario)
        db.commit()
        db.refresh(usuario)
        return usuario

    return _make


@pytest.fixture()
def auth_header():
    def _header(usuario: Usuario) -> dict[str, str]:
        token = create_access_token({"sub": str(usuario.id), "role": usuario.role})
        return {"Authorization": f"Bearer {token}"}

    return _header
