from __future__ import annotations

from datetime import timedelta

import pytest

from app.models.usuario import Usuario
from app.schemas.usuario import UsuarioCreate
from app.services import auth_service
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError
from app.utils.security import verify_password


def _cuenta(**overrides) -> UsuarioCreate:
    data = {
        "nombre": "María",
        "apellido": "Flores",
        "fechaNacimiento": "1990-02-11",
        "idInstitucional": "ADM-0042",
        "cedula": "31456789",
        "rolUniversidad": "Personal Administrativo",
        "correoPersonal": "maria@example.com",
        "correoInstitucional": "m.flores@unicatolica.edu.co",
        "password": "Segura2025!",
        "role": "lector",
    }
    data.update(overrides)
    return UsuarioCreate(**data)


def test_register_hashes_password_and_sends_welcome(db, dispatcher):
    usuario = auth_service.register_account(db, _cuenta(), dispatcher)

    assert usuario.password_hash != "Segura2025!"
    assert verify_password("Segura2025!", usuario.password_hash)
    assert dispatcher.calls == [("account_welcome", usuario.id)]


def test_same_person_may_hold_one_account_per_role(db, dispatcher):
    auth_service.register_account(db, _cuenta(role="lector"), dispatcher)
    auth_service.register_account(db, _cuenta(role="admin"), dispatcher)

    assert db.query(Usuario).count() == 2


@pytest.mark.parametrize(
    "overrides, mensaje",
    [
        ({}, "cédula"),
        ({"cedula": "999"}, "correo personal"),
        ({"cedula": "999", "correoPersonal": "otra@example.com"}, "correo institucional"),
    ],
)
def test_duplicate_identity_within_role_is_conflict(db, dispatcher, overrides, mensaje):
    auth_service.register_account(db, _cuenta(), dispatcher)

    with pytest.raises(ConflictError) as excinfo:
        auth_service.register_account(db, _cuenta(**overrides), dispatcher)

    assert mensaje in excinfo.value.message
    assert excinfo.value.message.endswith("como lector")
    assert excinfo.value.status_code == 400


def test_unknown_account_role_is_rejected(db, dispatcher):
    with pytest.raises(ValidationError):
        auth_service.register_account(db, _cuenta(role="superuser"), dispatcher)


def test_authenticate_user(db, make_usuario):
    usuario = make_usuario(password="clave123", role="admin")

    assert auth_service.authenticate_user(
        db, "m.flores@unicatolica.edu.co", "clave123", "admin"
    ).id == usuario.id

    with pytest.raises(NotFoundError) as wrong_password:
        auth_service.authenticate_user(db, "m.flores@unicatolica.edu.co", "otra", "admin")
    with pytest.raises(NotFoundError) as wrong_role:
        auth_service.authenticate_user(db, "m.flores@unicatolica.edu.co", "clave123", "lector")
    assert wrong_password.value.status_code == 401
    assert wrong_role.value.status_code == 401


def test_verify_lector_password(db, make_usuario):
    make_usuario(password="lector1", role="lector")

    assert auth_service.verify_lector_password(db, "m.flores@unicatolica.edu.co", "lector1")
    assert not auth_service.verify_lector_password(db, "m.flores@unicatolica.edu.co", "mala")
    with pytest.raises(NotFoundError):
        auth_service.verify_lector_password(db, "nadie@unicatolica.edu.co", "lector1")


def test_password_reset_flow(db, make_usuario, dispatcher, fixed_now):
    usuario = make_usuario(password="vieja12")

    auth_service.request_password_reset(
        db, "m.flores@unicatolica.edu.co", dispatcher, now=fixed_now
    )
    db.refresh(usuario)
    token = usuario.reset_password_token

    assert len(token) == 64
    assert usuario.reset_password_expires == fixed_now + timedelta(hours=1)
    assert dispatcher.calls == [("password_reset", usuario.id, token)]

    auth_service.verify_reset_token(
        db, "m.flores@unicatolica.edu.co", token, now=fixed_now + timedelta(minutes=59)
    )
    auth_service.reset_password(
        db, "m.flores@unicatolica.edu.co", token, "nueva123", now=fixed_now + timedelta(minutes=59)
    )
    db.refresh(usuario)

    assert verify_password("nueva123", usuario.password_hash)
    assert usuario.reset_password_token is None
    with pytest.raises(ValidationError):
        auth_service.verify_reset_token(db, "m.flores@unicatolica.edu.co", token, now=fixed_now)


def test_expired_reset_token_is_rejected(db, make_usuario, dispatcher, fixed_now):
    usuario = make_usuario()
    auth_service.request_password_reset(
        db, "m.flores@unicatolica.edu.co", dispatcher, now=fixed_now
    )
    db.refresh(usuario)

    with pytest.raises(ValidationError, match="expirado"):
        auth_service.reset_password(
            db,
            "m.flores@unicatolica.edu.co",
            usuario.reset_password_token,
            "nueva123",
            now=fixed_now + timedelta(minutes=61),
        )


def test_reset_request_for_unknown_email(db, dispatcher):
    with pytest.raises(NotFoundError):
        auth_service.request_password_reset(db, "nadie@unicatolica.edu.co", dispatcher)
    assert dispatcher.calls == []

