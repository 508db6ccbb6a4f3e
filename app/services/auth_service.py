"""
Account and authentication business logic.

Provides:
- ``register_account`` — account creation with per-role uniqueness.
- ``authenticate_user`` — credential verification for login.
- ``verify_lector_password`` — reader operator password confirmation.
- ``request_password_reset`` / ``verify_reset_token`` / ``reset_password``
  — one-hour token recovery flow.
- ``get_current_user`` — FastAPI dependency that extracts and validates
  the Bearer JWT from the ``Authorization`` header.
- ``require_role`` — dependency factory enforcing role-based access.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import commit_or_raise, get_db
from app.models.usuario import Usuario
from app.schemas.usuario import UsuarioCreate
from app.services.notification_service import NotificationDispatcher
from app.utils.constants import ROLE_LECTOR, ROLES
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError
from app.utils.fechas import now_local
from app.utils.security import (
    generate_reset_token,
    hash_password,
    verify_password,
    verify_token,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# OAuth2 scheme: where FastAPI/Swagger finds the Bearer token.
# ---------------------------------------------------------------------------

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")


def _validate_role(role: str) -> None:
    if role not in ROLES:
        raise ValidationError("❌ Rol inválido")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def _duplicate_message(existing: Usuario, data: UsuarioCreate) -> str:
    if existing.cedula == data.cedula:
        return f"❌ Ya existe un usuario con esta cédula como {data.role}"
    if existing.correo_personal == data.correo_personal:
        return f"❌ Ya existe un usuario con este correo personal como {data.role}"
    return f"❌ Ya existe un usuario con este correo institucional como {data.role}"


def register_account(
    db: Session,
    data: UsuarioCreate,
    dispatcher: NotificationDispatcher,
) -> Usuario:
    """Create an account and send the role welcome email.

    The same person may hold one account per role: cédula and both emails
    are unique within a role.

    Raises:
        ValidationError: ``role`` is not "admin" or "lector".
        ConflictError: Cédula or an email already registered for the role.
        StorageError: The insert could not be committed.
    """
    _validate_role(data.role)
    correo_institucional = data.correo_institucional or None

    identidad = [
        Usuario.cedula == data.cedula,
        Usuario.correo_personal == data.correo_personal,
    ]
    if correo_institucional:
        identidad.append(Usuario.correo_institucional == correo_institucional)

    existing = (
        db.query(Usuario)
        .filter(Usuario.role == data.role, or_(*identidad))
        .first()
    )
    if existing is not None:
        raise ConflictError(_duplicate_message(existing, data))

    usuario = Usuario(
        nombre=data.nombre,
        apellido=data.apellido,
        fecha_nacimiento=data.fecha_nacimiento,
        id_institucional=data.id_institucional,
        cedula=data.cedula,
        rol_universidad=data.rol_universidad,
        correo_personal=data.correo_personal,
        correo_institucional=correo_institucional,
        password_hash=hash_password(data.password),
        role=data.role,
    )
    db.add(usuario)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            f"❌ Ya existe un usuario con estos datos como {data.role}"
        ) from exc
    db.refresh(usuario)
    logger.info("Account registered id=%d role='%s'", usuario.id, usuario.role)

    dispatcher.notify_account_welcome(usuario, data.password)
    return usuario


def list_usuarios(db: Session, role: str | None = None) -> list[Usuario]:
    q = db.query(Usuario)
    if role is not None:
        _validate_role(role)
        q = q.filter(Usuario.role == role)
    return q.order_by(Usuario.apellido, Usuario.nombre, Usuario.id).all()


# ---------------------------------------------------------------------------
# Core authentication functions
# ---------------------------------------------------------------------------


def authenticate_user(
    db: Session, correo_institucional: str, password: str, role: str
) -> Usuario:
    """Verify login credentials for the given role.

    Unknown accounts and wrong passwords produce the same error so that
    emails cannot be enumerated.

    Raises:
        ValidationError: Unknown role.
        NotFoundError (401): Credentials do not match.
    """
    _validate_role(role)
    user: Usuario | None = (
        db.query(Usuario)
        .filter(Usuario.correo_institucional == correo_institucional, Usuario.role == role)
        .first()
    )
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for '%s' role='%s'", correo_institucional, role)
        raise NotFoundError(
            "❌ Credenciales incorrectas", status_code=status.HTTP_401_UNAUTHORIZED
        )
    return user


def verify_lector_password(db: Session, correo_institucional: str, password: str) -> bool:
    """Return whether *password* belongs to the lector account of the email.

    Raises:
        NotFoundError: No lector account with that institutional email.
    """
    lector = (
        db.query(Usuario)
        .filter(
            Usuario.correo_institucional == correo_institucional,
            Usuario.role == ROLE_LECTOR,
        )
        .first()
    )
    if lector is None:
        raise NotFoundError("❌ Lector no encontrado")
    return verify_password(password, lector.password_hash)


# ---------------------------------------------------------------------------
# Password recovery
# ---------------------------------------------------------------------------


def request_password_reset(
    db: Session,
    correo_institucional: str,
    dispatcher: NotificationDispatcher,
    now: datetime | None = None,
) -> Usuario:
    """Issue a recovery token valid for ``RESET_TOKEN_EXPIRATION_MINUTES``.

    The email is best-effort; the token is stored either way.

    Raises:
        NotFoundError: No account with that institutional email.
    """
    now = now or now_local()
    usuario = (
        db.query(Usuario)
        .filter(Usuario.correo_institucional == correo_institucional)
        .order_by(Usuario.id)
        .first()
    )
    if usuario is None:
        raise NotFoundError("Usuario no encontrado")

    token = generate_reset_token()
    usuario.reset_password_token = token
    usuario.reset_password_expires = now + timedelta(
        minutes=get_settings().RESET_TOKEN_EXPIRATION_MINUTES
    )
    commit_or_raise(db, "storing reset token")
    logger.info("Password reset token issued for usuario id=%d", usuario.id)

    dispatcher.notify_password_reset(usuario, token)
    return usuario


def verify_reset_token(
    db: Session,
    correo_institucional: str,
    token: str,
    now: datetime | None = None,
) -> Usuario:
    """Return the account owning a valid, unexpired token.

    Raises:
        ValidationError: Unknown token or expired token.
    """
    now = now or now_local()
    usuario = (
        db.query(Usuario)
        .filter(
            Usuario.correo_institucional == correo_institucional,
            Usuario.reset_password_token == token,
        )
        .first()
    )
    if usuario is None:
        raise ValidationError("Token inválido o usuario no encontrado")
    if usuario.reset_password_expires is None or usuario.reset_password_expires < now:
        raise ValidationError("El token ha expirado. Solicita uno nuevo.")
    return usuario


def reset_password(
    db: Session,
    correo_institucional: str,
    token: str,
    nueva_password: str,
    now: datetime | None = None,
) -> Usuario:
    """Replace the password and consume the recovery token."""
    usuario = verify_reset_token(db, correo_institucional, token, now)
    usuario.password_hash = hash_password(nueva_password)
    usuario.reset_password_token = None
    usuario.reset_password_expires = None
    commit_or_raise(db, "resetting password")
    logger.info("Password reset for usuario id=%d", usuario.id)
    return usuario


# ---------------------------------------------------------------------------
# FastAPI dependency: current authenticated user
# ---------------------------------------------------------------------------


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> Usuario:
    """FastAPI dependency that resolves the caller's account from a JWT.

    Raises:
        HTTPException 401: Token missing, invalid or expired, or the account
            no longer exists.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudo validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = verify_token(token)
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise credentials_exception

    user: Usuario | None = db.query(Usuario).filter(Usuario.id == user_id).first()
    if user is None:
        raise credentials_exception

    return user


# ---------------------------------------------------------------------------
# Role enforcement dependency factory
# ---------------------------------------------------------------------------


def require_role(*roles: str):
    """Return a FastAPI dependency that restricts access to the given roles.

    .. code-block:: python

        @router.get("/usuarios")
        def list_all(current_user: Usuario = Depends(require_role("admin"))):
            ...

    Raises:
        HTTPException 403: The authenticated account's role is not allowed.
    """
    allowed = frozenset(roles)

    def _check_role(
        current_user: Annotated[Usuario, Depends(get_current_user)],
    ) -> Usuario:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f"Acceso denegado. Se requiere uno de los roles: "
                    f"{sorted(allowed)}"
                ),
            )
        return current_user

    return _check_role
