"""
Accounts and authentication router.

Mounts under ``/api`` (prefix set in ``main.py``).

Endpoints:
    POST /register         — Create an admin or lector account.
    POST /login            — Authenticate with institutional email + role, receive JWT.
    GET  /me               — Profile of the authenticated account.
    GET  /usuarios         — All accounts (ADMIN).
    GET  /usuarios/{role}  — Accounts of one role (ADMIN).
    POST /verify-password  — Confirm a lector's password.
    POST /forgot-password  — Email a one-hour recovery token.
    POST /verify-token     — Check a recovery token.
    POST /reset-password   — Set a new password with a recovery token.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyPasswordRequest,
    VerifyPasswordResponse,
    VerifyResetTokenRequest,
)
from app.schemas.common import MessageResponse, SuccessResponse
from app.schemas.usuario import UsuarioCreate, UsuarioResponse
from app.services import auth_service
from app.services.auth_service import get_current_user, require_role
from app.services.notification_service import NotificationDispatcher, get_dispatcher
from app.utils.constants import ROLE_ADMIN
from app.utils.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


# ---------------------------------------------------------------------------
# POST /register
# ---------------------------------------------------------------------------


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar cuenta",
    description=(
        "Crea una cuenta ``admin`` o ``lector``. Una misma persona puede tener "
        "una cuenta por rol; cédula y correos son únicos dentro de cada rol. "
        "Envía un correo de bienvenida con las capacidades del rol."
    ),
    responses={
        201: {"description": "Cuenta creada."},
        400: {"description": "Faltan datos, rol inválido o datos duplicados para el rol."},
    },
)
def register(
    body: UsuarioCreate,
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> MessageResponse:
    auth_service.register_account(db, body, dispatcher)
    return MessageResponse(message="✅ Usuario registrado correctamente")


# ---------------------------------------------------------------------------
# POST /login
# ---------------------------------------------------------------------------


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Iniciar sesión",
    description=(
        "Autentica con correo institucional, contraseña y rol, y retorna un JWT "
        "válido por ``JWT_EXPIRATION_MINUTES`` (default 8 h)."
    ),
    responses={
        200: {"description": "Autenticación exitosa; se incluye el token JWT."},
        400: {"description": "Faltan datos o rol inválido."},
        401: {"description": "Credenciales incorrectas."},
    },
)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """Authenticate an account and issue a JWT access token.

    Args:
        body: Institutional email, password and the role to log in as.
        db: Database session injected by ``get_db``.

    Returns:
        A ``TokenResponse`` with the signed JWT and the account identity.

    Raises:
        NotFoundError (401): Credentials do not match an account of that role.
    """
    user = auth_service.authenticate_user(
        db, body.correo_institucional, body.password, body.role
    )
    token = create_access_token(
        data={
            "sub": str(user.id),
            "correo": user.correo_institucional,
            "role": user.role,
        }
    )
    logger.info("Successful login for usuario id=%d role='%s'", user.id, user.role)
    return TokenResponse(
        access_token=token,
        role=user.role,
        nombre=user.nombre,
        apellido=user.apellido,
    )


# ---------------------------------------------------------------------------
# GET /me
# ---------------------------------------------------------------------------


@router.get(
    "/me",
    response_model=UsuarioResponse,
    summary="Perfil de la cuenta autenticada",
    responses={
        200: {"description": "Perfil de la cuenta."},
        401: {"description": "Token ausente, inválido o expirado."},
    },
)
def get_me(
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> UsuarioResponse:
    return UsuarioResponse.model_validate(current_user)


# ---------------------------------------------------------------------------
# GET /usuarios, GET /usuarios/{role}
# ---------------------------------------------------------------------------


@router.get(
    "/usuarios",
    response_model=list[UsuarioResponse],
    summary="Listar cuentas",
    responses={
        401: {"description": "Token JWT ausente o inválido."},
        403: {"description": "El usuario no tiene rol ADMIN."},
    },
)
def list_usuarios(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(require_role(ROLE_ADMIN))],
) -> list[UsuarioResponse]:
    return [UsuarioResponse.model_validate(u) for u in auth_service.list_usuarios(db)]


@router.get(
    "/usuarios/{role}",
    response_model=list[UsuarioResponse],
    summary="Listar cuentas de un rol",
    responses={
        400: {"description": "Rol inválido."},
        401: {"description": "Token JWT ausente o inválido."},
        403: {"description": "El usuario no tiene rol ADMIN."},
    },
)
def list_usuarios_por_rol(
    role: Annotated[str, Path(description="``admin`` o ``lector``.")],
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(require_role(ROLE_ADMIN))],
) -> list[UsuarioResponse]:
    return [
        UsuarioResponse.model_validate(u)
        for u in auth_service.list_usuarios(db, role)
    ]


# ---------------------------------------------------------------------------
# POST /verify-password
# ---------------------------------------------------------------------------


@router.post(
    "/verify-password",
    response_model=VerifyPasswordResponse,
    summary="Verificar contraseña de lector",
    description=(
        "Confirma la contraseña de la cuenta ``lector`` asociada al correo "
        "institucional, p. ej. antes de cerrar el modo lector del frontend."
    ),
    responses={
        200: {"description": "Contraseña correcta."},
        401: {"description": "Contraseña incorrecta; cuerpo ``{\"verified\": false}``."},
        404: {"description": "No existe un lector con ese correo."},
    },
)
def verify_password(
    body: VerifyPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
):
    if auth_service.verify_lector_password(db, body.correo_institucional, body.password):
        return VerifyPasswordResponse(verified=True)
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=VerifyPasswordResponse(verified=False).model_dump(by_alias=True),
    )


# ---------------------------------------------------------------------------
# Password recovery
# ---------------------------------------------------------------------------


@router.post(
    "/forgot-password",
    response_model=SuccessResponse,
    summary="Solicitar recuperación de contraseña",
    description=(
        "Genera un token de recuperación válido por una hora y lo envía al "
        "correo de la cuenta. La respuesta es exitosa aunque el envío falle."
    ),
    responses={
        200: {"description": "Token generado."},
        404: {"description": "Usuario no encontrado."},
    },
)
def forgot_password(
    body: ForgotPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> SuccessResponse:
    auth_service.request_password_reset(db, body.correo_institucional, dispatcher)
    return SuccessResponse(
        message="Se ha enviado un enlace de recuperación a tu correo institucional"
    )


@router.post(
    "/verify-token",
    response_model=SuccessResponse,
    summary="Verificar token de recuperación",
    responses={
        200: {"description": "Token válido."},
        400: {"description": "Token inválido o expirado."},
    },
)
def verify_token(
    body: VerifyResetTokenRequest,
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    auth_service.verify_reset_token(db, body.correo_institucional, body.token)
    return SuccessResponse(message="Token válido")


@router.post(
    "/reset-password",
    response_model=SuccessResponse,
    summary="Restablecer contraseña",
    responses={
        200: {"description": "Contraseña actualizada; el token queda invalidado."},
        400: {"description": "Token inválido o expirado, o contraseña demasiado corta."},
    },
)
def reset_password(
    body: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    auth_service.reset_password(
        db, body.correo_institucional, body.token, body.nueva_password
    )
    return SuccessResponse(message="Contraseña actualizada correctamente")
