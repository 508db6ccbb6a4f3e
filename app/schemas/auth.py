"""
Pydantic v2 schemas for the authentication endpoints.

Covers login, the JWT token response, lector password verification, and
the password recovery flow (forgot / verify token / reset).
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from app.schemas.common import CamelModel


class LoginRequest(CamelModel):
    """Payload accepted by ``POST /api/login``.

    Attributes:
        correo_institucional: Institutional email of the account.
        password: Plain-text password (transmitted over HTTPS only).
        role: Account role to log in as ("admin" or "lector").
    """

    correo_institucional: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1, max_length=128)
    role: str = Field(..., min_length=1, max_length=20)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "correoInstitucional": "admin@unicatolica.edu.co",
                "password": "secret1234",
                "role": "admin",
            }
        }
    )


class TokenResponse(CamelModel):
    """Response body returned after a successful login.

    Attributes:
        message: Confirmation text.
        access_token: Signed JWT for the ``Authorization: Bearer`` header.
        token_type: Always ``"bearer"`` per OAuth2 convention.
        role / nombre / apellido: Identity shown by the frontend header.
    """

    message: str = "✅ Inicio de sesión exitoso"
    access_token: str = Field(..., description="JWT de acceso firmado con HS256")
    token_type: str = Field(default="bearer", description="Tipo de token OAuth2")
    role: str
    nombre: str
    apellido: str


class VerifyPasswordRequest(CamelModel):
    """Payload for ``POST /api/verify-password`` (lector confirmation)."""

    correo_institucional: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1, max_length=128)


class VerifyPasswordResponse(CamelModel):
    verified: bool


class ForgotPasswordRequest(CamelModel):
    correo_institucional: str = Field(..., min_length=3, max_length=200)


class VerifyResetTokenRequest(CamelModel):
    correo_institucional: str = Field(..., min_length=3, max_length=200)
    token: str = Field(..., min_length=1, max_length=100)


class ResetPasswordRequest(VerifyResetTokenRequest):
    nueva_password: str = Field(..., min_length=6, max_length=128)
