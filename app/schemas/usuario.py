"""
Pydantic v2 schemas for account management endpoints.

Separates the write schema (``UsuarioCreate``) from the read schema
(``UsuarioResponse``) so the password hash and recovery token never leak
into API responses.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from app.schemas.common import CamelModel
from app.utils.constants import ROLES


class UsuarioCreate(CamelModel):
    """Payload for creating an account (``POST /api/register``).

    ``correo_institucional`` is optional; when absent the welcome email goes
    to the personal address.
    """

    nombre: str = Field(..., min_length=1, max_length=150)
    apellido: str = Field(..., min_length=1, max_length=150)
    fecha_nacimiento: str = Field(..., min_length=1, max_length=20)
    id_institucional: str = Field(..., min_length=1, max_length=50)
    cedula: str = Field(..., min_length=1, max_length=30)
    rol_universidad: str = Field(..., min_length=1, max_length=50)
    correo_personal: str = Field(..., min_length=3, max_length=200)
    correo_institucional: str | None = Field(default=None, max_length=200)
    password: str = Field(
        ...,
        min_length=6,
        max_length=128,
        description="Contraseña en texto plano; se almacenará hasheada con bcrypt",
    )
    role: str = Field(..., description=f"Rol de la cuenta. Valores permitidos: {ROLES}")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "nombre": "María",
                "apellido": "Flores",
                "fechaNacimiento": "1990-02-11",
                "idInstitucional": "ADM-0042",
                "cedula": "31456789",
                "rolUniversidad": "Personal Administrativo",
                "correoPersonal": "maria.flores@gmail.com",
                "correoInstitucional": "m.flores@unicatolica.edu.co",
                "password": "Segura2025!",
                "role": "lector",
            }
        }
    )


class UsuarioResponse(CamelModel):
    """Public representation of an account."""

    id: int
    nombre: str
    apellido: str
    fecha_nacimiento: str | None = None
    id_institucional: str | None = None
    cedula: str
    rol_universidad: str | None = None
    correo_personal: str
    correo_institucional: str | None = None
    role: str
