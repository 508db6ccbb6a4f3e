"""
Pydantic v2 schemas for the person directory ("huellas") and visitors.

Write schemas (``PersonaCreate``, ``PersonaUpdate``, ``VisitanteCreate``)
are separated from the read schema (``PersonaResponse``). All of them
serialise with camelCase keys, e.g. ``idInstitucional``, ``numeroTarjeta``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from app.schemas.common import CamelModel


class PersonaAtributos(CamelModel):
    """Optional role-specific attributes shared by every person schema."""

    fecha_nacimiento: str | None = None
    id_institucional: str | None = None
    correo_personal: str | None = None
    tiene_correo_institucional: str | None = Field(
        default=None, description="'si' o 'no'"
    )
    correo_institucional: str | None = None
    carnet: str | None = None

    # Estudiante
    carrera: str | None = None
    semestre: str | None = None
    tipo_matricula: str | None = None
    programa: str | None = None
    pertenece_semillero: str | None = None
    nombre_semillero: str | None = None
    tiene_proyecto_activo: str | None = None
    nombre_proyecto: str | None = None

    # Profesor / Docente
    departamento: str | None = None
    categoria_academica: str | None = None
    horario_atencion: str | None = None

    # Personal Administrativo
    dependencia: str | None = None
    cargo: str | None = None
    telefono_interno: str | None = None
    turno_laboral: str | None = None

    # Egresado
    anio_graduacion: str | None = None
    programa_grado: str | None = None
    titulo_obtenido: str | None = None
    correo_egresado: str | None = None

    # Personal de Servicios
    area: str | None = None
    turno: str | None = None
    numero_empleado: str | None = None

    # Becario / Pasante
    programa_beca: str | None = None
    fecha_inicio_beca: str | None = None
    fecha_fin_beca: str | None = None
    dependencia_asignada: str | None = None

    # Visitante
    razon_visita: str | None = None
    numero_tarjeta: str | None = None


class PersonaCreate(PersonaAtributos):
    """Payload for ``POST /api/save``.

    The identity fields, the personal email and the carnet are mandatory;
    every role-specific attribute is optional.
    """

    nombre: str = Field(..., min_length=1, max_length=150)
    apellido: str = Field(..., min_length=1, max_length=150)
    fecha_nacimiento: str = Field(..., min_length=1, max_length=20)
    id_institucional: str = Field(..., min_length=1, max_length=50)
    cedula: str = Field(..., min_length=1, max_length=30)
    rol_universidad: str = Field(..., min_length=1, max_length=50)
    correo_personal: str = Field(..., min_length=3, max_length=200)
    carnet: str = Field(..., min_length=1, max_length=50)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "nombre": "Laura",
                "apellido": "Gómez",
                "fechaNacimiento": "2003-05-14",
                "idInstitucional": "20231045",
                "cedula": "1107845123",
                "rolUniversidad": "Estudiante",
                "correoPersonal": "laura.gomez@gmail.com",
                "tieneCorreoInstitucional": "si",
                "correoInstitucional": "laura.gomez01@unicatolica.edu.co",
                "carnet": "A123",
                "carrera": "Ingeniería de Sistemas",
                "semestre": "5",
            }
        }
    )


class PersonaUpdate(PersonaAtributos):
    """Partial update for ``PUT /api/huellas/{id}``; omitted fields are kept."""

    nombre: str | None = Field(default=None, min_length=1, max_length=150)
    apellido: str | None = Field(default=None, min_length=1, max_length=150)
    cedula: str | None = Field(default=None, min_length=1, max_length=30)
    rol_universidad: str | None = Field(default=None, min_length=1, max_length=50)

    @field_validator("nombre", "apellido", "cedula", "rol_universidad")
    @classmethod
    def _not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("no puede ser nulo")
        return value


class VisitanteCreate(CamelModel):
    """Payload for ``POST /api/registrar-visitante``; every field is required."""

    nombre: str = Field(..., min_length=1, max_length=150)
    apellido: str = Field(..., min_length=1, max_length=150)
    cedula: str = Field(..., min_length=1, max_length=30)
    razon_visita: str = Field(..., min_length=1, max_length=500)
    numero_tarjeta: str = Field(..., min_length=1, max_length=50)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "nombre": "Carlos",
                "apellido": "Rivas",
                "cedula": "16789456",
                "razonVisita": "Reunión con decanatura",
                "numeroTarjeta": "V-017",
            }
        }
    )


class PersonaResponse(PersonaAtributos):
    """Public representation of a directory record."""

    id: int
    nombre: str
    apellido: str
    cedula: str
    rol_universidad: str
    fecha_expiracion: datetime | None = None
    fecha_registro: datetime | None = None


class PersonaGuardadaResponse(CamelModel):
    """Response of ``POST /api/save`` and ``PUT /api/huellas/{id}``."""

    message: str
    huella: PersonaResponse


class PersonaEncontradaResponse(CamelModel):
    """Response of ``GET /api/buscar-carnet/{carnet}``."""

    message: str
    persona: PersonaResponse


class PersonasPage(CamelModel):
    """One page of ``GET /api/personas``."""

    total: int
    page: int
    limit: int
    items: list[PersonaResponse]
