"""
Application-wide constants for the access-control system.

Defines account roles, university roles, session kinds, and the
role-specific content used by the notification templates.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Account roles
# ---------------------------------------------------------------------------

ROLE_ADMIN: Final[str] = "admin"
ROLE_LECTOR: Final[str] = "lector"

ROLES: Final[list[str]] = [ROLE_ADMIN, ROLE_LECTOR]

# ---------------------------------------------------------------------------
# University roles (Persona.rol_universidad)
# ---------------------------------------------------------------------------

ROL_VISITANTE: Final[str] = "Visitante"

ROLES_UNIVERSIDAD: Final[list[str]] = [
    "Estudiante",
    "Profesor / Docente",
    "Personal Administrativo",
    "Egresado",
    "Personal de Servicios",
    "Becario / Pasante",
    "Colaborador Externo",
    ROL_VISITANTE,
]

# ---------------------------------------------------------------------------
# Access session kinds
# ---------------------------------------------------------------------------

TIPO_ENTRADA: Final[str] = "entrada"
TIPO_SALIDA: Final[str] = "salida"

TIPOS_ACCESO: Final[list[str]] = [TIPO_ENTRADA, TIPO_SALIDA]

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

DEFAULT_PAGE_LIMIT: Final[int] = 10
MAX_PAGE_LIMIT: Final[int] = 200

# ---------------------------------------------------------------------------
# Notification content: account roles
# ---------------------------------------------------------------------------

CONTENIDO_ROL_CUENTA: Final[dict[str, dict]] = {
    ROLE_ADMIN: {
        "titulo": "Administrador del Sistema",
        "capacidades": [
            "Acceso completo al panel de administración",
            "Registro y gestión de nuevos usuarios",
            "Registro de personas en el sistema",
            "Visualización y gestión de todos los registros",
            "Acceso al historial completo de entradas y salidas",
            "Exportación de datos e informes",
            "Gestión de visitantes y accesos temporales",
        ],
        "responsabilidades": [
            "Mantener la seguridad y confidencialidad de los datos",
            "Gestionar y actualizar la información de usuarios",
            "Supervisar y auditar los registros de acceso",
            "Asegurar el correcto funcionamiento del sistema",
            "Brindar soporte a los usuarios lectores",
            "Mantener actualizada la base de datos",
        ],
    },
    ROLE_LECTOR: {
        "titulo": "Lector del Sistema",
        "capacidades": [
            "Registro de entradas y salidas",
            "Verificación de identidad de usuarios",
            "Registro de visitantes",
            "Visualización de información básica de usuarios",
            "Gestión de accesos temporales",
        ],
        "responsabilidades": [
            "Verificar la identidad de las personas que ingresan",
            "Mantener el control de acceso actualizado",
            "Registrar correctamente las entradas y salidas",
            "Gestionar apropiadamente el acceso de visitantes",
            "Reportar cualquier anomalía al administrador",
        ],
    },
}

# ---------------------------------------------------------------------------
# Notification content: university roles (person welcome email)
# ---------------------------------------------------------------------------

CAMPOS_BIENVENIDA_POR_ROL: Final[dict[str, list[tuple[str, str]]]] = {
    "Estudiante": [("carrera", "Carrera"), ("semestre", "Semestre")],
    "Profesor / Docente": [("departamento", "Departamento")],
    "Personal Administrativo": [("dependencia", "Dependencia"), ("cargo", "Cargo")],
    "Egresado": [("programa_grado", "Programa"), ("anio_graduacion", "Año de graduación")],
    "Personal de Servicios": [("area", "Área"), ("turno", "Turno")],
    "Becario / Pasante": [("programa_beca", "Programa de beca")],
    ROL_VISITANTE: [("razon_visita", "Razón de la visita")],
}
