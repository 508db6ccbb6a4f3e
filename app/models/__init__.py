"""SQLAlchemy models package for the access-control backend.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.

Usage from other modules:
    from app.models import Acceso, Persona
"""

# Directory
from app.models.persona import Persona  # noqa: F401

# Attendance sessions (FK → persona)
from app.models.acceso import Acceso  # noqa: F401

# Accounts
from app.models.usuario import Usuario  # noqa: F401

__all__ = [
    "Persona",
    "Acceso",
    "Usuario",
]
