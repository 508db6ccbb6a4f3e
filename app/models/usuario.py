"""Usuario model — login account with role-based access control."""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class Usuario(Base):
    """System account used to operate the access-control application.

    Roles:
        - admin: Full system access, user and directory management.
        - lector: Card reader operator (scans, visitor registration).

    The same person may hold one account per role, never two accounts in
    the same role: national ID and both emails are unique per role.

    Attributes:
        id: Primary key.
        nombre / apellido: Account holder name.
        fecha_nacimiento: Birth date as captured by the registration form.
        id_institucional: Institutional identifier.
        cedula: National ID.
        rol_universidad: University role of the account holder.
        correo_personal: Personal email (required).
        correo_institucional: Institutional email, used to log in.
        password_hash: Bcrypt-hashed password (never store plain text).
        role: "admin" or "lector".
        reset_password_token: Pending password recovery token.
        reset_password_expires: Expiration of ``reset_password_token``.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "usuario"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre = Column(String(150), nullable=False)
    apellido = Column(String(150), nullable=False)
    fecha_nacimiento = Column(String(20), nullable=True)
    id_institucional = Column(String(50), nullable=True)
    cedula = Column(String(30), nullable=False)
    rol_universidad = Column(String(50), nullable=True)
    correo_personal = Column(String(200), nullable=False)
    correo_institucional = Column(String(200), nullable=True)
    password_hash = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False)  # "admin" | "lector"
    reset_password_token = Column(String(100), nullable=True, index=True)
    reset_password_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("cedula", "role", name="uq_usuario_cedula_role"),
        UniqueConstraint("correo_personal", "role", name="uq_usuario_correo_personal_role"),
        UniqueConstraint(
            "correo_institucional", "role", name="uq_usuario_correo_institucional_role"
        ),
    )

    @property
    def correo_destino(self) -> str:
        return self.correo_institucional or self.correo_personal
