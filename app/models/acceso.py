"""Acceso model — one entry/exit attendance session per card and day."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Time, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Acceso(Base):
    """Attendance session opened by an entry scan and closed by an exit scan.

    Person fields are denormalised so that the history keeps its labels after
    a visitor record has been purged.

    Attributes:
        id: Primary key (also the creation order used for tie-breaks).
        persona_id: FK to Persona; set to NULL when the person is deleted.
        tarjeta: Card identifier that was scanned.
        nombre: Snapshot of "nombre apellido".
        rol_universidad: Snapshot of the person's role.
        carnet / numero_tarjeta: Snapshot of both card fields.
        fecha: Calendar date of the session.
        hora_entrada: Entry time (second precision).
        hora_salida: Exit time; NULL while the session is open.
    """

    __tablename__ = "acceso"

    id = Column(Integer, primary_key=True, autoincrement=True)
    persona_id = Column(
        Integer, ForeignKey("persona.id", ondelete="SET NULL"), nullable=True
    )
    tarjeta = Column(String(50), nullable=False)
    nombre = Column(String(300), nullable=False)
    rol_universidad = Column(String(50), nullable=True)
    carnet = Column(String(50), nullable=True, index=True)
    numero_tarjeta = Column(String(50), nullable=True, index=True)
    fecha = Column(Date, nullable=False, index=True)
    hora_entrada = Column(Time, nullable=False)
    hora_salida = Column(Time, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    persona = relationship("Persona", back_populates="accesos", lazy="select")

    __table_args__ = (
        # At most one open session per person and day.
        Index(
            "uq_acceso_abierto_por_dia",
            "persona_id",
            "fecha",
            unique=True,
            postgresql_where=text("hora_salida IS NULL"),
            sqlite_where=text("hora_salida IS NULL"),
        ),
    )
