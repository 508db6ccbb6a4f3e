"""Persona model — registered individual ("huella") identified by a card."""

from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Persona(Base):
    """Person registered in the access-control directory.

    Regular members of the university carry a ``carnet``; visitors carry a
    temporary ``numero_tarjeta`` and an expiration date after which the
    visitor sweep deletes the record.

    Attributes:
        id: Primary key.
        nombre / apellido: Given name and surname.
        fecha_nacimiento: Birth date as captured by the registration form.
        id_institucional: Institutional identifier.
        cedula: National ID.
        rol_universidad: University role ("Estudiante", "Visitante", ...).
        correo_personal / correo_institucional: Contact emails.
        tiene_correo_institucional: "si" / "no" flag chosen in the form.
        carnet: Card number of regular persons.
        numero_tarjeta: Temporary card number of visitors.
        fecha_expiracion: Visitors only; the record is purged after it.
        fecha_registro: Registration timestamp.
    """

    __tablename__ = "persona"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre = Column(String(150), nullable=False)
    apellido = Column(String(150), nullable=False)
    fecha_nacimiento = Column(String(20), nullable=True)
    id_institucional = Column(String(50), nullable=True)
    cedula = Column(String(30), nullable=False)
    rol_universidad = Column(String(50), nullable=False)
    correo_personal = Column(String(200), nullable=True)
    tiene_correo_institucional = Column(String(2), nullable=True)  # "si" | "no"
    correo_institucional = Column(String(200), nullable=True)
    carnet = Column(String(50), nullable=True, index=True)

    # Estudiante
    carrera = Column(String(200), nullable=True)
    semestre = Column(String(20), nullable=True)
    tipo_matricula = Column(String(50), nullable=True)
    programa = Column(String(200), nullable=True)
    pertenece_semillero = Column(String(2), nullable=True)
    nombre_semillero = Column(String(200), nullable=True)
    tiene_proyecto_activo = Column(String(2), nullable=True)
    nombre_proyecto = Column(String(200), nullable=True)

    # Profesor / Docente
    departamento = Column(String(200), nullable=True)
    categoria_academica = Column(String(100), nullable=True)
    horario_atencion = Column(String(200), nullable=True)

    # Personal Administrativo
    dependencia = Column(String(200), nullable=True)
    cargo = Column(String(200), nullable=True)
    telefono_interno = Column(String(30), nullable=True)
    turno_laboral = Column(String(50), nullable=True)

    # Egresado
    anio_graduacion = Column(String(10), nullable=True)
    programa_grado = Column(String(200), nullable=True)
    titulo_obtenido = Column(String(200), nullable=True)
    correo_egresado = Column(String(200), nullable=True)

    # Personal de Servicios
    area = Column(String(200), nullable=True)
    turno = Column(String(50), nullable=True)
    numero_empleado = Column(String(50), nullable=True)

    # Becario / Pasante
    programa_beca = Column(String(200), nullable=True)
    fecha_inicio_beca = Column(String(20), nullable=True)
    fecha_fin_beca = Column(String(20), nullable=True)
    dependencia_asignada = Column(String(200), nullable=True)

    # Visitante
    razon_visita = Column(String(500), nullable=True)
    numero_tarjeta = Column(String(50), nullable=True, index=True)
    fecha_expiracion = Column(DateTime, nullable=True)

    fecha_registro = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    accesos = relationship("Acceso", back_populates="persona", lazy="select")

    __table_args__ = (
        Index("ix_persona_visitante_expiracion", "rol_universidad", "fecha_expiracion"),
    )

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellido}"

    @property
    def correo_destino(self) -> str | None:
        """Email the person prefers to be contacted at."""
        if self.tiene_correo_institucional == "si" and self.correo_institucional:
            return self.correo_institucional
        return self.correo_personal or self.correo_institucional
