"""initial_schema

Crea las tablas persona, acceso y usuario.

El índice parcial uq_acceso_abierto_por_dia garantiza como máximo una
sesión abierta (hora_salida IS NULL) por persona y día.

Revision ID: 3c7d1e9a4f20
Revises:
Create Date: 2025-03-03 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c7d1e9a4f20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'persona',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nombre', sa.String(length=150), nullable=False),
        sa.Column('apellido', sa.String(length=150), nullable=False),
        sa.Column('fecha_nacimiento', sa.String(length=20), nullable=True),
        sa.Column('id_institucional', sa.String(length=50), nullable=True),
        sa.Column('cedula', sa.String(length=30), nullable=False),
        sa.Column('rol_universidad', sa.String(length=50), nullable=False),
        sa.Column('correo_personal', sa.String(length=200), nullable=True),
        sa.Column('tiene_correo_institucional', sa.String(length=2), nullable=True),
        sa.Column('correo_institucional', sa.String(length=200), nullable=True),
        sa.Column('carnet', sa.String(length=50), nullable=True),
        # Estudiante
        sa.Column('carrera', sa.String(length=200), nullable=True),
        sa.Column('semestre', sa.String(length=20), nullable=True),
        sa.Column('tipo_matricula', sa.String(length=50), nullable=True),
        sa.Column('programa', sa.String(length=200), nullable=True),
        sa.Column('pertenece_semillero', sa.String(length=2), nullable=True),
        sa.Column('nombre_semillero', sa.String(length=200), nullable=True),
        sa.Column('tiene_proyecto_activo', sa.String(length=2), nullable=True),
        sa.Column('nombre_proyecto', sa.String(length=200), nullable=True),
        # Profesor / Docente
        sa.Column('departamento', sa.String(length=200), nullable=True),
        sa.Column('categoria_academica', sa.String(length=100), nullable=True),
        sa.Column('horario_atencion', sa.String(length=200), nullable=True),
        # Personal Administrativo
        sa.Column('dependencia', sa.String(length=200), nullable=True),
        sa.Column('cargo', sa.String(length=200), nullable=True),
        sa.Column('telefono_interno', sa.String(length=30), nullable=True),
        sa.Column('turno_laboral', sa.String(length=50), nullable=True),
        # Egresado
        sa.Column('anio_graduacion', sa.String(length=10), nullable=True),
        sa.Column('programa_grado', sa.String(length=200), nullable=True),
        sa.Column('titulo_obtenido', sa.String(length=200), nullable=True),
        sa.Column('correo_egresado', sa.String(length=200), nullable=True),
        # Personal de Servicios
        sa.Column('area', sa.String(length=200), nullable=True),
        sa.Column('turno', sa.String(length=50), nullable=True),
        sa.Column('numero_empleado', sa.String(length=50), nullable=True),
        # Becario / Pasante
        sa.Column('programa_beca', sa.String(length=200), nullable=True),
        sa.Column('fecha_inicio_beca', sa.String(length=20), nullable=True),
        sa.Column('fecha_fin_beca', sa.String(length=20), nullable=True),
        sa.Column('dependencia_asignada', sa.String(length=200), nullable=True),
        # Visitante
        sa.Column('razon_visita', sa.String(length=500), nullable=True),
        sa.Column('numero_tarjeta', sa.String(length=50), nullable=True),
        sa.Column('fecha_expiracion', sa.DateTime(), nullable=True),
        sa.Column('fecha_registro', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_persona_carnet', 'persona', ['carnet'])
    op.create_index('ix_persona_numero_tarjeta', 'persona', ['numero_tarjeta'])
    op.create_index(
        'ix_persona_visitante_expiracion', 'persona', ['rol_universidad', 'fecha_expiracion']
    )

    op.create_table(
        'acceso',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('persona_id', sa.Integer(), nullable=True),
        sa.Column('tarjeta', sa.String(length=50), nullable=False),
        sa.Column('nombre', sa.String(length=300), nullable=False),
        sa.Column('rol_universidad', sa.String(length=50), nullable=True),
        sa.Column('carnet', sa.String(length=50), nullable=True),
        sa.Column('numero_tarjeta', sa.String(length=50), nullable=True),
        sa.Column('fecha', sa.Date(), nullable=False),
        sa.Column('hora_entrada', sa.Time(), nullable=False),
        sa.Column('hora_salida', sa.Time(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['persona_id'], ['persona.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_acceso_carnet', 'acceso', ['carnet'])
    op.create_index('ix_acceso_numero_tarjeta', 'acceso', ['numero_tarjeta'])
    op.create_index('ix_acceso_fecha', 'acceso', ['fecha'])
    op.create_index(
        'uq_acceso_abierto_por_dia',
        'acceso',
        ['persona_id', 'fecha'],
        unique=True,
        postgresql_where=sa.text('hora_salida IS NULL'),
        sqlite_where=sa.text('hora_salida IS NULL'),
    )

    op.create_table(
        'usuario',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nombre', sa.String(length=150), nullable=False),
        sa.Column('apellido', sa.String(length=150), nullable=False),
        sa.Column('fecha_nacimiento', sa.String(length=20), nullable=True),
        sa.Column('id_institucional', sa.String(length=50), nullable=True),
        sa.Column('cedula', sa.String(length=30), nullable=False),
        sa.Column('rol_universidad', sa.String(length=50), nullable=True),
        sa.Column('correo_personal', sa.String(length=200), nullable=False),
        sa.Column('correo_institucional', sa.String(length=200), nullable=True),
        sa.Column('password_hash', sa.String(length=200), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('reset_password_token', sa.String(length=100), nullable=True),
        sa.Column('reset_password_expires', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cedula', 'role', name='uq_usuario_cedula_role'),
        sa.UniqueConstraint('correo_personal', 'role', name='uq_usuario_correo_personal_role'),
        sa.UniqueConstraint(
            'correo_institucional', 'role', name='uq_usuario_correo_institucional_role'
        ),
    )
    op.create_index('ix_usuario_reset_password_token', 'usuario', ['reset_password_token'])


def downgrade() -> None:
    op.drop_index('ix_usuario_reset_password_token', table_name='usuario')
    op.drop_table('usuario')

    op.drop_index('uq_acceso_abierto_por_dia', table_name='acceso')
    op.drop_index('ix_acceso_fecha', table_name='acceso')
    op.drop_index('ix_acceso_numero_tarjeta', table_name='acceso')
    op.drop_index('ix_acceso_carnet', table_name='acceso')
    op.drop_table('acceso')

    op.drop_index('ix_persona_visitante_expiracion', table_name='persona')
    op.drop_index('ix_persona_numero_tarjeta', table_name='persona')
    op.drop_index('ix_persona_carnet', table_name='persona')
    op.drop_table('persona')
