"""
Notification dispatcher — transactional emails of the access-control system.

One dispatcher serves every entry point: account welcome, person welcome,
access (entry/exit) notices, and password recovery. Role-specific wording
lives as data in ``app.utils.constants``; this module only renders it.

Delivery is best-effort. Every ``notify_*`` method returns ``True`` when the
message was handed to the SMTP server and ``False`` otherwise, logging the
failure. Callers never see an exception from here, so a failed email can
not undo a committed registration or scan.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from functools import lru_cache
from html import escape

from app.config import Settings, get_settings
from app.utils.constants import (
    CAMPOS_BIENVENIDA_POR_ROL,
    CONTENIDO_ROL_CUENTA,
    ROLE_LECTOR,
    TIPO_ENTRADA,
)

logger = logging.getLogger(__name__)

_PIE = (
    '<p style="color: #7f8c8d; font-size: 12px;">'
    "Este es un correo automático del Sistema de Control de Acceso. "
    "Por favor, no responda a este mensaje.</p>"
)


def _lista(items: list[str]) -> str:
    return "".join(f"<li>{escape(item)}</li>" for item in items)


def _envolver(cuerpo: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"{cuerpo}{_PIE}</div>"
    )


# ---------------------------------------------------------------------------
# Templates: pure functions returning (subject, html)
# ---------------------------------------------------------------------------


def render_bienvenida_cuenta(usuario, password_original: str) -> tuple[str, str]:
    contenido = CONTENIDO_ROL_CUENTA.get(usuario.role, CONTENIDO_ROL_CUENTA[ROLE_LECTOR])
    titulo = contenido["titulo"]
    asunto = f"Registro Exitoso como {titulo} - Sistema de Control de Acceso"
    cuerpo = (
        f'<h2 style="color: #2c3e50;">Registro como {escape(titulo)}</h2>'
        f"<p>Estimado(a) <strong>{escape(usuario.nombre)} {escape(usuario.apellido)}</strong>,</p>"
        "<p>Su registro en el sistema ha sido completado exitosamente.</p>"
        "<h3>Detalles de su cuenta:</h3><ul>"
        f"<li><strong>Rol:</strong> {escape(usuario.rol_universidad or '')}</li>"
        f"<li><strong>ID Institucional:</strong> {escape(usuario.id_institucional or '')}</li>"
        f"<li><strong>Correo:</strong> {escape(usuario.correo_destino)}</li>"
        f"<li><strong>Contraseña:</strong> {escape(password_original)}</li></ul>"
        f"<h3>Sus capacidades incluyen:</h3><ul>{_lista(contenido['capacidades'])}</ul>"
        f"<h3>Sus responsabilidades son:</h3><ul>{_lista(contenido['responsabilidades'])}</ul>"
        "<p><strong>Importante:</strong> Por seguridad, le recomendamos cambiar su "
        "contraseña después del primer inicio de sesión.</p>"
    )
    return asunto, _envolver(cuerpo)


def render_bienvenida_persona(persona) -> tuple[str, str]:
    asunto = "¡Bienvenido/a a Unicatólica! Registro exitoso en el sistema de control de acceso"
    detalles = [
        ("Rol", persona.rol_universidad),
        ("ID Institucional", persona.id_institucional),
        ("Número de Carnet", persona.carnet or persona.numero_tarjeta),
    ]
    for campo, etiqueta in CAMPOS_BIENVENIDA_POR_ROL.get(persona.rol_universidad, []):
        detalles.append((etiqueta, getattr(persona, campo, None)))
    filas = "".join(
        f"<li><strong>{escape(etiqueta)}:</strong> {escape(str(valor))}</li>"
        for etiqueta, valor in detalles
        if valor
    )
    cuerpo = (
        f'<h2 style="color: #2c3e50;">¡Bienvenido/a, {escape(persona.nombre_completo)}!</h2>'
        "<p>Nos complace informarte que tu registro en el sistema de control de "
        "acceso de Unicatólica ha sido realizado con éxito.</p>"
        f"<h3>Tus datos principales:</h3><ul>{filas}</ul>"
        "<p>Recuerda que tu carnet es personal e intransferible. Por favor, "
        "preséntalo siempre al ingresar y salir de la institución.</p>"
    )
    return asunto, _envolver(cuerpo)


def render_acceso(acceso, tipo: str) -> tuple[str, str]:
    hora = acceso.hora_entrada if tipo == TIPO_ENTRADA else acceso.hora_salida
    asunto = f"Registro de {tipo} - Sistema de Control de Acceso"
    cuerpo = (
        f'<h2 style="color: #2c3e50;">Registro de {escape(tipo)}</h2>'
        f"<p>Se ha registrado su {escape(tipo)} en el sistema.</p>"
        "<p><strong>Detalles del acceso:</strong></p><ul>"
        f"<li>Nombre: {escape(acceso.nombre)}</li>"
        f"<li>Fecha: {acceso.fecha.isoformat()}</li>"
        f"<li>Hora: {hora.strftime('%H:%M:%S') if hora else ''}</li></ul>"
    )
    return asunto, _envolver(cuerpo)


def render_recuperacion(usuario, token: str, frontend_url: str, minutos: int) -> tuple[str, str]:
    enlace = f"{frontend_url}/reset-password?token={token}"
    asunto = "Recuperación de Contraseña - Sistema de Control de Acceso"
    cuerpo = (
        '<h2 style="color: #2c3e50;">Recuperación de Contraseña</h2>'
        f"<p>Estimado(a) {escape(usuario.nombre)} {escape(usuario.apellido)},</p>"
        "<p>Hemos recibido una solicitud para restablecer su contraseña.</p>"
        f"<p>Su token de recuperación es: <strong>{escape(token)}</strong></p>"
        f'<p><a href="{escape(enlace)}">Restablecer Contraseña</a></p>'
        f"<p>Este token expirará en {minutos} minutos.</p>"
        "<p>Si no solicitó este cambio, por favor ignore este correo.</p>"
    )
    return asunto, _envolver(cuerpo)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class NotificationDispatcher:
    """Sends the rendered templates through SMTP.

    When ``EMAIL_ENABLED`` is false every message is logged and dropped,
    which is the default for development and tests.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def notify_account_welcome(self, usuario, password_original: str) -> bool:
        return self._deliver(
            usuario.correo_destino, render_bienvenida_cuenta, usuario, password_original
        )

    def notify_person_welcome(self, persona) -> bool:
        return self._deliver(persona.correo_destino, render_bienvenida_persona, persona)

    def notify_access(self, acceso, tipo: str, destinatario: str | None) -> bool:
        return self._deliver(destinatario, render_acceso, acceso, tipo)

    def notify_password_reset(self, usuario, token: str) -> bool:
        return self._deliver(
            usuario.correo_destino,
            render_recuperacion,
            usuario,
            token,
            self._settings.FRONTEND_URL,
            self._settings.RESET_TOKEN_EXPIRATION_MINUTES,
        )

    def _deliver(self, destinatario: str | None, render, *args) -> bool:
        try:
            asunto, html = render(*args)
        except Exception:
            logger.exception("Could not render notification with %s", render.__name__)
            return False
        return self._send(destinatario, asunto, html)

    def _send(self, destinatario: str | None, asunto: str, html: str) -> bool:
        if not destinatario:
            logger.info("Notification skipped, no recipient: subject='%s'", asunto)
            return False
        if not self._settings.EMAIL_ENABLED:
            logger.info("Email disabled; would send '%s' to %s", asunto, destinatario)
            return False

        message = EmailMessage()
        message["Subject"] = asunto
        message["From"] = self._settings.EMAIL_FROM
        message["To"] = destinatario
        message.set_content("Este mensaje requiere un cliente de correo con soporte HTML.")
        message.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(
                self._settings.SMTP_HOST, self._settings.SMTP_PORT, timeout=15
            ) as smtp:
                if self._settings.SMTP_USE_TLS:
                    smtp.starttls()
                if self._settings.SMTP_USER:
                    smtp.login(self._settings.SMTP_USER, self._settings.SMTP_PASSWORD)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Could not send '%s' to %s: %s", asunto, destinatario, exc)
            return False

        logger.info("Email '%s' sent to %s", asunto, destinatario)
        return True


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency returning the process-wide dispatcher."""
    return NotificationDispatcher(get_settings())
