# hospidesk/core/errors.py
"""
Error taxonomy.

Every error is scoped to the screen/action that triggered it; nothing here is
fatal to the application. The API layer maps these to HTTP status codes
(see hospidesk.api.errors).
"""

from __future__ import annotations

import logging

log = logging.getLogger(__name__)


class DeskError(Exception):
    """Base class for all application errors."""

    message = "Ocurrió un error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class FormValidationError(DeskError):
    """Missing/invalid form input, detected before any backend call."""

    message = "Por favor completa todos los campos obligatorios."


class PermissionDenied(DeskError):
    message = "No tienes permisos para realizar esta acción."


class InvalidTransition(DeskError):
    message = "Cambio de estado no permitido."


class NotFound(DeskError):
    message = "El documento no existe."


class BackendError(DeskError):
    """Store/network failure on read or write."""

    message = "Error de comunicación con el servidor."


# ==== Authentication ====

# backend error code -> user-facing message
AUTH_INVALID_CREDENTIALS = "Correo o contraseña incorrectos."
AUTH_EMAIL_IN_USE = "El correo electrónico ya está en uso."
AUTH_WEAK_PASSWORD = "La contraseña debe tener al menos 6 caracteres."
AUTH_GENERIC = "Revisa tus credenciales o intenta más tarde."

_AUTH_MESSAGES = {
    "user-not-found": AUTH_INVALID_CREDENTIALS,
    "invalid-credential": AUTH_INVALID_CREDENTIALS,
    "email-already-in-use": AUTH_EMAIL_IN_USE,
    "weak-password": AUTH_WEAK_PASSWORD,
}


def auth_error_message(code: str) -> str:
    msg = _AUTH_MESSAGES.get(code)
    if msg is None:
        log.info("unmapped auth error code: %s", code)
        return AUTH_GENERIC
    return msg


class AuthError(DeskError):
    """Identity backend error; `code` is the backend's error code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(auth_error_message(code))
