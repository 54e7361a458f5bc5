# hospidesk/services/auth.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from hospidesk.core.config import settings
from hospidesk.core.errors import AuthError
from hospidesk.identity.base import IdentityProvider, Principal
from hospidesk.schemas.auth import LoginIn, RegisterIn
from hospidesk.services.repository import UserRepository, validate_form

log = logging.getLogger(__name__)


async def sign_in(identity: IdentityProvider, form: Union[LoginIn, Mapping[str, Any]]) -> Principal:
    payload = validate_form(LoginIn, form, "Por favor ingresa tu correo y contraseña.")
    kwargs = {"remember_me": True} if payload.remember_me else {}
    return await identity.sign_in(payload.email, payload.password, **kwargs)


async def register_user(
    identity: IdentityProvider,
    users: UserRepository,
    form: Union[RegisterIn, Mapping[str, Any]],
) -> Principal:
    """
    Self-registration: account in the identity provider, then the profile
    document with role=patient. Between the two steps the session resolver
    sees a principal without profile and stays signed out.
    """
    payload = validate_form(RegisterIn, form, "Por favor completa todos los campos obligatorios.")
    if not settings.allow_self_signup:
        log.warning("self-registration is disabled")
        raise AuthError("operation-not-allowed")
    principal = await identity.sign_up(payload.email, payload.password)
    await users.create_profile(principal, name=payload.name, sector=payload.sector)
    return principal
