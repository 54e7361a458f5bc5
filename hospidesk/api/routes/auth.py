# hospidesk/api/routes/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status

from hospidesk.api.deps import BackendDep, UserDep
from hospidesk.core.logging import log_extra
from hospidesk.schemas.auth import LoginIn, RegisterIn, TokenOut
from hospidesk.schemas.users import UserProfile
from hospidesk.services.auth import register_user, sign_in

router = APIRouter()
log = logging.getLogger(__name__)


# ===== login / me =====

@router.post("/login", response_model=TokenOut)
async def login(payload: LoginIn, backend: BackendDep, request: Request):
    identity = backend.identity()
    principal = await sign_in(identity, payload)

    profile = await backend.users.get_profile(principal.uid)
    if profile is None or profile.role is None:
        # account without a usable profile: same as signed out
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Perfil de usuario no disponible",
        )

    log.info("login %s", principal.uid, extra=log_extra(request))
    return TokenOut(access_token=principal.token, user=profile)


@router.get("/me", response_model=UserProfile)
async def me(current: UserDep):
    return current


# ===== register (always role=patient) =====

@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn, backend: BackendDep, request: Request):
    identity = backend.identity()
    principal = await register_user(identity, backend.users, payload)
    profile = await backend.users.get_profile(principal.uid)
    log.info("registered %s", principal.uid, extra=log_extra(request))
    return TokenOut(access_token=principal.token, user=profile)
