from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from hospidesk.backend import Backend
from hospidesk.schemas.users import UserProfile
from hospidesk.services.tickets import can_manage

# OAuth2 bearer (for /api/docs); the prefix /api comes from main.py
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_backend(request: Request) -> Backend:
    return request.app.state.backend


BackendDep = Annotated[Backend, Depends(get_backend)]


async def get_current_user(
    backend: BackendDep,
    token: Annotated[str, Depends(oauth2_scheme)],
) -> UserProfile:
    """
    Decodes the bearer JWT and loads the caller's profile. The role always
    comes from the profile document, never from the token.
    """
    try:
        principal = backend.identity().verify_token(token)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    profile = await backend.users.get_profile(principal.uid)
    if profile is None or profile.role is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User profile not found")
    return profile


UserDep = Annotated[UserProfile, Depends(get_current_user)]


def require_admin():
    """
    Admin-only routes.
    Example: @router.get(..., dependencies=[Depends(require_admin())])
    """

    async def _guard(current: UserDep) -> UserProfile:
        if not can_manage(current.role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current

    return _guard
