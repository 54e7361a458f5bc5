# hospidesk/api/errors.py
"""DeskError -> HTTP response."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from hospidesk.core.errors import (
    AuthError,
    BackendError,
    DeskError,
    FormValidationError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from hospidesk.core.logging import log_extra

log = logging.getLogger(__name__)

_STATUS = {
    FormValidationError: 422,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
    BackendError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_AUTH_STATUS = {
    "user-not-found": status.HTTP_401_UNAUTHORIZED,
    "invalid-credential": status.HTTP_401_UNAUTHORIZED,
    "email-already-in-use": status.HTTP_409_CONFLICT,
    "weak-password": status.HTTP_400_BAD_REQUEST,
    "invalid-email": status.HTTP_400_BAD_REQUEST,
    "operation-not-allowed": status.HTTP_403_FORBIDDEN,
}


def status_for(exc: DeskError) -> int:
    if isinstance(exc, AuthError):
        return _AUTH_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    for cls, code in _STATUS.items():
        if isinstance(exc, cls):
            return code
    return status.HTTP_400_BAD_REQUEST


async def desk_error_handler(request: Request, exc: DeskError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        log.error("backend failure: %s", exc, extra=log_extra(request))
    body = {"detail": exc.message}
    if isinstance(exc, AuthError):
        body["code"] = exc.code
    return JSONResponse(status_code=code, content=body)


def install(app: FastAPI) -> None:
    app.add_exception_handler(DeskError, desk_error_handler)
