# hospidesk/api/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hospidesk.api import errors
from hospidesk.api.routes import admin, auth, comments, health, tickets, users
from hospidesk.backend import Backend, create_backend
from hospidesk.core.config import settings
from hospidesk.core.logging import RequestIdMiddleware, setup_logging

log = logging.getLogger(__name__)


def create_app(backend: Optional[Backend] = None) -> FastAPI:
    """
    HTTP gateway over the same repositories the screens use. A caller-provided
    backend is used as is and left open; otherwise one is built from settings
    on startup and closed on shutdown.
    """
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "backend", None) is None
        if owned:
            app.state.backend = await create_backend(settings)
            log.info("gateway started (%s backend)", settings.backend)
        try:
            yield
        finally:
            if owned:
                await app.state.backend.close()
                app.state.backend = None

    app = FastAPI(
        title="HospiDesk",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.backend = backend

    # ==== Middlewares ====
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    errors.install(app)

    # ==== API under /api ====
    app.include_router(health.router,   prefix="/api",         tags=["health"])
    app.include_router(auth.router,     prefix="/api/auth",    tags=["auth"])
    app.include_router(users.router,    prefix="/api/users",   tags=["users"])
    app.include_router(tickets.router,  prefix="/api/tickets", tags=["tickets"])
    app.include_router(comments.router, prefix="/api/tickets", tags=["comments"])
    app.include_router(admin.router,    prefix="/api/admin",   tags=["admin"])

    return app


app = create_app()


def run() -> None:
    uvicorn.run("hospidesk.api.main:app", host=settings.host, port=settings.port, log_config=None)
