# hospidesk/core/logging.py
import logging
import logging.config
import time
import uuid
from typing import Any, Mapping

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

log = logging.getLogger("hospidesk.http")


class _RequestIdDefault(logging.Filter):
    """Screens and scripts log outside any request: keep the format valid."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    """One logging config for the gateway, the client screens, the scripts and Uvicorn."""
    fmt = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": _RequestIdDefault},
        },
        "formatters": {
            "plain": {"format": fmt},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "filters": ["request_id"],
            },
        },
        "loggers": {
            "": {"handlers": ["default"], "level": level},
            "hospidesk": {"level": level},
            # SQL echo only when asked for explicitly
            "sqlalchemy.engine": {"level": "WARNING"},
            "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    })


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (the caller's X-Request-ID, or a new one),
    echoes it back and writes one access line per request carrying it.
    Replaces uvicorn's access log, which knows nothing about the id.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        log.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={"request_id": request_id},
        )
        return response


def log_extra(request: Request) -> Mapping[str, Any]:
    """extra= for route logs, e.g. log.info("ticket created", extra=log_extra(request))"""
    rid = getattr(request.state, "request_id", None)
    return {"request_id": rid} if rid else {}
