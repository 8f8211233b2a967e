"""Request correlation and access logging, plus CORS for the admin UI."""

import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from school_admin.core.config import Settings

logger = logging.getLogger("school_admin.http")

REQUEST_ID_HEADER = "X-Request-Id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Correlate a request with its log lines.

    A caller-supplied ``X-Request-Id`` is kept so the admin UI can match its
    own traces; otherwise a fresh id is minted. 401 and 403 responses are
    logged at WARNING so refused access stands out from normal traffic.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

        level = logging.WARNING if response.status_code in (401, 403) else logging.INFO
        logger.log(
            level, "[%s] %s %s -> %s (%sms)",
            request_id, request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestIdMiddleware)
