"""X-Request-ID propagation and request-scoped log tagging."""

from __future__ import annotations

import logging
import random
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mockgpt.utils import request_id as mint_request_id

# "-" outside of a request (startup, background summary task)
current_request_id: ContextVar[str] = ContextVar("mockgpt_request_id", default="-")


class RequestIDLogFilter(logging.Filter):
    """Stamp every record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id.get()
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: object, rng: random.Random | None = None) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self.rng = rng

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or mint_request_id(self.rng)
        request.state.request_id = request_id
        token = current_request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            current_request_id.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response
