"""Plain-text error responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from mockgpt.errors import MockAPIError


def error_text(status_code: int, message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code)


async def _mock_api_error_handler(request: Request, exc: MockAPIError) -> PlainTextResponse:
    return error_text(exc.status_code, exc.message)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MockAPIError, _mock_api_error_handler)  # type: ignore[arg-type]
