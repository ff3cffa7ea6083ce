"""
Natours Backend — Global Error Responder
=========================================

What:  The single terminal stage that turns any error into a client response.
Why:   Guards, the fallback route and domain handlers only raise; formatting
       in one place keeps the envelopes consistent and keeps internals out
       of production responses.
How:   ErrorResponder(mode) is an async callable usable both as a FastAPI
       exception handler and as the guard chain's error hook.
Who:   Registered by natours.main.register_exception_handlers.

Decision table:
    development                 → full detail: message, classification, stack
    production + operational    → status code and message as raised
    production + anything else  → 500 "Something went very wrong!",
                                  original logged server-side only

Framework errors are translated before the table applies:
    RequestValidationError → InvalidInputError (400, operational)
    HTTPException          → AppError with its status and detail

Envelope:
    /api paths and clients that don't accept text/html get JSON;
    browsers navigating the site get a rendered error page. The decision
    logic is identical for both.
"""

import html
import logging
import traceback
from typing import Dict, Optional

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response

from natours.config import Environment
from natours.exceptions import AppError, InvalidInputError
from natours.middleware.request_id import request_id_var
from natours.schemas.error import DevelopmentErrorResponse, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went very wrong!"
PAGE_TITLE = "Something went wrong!"
GENERIC_PAGE_MESSAGE = "Please try again later."

ERROR_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Natours | {title}</title></head>
<body>
<main class="main">
<div class="error">
<div class="error__title"><h2 class="heading-secondary heading-secondary--error">{title}</h2></div>
<div class="error__msg">{message}</div>
</div>
</main>
</body>
</html>
"""


def translate_error(exc: Exception) -> Exception:
    """Maps framework exceptions onto AppError; everything else is returned as-is."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, RequestValidationError):
        details = ". ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return InvalidInputError(f"Invalid input data. {details}".strip())
    if isinstance(exc, StarletteHTTPException):
        return AppError(str(exc.detail), exc.status_code, headers=exc.headers)
    return exc


def wants_html(request: Request) -> bool:
    if request.url.path == "/api" or request.url.path.startswith("/api/"):
        return False
    return "text/html" in request.headers.get("accept", "")


def render_error_page(message: str, status_code: int, headers: Optional[Dict[str, str]] = None) -> HTMLResponse:
    page = ERROR_PAGE_TEMPLATE.format(title=html.escape(PAGE_TITLE), message=html.escape(message))
    return HTMLResponse(page, status_code=status_code, headers=headers)


class ErrorResponder:
    """
    Converts errors into responses according to the runtime mode.

    Args:
        mode: Environment.DEVELOPMENT or Environment.PRODUCTION
    """

    def __init__(self, mode: Environment):
        self.mode = mode

    async def __call__(self, request: Request, exc: Exception) -> Response:
        error = translate_error(exc)
        self._log(request, error, exc)
        if self.mode == Environment.DEVELOPMENT:
            return self._send_development(request, error, exc)
        return self._send_production(request, error)

    def _log(self, request: Request, error: Exception, original: Exception) -> None:
        rid = request_id_var.get("")
        if isinstance(error, AppError):
            logger.warning(
                "[%s] %s %s failed with %d: %s",
                rid,
                request.method,
                request.url.path,
                error.status_code,
                error.message,
            )
        else:
            # Full stack trace stays server-side
            logger.error(
                "[%s] Unexpected error on %s %s: %s",
                rid,
                request.method,
                request.url.path,
                str(original),
                exc_info=(type(original), original, original.__traceback__),
            )

    def _send_development(self, request: Request, error: Exception, original: Exception) -> Response:
        if isinstance(error, AppError):
            status_code, status, message, headers = (
                error.status_code,
                error.status,
                error.message,
                error.headers,
            )
        else:
            status_code, status, message, headers = 500, "error", str(error), {}

        if wants_html(request):
            return render_error_page(message, status_code, headers)

        body = DevelopmentErrorResponse(
            status=status,
            message=message,
            error=ErrorDetail(
                name=type(original).__name__,
                status_code=status_code,
                status=status,
                is_operational=isinstance(error, AppError),
                request_id=request_id_var.get("") or None,
            ),
            stack="".join(
                traceback.format_exception(type(original), original, original.__traceback__)
            ),
        )
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(by_alias=True),
            headers=headers,
        )

    def _send_production(self, request: Request, error: Exception) -> Response:
        if isinstance(error, AppError):
            if wants_html(request):
                return render_error_page(error.message, error.status_code, error.headers)
            return JSONResponse(
                status_code=error.status_code,
                content=ErrorResponse(status=error.status, message=error.message).model_dump(),
                headers=error.headers,
            )

        if wants_html(request):
            return render_error_page(GENERIC_PAGE_MESSAGE, 500)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(status="error", message=GENERIC_MESSAGE).model_dump(),
        )
