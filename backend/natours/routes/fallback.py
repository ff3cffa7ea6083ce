"""
Not-found fallback.

Registered after every route group, for every method. It never writes a
response itself: it raises a 404 AppError for the error responder.
"""

from fastapi import FastAPI, Request

from natours.exceptions import NotFoundError

FALLBACK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def original_url(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


async def not_found(request: Request) -> None:
    raise NotFoundError(f"Can't find {original_url(request)} on this server!")


def register_fallback(app: FastAPI) -> None:
    app.add_api_route(
        "/{full_path:path}",
        not_found,
        methods=FALLBACK_METHODS,
        include_in_schema=False,
    )
