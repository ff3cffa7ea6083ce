"""
Body size guard, body parsers and cookie parser.

JSON and form-encoded bodies are size-checked before they are parsed:
first against the declared Content-Length, then against a running count of
the bytes received (chunked uploads declare nothing). Reading stops at the
first chunk that crosses the limit. Other content types are left
unread for the route groups to handle.
"""

import json
from typing import Any, Dict, Optional

from starlette.datastructures import QueryParams
from starlette.requests import Request
from starlette.responses import Response

from natours.exceptions import MalformedBodyError, PayloadTooLargeError
from natours.middleware.pipeline import GuardContext, collect_multi_items


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def detect_body_kind(content_type: str) -> Optional[str]:
    """Maps a Content-Type header to "json", "form" or None (not parsed here)."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == "application/json" or media_type.endswith("+json"):
        return "json"
    if media_type == FORM_CONTENT_TYPE:
        return "form"
    return None


def parse_json_body(raw: bytes) -> Any:
    """Strict JSON parsing: only objects and arrays are accepted at the top level."""
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise MalformedBodyError(f"Invalid JSON body: {exc}") from exc
    if not isinstance(parsed, (dict, list)):
        raise MalformedBodyError("JSON body must be an object or an array.")
    return parsed


def parse_form_body(raw: bytes) -> Dict[str, Any]:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedBodyError("Form body is not valid UTF-8.") from exc
    return collect_multi_items(QueryParams(text).multi_items())


class BodyParserGuard:
    """Rejects oversized JSON/form bodies, then parses them into `ctx.body`."""

    def __init__(self, limit_bytes: int):
        self.limit_bytes = limit_bytes

    def _check_declared_length(self, request: Request) -> None:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.limit_bytes:
            raise PayloadTooLargeError(self.limit_bytes)

    async def read_limited(self, request: Request) -> bytes:
        """Streams the body, raising PayloadTooLargeError as soon as it passes the limit."""
        chunks = []
        received = 0
        async for chunk in request.stream():
            received += len(chunk)
            if received > self.limit_bytes:
                raise PayloadTooLargeError(self.limit_bytes)
            chunks.append(chunk)
        raw = b"".join(chunks)
        # Downstream receivers get the body replayed from the cache
        request._body = raw
        return raw

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        kind = detect_body_kind(request.headers.get("content-type", ""))
        if kind is None:
            return None

        self._check_declared_length(request)
        raw = await self.read_limited(request)

        ctx.body_kind = kind
        ctx.body = parse_json_body(raw) if kind == "json" else parse_form_body(raw)
        return None


class CookieParserGuard:
    """Copies the parsed Cookie header onto the context."""

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        ctx.cookies = dict(request.cookies)
        return None
