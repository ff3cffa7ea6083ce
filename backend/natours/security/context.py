"""
Request context decorator.

Stamps each request once with the time it passed the guard chain, in the
ISO-8601 form clients already parse (`2024-01-15T12:00:00.000Z`).
Handlers report it back as `requestedAt`.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from starlette.requests import Request
from starlette.responses import Response

from natours.middleware.pipeline import GuardContext


def format_request_time(moment: datetime) -> str:
    """UTC, millisecond precision, "Z" suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestTimeGuard:
    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        if ctx.request_time is None:
            ctx.request_time = format_request_time(self.clock())
            request.state.request_time = ctx.request_time
        return None
