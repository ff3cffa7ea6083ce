"""
Cross-origin policy.

Response headers and preflight requests are handled by Starlette's
CORSMiddleware; CorsOriginGuard is the rejecting half, turning a request
from a foreign origin into a 403 before any work is done.

The default configuration allows every origin *and* credentials. That is
preserved as configuration rather than changed here.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from starlette.requests import Request
from starlette.responses import Response

from natours.config import Settings
from natours.exceptions import CorsOriginError
from natours.middleware.pipeline import GuardContext

logger = logging.getLogger(__name__)


def cors_middleware_options(settings: Settings) -> Dict[str, Any]:
    """Keyword arguments for CORSMiddleware derived from settings."""
    return {
        "allow_origins": settings.cors_origins_list,
        "allow_credentials": settings.cors_allow_credentials,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
        "expose_headers": [
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    }


class CorsOriginGuard:
    """Rejects requests whose Origin header is not in the allow-list."""

    def __init__(self, allowed_origins: Sequence[str]):
        self.allow_all = "*" in allowed_origins
        self.allowed = {origin.rstrip("/") for origin in allowed_origins}

    def is_allowed(self, origin: str, request: Request) -> bool:
        if self.allow_all or origin.rstrip("/") in self.allowed:
            return True
        # Browsers send Origin on same-origin POSTs too
        return origin == f"{request.url.scheme}://{request.url.netloc}"

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        origin = request.headers.get("origin")
        if origin is None or self.is_allowed(origin, request):
            return None
        logger.warning("Rejected cross-origin request from %s to %s", origin, ctx.path)
        raise CorsOriginError(origin)
