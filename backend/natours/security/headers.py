"""
Secure HTTP headers guard.

Adds the hardening header set to every response, including short-circuited
and error responses:
- Content-Security-Policy (defaults merged with configured overrides)
- X-Content-Type-Options, X-Frame-Options, Referrer-Policy
- Strict-Transport-Security and the cross-origin isolation headers

Never rejects a request.
"""

from typing import Dict, Mapping, Optional, Sequence

from starlette.requests import Request
from starlette.responses import Response

from natours.middleware.pipeline import GuardContext

DEFAULT_CSP_DIRECTIVES: Dict[str, Sequence[str]] = {
    "default-src": ["'self'"],
    "base-uri": ["'self'"],
    "font-src": ["'self'", "https:", "data:"],
    "form-action": ["'self'"],
    "frame-ancestors": ["'self'"],
    "img-src": ["'self'", "data:"],
    "object-src": ["'none'"],
    "script-src": ["'self'"],
    "script-src-attr": ["'none'"],
    "style-src": ["'self'", "https:", "'unsafe-inline'"],
    "upgrade-insecure-requests": [],
}

SECURE_HEADERS: Dict[str, str] = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


def build_content_security_policy(
    overrides: Optional[Mapping[str, Sequence[str]]] = None,
) -> str:
    """Serializes the default directives, replacing any directive named in `overrides`."""
    directives = dict(DEFAULT_CSP_DIRECTIVES)
    directives.update(overrides or {})
    parts = []
    for name, sources in directives.items():
        parts.append(" ".join([name, *sources]) if sources else name)
    return "; ".join(parts)


class SecurityHeadersGuard:
    """Queues the hardening headers on the request context."""

    def __init__(self, csp_overrides: Optional[Mapping[str, Sequence[str]]] = None):
        self.headers = dict(SECURE_HEADERS)
        self.headers["Content-Security-Policy"] = build_content_security_policy(csp_overrides)

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        ctx.response_headers.update(self.headers)
        return None
