"""
Natours Backend — Guard Chain
==============================

What:  Runs an explicit, ordered list of request guards before routing.
Why:   Every request must be hardened, limited, parsed and sanitized in a
       fixed order before any route group sees it. Keeping the guards in a
       plain list makes that order visible in one place (natours.security).
How:   A guard is an async callable `guard(ctx, request)`:
           - returns None        → continue with the (transformed) context
           - returns a Response  → short-circuit; later guards don't run
           - raises              → the error responder formats the reply
       GuardChainMiddleware builds one GuardContext per request, runs the
       pipeline, calls the route on success and merges the context's
       response headers into whatever response comes back.
Who:   Installed by natours.main.create_app; handlers read the guarded
       request through the `get_guarded_request` dependency.

Error routing:
    Exceptions raised by guards, and exceptions escaping route handlers
    that no registered handler caught, are both handed to the same
    ErrorResponder, so no failure leaves the pipeline unformatted.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger(__name__)

MultiValue = Union[str, List[str]]


def collect_multi_items(items: Iterable[Tuple[str, str]]) -> Dict[str, MultiValue]:
    """Folds (key, value) pairs into a dict; repeated keys become lists in arrival order."""
    collected: Dict[str, MultiValue] = {}
    for key, value in items:
        if key not in collected:
            collected[key] = value
            continue
        existing = collected[key]
        if isinstance(existing, list):
            existing.append(value)
        else:
            collected[key] = [existing, value]
    return collected


@dataclass
class GuardContext:
    """
    Request-scoped state written by the guards, read-only for handlers.

    Attributes:
        method, path:     Copied from the request line
        query:            Parsed query string (repeated keys as lists)
        body:             Parsed JSON/form body ({} when nothing was parsed)
        body_kind:        "json", "form" or "none"
        params:           Path params, sanitized on first handler access
        cookies:          Parsed Cookie header
        query_polluted:   Multi-valued query fields collapsed by the normalizer
        body_polluted:    Same for form-encoded bodies
        request_time:     ISO-8601 UTC timestamp, written once
        response_headers: Headers merged into the final response
    """

    method: str
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = field(default_factory=dict)
    body_kind: str = "none"
    params: Dict[str, Any] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    query_polluted: Dict[str, List[str]] = field(default_factory=dict)
    body_polluted: Dict[str, List[str]] = field(default_factory=dict)
    request_time: Optional[str] = None
    response_headers: Dict[str, str] = field(default_factory=dict)
    params_checked: bool = False

    @classmethod
    def from_request(cls, request: Request) -> "GuardContext":
        return cls(
            method=request.method,
            path=request.url.path,
            query=collect_multi_items(request.query_params.multi_items()),
        )


Guard = Callable[[GuardContext, Request], Awaitable[Optional[Response]]]
ErrorHandler = Callable[[Request, Exception], Awaitable[Response]]


class GuardPipeline:
    """Ordered guard list; stops at the first guard that returns a response."""

    def __init__(self, guards: Sequence[Guard]):
        self.guards: List[Guard] = list(guards)

    async def run(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        for guard in self.guards:
            response = await guard(ctx, request)
            if response is not None:
                logger.debug(
                    "Guard %s short-circuited %s %s",
                    type(guard).__name__,
                    ctx.method,
                    ctx.path,
                )
                return response
        return None

    def clean_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Applies every sanitizing guard (those exposing `clean`) to path params."""
        for guard in self.guards:
            clean = getattr(guard, "clean", None)
            if clean is not None:
                params = clean(params)
        return params


class GuardChainMiddleware(BaseHTTPMiddleware):
    """
    Starlette middleware that executes the GuardPipeline for every request.

    The context is stored on `request.state.guarded` together with the
    pipeline itself (needed to sanitize path params once routing is known).
    """

    def __init__(self, app, pipeline: GuardPipeline, on_error: ErrorHandler):
        super().__init__(app)
        self.pipeline = pipeline
        self.on_error = on_error

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        ctx = GuardContext.from_request(request)
        request.state.guarded = ctx
        request.state.guard_pipeline = self.pipeline

        try:
            response = await self.pipeline.run(ctx, request)
            if response is None:
                response = await call_next(request)
        except Exception as exc:
            response = await self.on_error(request, exc)

        # Handlers may override a guard header; guards never override handlers
        for name, value in ctx.response_headers.items():
            response.headers.setdefault(name, value)
        return response


def get_guarded_request(request: Request) -> GuardContext:
    """
    FastAPI dependency returning the guarded request context.

    Usage:
        @router.get("")
        async def list_tours(guarded: GuardContext = Depends(get_guarded_request)):
            ...
    """
    ctx: Optional[GuardContext] = getattr(request.state, "guarded", None)
    if ctx is None:
        raise RuntimeError("GuardChainMiddleware is not installed on this application")
    if not ctx.params_checked:
        pipeline: GuardPipeline = request.state.guard_pipeline
        ctx.params = pipeline.clean_params(dict(request.path_params))
        ctx.params_checked = True
    return ctx
