"""
HTTP parameter pollution normalizer.

`?sort=price&sort=name` arrives as a list; handlers that expect a string
would break (or be tricked) by it. For every non-whitelisted field supplied
more than once, only the LAST value is kept and the original list is moved
to `query_polluted` / `body_polluted`. Whitelisted fields (e.g. `duration`)
keep the full sequence so filters like `?duration=5&duration=9` work.

Only the query string and form-encoded bodies are normalized; JSON arrays
are intentional structure, not pollution.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from starlette.requests import Request
from starlette.responses import Response

from natours.middleware.pipeline import GuardContext


class ParameterPollutionGuard:
    def __init__(self, whitelist: Iterable[str] = ()):
        self.whitelist = frozenset(whitelist)

    def normalize(self, fields: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, list]]:
        """Returns (normalized fields, collapsed originals)."""
        normalized: Dict[str, Any] = {}
        polluted: Dict[str, list] = {}
        for key, value in fields.items():
            if isinstance(value, list) and key not in self.whitelist:
                polluted[key] = value
                if not value:
                    continue
                value = value[-1]
            normalized[key] = value
        return normalized, polluted

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        ctx.query, ctx.query_polluted = self.normalize(ctx.query)
        if ctx.body_kind == "form" and isinstance(ctx.body, dict):
            ctx.body, ctx.body_polluted = self.normalize(ctx.body)
        return None
