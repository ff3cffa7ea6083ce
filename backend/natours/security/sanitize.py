"""
Data sanitization guards.

InjectionSanitizerGuard
    Neutralizes query-operator injection (`{"email": {"$gt": ""}}`) by
    removing every key that starts with "$" or contains "." from query,
    body and params. Flat query keys such as `price[$gte]` are checked per
    bracket segment. With `replace_with`, the offending characters are
    replaced instead of the key being dropped.

MarkupSanitizerGuard
    Escapes "<" as "&lt;" in every string key and value so no tag can be
    formed from user input.

Both transformations recurse through dicts and lists, leave legitimate
input untouched, and are idempotent.
"""

import re
from typing import Any, Optional

from starlette.requests import Request
from starlette.responses import Response

from natours.middleware.pipeline import GuardContext

_OPERATOR_CHARS = re.compile(r"[$.]")
_BRACKETS = re.compile(r"[\[\]]+")


def is_operator_key(key: str) -> bool:
    """True when any bracket segment of `key` starts with "$" or contains "."."""
    segments = [segment for segment in _BRACKETS.split(key) if segment]
    return any(segment.startswith("$") or "." in segment for segment in segments)


def strip_operators(data: Any, replace_with: Optional[str] = None) -> Any:
    if isinstance(data, dict):
        cleaned = {}
        for key, value in data.items():
            if isinstance(key, str) and is_operator_key(key):
                if replace_with is None:
                    continue
                key = _OPERATOR_CHARS.sub(replace_with, key)
            cleaned[key] = strip_operators(value, replace_with)
        return cleaned
    if isinstance(data, list):
        return [strip_operators(item, replace_with) for item in data]
    return data


def escape_markup(data: Any) -> Any:
    if isinstance(data, str):
        return data.replace("<", "&lt;")
    if isinstance(data, dict):
        return {escape_markup(key): escape_markup(value) for key, value in data.items()}
    if isinstance(data, list):
        return [escape_markup(item) for item in data]
    return data


class InjectionSanitizerGuard:
    def __init__(self, replace_with: Optional[str] = None):
        if replace_with is not None and _OPERATOR_CHARS.search(replace_with):
            raise ValueError("replace_with must not contain '$' or '.'")
        self.replace_with = replace_with

    def clean(self, data: Any) -> Any:
        return strip_operators(data, self.replace_with)

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        ctx.query = self.clean(ctx.query)
        ctx.body = self.clean(ctx.body)
        ctx.params = self.clean(ctx.params)
        return None


class MarkupSanitizerGuard:
    def clean(self, data: Any) -> Any:
        return escape_markup(data)

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        ctx.query = self.clean(ctx.query)
        ctx.body = self.clean(ctx.body)
        ctx.params = self.clean(ctx.params)
        return None
