"""
Natours Backend — Security Guards
==================================

What:  The guards every request passes before reaching a route group.
Why:   Hardening, abuse limits and input sanitization are cross-cutting;
       route handlers must only ever see fully guarded input.
How:   `build_guard_pipeline()` returns the guards in their fixed order.

Guard order (order matters!):
    1. SecurityHeadersGuard      hardening headers, never rejects
    2. CorsOriginGuard           403 for origins outside the allow-list
    3. RateLimitGuard            429 past the per-IP ceiling on /api
    4. BodyParserGuard           413 past the body limit, then parse
    5. CookieParserGuard         Cookie header → ctx.cookies
    6. InjectionSanitizerGuard   drop "$"/"." keys
    7. MarkupSanitizerGuard      escape "<"
    8. ParameterPollutionGuard   collapse repeated fields
    9. RequestTimeGuard          stamp ctx.request_time

    Cheap rejections (1-3) run before the body is read; sanitizers need the
    parsed body; the pollution normalizer needs the parsed, possibly
    list-valued fields.
"""

from natours.config import Settings
from natours.middleware.pipeline import GuardPipeline
from natours.security.body import BodyParserGuard, CookieParserGuard
from natours.security.context import RequestTimeGuard
from natours.security.cors import CorsOriginGuard
from natours.security.headers import SecurityHeadersGuard
from natours.security.pollution import ParameterPollutionGuard
from natours.security.rate_limit import InMemoryRateLimitStore, RateLimitGuard
from natours.security.sanitize import InjectionSanitizerGuard, MarkupSanitizerGuard


def build_guard_pipeline(settings: Settings, store: InMemoryRateLimitStore) -> GuardPipeline:
    """Assembles the guard chain from settings and the shared rate limit store."""
    return GuardPipeline(
        [
            SecurityHeadersGuard(settings.csp_overrides),
            CorsOriginGuard(settings.cors_origins_list),
            RateLimitGuard(
                store,
                max_requests=settings.rate_limit_requests,
                message=settings.rate_limit_message,
                path_prefix=settings.rate_limit_path_prefix,
                trust_proxy=settings.trust_proxy,
            ),
            BodyParserGuard(settings.body_limit_bytes),
            CookieParserGuard(),
            InjectionSanitizerGuard(settings.injection_replace_with),
            MarkupSanitizerGuard(),
            ParameterPollutionGuard(settings.hpp_whitelist_list),
            RequestTimeGuard(),
        ]
    )


__all__ = ["build_guard_pipeline", "InMemoryRateLimitStore"]
