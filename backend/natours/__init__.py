"""
Natours Backend — Application Package Initializer
==================================================

What: Marks the `natours` directory as a Python package.
Why:  Enables module imports like `from natours.config import settings`.
Who:  Used by uvicorn (`natours.main:app`), pytest, and the checkout client.

Architecture Note:
    The backend is a request pipeline in front of opaque route groups:

    ┌─────────────────────────────────────┐
    │   Request ID / Logging / CORS       │  ← ASGI middleware
    ├─────────────────────────────────────┤
    │   Guard chain (security/*)          │  ← headers, limits, sanitizers
    ├─────────────────────────────────────┤
    │   Route groups (routes/*)           │  ← views + /api/v1 resources
    ├─────────────────────────────────────┤
    │   Fallback 404 → Error responder    │  ← single error formatter
    └─────────────────────────────────────┘

    The tour/user/review/booking handlers, the template engine and the
    database live outside this package and plug in as route groups.
"""

__version__ = "1.0.0"
