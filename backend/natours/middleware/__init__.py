# Middleware package init
"""
Natours Backend — Middleware Package
=====================================

What:  ASGI middleware wrapped around every request.
Why:   Tracing, access logging, CORS and the guard chain apply to all routes
       without touching any route handler.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging, development only] → [GZip]
            → [CORS] → [Guard chain] → Route group / fallback 404

    Why this order:
    1. Request ID first: every later log line and error carries it
    2. Logging: sees the final status of every response, errors included
    3. CORS outside the guard chain: 403/413/429 replies still carry
       CORS headers, so browsers can read them
    4. Guard chain last: see natours.security for the guard order
"""
