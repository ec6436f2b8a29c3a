"""
Photobook Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every response, 429s included, carries the ID
    2. Rate Limit: abusive writers are rejected before any handler work
    3. Logging: one access line per request, tagged with the request ID
"""
