# Middleware package init
"""
Scan Barang Backend — Middleware Package
==========================================

What:  Cross-cutting concerns applied to every request, plus the bearer
       token dependency used by every protected route.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: Generate correlation ID for logging and error bodies
    2. Logging: Log method, path, status and duration with that ID
    3. CORS: Applied by FastAPI's CORSMiddleware (handles preflight)

Authentication is not middleware: `require_owner_key` (auth.py) is a
FastAPI dependency, so the owner key reaches handlers as a parameter.
"""
