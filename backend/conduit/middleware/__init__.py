# Middleware package init
"""
Conduit Backend: Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation ID for log lines and error responses
    2. Logging: method, path, status and duration, tagged with the ID
    3. CORS: FastAPI's CORSMiddleware (handles preflight)

    Responses travel back through the same chain in reverse, which is where
    the X-Request-ID header is attached and the duration is measured.
"""
