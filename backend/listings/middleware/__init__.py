# Middleware package init
"""
Listings Backend — Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and error bodies
    2. Logging: access line with status and duration, tagged with the request ID
    3. CORS: FastAPI's CORSMiddleware, allowing only FRONT_URL
"""
