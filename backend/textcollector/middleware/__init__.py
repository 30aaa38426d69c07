# Middleware package init
"""
TextCollector — Middleware Package
===================================

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: sets the correlation ID used by every log line
    2. Logging: records method, path, status and duration
    3. CORS: FastAPI's CORSMiddleware (the UI runs on another origin)
"""
