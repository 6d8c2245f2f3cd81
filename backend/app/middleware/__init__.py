# Middleware package init
"""
PlaceShare Backend — Middleware Package
=========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    The request ID is set before the logging middleware reads it, and is
    added to the response on the way out.
"""
