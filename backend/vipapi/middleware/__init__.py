# Middleware package init
"""
VIP Travel API - Middleware Package
====================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Readiness] → [GZip] → [CORS] → Route

    1. Rate Limit rejects abuse before any database work
    2. Request ID sets the correlation ID used by every later log line
    3. Logging records status and duration, including readiness failures
    4. Readiness connects the database and initializes the asset store
       before a handler can touch either
"""
