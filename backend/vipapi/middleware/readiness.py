"""
VIP Travel API - Readiness Middleware
======================================

What:  Makes sure the database answered and the asset store is set up before
       a request reaches a handler.
How:   On every request: DatabaseConnection.connect() (a no-op once ready),
       then AssetStore.initialize() (a no-op once READY).

Outcomes:
    database unreachable after retries → 503 database_unavailable, handler not run
    database ready, bucket setup fails → request continues; image operations
                                         answer 503 store_unavailable until a
                                         later request initializes the bucket
    both ready                         → two attribute checks per request

/health and the API docs are passed straight through so they keep answering
while the database is down.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from vipapi.database import DatabaseConnection
from vipapi.middleware.request_id import request_id_var
from vipapi.services.asset_store import AssetStore

logger = logging.getLogger(__name__)

PASSTHROUGH_PATHS = {"/", "/health", "/docs", "/openapi.json", "/redoc"}

RETRY_AFTER_SECONDS = 5


class ReadinessMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, connection: DatabaseConnection, store: AssetStore):
        super().__init__(app)
        self.connection = connection
        self.store = store

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in PASSTHROUGH_PATHS:
            return await call_next(request)

        try:
            await self.connection.connect()
        except (SQLAlchemyError, OSError) as e:
            rid = request_id_var.get("")
            logger.error("[%s] Database connection failed: %s", rid, str(e))
            return JSONResponse(
                status_code=503,
                content={
                    "error": "database_unavailable",
                    "message": "Database connection failed. Please retry shortly.",
                    "request_id": rid,
                },
                headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
            )

        if not self.store.is_ready:
            await self.store.initialize()

        return await call_next(request)
