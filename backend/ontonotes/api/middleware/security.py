from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from ontonotes.config import settings
from ontonotes.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import Request
    from starlette.types import ASGIApp

logger = get_logger(__name__)

# JSON-only API; responses are never framed or cached.
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none';",
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
}

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class SecurityMiddleware(BaseHTTPMiddleware):
    """Security headers on every response, plus an audit line for ontology writes."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self._ontology_prefix = f"{settings.api_prefix}/ontology"

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers.update(SECURITY_HEADERS)
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        if request.method in MUTATING_METHODS and request.url.path.startswith(self._ontology_prefix):
            logger.info(
                "Ontology write request",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "ip": request.client.host if request.client else "unknown",
                },
            )

        return response
