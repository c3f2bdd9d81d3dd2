"""
Authentication middleware for API route protection.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from sharepool.auth.jwt import get_token_from_cookie, verify_token

logger = logging.getLogger(__name__)

# Routes that don't require authentication
PUBLIC_ROUTES = {
    "/api/auth/login",
    "/api/auth/logout",
    "/api/health",
    "/api/health/ready",
    "/api/health/live",
}

# Route prefixes that don't require authentication
PUBLIC_PREFIXES = (
    "/docs",
    "/redoc",
    "/openapi.json",
)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Rejects unauthenticated calls to /api/* before they reach a router.

    Role checks stay in the route dependencies (require_admin,
    require_finance).
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        path = request.url.path

        if path in PUBLIC_ROUTES or path.startswith(PUBLIC_PREFIXES):
            return await call_next(request)

        if path.startswith("/api/"):
            token = get_token_from_cookie(request)
            payload = verify_token(token) if token else None
            if not payload:
                logger.debug(f"Unauthenticated request to {path}")
                return Response(
                    content='{"detail": "Not authenticated"}',
                    status_code=401,
                    media_type="application/json",
                )

        return await call_next(request)
