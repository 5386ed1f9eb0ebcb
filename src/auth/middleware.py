"""
Authentication middleware for API route protection.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.auth.jwt import get_token_from_request, verify_token

logger = logging.getLogger(__name__)

# Routes that don't require authentication
PUBLIC_ROUTES = {
    "/",
    "/api/auth/login",
    "/api/health",
    "/api/health/ready",
    "/api/health/live",
    "/favicon.ico",
}

# Route prefixes that don't require authentication
PUBLIC_PREFIXES = (
    "/docs",
    "/redoc",
    "/openapi.json",
)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware that rejects unauthenticated API calls early.

    - /api/* routes require a valid token
    - /api/admin/* routes additionally require an AO or administrator

    Finer checks (manager tier, deal permissions) live in the route
    dependencies.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        path = request.url.path

        # Allow public routes
        if path in PUBLIC_ROUTES or path.startswith(PUBLIC_PREFIXES):
            return await call_next(request)

        if not path.startswith("/api/"):
            return await call_next(request)

        token = get_token_from_request(request)
        payload = verify_token(token) if token else None

        if not payload:
            return Response(
                content='{"detail": "Not authenticated"}',
                status_code=401,
                media_type="application/json",
            )

        if path.startswith("/api/admin"):
            if not (payload["is_admin"] or payload["tier"] == "ao"):
                logger.warning(f"User {payload['user_id']} denied access to {path}")
                return Response(
                    content='{"detail": "Owner access required"}',
                    status_code=403,
                    media_type="application/json",
                )

        return await call_next(request)
