"""
Error Boundary Middleware
Turns any unhandled exception into a bare 500
"""

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
import logging

logger = logging.getLogger(__name__)

class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for handlers

    The exception is logged server-side only; the client gets an empty 500
    so no internals leak.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
