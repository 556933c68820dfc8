"""Middleware for request context."""

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from estate_crm.core.request_context import clear_request_context, set_request_context


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request ID and the acting agent to the request context."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with request context set.

        Args:
            request: FastAPI request
            call_next: Next middleware/handler

        Returns:
            Response with X-Request-Id header
        """
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        set_request_context(request_id, request.headers.get("X-Agent-Id"))
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-Id"] = request_id
        return response
