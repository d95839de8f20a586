"""HTTP middleware for request correlation and structured logging.

Bind a request id to the structlog context for the duration of each request so
scrape and health-check log lines can be traced back to their caller.
"""

import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.portwatch.core.logging_config import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)


class RequestCorrelationMiddleware(BaseHTTPMiddleware):
    """Attach an `X-Request-ID` to every request and response.

    Reuse the id supplied by an upstream proxy, or generate a UUID4 when the
    header is absent.
    """

    async def dispatch(self, request: Request, call_next):
        """Process the request and manage correlation context lifecycle.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or route handler in the chain.

        Returns:
            The HTTP response with the `X-Request-ID` header attached.
        """
        # Residual context from a previous request must not leak into this one.
        clear_contextvars()

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        bind_contextvars(request_id=request_id, path=request.url.path)

        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.debug("Request served", status=response.status_code)
        return response
