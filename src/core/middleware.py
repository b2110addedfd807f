"""Middleware for request correlation ID tracking."""

import uuid

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.error_handler import set_correlation_id


CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware:
    """Attach a correlation ID to every request and response.

    Written as a plain ASGI middleware rather than ``BaseHTTPMiddleware`` so
    long-lived streaming responses pass through without being wrapped in an
    extra task. The ID is taken from the ``X-Correlation-ID`` request header
    when present, otherwise generated, stored in the logging context and on
    ``request.state``, and echoed back in the response headers.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        raw = headers.get(CORRELATION_HEADER.lower().encode("latin-1"))
        correlation_id = raw.decode("latin-1") if raw else str(uuid.uuid4())

        set_correlation_id(correlation_id)
        scope.setdefault("state", {})["correlation_id"] = correlation_id

        async def send_with_correlation(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[CORRELATION_HEADER] = correlation_id
            await send(message)

        await self.app(scope, receive, send_with_correlation)
