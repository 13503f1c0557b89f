"""
Middleware for request-scoped client context.
"""

import logging
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from realip.core.ip import client_ip as resolve_request_client_ip
from realip.core.request_meta import build_request_meta
from realip.core.tracing import set_trace_id

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Attaches request_id and the resolved client_ip to request.state and
    echoes the request id on responses.
    """

    async def dispatch(self, request, call_next):
        request_id = (
            getattr(request.state, "request_id", None)
            or request.headers.get("X-Request-ID")
            or request.headers.get("X-Request-Id")
            or str(uuid4())
        )
        request.state.request_id = request_id
        set_trace_id(request_id)

        client_ip = resolve_request_client_ip(request)
        request.state.client_ip = client_ip
        request.state.user_agent = request.headers.get("User-Agent")
        request.state.request_meta = build_request_meta(
            request,
            request_id=request_id,
            client_ip=client_ip,
        )

        logger.debug(
            "request.start",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "client_ip": client_ip,
            },
        )
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response
