"""
Typed request-scoped state for client IP resolution.
"""

from dataclasses import dataclass
from typing import Optional

from starlette.requests import Request


@dataclass
class RequestIPContext:
    """
    Holds the resolved client IP for one request so it is computed once.
    """

    client_ip: Optional[str] = None


def get_request_ip_context(request: Request) -> RequestIPContext:
    context = getattr(request.state, "ip_context", None)
    if not isinstance(context, RequestIPContext):
        context = RequestIPContext()
        request.state.ip_context = context
    return context
