"""
Standard request metadata capture helpers.
"""

from __future__ import annotations

from uuid import uuid4

from fastapi import Request


def build_request_meta(
    request: Request,
    *,
    request_id: str | None = None,
    client_ip: str | None = None,
) -> dict[str, str | None]:
    resolved_request_id = (
        request_id
        or getattr(request.state, "request_id", None)
        or request.headers.get("X-Request-ID")
        or str(uuid4())
    )
    return {
        "request_id": resolved_request_id,
        "client_ip": client_ip,
        "user_agent": request.headers.get("User-Agent"),
        "path": request.url.path,
        "method": request.method,
        "referer": request.headers.get("Referer"),
        "origin": request.headers.get("Origin"),
    }
