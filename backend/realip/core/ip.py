"""
Trusted client IP extraction helpers.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from ipaddress import IPv4Address, IPv6Address, ip_address, ip_network

from fastapi import Request
from starlette.datastructures import Headers

from realip.context.state import get_request_ip_context
from realip.core.metrics import record_client_ip_resolution
from realip.core.trusted_proxies import is_trusted_proxy

# Checked in order; the first header yielding a candidate wins.
FORWARDED_HEADERS = ("X-Forwarded-For", "X-Real-IP", "CF-Connecting-IP")

# Addresses that never identify an internet-facing client. Documentation
# ranges (192.0.2.0/24, 198.51.100.0/24, 203.0.113.0/24) count as public.
_PRIVATE_NETWORKS = tuple(
    ip_network(cidr)
    for cidr in (
        "0.0.0.0/8",
        "10.0.0.0/8",
        "100.64.0.0/10",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "::/128",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)


def _parse_ip(value: str | None) -> IPv4Address | IPv6Address | None:
    if not value:
        return None
    try:
        return ip_address(value.strip())
    except ValueError:
        return None


def is_private_ip(ip: IPv4Address | IPv6Address) -> bool:
    mapped = getattr(ip, "ipv4_mapped", None)
    if mapped is not None:
        ip = mapped
    return any(ip in network for network in _PRIVATE_NETWORKS)


def parse_remote_ip(remote_addr: str | None) -> IPv4Address | IPv6Address | None:
    """Parse ``host:port``, ``[v6]:port`` or a bare host into an address."""
    value = (remote_addr or "").strip()
    if not value:
        return None
    direct = _parse_ip(value)
    if direct is not None:
        return direct
    if value.startswith("["):
        host, sep, port = value[1:].partition("]")
        if not sep or not port.startswith(":"):
            return None
        return _parse_ip(host)
    host, sep, _ = value.rpartition(":")
    if not sep or ":" in host:
        return None
    return _parse_ip(host)


def pick_forwarded_ip(header_value: str | None) -> str:
    """
    Pick the client from a forwarded-for chain.

    Returns the first public entry, else the first valid entry, else "".
    """
    if not header_value:
        return ""
    first_valid = ""
    for part in header_value.split(","):
        candidate = part.strip()
        if not candidate:
            continue
        parsed = _parse_ip(candidate)
        if parsed is None:
            continue
        if not first_valid:
            first_valid = candidate
        if not is_private_ip(parsed):
            return candidate
    return first_valid


def _header_lookup(headers: Mapping[str, str] | None) -> Callable[[str], str | None]:
    if isinstance(headers, Headers):
        return headers.get
    lowered = {key.lower(): value for key, value in (headers or {}).items()}
    return lambda name: lowered.get(name.lower())


def resolve_client_ip(remote_addr: str | None, headers: Mapping[str, str] | None) -> str:
    """
    Resolve the client IP for one request.

    Forwarding headers are only consulted when the transport peer is a
    trusted proxy. Returns "" when the peer address cannot be parsed and no
    header decided the result.
    """
    remote_ip = parse_remote_ip(remote_addr)
    if remote_ip is not None and is_trusted_proxy(remote_ip):
        lookup = _header_lookup(headers)
        for header in FORWARDED_HEADERS:
            candidate = pick_forwarded_ip(lookup(header))
            if candidate:
                record_client_ip_resolution("forwarded_header")
                return candidate
    if remote_ip is None:
        record_client_ip_resolution("unresolved")
        return ""
    record_client_ip_resolution("remote_addr")
    return str(getattr(remote_ip, "ipv4_mapped", None) or remote_ip)


def client_ip(request: Request) -> str:
    """
    Client IP for ``request``, resolved once and cached on request.state.
    """
    context = get_request_ip_context(request)
    if context.client_ip:
        return context.client_ip

    peer = request.client.host if request.client else None
    resolved = resolve_client_ip(peer, request.headers)
    if resolved:
        context.client_ip = resolved
        return resolved
    return peer or ""
