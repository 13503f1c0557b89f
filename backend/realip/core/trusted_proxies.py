"""
Process-wide set of reverse proxies whose forwarding headers are trusted.

The set is built once, on first use, from ``settings.TRUSTED_PROXIES`` and is
immutable afterwards; a restart is needed to pick up a new value. When the
setting is empty, or every entry in it is invalid, the set falls back to
trusting every peer (0.0.0.0/0 and ::/0) and says so at WARNING level.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network, ip_address, ip_network

from realip.core.config import settings
from realip.core.logging import get_structured_logger
from realip.core.tracing import trace_span

logger = get_structured_logger(__name__)

PERMISSIVE_DEFAULT = ("0.0.0.0/0", "::/0")

_SEPARATORS = re.compile(r"[,;]")

_trusted_proxy_set: TrustedProxySet | None = None
_trusted_proxy_lock = threading.Lock()


@dataclass(frozen=True)
class TrustedProxySet:
    raw: tuple[str, ...]
    networks: tuple[IPv4Network | IPv6Network, ...]
    permissive: bool = False

    def contains(self, ip: IPv4Address | IPv6Address) -> bool:
        candidates = [ip]
        mapped = getattr(ip, "ipv4_mapped", None)
        if mapped is not None:
            candidates.append(mapped)
        for network in self.networks:
            for candidate in candidates:
                if candidate in network:
                    return True
        return False


def split_proxy_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in _SEPARATORS.split(raw) if part.strip()]


def parse_proxy_network(spec: str) -> IPv4Network | IPv6Network | None:
    """Parse a CIDR, or a bare IP as a single-host network."""
    if "/" in spec:
        try:
            return ip_network(spec, strict=False)
        except ValueError as exc:
            logger.warning(
                "trusted_proxies.invalid",
                extra={"proxy": spec, "reason": "cidr", "error": str(exc)},
            )
            return None
    try:
        address = ip_address(spec)
    except ValueError as exc:
        logger.warning(
            "trusted_proxies.invalid",
            extra={"proxy": spec, "reason": "ip", "error": str(exc)},
        )
        return None
    return ip_network(f"{address}/{address.max_prefixlen}")


def _permissive_set(reason: str) -> TrustedProxySet:
    logger.warning(
        "trusted_proxies.permissive_default",
        extra={
            "reason": reason,
            "trusted_proxies": list(PERMISSIVE_DEFAULT),
            "detail": "forwarding headers are accepted from any peer; "
            "set TRUSTED_PROXIES to restrict them",
        },
    )
    return TrustedProxySet(
        raw=PERMISSIVE_DEFAULT,
        networks=tuple(ip_network(cidr) for cidr in PERMISSIVE_DEFAULT),
        permissive=True,
    )


def build_trusted_proxy_set(raw: str | None) -> TrustedProxySet:
    specs = split_proxy_list(raw)
    if not specs:
        return _permissive_set("unconfigured")

    kept: list[str] = []
    networks: list[IPv4Network | IPv6Network] = []
    for spec in specs:
        network = parse_proxy_network(spec)
        if network is None:
            continue
        kept.append(spec)
        networks.append(network)

    if not networks:
        return _permissive_set("all_invalid")

    logger.info("trusted_proxies.loaded", extra={"trusted_proxies": kept})
    return TrustedProxySet(raw=tuple(kept), networks=tuple(networks))


def get_trusted_proxy_set() -> TrustedProxySet:
    global _trusted_proxy_set
    current = _trusted_proxy_set
    if current is not None:
        return current
    with _trusted_proxy_lock:
        if _trusted_proxy_set is None:
            with trace_span("trusted_proxies.build"):
                _trusted_proxy_set = build_trusted_proxy_set(settings.TRUSTED_PROXIES)
        return _trusted_proxy_set


def trusted_proxies() -> list[str]:
    """Effective trusted proxy specs, as a copy the caller may modify."""
    return list(get_trusted_proxy_set().raw)


def is_trusted_proxy(ip: IPv4Address | IPv6Address) -> bool:
    return get_trusted_proxy_set().contains(ip)
