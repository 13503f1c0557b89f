"""
Operator helper to inspect the effective trusted proxy configuration.

Prints the trusted proxy list the service would use for a TRUSTED_PROXIES
value (the environment by default) and, when --remote is given, the client
IP that would be resolved for that peer and set of forwarding headers.

    python scripts/check_trusted_proxies.py --proxies "10.0.0.0/8" \
        --remote 10.0.0.5:443 --header "X-Forwarded-For=203.0.113.7, 10.0.0.5"
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]

# Make backend package importable when running from repo root.
sys.path.append(str(ROOT / "backend"))

from realip.core.config import settings  # noqa: E402
from realip.core.ip import resolve_client_ip  # noqa: E402
from realip.core.trusted_proxies import get_trusted_proxy_set  # noqa: E402


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {value!r}")
    return name.strip(), header_value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--proxies", help="TRUSTED_PROXIES value to evaluate (defaults to env)")
    parser.add_argument("--remote", help="transport peer address, host or host:port")
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        type=_parse_header,
        help="forwarding header as NAME=VALUE; repeatable",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.proxies is not None:
        # Must be in place before the trust set is first built.
        settings.TRUSTED_PROXIES = args.proxies

    trusted = get_trusted_proxy_set()
    result: dict[str, object] = {
        "trusted_proxies": list(trusted.raw),
        "permissive": trusted.permissive,
    }
    if args.remote is not None:
        result["remote"] = args.remote
        result["client_ip"] = resolve_client_ip(args.remote, dict(args.header))
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
