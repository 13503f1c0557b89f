"""
Startup-time checks for required configuration.
"""

from __future__ import annotations

from realip.core.config import settings
from realip.core.logging import get_structured_logger
from realip.core.trusted_proxies import get_trusted_proxy_set

logger = get_structured_logger(__name__)

MIN_SECRET_LENGTH = 32


def _is_production() -> bool:
    env = (settings.ENVIRONMENT or "").strip().lower()
    return env in {"production", "prod"}


def _has_placeholder_secret(value: str | None) -> bool:
    if not value:
        return True
    lowered = value.strip().lower()
    return lowered in {"changeme", "super-secret-key", "secret", "random_string"}


def run_startup_checks() -> None:
    missing: list[str] = []
    insecure: list[str] = []

    if not settings.DATABASE_URL:
        missing.append("DATABASE_URL")

    # Builds the trust set now so configuration problems surface at boot.
    trusted = get_trusted_proxy_set()

    if _is_production():
        session_secret = settings.SESSION_SECRET
        if session_secret is not None and (
            _has_placeholder_secret(session_secret)
            or len(session_secret.strip()) < MIN_SECRET_LENGTH
        ):
            insecure.append("SESSION_SECRET")
        if trusted.permissive:
            logger.warning(
                "startup.trusted_proxies_permissive",
                extra={"trusted_proxies": list(trusted.raw)},
            )
            if settings.REQUIRE_TRUSTED_PROXIES_IN_PRODUCTION:
                insecure.append("TRUSTED_PROXIES")

    if missing or insecure:
        parts = []
        if missing:
            parts.append(f"Missing required settings: {', '.join(sorted(set(missing)))}")
        if insecure:
            parts.append(f"Insecure settings detected: {', '.join(sorted(set(insecure)))}")
        raise RuntimeError("Startup checks failed. " + " ".join(parts))
