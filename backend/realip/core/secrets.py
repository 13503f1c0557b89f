"""
Session and crypto secret bootstrap.

Secrets come from the environment when set. Otherwise they are read from the
option store, and a session secret is generated and stored on first boot so
that restarts do not invalidate existing sessions.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy.orm import Session

from realip.core.config import settings
from realip.crud.options import get_option_value, insert_option_if_absent, upsert_option

logger = logging.getLogger(__name__)

OPTION_KEY_SESSION_SECRET = "SessionSecret"
OPTION_KEY_CRYPTO_SECRET = "CryptoSecret"

SECRET_BYTES = 32


@dataclass(frozen=True)
class PersistentSecrets:
    session_secret: str
    crypto_secret: str
    session_source: str  # env|db|generated


def generate_secret_hex(byte_len: int = SECRET_BYTES) -> str:
    if byte_len <= 0:
        return ""
    return secrets.token_hex(byte_len)


def _stored_value(db: Session, key: str) -> str:
    value, found = get_option_value(db, key)
    return value.strip() if found else ""


def resolve_session_secret(db: Session, env_value: str) -> tuple[str, str]:
    if env_value:
        return env_value, "env"
    stored = _stored_value(db, OPTION_KEY_SESSION_SECRET)
    if stored:
        return stored, "db"
    return generate_secret_hex(), "generated"


def resolve_crypto_secret(db: Session, env_value: str, session_secret: str) -> str:
    if env_value:
        return env_value
    stored = _stored_value(db, OPTION_KEY_CRYPTO_SECRET)
    if stored:
        return stored
    # Crypto secret defaults to the session secret when nothing else is set.
    return session_secret


def ensure_persistent_secrets(db: Session) -> PersistentSecrets:
    session_env = (settings.SESSION_SECRET or "").strip()
    crypto_env = (settings.CRYPTO_SECRET or "").strip()

    session_secret, source = resolve_session_secret(db, session_env)
    generated = source == "generated"

    if generated:
        insert_option_if_absent(db, OPTION_KEY_SESSION_SECRET, session_secret)
        # Re-read: a concurrent process may have stored its own secret first.
        stored = _stored_value(db, OPTION_KEY_SESSION_SECRET)
        if stored:
            session_secret = stored
            source = "db"

    crypto_secret = resolve_crypto_secret(db, crypto_env, session_secret)

    # Persist env values too, so a later restart without env keeps them.
    if source == "env":
        upsert_option(db, OPTION_KEY_SESSION_SECRET, session_secret)
    if crypto_env:
        upsert_option(db, OPTION_KEY_CRYPTO_SECRET, crypto_env)

    if source == "generated":
        logger.warning("secrets.session_unpersisted", extra={"source": source})
    elif generated:
        logger.info("secrets.session_generated", extra={"source": source})
    else:
        logger.info("secrets.session_loaded", extra={"source": source})

    return PersistentSecrets(
        session_secret=session_secret,
        crypto_secret=crypto_secret,
        session_source=source,
    )
