import logging
import os
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("SKIP_MIGRATIONS", "1")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import realip.models  # noqa: F401
from realip.core.config import settings
from realip.core.db import Base
from realip.core.secrets import (
    OPTION_KEY_CRYPTO_SECRET,
    OPTION_KEY_SESSION_SECRET,
    ensure_persistent_secrets,
    generate_secret_hex,
)
from realip.crud.options import (
    get_option_value,
    insert_option_if_absent,
    upsert_option,
)


def _setup_db(tmp_path):
    db_url = f"sqlite:///{tmp_path}/options_{uuid4().hex}.db"
    engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
        future=True,
    )
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    return SessionLocal


@pytest.fixture
def no_env_secrets(monkeypatch):
    monkeypatch.setattr(settings, "SESSION_SECRET", None)
    monkeypatch.setattr(settings, "CRYPTO_SECRET", None)


def test_option_store_upsert_and_read(tmp_path):
    SessionLocal = _setup_db(tmp_path)
    with SessionLocal() as db:
        assert get_option_value(db, "Theme") == ("", False)
        upsert_option(db, "Theme", "dark")
        assert get_option_value(db, "Theme") == ("dark", True)
        upsert_option(db, "Theme", "light")
        assert get_option_value(db, "Theme") == ("light", True)


def test_option_store_insert_if_absent_keeps_existing_value(tmp_path):
    SessionLocal = _setup_db(tmp_path)
    with SessionLocal() as db:
        assert insert_option_if_absent(db, "Key", "first") is True
        assert insert_option_if_absent(db, "Key", "second") is False
        assert get_option_value(db, "Key") == ("first", True)


def test_generate_secret_hex_length():
    assert len(generate_secret_hex()) == 64
    assert generate_secret_hex(0) == ""
    assert generate_secret_hex() != generate_secret_hex()


def test_generated_session_secret_is_persisted_and_reused(tmp_path, no_env_secrets):
    SessionLocal = _setup_db(tmp_path)
    with SessionLocal() as db:
        first = ensure_persistent_secrets(db)
        stored, found = get_option_value(db, OPTION_KEY_SESSION_SECRET)
    assert found and stored == first.session_secret
    assert len(first.session_secret) == 64
    assert first.session_source == "db"
    assert first.crypto_secret == first.session_secret

    with SessionLocal() as db:
        second = ensure_persistent_secrets(db)
    assert second.session_secret == first.session_secret
    assert second.session_source == "db"


def test_env_session_secret_wins_and_is_stored(tmp_path, monkeypatch, no_env_secrets):
    SessionLocal = _setup_db(tmp_path)
    with SessionLocal() as db:
        upsert_option(db, OPTION_KEY_SESSION_SECRET, "stored-secret")
    monkeypatch.setattr(settings, "SESSION_SECRET", "  env-secret  ")
    with SessionLocal() as db:
        result = ensure_persistent_secrets(db)
        stored, _ = get_option_value(db, OPTION_KEY_SESSION_SECRET)
    assert result.session_secret == "env-secret"
    assert result.session_source == "env"
    assert stored == "env-secret"


def test_stored_crypto_secret_is_used_when_env_missing(tmp_path, no_env_secrets):
    SessionLocal = _setup_db(tmp_path)
    with SessionLocal() as db:
        upsert_option(db, OPTION_KEY_SESSION_SECRET, "session-value")
        upsert_option(db, OPTION_KEY_CRYPTO_SECRET, " crypto-value ")
        result = ensure_persistent_secrets(db)
    assert result.session_secret == "session-value"
    assert result.crypto_secret == "crypto-value"


def test_env_crypto_secret_is_stored(tmp_path, monkeypatch, no_env_secrets):
    SessionLocal = _setup_db(tmp_path)
    monkeypatch.setattr(settings, "CRYPTO_SECRET", "crypto-env")
    with SessionLocal() as db:
        result = ensure_persistent_secrets(db)
        stored, found = get_option_value(db, OPTION_KEY_CRYPTO_SECRET)
    assert result.crypto_secret == "crypto-env"
    assert found and stored == "crypto-env"


def test_concurrent_generation_adopts_the_stored_secret(tmp_path, monkeypatch, no_env_secrets):
    import realip.core.secrets as secrets_module

    SessionLocal = _setup_db(tmp_path)
    original_insert = secrets_module.insert_option_if_absent

    def racing_insert(db, key, value):
        # Another process stores its secret between our read and insert.
        original_insert(db, key, "winner-secret")
        return original_insert(db, key, value)

    monkeypatch.setattr(secrets_module, "insert_option_if_absent", racing_insert)
    with SessionLocal() as db:
        result = ensure_persistent_secrets(db)
    assert result.session_secret == "winner-secret"
    assert result.session_source == "db"


def test_bootstrap_logs_secret_source(tmp_path, caplog, no_env_secrets):
    SessionLocal = _setup_db(tmp_path)
    with caplog.at_level(logging.INFO, logger="realip.core.secrets"):
        with SessionLocal() as db:
            ensure_persistent_secrets(db)
            ensure_persistent_secrets(db)
    messages = [r.getMessage() for r in caplog.records if r.name == "realip.core.secrets"]
    assert messages == ["secrets.session_generated", "secrets.session_loaded"]
