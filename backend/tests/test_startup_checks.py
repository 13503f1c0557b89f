import logging
import os

import pytest

os.environ.setdefault("SKIP_MIGRATIONS", "1")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import realip.core.trusted_proxies as trusted_module
from realip.core.config import settings
from realip.core.startup_checks import run_startup_checks


def _configure(monkeypatch, **values):
    defaults = {
        "ENVIRONMENT": "development",
        "DATABASE_URL": "sqlite:///:memory:",
        "TRUSTED_PROXIES": "10.0.0.0/8",
        "REQUIRE_TRUSTED_PROXIES_IN_PRODUCTION": False,
        "SESSION_SECRET": None,
    }
    defaults.update(values)
    for key, value in defaults.items():
        monkeypatch.setattr(settings, key, value)
    monkeypatch.setattr(trusted_module, "_trusted_proxy_set", None)


def test_startup_checks_pass_in_development_and_warm_trust_set(monkeypatch):
    _configure(monkeypatch)
    run_startup_checks()
    assert trusted_module._trusted_proxy_set is not None
    assert list(trusted_module._trusted_proxy_set.raw) == ["10.0.0.0/8"]


def test_startup_checks_require_database_url(monkeypatch):
    _configure(monkeypatch, DATABASE_URL="")
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        run_startup_checks()


def test_startup_checks_reject_weak_session_secret_in_production(monkeypatch):
    _configure(monkeypatch, ENVIRONMENT="production", SESSION_SECRET="changeme")
    with pytest.raises(RuntimeError, match="SESSION_SECRET"):
        run_startup_checks()


def test_startup_checks_allow_unset_session_secret_in_production(monkeypatch):
    _configure(monkeypatch, ENVIRONMENT="prod", SESSION_SECRET=None)
    run_startup_checks()


def test_permissive_trust_in_production_is_logged(monkeypatch, caplog):
    _configure(monkeypatch, ENVIRONMENT="production", TRUSTED_PROXIES="")
    logger = logging.getLogger("realip.core.startup_checks")
    logger.addHandler(caplog.handler)
    try:
        run_startup_checks()
    finally:
        logger.removeHandler(caplog.handler)
    assert any(
        r.getMessage() == "startup.trusted_proxies_permissive" for r in caplog.records
    )


def test_permissive_trust_in_production_can_be_made_fatal(monkeypatch):
    _configure(
        monkeypatch,
        ENVIRONMENT="production",
        TRUSTED_PROXIES="typo-not-an-ip",
        REQUIRE_TRUSTED_PROXIES_IN_PRODUCTION=True,
    )
    with pytest.raises(RuntimeError, match="TRUSTED_PROXIES"):
        run_startup_checks()
