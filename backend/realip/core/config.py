# Central place for all configurable settings. We use Pydantic's
# BaseSettings so values can be read from env vars or a .env file.
# This keeps deployment flexible without hardcoding secrets.

import json
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def safe_json_loads(value):
    try:
        return json.loads(value)
    except Exception:
        return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_json_loads=safe_json_loads,
        extra="ignore",
    )

    # Deployment environment name. "production"/"prod" turns on the
    # stricter startup checks.
    ENVIRONMENT: str = "development"

    # Level for the structured JSON loggers.
    LOG_LEVEL: str = "INFO"

    # Connection string for the option store, e.g. sqlite:///./realip.db
    # or a Postgres URL. Needed by SQLAlchemy.
    DATABASE_URL: str = "sqlite:///./realip.db"

    # Toggle SQLAlchemy echo logs. Useful for debugging queries locally.
    DB_ECHO: bool = False

    # Proxies whose forwarding headers are honoured, as comma or semicolon
    # separated CIDRs or single IPs: "10.0.0.0/8; 2001:db8::/32".
    # Kept as the raw string; realip.core.trusted_proxies owns parsing.
    # Empty means trust every peer.
    TRUSTED_PROXIES: str = ""

    # Fail startup in production when the trust list is missing or unusable.
    REQUIRE_TRUSTED_PROXIES_IN_PRODUCTION: bool = False

    # Session / crypto secrets. When unset they are generated once and
    # persisted in the option store so restarts keep existing sessions valid.
    SESSION_SECRET: Optional[str] = None
    CRYPTO_SECRET: Optional[str] = None
    BOOTSTRAP_SECRETS: bool = True

    @field_validator("TRUSTED_PROXIES", mode="before")
    @classmethod
    def _join_proxy_list(cls, value):
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        return value


# Instantiate a single settings object for app-wide import.
# Any module can just `from realip.core.config import settings`.
settings = Settings()
