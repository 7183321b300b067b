"""Application settings and the raw key-value lookup behind them."""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigSource:
    """Flat key-value lookup for provider credentials.

    Keys use the dotted form (``oauth.google.ConsumerKey``). A key is tried
    verbatim first, then as an environment name: upper-cased with dots
    replaced by underscores (``OAUTH_GOOGLE_CONSUMERKEY``).
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self.values = os.environ if values is None else values

    @staticmethod
    def env_name(key: str) -> str:
        return key.replace(".", "_").upper()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if key in self.values:
            return self.values[key]
        return self.values.get(self.env_name(key), default)

    def __getitem__(self, key: str) -> Optional[str]:
        return self.get(key)

    def get_list(self, key: str, default: Optional[List[str]] = None) -> List[str]:
        raw = self.get(key)
        if raw is None:
            return list(default or [])
        return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class PasswordOptions:
    required_length: int = 8
    require_digit: bool = True
    require_uppercase: bool = True
    require_lowercase: bool = False
    require_non_alphanumeric: bool = False
    required_unique_chars: int = 6


@dataclass(frozen=True)
class LockoutOptions:
    max_failed_access_attempts: int = 10
    default_lockout: timedelta = timedelta(minutes=30)
    allowed_for_new_users: bool = True


def _key(dotted: str) -> AliasChoices:
    return AliasChoices(dotted, ConfigSource.env_name(dotted))


class Settings(BaseSettings):
    """Settings read from the environment (or ``.env``).

    Each field accepts its dotted key (``seed.enabled``) or the matching
    environment name (``SEED_ENABLED``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field("sqlite:///./warden.db", validation_alias=_key("DATABASE_URL"))
    debug: bool = Field(False, validation_alias=_key("DebugMode"))
    log_level: str = Field("INFO", validation_alias=_key("log.level"))

    session_secret: str = Field("change-me", validation_alias=_key("session.secret"))
    session_cookie: str = Field("warden.session", validation_alias=_key("session.cookie"))
    session_days: int = Field(150, validation_alias=_key("session.days"))
    https_only: bool = Field(False, validation_alias=_key("session.httpsOnly"))
    trusted_hosts: str = Field("127.0.0.1", validation_alias=_key("forwarded.trustedHosts"))

    seed_enabled: bool = Field(True, validation_alias=_key("seed.enabled"))
    seed_password: str = Field("p@55wOrd", validation_alias=_key("seed.password"))

    # Raw comma-separated string
    admin_roles_raw: str = Field("Manager", validation_alias=_key("auth.adminRoles"))

    password_required_length: int = Field(
        8, validation_alias=_key("identity.password.requiredLength")
    )
    password_required_unique_chars: int = Field(
        6, validation_alias=_key("identity.password.requiredUniqueChars")
    )
    lockout_max_failed_access_attempts: int = Field(
        10, validation_alias=_key("identity.lockout.maxFailedAccessAttempts")
    )
    lockout_minutes: int = Field(30, validation_alias=_key("identity.lockout.minutes"))

    _config: ConfigSource = PrivateAttr(default_factory=ConfigSource)

    @property
    def admin_roles(self) -> tuple[str, ...]:
        return tuple(role.strip() for role in self.admin_roles_raw.split(",") if role.strip())

    @property
    def session_max_age(self) -> timedelta:
        return timedelta(days=self.session_days)

    @property
    def password(self) -> PasswordOptions:
        return PasswordOptions(
            required_length=self.password_required_length,
            required_unique_chars=self.password_required_unique_chars,
        )

    @property
    def lockout(self) -> LockoutOptions:
        return LockoutOptions(
            max_failed_access_attempts=self.lockout_max_failed_access_attempts,
            default_lockout=timedelta(minutes=self.lockout_minutes),
        )

    @property
    def config(self) -> ConfigSource:
        return self._config


def load_settings(values: Optional[Mapping[str, Any]] = None) -> Settings:
    """Build settings from the environment, with ``values`` taking precedence.

    When ``values`` is given it is also the lookup used for provider
    credentials.
    """
    if values is None:
        return Settings()
    settings = Settings(**dict(values))
    settings._config = ConfigSource(values)
    return settings


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
