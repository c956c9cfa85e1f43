"""Process configuration for the lyrics relay.

Values are resolved in this order (highest first): explicit keyword arguments,
``LYRICS_RELAY_*`` environment variables, a ``.env`` file, ``config.toml`` and
finally the defaults below. The TOML path can be moved with
``LYRICS_RELAY_CONFIG``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .spotify.constants import LYRICS_URL, TOKEN_URL, USER_AGENT

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "LYRICS_RELAY_CONFIG"
DEFAULT_CONFIG_PATH = "config.toml"


def _split_csv(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return []
        if raw.startswith("["):
            # JSON array in an env var
            return json.loads(raw)
        return [p.strip() for p in raw.split(",") if p.strip()]
    return value


class Settings(BaseSettings):
    # sp_dc cookies, one per upstream account
    cookies: Annotated[list[str], NoDecode] = Field(default_factory=list)

    # Bearer keys accepted from callers; empty means the relay is public
    api_keys: Annotated[list[str], NoDecode] = Field(default_factory=list)

    host: str = "127.0.0.1"
    port: int = 3000

    # Bound on every outbound call to the token and lyrics endpoints
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    lock_scope: Literal["global", "credential"] = "global"

    token_url: str = TOKEN_URL
    lyrics_url: str = LYRICS_URL
    user_agent: str = USER_AGENT

    rate_limit_per_min: int = Field(default=0, ge=0)
    rate_limit_window_s: int = Field(default=60, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="LYRICS_RELAY_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("cookies", "api_keys", mode="before")
    @classmethod
    def _parse_list(cls, value: Any) -> Any:
        return _split_csv(value)

    @field_validator("cookies", "api_keys")
    @classmethod
    def _drop_blank(cls, value: list[str]) -> list[str]:
        return [v.strip() for v in value if v and v.strip()]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_path = os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_path),
            file_secret_settings,
        )

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_keys)


def get_settings(**overrides: Any) -> Settings:
    """Build a fresh ``Settings`` object, applying ``overrides`` on top."""
    settings = Settings(**overrides)
    logger.debug(
        "settings.loaded",
        extra={
            "meta": {
                "credentials": len(settings.cookies),
                "api_keys": len(settings.api_keys),
                "lock_scope": settings.lock_scope,
                "http_timeout_seconds": settings.http_timeout_seconds,
            }
        },
    )
    return settings
