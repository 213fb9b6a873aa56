"""
═══════════════════════════════════════════════════════════════════════════════
PubCid — Настройки сервиса (Application Configuration)
═══════════════════════════════════════════════════════════════════════════════

Класс PubCidSettings для сервиса первичного идентификатора.
Содержит настройки:
    • API server (host, port, CORS)
    • SharedId sync endpoint
    • Параметры сабмодуля (create / extend / pixelUrl)
    • Cookie (имя, срок жизни, домен)
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pubcid.models.submodule import SubmoduleConfig


class PubCidSettings(BaseSettings):
    """
    Настройки PubCid-сервиса.

    Все параметры читаются из переменных окружения или .env файла.
    Префикс не используется (PUBCID_CREATE, COOKIE_NAME и т.д.).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Среда выполнения ──────────────────────────────────────────────────
    app_env: str = Field(
        default="development",
        description="Application environment: development | staging | production",
    )

    # ── API server ────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8300, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors(cls, v: str | List[str]) -> List[str]:
        """Парсит CORS_ORIGINS из JSON-строки."""
        if isinstance(v, str):
            return json.loads(v)
        return v

    # ── SharedId ──────────────────────────────────────────────────────────
    sharedid_url: str = Field(
        default="https://id.sharedid.org/id",
        description="SharedId sync endpoint (GET, with credentials)",
    )

    # ── Сабмодуль pubCommonId ─────────────────────────────────────────────
    pubcid_create: bool = Field(default=True)
    pubcid_extend: bool = Field(default=False)
    pubcid_pixel_url: str | None = Field(
        default=None,
        description="Pixel URL notified with id=pubcid:<id> on (re)establishment",
    )

    # ── Cookie ────────────────────────────────────────────────────────────
    cookie_name: str = Field(default="_pubcid")
    cookie_expires_days: int = Field(default=365, ge=1)
    cookie_domain: str = Field(
        default="",
        description="Cookie domain scope; empty means host-only cookie",
    )
    device_access: bool = Field(
        default=True,
        description="Whether persistent device storage is permitted",
    )

    @model_validator(mode="after")
    def _validate_sharedid_url(self) -> "PubCidSettings":
        """В production SharedId вызывается только по https."""
        if self.app_env == "production" and not self.sharedid_url.startswith("https://"):
            raise ValueError(
                f"SHAREDID_URL must use https in production, got {self.sharedid_url!r}"
            )
        return self

    def submodule_config(self) -> SubmoduleConfig:
        """Собирает SubmoduleConfig из настроек окружения."""
        return SubmoduleConfig(
            create=self.pubcid_create,
            extend=self.pubcid_extend,
            pixel_url=self.pubcid_pixel_url or None,
        )


@lru_cache
def get_settings() -> PubCidSettings:
    """
    Возвращает единственный экземпляр PubCidSettings (singleton).

    Декоратор ``@lru_cache`` гарантирует, что объект создаётся
    только при первом вызове.
    """
    return PubCidSettings()


__all__ = ["PubCidSettings", "get_settings"]
