from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .catalog import DEFAULT_CATALOG_PATH


class Settings(BaseSettings):
    """Настройки витрины, читаются из окружения STOREFRONT_* и .env"""

    shop_name: str = Field(default="Go&Ride", description="Название в шапке")
    catalog_path: Path = Field(default=DEFAULT_CATALOG_PATH, description="JSON каталога")
    storage_backend: Literal["file", "session"] = Field(
        default="file",
        description="file - по файлу на посетителя, session - только состояние сессии",
    )
    storage_dir: Path = Field(
        default=Path(".storefront/visitors"),
        description="Каталог файлов посетителей для storage_backend=file",
    )
    log_level: str = Field(default="INFO", description="Уровень логирования")
    log_format: Literal["console", "json"] = Field(
        default="console", description="Рендерер structlog"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STOREFRONT_",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, value: object) -> str:
        return str(value).strip().upper() or "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
