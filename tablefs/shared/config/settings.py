# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tablefs.utils.paths import is_valid_table_name

_ENV = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    validate_by_name=True,
)


class DatabaseConfig(BaseSettings):
    url: str = Field("sqlite:///tablefs.db", alias="DATABASE_URL")
    echo: bool = Field(False, alias="DATABASE_ECHO")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")

    model_config = _ENV

    @field_validator("echo", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)


class StorageConfig(BaseSettings):
    table: str = Field("files", alias="TABLEFS_TABLE")
    path_prefix: str | None = Field(None, alias="TABLEFS_PATH_PREFIX")
    spool_max_size: int = Field(2 * 1024 * 1024, ge=0, alias="TABLEFS_SPOOL_MAX_SIZE")
    create_schema: bool = Field(False, alias="TABLEFS_CREATE_SCHEMA")

    model_config = _ENV

    @field_validator("table")
    @classmethod
    def _check_table(cls, value: str) -> str:
        if not is_valid_table_name(value):
            raise ValueError(f"invalid table name: {value!r}")
        return value

    @field_validator("path_prefix", mode="after")
    @classmethod
    def _blank_prefix(cls, value: str | None) -> str | None:
        if value is not None and not value.strip("/"):
            return None
        return value

    @field_validator("create_schema", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)


class ResilienceConfig(BaseSettings):
    max_retries: int = Field(2, ge=0, alias="RESILIENCE_RETRIES")
    backoff_base: float = Field(0.5, ge=0.0, alias="RESILIENCE_BACKOFF_BASE")
    backoff_cap: float = Field(8.0, ge=0.0, alias="RESILIENCE_BACKOFF_CAP")

    model_config = _ENV


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _storage_config_factory() -> StorageConfig:
    return StorageConfig()  # type: ignore[call-arg]


def _resilience_config_factory() -> ResilienceConfig:
    return ResilienceConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: Path | None = Field(None, alias="LOG_FILE")

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    storage: StorageConfig = Field(default_factory=_storage_config_factory)
    resilience: ResilienceConfig = Field(default_factory=_resilience_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )

    @field_validator("log_level", mode="after")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    def is_sqlite(self) -> bool:
        return self.database.url.startswith("sqlite")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "ResilienceConfig",
    "StorageConfig",
    "load_config",
]
