# track_monitor/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины — config/config.json.
Адреса и секреты переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "track_monitor"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"


class ServerSettings(BaseModel):
    """Настройки HTTP сервера."""
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class TrackSettings(BaseModel):
    """Настройки трассы и движка позиций."""
    TRACK_FILE_PATH: str = "config/coordinates.csv"
    POSITION_TOLERANCE_DEG: float = Field(default=0.0001, gt=0)
    # 0: машины хранятся всё время жизни процесса
    VEHICLE_TTL_SECONDS: int = Field(default=0, ge=0)
    EVICTION_INTERVAL_SECONDS: int = Field(default=30, ge=1)

    @property
    def track_path(self) -> Path:
        """Абсолютный путь к файлу трассы."""
        path = Path(self.TRACK_FILE_PATH)
        if path.is_absolute():
            return path
        return get_project_root() / path


class BroadcastSettings(BaseModel):
    """Настройки рассылки событий наблюдателям."""
    BROADCAST_QUEUE_SIZE: int = Field(default=1000, ge=1)
    OBSERVER_QUEUE_SIZE: int = Field(default=100, ge=1)


class RedisSettings(BaseModel):
    """Настройки Redis (ретрансляция событий между инстансами)."""
    REDIS_ENABLED: bool = False
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_CHANNEL_PREFIX: str = "track:"

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

def _env_bool(name: str, default: bool) -> bool:
    """Читает булеву переменную окружения."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    track: TrackSettings = Field(default_factory=TrackSettings)
    broadcast: BroadcastSettings = Field(default_factory=BroadcastSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """
        Создаёт объект Settings из плоского словаря config.json.
        Значения окружения имеют приоритет над файлом.
        """
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "track_monitor"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            server=ServerSettings(
                HOST=os.getenv("HOST", data.get("HOST", "0.0.0.0")),
                PORT=int(os.getenv("PORT", data.get("PORT", 3000))),
                CORS_ORIGINS=data.get("CORS_ORIGINS", ["*"]),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            track=TrackSettings(
                TRACK_FILE_PATH=os.getenv("TRACK_FILE_PATH", data.get("TRACK_FILE_PATH", "config/coordinates.csv")),
                POSITION_TOLERANCE_DEG=data.get("POSITION_TOLERANCE_DEG", 0.0001),
                VEHICLE_TTL_SECONDS=int(os.getenv("VEHICLE_TTL_SECONDS", data.get("VEHICLE_TTL_SECONDS", 0))),
                EVICTION_INTERVAL_SECONDS=data.get("EVICTION_INTERVAL_SECONDS", 30),
            ),
            broadcast=BroadcastSettings(
                BROADCAST_QUEUE_SIZE=data.get("BROADCAST_QUEUE_SIZE", 1000),
                OBSERVER_QUEUE_SIZE=data.get("OBSERVER_QUEUE_SIZE", 100),
            ),
            redis=RedisSettings(
                REDIS_ENABLED=_env_bool("REDIS_ENABLED", data.get("REDIS_ENABLED", False)),
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_CHANNEL_PREFIX=data.get("REDIS_CHANNEL_PREFIX", "track:"),
            ),
        )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """Создаёт объект Settings из config/config.json."""
        return cls.from_dict(load_config_json())


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Перед чтением конфига подгружает .env из корня проекта.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
