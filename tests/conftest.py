# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("VEHICLE_TTL_SECONDS", "0")

from track_monitor.core.nmea import Fix
from track_monitor.core.positions import TrackPositionEngine
from track_monitor.core.track import TrackPath


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "track_monitor_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "HOST": "127.0.0.1",
        "PORT": 3001,
        "CORS_ORIGINS": ["http://localhost"],
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "LOG_MAX_BYTES": 1024,
        "LOG_BACKUP_COUNT": 2,
        "TRACK_FILE_PATH": "config/coordinates.csv",
        "POSITION_TOLERANCE_DEG": 0.0005,
        "VEHICLE_TTL_SECONDS": 120,
        "EVICTION_INTERVAL_SECONDS": 10,
        "BROADCAST_QUEUE_SIZE": 50,
        "OBSERVER_QUEUE_SIZE": 5,
        "REDIS_ENABLED": False,
        "REDIS_HOST": "redis.local",
        "REDIS_PORT": 6380,
        "REDIS_DB": 2,
        "REDIS_PASSWORD": "",
        "REDIS_CHANNEL_PREFIX": "test:",
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


# =============================================================================
# ФИКСТУРЫ ТРАССЫ
# =============================================================================

@pytest.fixture
def line_path() -> TrackPath:
    """Трасса из 4 точек: (0,0), (0,1), (0,2), (0,3)."""
    return TrackPath.from_points([(0, 0), (0, 1), (0, 2), (0, 3)])


@pytest.fixture
def loop_path() -> TrackPath:
    """Кольцо из 8 точек по квадрату 2x2."""
    return TrackPath.from_points([
        (0, 0), (0, 1), (0, 2), (1, 2),
        (2, 2), (2, 1), (2, 0), (1, 0),
    ])


@pytest.fixture
def track_csv(tmp_path: Path) -> Path:
    """CSV файл с трассой из 4 точек."""
    csv_file = tmp_path / "track.csv"
    csv_file.write_text("lat,lng\n0,0\n0,1\n0,2\n0,3\n", encoding="utf-8")
    return csv_file


# =============================================================================
# ФИКСТУРЫ ДВИЖКА
# =============================================================================

@pytest.fixture
def engine(line_path: TrackPath) -> TrackPositionEngine:
    """Движок на трассе из 4 точек."""
    return TrackPositionEngine(line_path)


@pytest.fixture
def loop_engine(loop_path: TrackPath) -> TrackPositionEngine:
    """Движок на кольце из 8 точек."""
    return TrackPositionEngine(loop_path)


@pytest.fixture
def make_fix() -> Callable[..., Fix]:
    """Фабрика фиксов с типовыми altitude/speed/course."""
    def _make(latitude: float, longitude: float, altitude: float = 100.0,
              speed: float = 10.0, course: float = 90.0) -> Fix:
        return Fix(
            latitude=latitude,
            longitude=longitude,
            altitude=altitude,
            speed=speed,
            course=course,
        )
    return _make


def _to_minutes(value: float, degree_digits: int) -> str:
    """Десятичные градусы -> DDMM.MMMM / DDDMM.MMMM."""
    value = abs(value)
    degrees = int(value)
    minutes = (value - degrees) * 60
    return f"{degrees:0{degree_digits}d}{minutes:07.4f}"


@pytest.fixture
def make_sentence() -> Callable[..., str]:
    """Фабрика NMEA-строк по десятичным координатам."""
    def _make(latitude: float, longitude: float, altitude: str = "100.0",
              speed: str = "10.0", course: str = "90.0") -> str:
        lat_hemisphere = "N" if latitude >= 0 else "S"
        lon_hemisphere = "E" if longitude >= 0 else "W"
        return ",".join([
            _to_minutes(latitude, 2), lat_hemisphere,
            _to_minutes(longitude, 3), lon_hemisphere,
            "160126", "120000.0", altitude, speed, course,
        ])
    return _make


@pytest.fixture
def sample_sentence() -> str:
    """Пример строки AT+CGPSINFO."""
    return "1258.2960,N,07735.6760,E,160126,120000.0,920.5,12.3,45.0"


# =============================================================================
# ФИКСТУРЫ РАССЫЛКИ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_broadcaster() -> MagicMock:
    """Мок рассыльщика событий."""
    broadcaster = MagicMock()
    broadcaster.publish = MagicMock(return_value=True)
    return broadcaster
