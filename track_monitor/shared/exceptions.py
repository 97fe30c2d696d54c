# track_monitor/shared/exceptions.py
"""
Иерархия доменных исключений.
"""

from __future__ import annotations

from typing import Any


class TrackMonitorError(Exception):
    """Базовая ошибка сервиса."""

    error_code: str = "track_monitor_error"
    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(TrackMonitorError):
    """Трасса не загружена: файл недоступен, пуст или повреждён."""

    error_code = "configuration_error"
    status_code = 500


class MalformedInputError(TrackMonitorError):
    """Некорректная или неполная NMEA-строка."""

    error_code = "malformed_input"
    status_code = 400


class MissingFieldError(TrackMonitorError):
    """В запросе отсутствует обязательное поле."""

    error_code = "missing_field"
    status_code = 400

    def __init__(self, field_name: str) -> None:
        super().__init__(
            f"Отсутствует обязательное поле: {field_name}",
            details={"field": field_name},
        )
        self.field_name = field_name


class InternalError(TrackMonitorError):
    """Непредвиденная ошибка при обновлении или запросе."""

    error_code = "internal_error"
    status_code = 500
