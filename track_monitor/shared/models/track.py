# track_monitor/shared/models/track.py
"""
Записи, которые уходят наблюдателям и в HTTP ответы.

Поле идентификатора машины сериализуется как ``carId`` —
так его ждут бортовые модули и дашборд.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_serializer

from track_monitor.common.constants import Direction


def utcnow() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


class PositionRecord(BaseModel):
    """Каноническая позиция машины на трассе."""

    vehicle_id: str = Field(alias="carId")
    latitude: float
    longitude: float
    altitude: float | None = None
    speed: float | None = None
    course: float | None = None
    direction: Direction

    class Config:
        populate_by_name = True

    @field_serializer("altitude", "speed", "course")
    def _nan_to_null(self, value: float | None) -> float | None:
        # NaN из парсера не является валидным JSON
        if value is None or math.isnan(value):
            return None
        return value


class AlertRecord(BaseModel):
    """SOS или предупреждение для машины."""

    vehicle_id: str | None = Field(default=None, alias="carId")
    message: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        populate_by_name = True


class StatusRecord(BaseModel):
    """Статус OK от машины."""

    vehicle_id: str | None = Field(default=None, alias="carId")
    message: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        populate_by_name = True
