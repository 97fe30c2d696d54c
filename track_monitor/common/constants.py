# track_monitor/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class Direction(str, Enum):
    """Направление движения по кольцу трассы."""
    FORWARD = "forward"
    BACKWARD = "backward"

    def __str__(self) -> str:
        return self.value


class EventType(str, Enum):
    """Типы событий, рассылаемых наблюдателям."""
    LOCATION_UPDATE = "locationUpdate"
    SOS = "sos"
    WARNING = "warning"
    OK = "ok"

    def __str__(self) -> str:
        return self.value


# Допуск сравнения координат (градусы)
POSITION_TOLERANCE_DEG = 0.0001

# Минимальное число полей в NMEA-строке
NMEA_MIN_FIELDS = 9
