# track_monitor/core/nmea/parser.py
"""
Парсер строки позиционирования от GPS-модема (формат AT+CGPSINFO).

Поля через запятую:
    lat, N|S, lon, E|W, date, time, altitude, speed, course

Широта приходит как DDMM.MMMM, долгота — как DDDMM.MMMM.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from track_monitor.common.constants import NMEA_MIN_FIELDS
from track_monitor.shared.exceptions import MalformedInputError


# Числовой префикс строки: "12.5m" -> "12.5"
_DECIMAL_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class Fix:
    """Разобранный GPS-фикс в десятичных градусах."""
    latitude: float
    longitude: float
    altitude: float
    speed: float
    course: float


def to_decimal(raw: str, hemisphere: str) -> float:
    """
    Переводит градусы с десятичными минутами в десятичные градусы.

    Для N/S градусы занимают 2 символа, иначе 3. Для S/W результат
    отрицательный.
    """
    degree_length = 2 if hemisphere in ("N", "S") else 3
    try:
        degrees = int(raw[:degree_length])
        minutes = float(raw[degree_length:])
    except ValueError as e:
        raise MalformedInputError(
            f"Некорректная координата: {raw!r}",
            details={"value": raw, "hemisphere": hemisphere},
        ) from e

    decimal = degrees + minutes / 60
    if hemisphere in ("S", "W"):
        decimal = -decimal
    return decimal


def parse_decimal(value: str) -> float:
    """
    Разбирает числовой префикс строки.

    Строка без числового префикса даёт NaN, а не ошибку.
    """
    match = _DECIMAL_PREFIX.match(value)
    if match is None:
        return math.nan
    return float(match.group(0))


def parse_nmea(sentence: str) -> Fix:
    """
    Разбирает строку позиционирования в Fix.

    Raises:
        MalformedInputError: меньше 9 полей, пустое обязательное поле
            или нечисловая координата
    """
    parts = sentence.split(",")
    if len(parts) < NMEA_MIN_FIELDS:
        raise MalformedInputError(
            "Некорректные NMEA данные: недостаточно полей",
            details={"fields": len(parts), "required": NMEA_MIN_FIELDS},
        )

    raw_lat, lat_hemisphere, raw_lon, lon_hemisphere, date, time, altitude, speed, course = parts[:NMEA_MIN_FIELDS]

    required = {
        "latitude": raw_lat,
        "latitude_hemisphere": lat_hemisphere,
        "longitude": raw_lon,
        "longitude_hemisphere": lon_hemisphere,
        "date": date,
        "time": time,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise MalformedInputError(
            "Некорректные NMEA данные: пустые обязательные поля",
            details={"missing": missing},
        )

    return Fix(
        latitude=to_decimal(raw_lat, lat_hemisphere),
        longitude=to_decimal(raw_lon, lon_hemisphere),
        altitude=parse_decimal(altitude),
        speed=parse_decimal(speed),
        course=parse_decimal(course),
    )
