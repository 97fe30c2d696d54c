# track_monitor/core/track/path.py
"""
Геометрия замкнутой трассы.

Трасса — упорядоченный список точек, загружаемый один раз при старте.
Индексы закольцованы: после N-1 идёт 0.
"""

from __future__ import annotations

import csv
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from track_monitor.shared.exceptions import ConfigurationError


@dataclass(frozen=True)
class TrackPoint:
    """Точка трассы."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class NearestPoint:
    """Результат привязки координат к трассе."""
    track_index: int
    track_point: TrackPoint
    distance: float


class TrackPath:
    """
    Неизменяемая замкнутая трасса.

    Расстояние считается в плоскости градусов (без геодезии): трасса
    занимает небольшую площадь, а порядок точек важнее метров.
    """

    LAT_COLUMN = "lat"
    LNG_COLUMN = "lng"

    def __init__(self, points: Sequence[TrackPoint]) -> None:
        if not points:
            raise ConfigurationError("Трасса не содержит ни одной точки")
        self._points: tuple[TrackPoint, ...] = tuple(points)

    # =========================================================================
    # ЗАГРУЗКА
    # =========================================================================

    @classmethod
    def from_points(
        cls,
        points: Iterable[TrackPoint | tuple[float, float]],
    ) -> "TrackPath":
        """Создаёт трассу из точек или пар (lat, lng)."""
        track_points = [
            p if isinstance(p, TrackPoint) else TrackPoint(float(p[0]), float(p[1]))
            for p in points
        ]
        return cls(track_points)

    @classmethod
    def load(cls, source: str | Path) -> "TrackPath":
        """
        Загружает трассу из CSV с заголовком ``lat,lng``.

        Порядок строк файла задаёт индексы точек и должен совпадать
        с физическим порядком прохождения кольца.

        Raises:
            ConfigurationError: файл недоступен, нет колонок,
                нечисловая координата или ноль точек
        """
        path = Path(source)
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                reader = csv.DictReader(f)
                columns = {name.strip() for name in (reader.fieldnames or [])}
                if not {cls.LAT_COLUMN, cls.LNG_COLUMN} <= columns:
                    raise ConfigurationError(
                        f"В файле трассы нет колонок {cls.LAT_COLUMN},{cls.LNG_COLUMN}: {path}",
                        details={"columns": sorted(columns)},
                    )
                points = [cls._parse_row(row, line) for line, row in enumerate(reader, start=2)]
        except OSError as e:
            raise ConfigurationError(f"Не удалось прочитать файл трассы {path}: {e}") from e

        if not points:
            raise ConfigurationError(f"Файл трассы не содержит точек: {path}")

        return cls(points)

    @classmethod
    def _parse_row(cls, row: dict[str, str], line: int) -> TrackPoint:
        """Разбирает строку CSV в точку трассы."""
        # Лишние значения строки DictReader кладёт под ключ None
        normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}
        try:
            return TrackPoint(
                latitude=float(normalized[cls.LAT_COLUMN]),
                longitude=float(normalized[cls.LNG_COLUMN]),
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Некорректная координата в строке {line} файла трассы",
                details={"line": line, "row": normalized},
            ) from e

    # =========================================================================
    # ДОСТУП К ТОЧКАМ
    # =========================================================================

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> TrackPoint:
        return self._points[index % len(self._points)]

    def __iter__(self) -> Iterator[TrackPoint]:
        return iter(self._points)

    @property
    def points(self) -> tuple[TrackPoint, ...]:
        """Все точки трассы в порядке индексов."""
        return self._points

    # =========================================================================
    # ГЕОМЕТРИЯ
    # =========================================================================

    def nearest(self, latitude: float, longitude: float) -> NearestPoint:
        """
        Находит ближайшую точку трассы полным перебором.

        При равных расстояниях побеждает меньший индекс. Если все
        расстояния NaN, возвращается точка 0 с расстоянием inf.
        """
        best_index = 0
        best_distance = math.inf

        for index, point in enumerate(self._points):
            distance = math.sqrt(
                (latitude - point.latitude) ** 2 + (longitude - point.longitude) ** 2
            )
            if distance < best_distance:
                best_distance = distance
                best_index = index

        return NearestPoint(
            track_index=best_index,
            track_point=self._points[best_index],
            distance=best_distance,
        )

    def forward_distance(self, from_index: int, to_index: int) -> int:
        """Число шагов вперёд (по возрастанию индекса) от from_index до to_index."""
        return (to_index - from_index) % len(self._points)

    def backward_distance(self, from_index: int, to_index: int) -> int:
        """Число шагов назад от from_index до to_index."""
        return (from_index - to_index) % len(self._points)
