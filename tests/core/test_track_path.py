# tests/core/test_track_path.py
"""
Тесты для геометрии трассы.
"""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from track_monitor.core.track import NearestPoint, TrackPath, TrackPoint
from track_monitor.shared.exceptions import ConfigurationError


class TestTrackPathCreate:
    """Тесты создания трассы."""

    def test_from_pairs(self) -> None:
        """Проверяет создание из пар (lat, lng)."""
        path = TrackPath.from_points([(1, 2), (3, 4)])

        assert len(path) == 2
        assert path[0] == TrackPoint(latitude=1.0, longitude=2.0)
        assert path[1] == TrackPoint(latitude=3.0, longitude=4.0)

    def test_from_track_points(self) -> None:
        """Проверяет создание из TrackPoint."""
        points = [TrackPoint(0.0, 0.0), TrackPoint(0.0, 1.0)]
        path = TrackPath.from_points(points)

        assert path.points == tuple(points)

    def test_empty_raises(self) -> None:
        """Пустая трасса недопустима."""
        with pytest.raises(ConfigurationError):
            TrackPath([])

    def test_index_wraps(self, line_path: TrackPath) -> None:
        """Индексы закольцованы."""
        assert line_path[4] == line_path[0]
        assert line_path[-1] == line_path[3]

    def test_iteration_order(self, line_path: TrackPath) -> None:
        """Итерация идёт в порядке индексов."""
        assert [p.longitude for p in line_path] == [0.0, 1.0, 2.0, 3.0]


class TestTrackPathLoad:
    """Тесты загрузки трассы из CSV."""

    def test_load_csv(self, track_csv: Path) -> None:
        """Проверяет загрузку корректного файла."""
        path = TrackPath.load(track_csv)

        assert len(path) == 4
        assert path[2] == TrackPoint(0.0, 2.0)

    def test_load_with_extra_columns(self, tmp_path: Path) -> None:
        """Лишние колонки игнорируются."""
        csv_file = tmp_path / "track.csv"
        csv_file.write_text("name,lat,lng\na,1.5,2.5\nb,3.5,4.5\n", encoding="utf-8")

        path = TrackPath.load(csv_file)

        assert path.points == (TrackPoint(1.5, 2.5), TrackPoint(3.5, 4.5))

    def test_load_project_track(self, project_root: Path) -> None:
        """Трасса проекта загружается."""
        path = TrackPath.load(project_root / "config" / "coordinates.csv")
        assert len(path) > 0

    def test_missing_file(self, tmp_path: Path) -> None:
        """Отсутствующий файл -> ConfigurationError."""
        with pytest.raises(ConfigurationError):
            TrackPath.load(tmp_path / "missing.csv")

    def test_missing_columns(self, tmp_path: Path) -> None:
        """Файл без колонок lat,lng -> ConfigurationError."""
        csv_file = tmp_path / "track.csv"
        csv_file.write_text("x,y\n1,2\n", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            TrackPath.load(csv_file)

        assert exc_info.value.details == {"columns": ["x", "y"]}

    def test_header_only(self, tmp_path: Path) -> None:
        """Файл без точек -> ConfigurationError."""
        csv_file = tmp_path / "track.csv"
        csv_file.write_text("lat,lng\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            TrackPath.load(csv_file)

    def test_non_numeric_coordinate(self, tmp_path: Path) -> None:
        """Нечисловая координата -> ConfigurationError с номером строки."""
        csv_file = tmp_path / "track.csv"
        csv_file.write_text("lat,lng\n0,0\nabc,1\n", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            TrackPath.load(csv_file)

        assert exc_info.value.details["line"] == 3


class TestNearest:
    """Тесты привязки к ближайшей точке."""

    def test_exact_point(self, line_path: TrackPath) -> None:
        """Точное совпадение даёт нулевую дистанцию."""
        result = line_path.nearest(0.0, 2.0)

        assert result == NearestPoint(track_index=2, track_point=TrackPoint(0.0, 2.0), distance=0.0)

    def test_snaps_to_closest(self, line_path: TrackPath) -> None:
        """Произвольная точка привязывается к ближайшей."""
        result = line_path.nearest(0.3, 2.8)

        assert result.track_index == 3
        assert result.distance == pytest.approx(math.hypot(0.3, 0.2))

    def test_tie_prefers_lower_index(self, line_path: TrackPath) -> None:
        """При равных расстояниях побеждает меньший индекс."""
        assert line_path.nearest(0.0, 1.5).track_index == 1

    def test_nan_input(self, line_path: TrackPath) -> None:
        """NaN координаты дают точку 0 с бесконечной дистанцией."""
        result = line_path.nearest(math.nan, math.nan)

        assert result.track_index == 0
        assert math.isinf(result.distance)

    def test_result_is_track_point(self, loop_path: TrackPath) -> None:
        """Результат всегда одна из точек трассы."""
        for lat, lng in [(0.4, 0.4), (5.0, -3.0), (1.1, 1.9)]:
            assert loop_path.nearest(lat, lng).track_point in loop_path.points


class TestCircularDistance:
    """Тесты дистанции по кольцу."""

    def test_forward_wraps(self, line_path: TrackPath) -> None:
        """Дистанция вперёд через конец кольца."""
        assert line_path.forward_distance(3, 1) == 2
        assert line_path.forward_distance(0, 3) == 3

    def test_backward_wraps(self, line_path: TrackPath) -> None:
        """Дистанция назад через начало кольца."""
        assert line_path.backward_distance(0, 3) == 1
        assert line_path.backward_distance(1, 3) == 2

    def test_same_index_is_zero(self, line_path: TrackPath) -> None:
        """Дистанция до той же точки равна 0."""
        assert line_path.forward_distance(2, 2) == 0
        assert line_path.backward_distance(2, 2) == 0

    def test_forward_plus_backward_is_length(self, loop_path: TrackPath) -> None:
        """Для разных индексов вперёд + назад = длина кольца."""
        n = len(loop_path)
        for a in range(n):
            for b in range(n):
                if a == b:
                    continue
                assert loop_path.forward_distance(a, b) + loop_path.backward_distance(a, b) == n
