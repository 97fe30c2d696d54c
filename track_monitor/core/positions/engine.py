# track_monitor/core/positions/engine.py
"""
Движок позиций машин на замкнутой трассе.

Привязывает GPS-фиксы к точкам трассы, определяет направление движения
по кольцу и ищет ближайшую машину позади заданной.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable

from track_monitor.common.constants import Direction, POSITION_TOLERANCE_DEG, TypeMsg
from track_monitor.common.logger import log_info
from track_monitor.core.nmea import Fix
from track_monitor.core.track import TrackPath
from track_monitor.shared.models import PositionRecord


@dataclass(frozen=True)
class VehicleState:
    """Последнее принятое состояние машины (координаты всегда точка трассы)."""
    vehicle_id: str
    latitude: float
    longitude: float
    altitude: float
    speed: float
    course: float
    direction: Direction

    def to_record(self) -> PositionRecord:
        """Запись для рассылки: {carId, ...state}."""
        return PositionRecord(
            vehicle_id=self.vehicle_id,
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            speed=self.speed,
            course=self.course,
            direction=self.direction,
        )


@dataclass(frozen=True)
class PositionUpdate:
    """Результат обновления позиции."""
    record: PositionRecord
    changed: bool


class TrackPositionEngine:
    """
    Владелец состояния всех машин.

    Обновление (шаги привязки, выбора направления и записи) и поиск
    машины позади выполняются под одним asyncio.Lock, поэтому каждое
    обновление атомарно, а поиск видит согласованный снимок.
    Трасса неизменяема и блокировки не требует.
    """

    def __init__(
        self,
        path: TrackPath,
        tolerance: float = POSITION_TOLERANCE_DEG,
        vehicle_ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            path: Трасса
            tolerance: Допуск (градусы), в пределах которого позиция
                считается неизменной
            vehicle_ttl_seconds: Время жизни машины без фиксов; 0 — бессрочно
            clock: Источник монотонного времени
        """
        self._path = path
        self._tolerance = tolerance
        self._vehicle_ttl = vehicle_ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()

        # vehicle_id -> VehicleState (порядок вставки важен для find_trailing)
        self._vehicles: dict[str, VehicleState] = {}
        # vehicle_id -> время последнего фикса, включая неизменные
        self._last_seen: dict[str, float] = {}

        # Статистика
        self._total_updates = 0
        self._suppressed_updates = 0
        self._evicted_vehicles = 0

    @property
    def path(self) -> TrackPath:
        """Трасса движка."""
        return self._path

    # =========================================================================
    # ОБНОВЛЕНИЕ ПОЗИЦИИ
    # =========================================================================

    async def update_position(self, vehicle_id: str, fix: Fix) -> PositionUpdate:
        """
        Привязывает фикс к трассе и обновляет состояние машины.

        1. Привязка фикса к ближайшей точке трассы
        2. Если точка совпадает с текущей (в пределах допуска) — без изменений
        3. Новая машина начинает с направления forward
        4. Иначе направление выбирается по кратчайшей дуге кольца
        5. Координаты — всегда ближайшая точка трассы
        6. Запись нового состояния одним присваиванием
        """
        async with self._lock:
            nearest = self._path.nearest(fix.latitude, fix.longitude)
            nearest_point = nearest.track_point
            current = self._vehicles.get(vehicle_id)

            if current is not None and self._is_same_position(current, nearest_point.latitude, nearest_point.longitude):
                self._last_seen[vehicle_id] = self._clock()
                self._suppressed_updates += 1
                return PositionUpdate(record=current.to_record(), changed=False)

            if current is None:
                direction = Direction.FORWARD
            else:
                current_index = self._path.nearest(current.latitude, current.longitude).track_index
                direction = self._infer_direction(current_index, nearest.track_index, current.direction)

            # При любом направлении координаты равны ближайшей точке трассы
            new_state = VehicleState(
                vehicle_id=vehicle_id,
                latitude=nearest_point.latitude,
                longitude=nearest_point.longitude,
                altitude=fix.altitude,
                speed=fix.speed,
                course=fix.course,
                direction=direction,
            )
            self._vehicles[vehicle_id] = new_state
            self._last_seen[vehicle_id] = self._clock()
            self._total_updates += 1

        await log_info(
            f"Позиция {vehicle_id}: точка {nearest.track_index}, {direction.value}",
            type_msg=TypeMsg.DEBUG,
        )
        return PositionUpdate(record=new_state.to_record(), changed=True)

    def _is_same_position(self, state: VehicleState, latitude: float, longitude: float) -> bool:
        """Совпадают ли координаты в пределах допуска по обеим осям."""
        return (
            abs(state.latitude - latitude) < self._tolerance
            and abs(state.longitude - longitude) < self._tolerance
        )

    def _infer_direction(
        self,
        current_index: int,
        nearest_index: int,
        previous: Direction,
    ) -> Direction:
        """Направление движения между двумя индексами кольца."""
        if nearest_index == current_index:
            return previous

        forward = self._path.forward_distance(current_index, nearest_index)
        backward = self._path.backward_distance(current_index, nearest_index)
        return Direction.FORWARD if forward <= backward else Direction.BACKWARD

    # =========================================================================
    # ПОИСК МАШИНЫ ПОЗАДИ
    # =========================================================================

    async def find_trailing(self, vehicle_id: str | None) -> VehicleState | None:
        """
        Находит ближайшую машину позади заданной.

        "Позади" — минимальная положительная дистанция вперёд по индексам
        от точки заданной машины, независимо от направления движения.
        Машины в той же точке (дистанция 0) не учитываются. При равенстве
        побеждает машина, добавленная раньше.
        """
        async with self._lock:
            target = self._vehicles.get(vehicle_id) if vehicle_id is not None else None
            if target is None:
                return None

            target_index = self._path.nearest(target.latitude, target.longitude).track_index
            trailing: VehicleState | None = None
            min_distance: int | None = None

            for other_id, state in self._vehicles.items():
                if other_id == vehicle_id:
                    continue

                index = self._path.nearest(state.latitude, state.longitude).track_index
                distance = self._path.forward_distance(target_index, index)

                if distance > 0 and (min_distance is None or distance < min_distance):
                    min_distance = distance
                    trailing = state

            return trailing

    # =========================================================================
    # ЧТЕНИЕ СОСТОЯНИЯ
    # =========================================================================

    async def get_vehicle(self, vehicle_id: str) -> VehicleState | None:
        """Текущее состояние машины."""
        async with self._lock:
            return self._vehicles.get(vehicle_id)

    async def list_vehicles(self) -> list[VehicleState]:
        """Все машины в порядке первого появления."""
        async with self._lock:
            return list(self._vehicles.values())

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "track_points": len(self._path),
            "vehicles": len(self._vehicles),
            "total_updates": self._total_updates,
            "suppressed_updates": self._suppressed_updates,
            "evicted_vehicles": self._evicted_vehicles,
        }

    # =========================================================================
    # ВЫТЕСНЕНИЕ
    # =========================================================================

    async def evict_stale(self, now: float | None = None) -> list[str]:
        """
        Удаляет машины без фиксов дольше vehicle_ttl_seconds.

        При vehicle_ttl_seconds=0 ничего не удаляет.

        Returns:
            Идентификаторы удалённых машин
        """
        if self._vehicle_ttl <= 0:
            return []

        async with self._lock:
            now = self._clock() if now is None else now
            stale = [
                vehicle_id
                for vehicle_id, seen_at in self._last_seen.items()
                if now - seen_at > self._vehicle_ttl
            ]
            for vehicle_id in stale:
                self._vehicles.pop(vehicle_id, None)
                del self._last_seen[vehicle_id]
            self._evicted_vehicles += len(stale)

        if stale:
            await log_info(f"Удалены неактивные машины: {', '.join(stale)}")
        return stale
