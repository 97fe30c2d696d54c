# track_monitor/services/track_ingest/service.py
"""
Бизнес-логика приёма GPS-фиксов.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from track_monitor.common.constants import EventType, TypeMsg
from track_monitor.common.logger import log_error, log_info, log_warning
from track_monitor.core.nmea import parse_nmea
from track_monitor.core.positions import PositionUpdate, TrackPositionEngine
from track_monitor.shared.exceptions import (
    InternalError,
    MalformedInputError,
    MissingFieldError,
    TrackMonitorError,
)

if TYPE_CHECKING:
    from track_monitor.services.realtime_ws.broadcaster import Broadcaster


class TrackIngestService:
    """
    Сервис приёма фиксов от бортовых модулей.

    Ответственности:
    - Проверка обязательных полей
    - Разбор NMEA-строки
    - Обновление позиции в движке
    - Публикация изменившихся позиций наблюдателям
    """

    def __init__(self, engine: TrackPositionEngine, broadcaster: "Broadcaster") -> None:
        self._engine = engine
        self._broadcaster = broadcaster

        # Статистика
        self._accepted = 0
        self._unchanged = 0
        self._rejected = 0

    async def submit_fix(self, vehicle_id: str | None, sentence: str | None) -> PositionUpdate:
        """
        Принять фикс машины.

        Raises:
            MissingFieldError: нет carId или nmea
            MalformedInputError: строка не разбирается
            InternalError: непредвиденная ошибка обновления
        """
        if not vehicle_id:
            self._rejected += 1
            raise MissingFieldError("carId")
        if not sentence:
            self._rejected += 1
            raise MissingFieldError("nmea")

        try:
            fix = parse_nmea(sentence)
        except MalformedInputError as e:
            self._rejected += 1
            await log_warning(
                f"Отклонён фикс машины {vehicle_id}: {e.message}",
                extra={"sentence": sentence},
            )
            raise

        try:
            update = await self._engine.update_position(vehicle_id, fix)
        except TrackMonitorError:
            raise
        except Exception as e:
            await log_error(f"Ошибка обновления позиции {vehicle_id}: {e}", exc_info=True)
            raise InternalError("Внутренняя ошибка обновления позиции") from e

        if not update.changed:
            self._unchanged += 1
            return update

        self._accepted += 1
        self._broadcaster.publish(EventType.LOCATION_UPDATE, [update.record])
        await log_info(f"Позиция машины {vehicle_id} обновлена", type_msg=TypeMsg.DEBUG)
        return update

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "accepted_fixes": self._accepted,
            "unchanged_fixes": self._unchanged,
            "rejected_fixes": self._rejected,
        }
