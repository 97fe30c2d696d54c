# track_monitor/core/alerts/dispatcher.py
"""
SOS-диспетчер.

Рассылает SOS от машины и предупреждает ближайшую машину позади неё.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from track_monitor.common.constants import EventType
from track_monitor.common.logger import log_info, log_warning
from track_monitor.core.positions import TrackPositionEngine
from track_monitor.shared.models import AlertRecord, StatusRecord

if TYPE_CHECKING:
    from track_monitor.services.realtime_ws.broadcaster import Broadcaster


WARNING_TEMPLATE = "Warning: Car {vehicle_id} ahead has sent an SOS alert. Please proceed with caution."


@dataclass(frozen=True)
class AlertResult:
    """Результат SOS: само событие и предупреждение (если есть кого предупредить)."""
    alert: AlertRecord
    warning: AlertRecord | None = None


class AlertDispatcher:
    """
    Диспетчер SOS и статусов.

    Состояние машин читает только через запросы движка.
    """

    def __init__(self, engine: TrackPositionEngine, broadcaster: "Broadcaster") -> None:
        self._engine = engine
        self._broadcaster = broadcaster

        # Статистика
        self._total_alerts = 0
        self._total_warnings = 0
        self._total_statuses = 0

    async def submit_alert(self, vehicle_id: str | None, message: str | None) -> AlertResult:
        """
        Разослать SOS и предупредить машину позади.

        Args:
            vehicle_id: Машина, отправившая SOS
            message: Текст SOS

        Returns:
            SOS и предупреждение (None, если позади никого нет)
        """
        alert = AlertRecord(vehicle_id=vehicle_id, message=message)
        self._broadcaster.publish(EventType.SOS, alert)
        self._total_alerts += 1

        await log_warning(f"SOS от машины {vehicle_id}: {message}")

        trailing = await self._engine.find_trailing(vehicle_id)
        if trailing is None:
            return AlertResult(alert=alert)

        warning = AlertRecord(
            vehicle_id=trailing.vehicle_id,
            message=WARNING_TEMPLATE.format(vehicle_id=vehicle_id),
        )
        self._broadcaster.publish(EventType.WARNING, warning)
        self._total_warnings += 1

        await log_info(f"Предупреждение отправлено машине {trailing.vehicle_id}")
        return AlertResult(alert=alert, warning=warning)

    async def submit_status(self, vehicle_id: str | None, message: str | None) -> StatusRecord:
        """Разослать статус OK с меткой времени."""
        status = StatusRecord(vehicle_id=vehicle_id, message=message)
        self._broadcaster.publish(EventType.OK, [status])
        self._total_statuses += 1

        await log_info(f"Статус OK обновлён: {vehicle_id}")
        return status

    def get_stats(self) -> dict[str, int]:
        """Получить статистику."""
        return {
            "total_alerts": self._total_alerts,
            "total_warnings": self._total_warnings,
            "total_statuses": self._total_statuses,
        }
