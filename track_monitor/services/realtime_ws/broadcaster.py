# track_monitor/services/realtime_ws/broadcaster.py
"""
Канал событий от движка к наблюдателям.

publish() не блокирует вызывающего: событие кладётся в очередь,
отдельная задача раздаёт его наблюдателям и, если настроено, в Redis.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from track_monitor.common.constants import EventType, TypeMsg
from track_monitor.common.logger import get_logger, log_error, log_info

if TYPE_CHECKING:
    from track_monitor.infra.redis_client import RedisClient
    from track_monitor.services.realtime_ws.connection_manager import ConnectionManager


def serialize_payload(payload: Any) -> Any:
    """Приводит записи к JSON-совместимому виду (carId, ISO-даты, null вместо NaN)."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True)
    if isinstance(payload, (list, tuple)):
        return [serialize_payload(item) for item in payload]
    return payload


class Broadcaster:
    """
    Рассыльщик событий.

    Все наблюдатели получают один и тот же поток событий в порядке
    публикации.
    """

    def __init__(
        self,
        manager: "ConnectionManager",
        redis: "RedisClient | None" = None,
        channel_prefix: str = "track:",
        queue_size: int = 1000,
    ) -> None:
        """
        Args:
            manager: Менеджер WebSocket соединений
            redis: Клиент Redis для ретрансляции (None — без ретрансляции)
            channel_prefix: Префикс каналов Redis
            queue_size: Размер очереди событий
        """
        self._manager = manager
        self._redis = redis
        self._channel_prefix = channel_prefix
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=queue_size)
        self._task: asyncio.Task | None = None
        self._running = False

        # Статистика
        self._published = 0
        self._dropped = 0
        self._delivered = 0

    @property
    def is_running(self) -> bool:
        """Запущена ли задача рассылки."""
        return self._running

    def publish(self, event_type: EventType, payload: Any) -> bool:
        """
        Поставить событие в очередь рассылки.

        Не блокирует; при переполненной очереди событие отбрасывается.

        Returns:
            True если событие поставлено в очередь
        """
        message = {"event": event_type.value, "data": serialize_payload(payload)}
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self._dropped += 1
            get_logger().warning(f"Очередь рассылки переполнена, событие {event_type.value} отброшено")
            return False

        self._published += 1
        return True

    async def start(self) -> None:
        """Запустить задачу рассылки."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        await log_info("Рассылка событий запущена", type_msg=TypeMsg.DEBUG)

    async def stop(self) -> None:
        """Остановить задачу рассылки."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def drain(self) -> None:
        """Дождаться раздачи всех событий из очереди."""
        await self._queue.join()

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "published_events": self._published,
            "dropped_events": self._dropped,
            "delivered_events": self._delivered,
            "pending_events": self._queue.qsize(),
        }

    async def _run(self) -> None:
        """Раздавать события из очереди."""
        while self._running:
            message = await self._queue.get()
            try:
                await self._dispatch(message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Логируем ошибку, но продолжаем работу
                await log_error(f"Ошибка рассылки события: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    async def _dispatch(self, message: dict[str, Any]) -> None:
        """Отправить событие наблюдателям и в Redis."""
        await self._manager.broadcast_all(message)
        self._delivered += 1

        if self._redis is not None:
            channel = f"{self._channel_prefix}{message['event']}"
            try:
                await self._redis.publish(channel, json.dumps(message, ensure_ascii=False, default=str))
            except Exception as e:
                await log_error(f"Не удалось ретранслировать событие в Redis: {e}")
