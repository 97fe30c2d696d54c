# track_monitor/services/realtime_ws/connection_manager.py
"""
Менеджер WebSocket соединений наблюдателей.

У каждого наблюдателя своя ограниченная очередь и своя задача отправки,
поэтому медленный клиент не задерживает остальных.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import WebSocket

from track_monitor.common.logger import log_debug, log_warning


@dataclass
class ObserverConnection:
    """Информация о соединении наблюдателя."""
    observer_id: str
    websocket: WebSocket
    queue: asyncio.Queue
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sender_task: asyncio.Task | None = None


class ConnectionManager:
    """
    Менеджер WebSocket соединений.

    Поддерживает:
    - Подключение/отключение наблюдателей
    - Рассылку события всем (без фильтрации по наблюдателю)
    - Персональные сообщения (pong, приветствие)
    """

    def __init__(self, queue_size: int = 100) -> None:
        """
        Args:
            queue_size: Размер очереди исходящих сообщений наблюдателя
        """
        self._queue_size = queue_size

        # observer_id -> ObserverConnection
        self._connections: dict[str, ObserverConnection] = {}

        # Для статистики
        self._total_connections: int = 0
        self._total_messages_sent: int = 0
        self._dropped_observers: int = 0

    @property
    def active_connections(self) -> int:
        """Количество активных соединений."""
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> str:
        """
        Принять соединение и зарегистрировать наблюдателя.

        Первым сообщением наблюдатель получает свой observer_id.

        Returns:
            Идентификатор наблюдателя
        """
        await websocket.accept()

        observer_id = uuid4().hex
        conn = ObserverConnection(
            observer_id=observer_id,
            websocket=websocket,
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        conn.queue.put_nowait({"event": "connected", "data": {"observer_id": observer_id}})
        conn.sender_task = asyncio.create_task(self._sender(conn))

        self._connections[observer_id] = conn
        self._total_connections += 1

        await log_debug(f"Наблюдатель подключён: {observer_id}")
        return observer_id

    async def disconnect(self, observer_id: str) -> None:
        """Отключить наблюдателя."""
        conn = self._connections.pop(observer_id, None)
        if conn is None:
            return

        current = asyncio.current_task()
        if conn.sender_task and conn.sender_task is not current:
            conn.sender_task.cancel()

        await log_debug(f"Наблюдатель отключён: {observer_id}")

    def send_personal(self, observer_id: str, message: dict[str, Any]) -> bool:
        """
        Поставить сообщение в очередь конкретного наблюдателя.

        Returns:
            True если сообщение поставлено, False если наблюдателя нет
            или его очередь переполнена
        """
        conn = self._connections.get(observer_id)
        if conn is None:
            return False

        try:
            conn.queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            return False

    async def broadcast_all(self, message: dict[str, Any]) -> int:
        """
        Поставить сообщение в очереди всех наблюдателей.

        Наблюдатель с переполненной очередью отключается.

        Returns:
            Количество наблюдателей, получивших сообщение в очередь
        """
        queued = 0
        slow_observers: list[str] = []

        for observer_id, conn in self._connections.items():
            try:
                conn.queue.put_nowait(message)
                queued += 1
            except asyncio.QueueFull:
                slow_observers.append(observer_id)

        for observer_id in slow_observers:
            self._dropped_observers += 1
            await log_warning(
                f"Наблюдатель {observer_id} не успевает читать события, отключаем",
            )
            await self._close(observer_id)

        return queued

    async def close_all(self) -> None:
        """Закрыть все соединения (остановка сервиса)."""
        for observer_id in list(self._connections):
            await self._close(observer_id)

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "active_connections": len(self._connections),
            "total_connections_ever": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
            "dropped_observers": self._dropped_observers,
        }

    async def _sender(self, conn: ObserverConnection) -> None:
        """Отправлять сообщения из очереди наблюдателя в сокет."""
        try:
            while True:
                message = await conn.queue.get()
                await conn.websocket.send_json(message)
                self._total_messages_sent += 1
        except asyncio.CancelledError:
            raise
        except Exception:
            # Соединение разорвано
            await self.disconnect(conn.observer_id)

    async def _close(self, observer_id: str) -> None:
        """Отключить наблюдателя и закрыть сокет."""
        conn = self._connections.get(observer_id)
        if conn is None:
            return

        await self.disconnect(observer_id)
        try:
            await conn.websocket.close()
        except Exception:
            pass
