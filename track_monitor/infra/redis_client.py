# track_monitor/infra/redis_client.py
"""
Клиент Redis для ретрансляции событий в Pub/Sub.

Позволяет другим инстансам и внешним дашбордам получать тот же поток
событий, что и WebSocket наблюдатели.
"""

from __future__ import annotations

import redis.asyncio as redis

from track_monitor.common.constants import TypeMsg
from track_monitor.common.logger import log_error, log_info


class RedisClient:
    """Асинхронный клиент Redis (только публикация)."""

    def __init__(self) -> None:
        self._client: redis.Redis | None = None

    @property
    def client(self) -> redis.Redis:
        """Возвращает клиент Redis."""
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    @property
    def is_connected(self) -> bool:
        """Есть ли активный клиент."""
        return self._client is not None

    async def connect(self, url: str | None = None) -> None:
        """
        Подключается к Redis.

        Args:
            url: URL Redis (если None, берётся из конфига)
        """
        if self._client is not None:
            return

        if url is None:
            from track_monitor.config import settings
            url = settings.redis.url

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)

        self._client = redis.from_url(url, decode_responses=True)
        await self._client.ping()

        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    async def publish(self, channel: str, message: str) -> int:
        """
        Публикует сообщение в канал.

        Returns:
            Количество подписчиков, получивших сообщение
        """
        return await self.client.publish(channel, message)

    async def health_check(self) -> bool:
        """Проверяет доступность Redis."""
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except Exception as e:
            await log_error(f"Redis недоступен: {e}")
            return False
