"""
Realtime рассылка — WebSocket наблюдатели.

Обеспечивает:
- Неблокирующую публикацию событий движка
- Раздачу событий всем наблюдателям в порядке публикации
- Отключение медленных и разорванных соединений
- Ретрансляцию в Redis Pub/Sub (опционально)
"""

from track_monitor.services.realtime_ws.broadcaster import Broadcaster, serialize_payload
from track_monitor.services.realtime_ws.connection_manager import ConnectionManager, ObserverConnection

__all__ = [
    "Broadcaster",
    "ConnectionManager",
    "ObserverConnection",
    "serialize_payload",
]
