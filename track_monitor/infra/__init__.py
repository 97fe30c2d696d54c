"""
Инфраструктурные клиенты.
"""

from track_monitor.infra.redis_client import RedisClient

__all__ = ["RedisClient"]
