# track_monitor/services/track_ingest/dependencies.py
"""
Зависимости для Track Ingest.

Компоненты создаются в lifespan приложения и хранятся в app.state.
"""

from __future__ import annotations

from fastapi import Request

from track_monitor.core.alerts import AlertDispatcher
from track_monitor.core.positions import TrackPositionEngine
from track_monitor.services.realtime_ws import Broadcaster, ConnectionManager
from track_monitor.services.track_ingest.service import TrackIngestService


def get_engine(request: Request) -> TrackPositionEngine:
    """Движок позиций."""
    return request.app.state.engine


def get_ingest_service(request: Request) -> TrackIngestService:
    """Сервис приёма фиксов."""
    return request.app.state.ingest_service


def get_dispatcher(request: Request) -> AlertDispatcher:
    """SOS-диспетчер."""
    return request.app.state.dispatcher


def get_broadcaster(request: Request) -> Broadcaster:
    """Рассыльщик событий."""
    return request.app.state.broadcaster


def get_connection_manager(request: Request) -> ConnectionManager:
    """Менеджер WebSocket соединений."""
    return request.app.state.manager
