#!/usr/bin/env python3
# main.py
"""
Главная точка входа Track Monitor.
Запускает сервис приёма фиксов или проверяет файл трассы.
"""

from __future__ import annotations

import asyncio
import sys

from track_monitor.config import settings
from track_monitor.common.logger import setup_logging, log_info, log_error
from track_monitor.common.constants import TypeMsg


VALID_MODES = ("ingest", "check-track")


async def run_ingest() -> None:
    """Запускает Track Ingest (HTTP + WebSocket)."""
    import uvicorn

    await log_info(
        f"Запуск Track Ingest на {settings.server.HOST}:{settings.server.PORT}...",
        type_msg=TypeMsg.INFO
    )

    config = uvicorn.Config(
        "track_monitor.services.track_ingest.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("Track Ingest: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def check_track() -> bool:
    """
    Проверяет файл трассы.

    Returns:
        True если трасса загружается, False иначе
    """
    from track_monitor.core.track import TrackPath
    from track_monitor.shared.exceptions import ConfigurationError

    track_file = settings.track.track_path
    try:
        path = TrackPath.load(track_file)
    except ConfigurationError as e:
        await log_error(f"❌ Трасса {track_file} не загружена: {e.message}")
        return False

    await log_info(f"✅ Трасса {track_file}: {len(path)} точек", type_msg=TypeMsg.INFO)
    return True


async def main(mode: str = "ingest") -> int:
    """
    Главная функция запуска.

    Args:
        mode: Режим запуска (ingest, check-track)

    Returns:
        Код выхода процесса
    """
    setup_logging()

    await log_info(
        f"Track Monitor v{settings.system.VERSION} — запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO
    )

    if mode == "check-track":
        return 0 if await check_track() else 1

    await run_ingest()
    await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)
    return 0


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
Track Monitor — мониторинг машин на замкнутой трассе

Использование:
    python main.py [mode]

Режимы:
    ingest                 — Track Ingest: HTTP + WebSocket (по умолчанию)
    check-track            — Проверить файл трассы (TRACK_FILE_PATH)

Примеры:
    python main.py                       # Track Ingest
    python main.py check-track           # Проверка трассы
    TRACK_FILE_PATH=/data/track.csv python main.py
    """)


if __name__ == "__main__":
    mode = "ingest"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in VALID_MODES:
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        sys.exit(asyncio.run(main(mode)))
    except KeyboardInterrupt:
        pass
